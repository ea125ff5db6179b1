"""Streamlit UI for the SkillSynx resume analyzer."""
from __future__ import annotations

import asyncio
import html
import json
import sys
from pathlib import Path

import streamlit as st

ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(ROOT))

from skillsynx.config import ensure_dirs, load_settings
from skillsynx.log import get_logger
from skillsynx.models import AnalysisResult, ResumeDocument, SessionContext
from skillsynx.oracle import GroqOracle
from skillsynx.pipeline import AnalysisPipeline, MatchingPipeline
from skillsynx.report import build_analysis_report, build_jobs_report
from skillsynx.storage import FileStore

log = get_logger(__name__)

_CSS = """
<style>
[data-testid="stAppViewContainer"] {
    background: linear-gradient(135deg, #e8eaf6 0%, #f3e5f5 40%, #e0f2f1 100%);
}
.job-card {
    padding: 1rem 1.25rem; margin-bottom: 0.75rem;
    background: rgba(255,255,255,0.6);
    border: 1px solid rgba(74,144,217,0.25);
    border-radius: 12px;
}
</style>
"""

# ── Helpers ──────────────────────────────────────────────────────────────


@st.cache_resource
def _services():
    settings = load_settings()
    ensure_dirs(settings)
    return settings, FileStore(settings.data_dir)


def _oracle(settings) -> GroqOracle:
    # The async HTTP client is bound to the event loop of the run that created it.
    return GroqOracle(settings)


def _context() -> SessionContext:
    return SessionContext(user_id=st.session_state.get("user_id") or None)


def _busy(key: str) -> bool:
    return bool(st.session_state.get(f"{key}_busy"))


def _remember_role(store: FileStore, role: str) -> None:
    user_id = _context().user_id
    if not user_id or not role.strip():
        return
    try:
        profile = store.get_profile(user_id) or {}
        store.save_profile(user_id, {**profile, "target_role": role.strip()})
    except (OSError, ValueError) as exc:
        log.warning("Could not update profile for %s: %s", user_id, exc)


def _start(key: str) -> None:
    """Flag *key* busy and rerender, so its trigger is drawn disabled while it runs."""
    st.session_state[f"{key}_busy"] = True
    st.rerun()


def _run_exclusive(key: str, coro):
    """Run *coro* for a busy *key* and keep the run for the next render."""
    try:
        run = asyncio.run(coro)
    finally:
        st.session_state[f"{key}_busy"] = False
    st.session_state[f"{key}_run"] = run
    return run


def _show_failure(key: str) -> None:
    run = st.session_state.get(f"{key}_run")
    if run is None:
        return
    if not run.ok:
        st.error(run.error.user_message)
        with st.expander("Details"):
            st.code(str(run.error))
    elif run.persist_error:
        st.warning("Analysis complete, but it could not be saved to your history.")


# ── Page: Analyzer ───────────────────────────────────────────────────────


def page_analyzer() -> None:
    settings, store = _services()
    analysis_pipeline = AnalysisPipeline(_oracle(settings), settings, gateway=store)
    st.header("AI Resume Analyzer")
    st.write("Upload a resume or paste its text, then get an ATS-style review.")

    role = st.text_input("Target role", value=st.session_state.get("role", ""),
                         placeholder=settings.default_role)
    uploaded = st.file_uploader("Resume file (PDF, DOCX, TXT, MD)",
                                type=["pdf", "docx", "txt", "md"])
    pasted = st.text_area("…or paste resume text", height=220)

    if st.button("Analyze Resume", type="primary", use_container_width=True,
                 disabled=_busy("analysis") or not (uploaded or pasted.strip())):
        _start("analysis")

    if _busy("analysis"):
        with st.spinner("Analyzing your resume…"):
            if uploaded:
                doc = ResumeDocument(content=uploaded.getvalue(), mime_type=uploaded.type,
                                     filename=uploaded.name)
                run = _run_exclusive("analysis", analysis_pipeline.analyze_document(doc, role, _context()))
            else:
                run = _run_exclusive("analysis", analysis_pipeline.analyze_text(pasted, role, _context()))
        if run.ok:
            st.session_state["analysis"] = run.result
            st.session_state["role"] = role
            st.session_state["resume_text"] = run.resume_text
            _remember_role(store, role)
        st.rerun()
    _show_failure("analysis")

    result: AnalysisResult | None = st.session_state.get("analysis")
    if result:
        st.divider()
        c1, c2, c3 = st.columns(3)
        c1.metric("ATS Score", result.ats_score if result.ats_score is not None else "—")
        c2.metric("Skill Match", f"{result.skill_match_percentage}%"
                  if result.skill_match_percentage is not None else "—")
        c3.metric("Job Fit", result.job_fit.value if result.job_fit else "—")
        st.markdown(build_analysis_report(result, st.session_state.get("role") or None))
        st.download_button("Download JSON", json.dumps(result.to_dict(), indent=2),
                           file_name="analysis.json", mime="application/json")


# ── Page: Job Matches ────────────────────────────────────────────────────


def page_jobs() -> None:
    settings, _ = _services()
    matching_pipeline = MatchingPipeline(_oracle(settings), settings)
    st.header("Suggested Roles")
    st.caption("Listings are generated from your profile; apply links open a job search.")

    analysis: AnalysisResult | None = st.session_state.get("analysis")
    if analysis is None:
        st.info("No analysis yet — results will be based on the target role only.")

    c1, c2, c3 = st.columns(3)
    role = c1.text_input("Target role", value=st.session_state.get("role", ""))
    location = c2.text_input("Location", placeholder="e.g. Remote, San Francisco")
    salary = c3.text_input("Salary expectations", placeholder="e.g. $120k+, Market Rate")

    if st.button("Find Jobs", type="primary", use_container_width=True,
                 disabled=_busy("matching") or not role.strip()):
        _start("matching")

    if _busy("matching"):
        with st.spinner("Finding matching roles…"):
            run = _run_exclusive("matching", matching_pipeline.search(
                role, analysis,
                resume_text=st.session_state.get("resume_text"),
                location=location, salary=salary,
            ))
        if run.ok:
            st.session_state["jobs"] = (role, run.result)
        st.rerun()
    _show_failure("matching")

    searched = st.session_state.get("jobs")
    if searched:
        searched_role, jobs = searched
        if not jobs:
            st.warning("No roles were generated. Try a broader role or location.")
        for job in jobs:
            score = f"{job.match_score}% match" if job.match_score is not None else ""
            where = " · ".join(p for p in (job.location, job.job_type, job.salary_range) if p)
            st.markdown(
                f'<div class="job-card"><strong>{html.escape(job.title)}</strong> @ {html.escape(job.company)}'
                f'<br><span style="color:#666">{html.escape(where)}</span>'
                f'<br>{score} — {html.escape(job.match_reason)}</div>',
                unsafe_allow_html=True,
            )
            st.link_button("Apply", job.apply_link)
        with st.expander("Markdown report"):
            st.markdown(build_jobs_report(jobs, searched_role))


# ── Page: History ────────────────────────────────────────────────────────


def page_history() -> None:
    _, store = _services()
    st.header("Analysis History")
    user_id = st.session_state.get("user_id")
    if not user_id:
        st.info("Enter a user id in the sidebar to save and view analyses.")
        return
    try:
        records = store.list_analyses(user_id)
    except ValueError as exc:
        st.error(str(exc))
        return
    if not records:
        st.info("No analyses saved yet.")
        return
    for record in records:
        r = record.result
        label = f"{record.analyzed_at[:16].replace('T', ' ')} — ATS {r.ats_score if r.ats_score is not None else '—'}"
        with st.expander(label):
            st.markdown(build_analysis_report(r))
            st.download_button("Download JSON", json.dumps(record.to_dict(), indent=2),
                               file_name=f"analysis_{record.id}.json", mime="application/json",
                               key=f"dl_{record.id}")


def _sidebar() -> None:
    _, store = _services()
    with st.sidebar:
        user_id = st.text_input("User id (optional)", key="user_id",
                                help="Analyses are saved under this id.")
        if not user_id:
            return
        try:
            store.initialize_user(user_id)
            profile = store.get_profile(user_id) or {}
        except ValueError as exc:
            st.error(str(exc))
            return
        if profile.get("target_role") and not st.session_state.get("role"):
            st.session_state["role"] = profile["target_role"]


def _wrap(page):
    def render() -> None:
        st.markdown(_CSS, unsafe_allow_html=True)
        _sidebar()
        page()
    render.__name__ = page.__name__
    return render


pages = [
    st.Page(_wrap(page_analyzer), title="Analyzer", icon="🧠", url_path="analyzer", default=True),
    st.Page(_wrap(page_jobs), title="Job Matches", icon="💼", url_path="jobs"),
    st.Page(_wrap(page_history), title="History", icon="📋", url_path="history"),
]

nav = st.navigation(pages)
nav.run()
