"""Render analyses and job matches as Markdown reports."""
from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import urlparse

from skillsynx.config import REPORTS_DIR
from skillsynx.log import get_logger
from skillsynx.models import AnalysisRecord, AnalysisResult, JobListing

log = get_logger(__name__)


def _score(value: int | None) -> str:
    return f"{value}/100" if value is not None else "—"


def _short_url_label(url: str) -> str:
    host = (urlparse(url).hostname or "").replace("www.", "")
    parts = host.split(".")
    return parts[0].capitalize() if parts and parts[0] else "Link"


def _clip(text: str, width: int) -> str:
    return text[:width] + ("…" if len(text) > width else "")


def _bullets(title: str, items: list[str]) -> list[str]:
    if not items:
        return []
    return [f"## {title}", "", *[f"- {item}" for item in items], ""]


def build_analysis_report(result: AnalysisResult, target_role: str | None = None) -> str:
    date = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    heading = f"# Resume Analysis — {target_role}" if target_role else "# Resume Analysis"
    lines: list[str] = [heading, f"_{date}_", ""]

    fit = result.job_fit.value if result.job_fit else "—"
    lines.append(
        f"**ATS score:** {_score(result.ats_score)} | "
        f"**Skill match:** {_score(result.skill_match_percentage)} | "
        f"**Job fit:** {fit}"
    )
    lines.append("")
    if result.summary:
        lines.extend(["## Summary", "", result.summary, ""])

    lines.extend(_bullets("Strengths", result.strengths))
    lines.extend(_bullets("Weaknesses", result.weaknesses))
    lines.extend(_bullets("Missing Skills", result.missing_skills))
    lines.extend(_bullets("Suggestions", result.suggestions))
    return "\n".join(lines)


def build_jobs_report(jobs: list[JobListing], target_role: str) -> str:
    date = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    lines: list[str] = [f"# Suggested Roles — {target_role}", f"_{date}_", ""]
    if not jobs:
        lines.append("No matching roles were generated. Try a broader role or location.")
        return "\n".join(lines)

    lines.append(f"**{len(jobs)}** suggested roles (generated; verify before applying)")
    lines.append("")
    for job in jobs:
        lines.append(f"### {job.title} @ {job.company}")
        lines.append(f"- **Match:** {_score(job.match_score)}")
        if job.location or job.job_type:
            lines.append(f"- **Where:** {' · '.join(p for p in (job.location, job.job_type) if p)}")
        if job.salary_range:
            lines.append(f"- **Salary:** {job.salary_range}")
        if job.match_reason:
            lines.append(f"- **Why:** {job.match_reason}")
        if job.requirements:
            lines.append(f"- **Requirements:** {', '.join(job.requirements[:6])}")
        lines.append(f"- **Apply:** [{_short_url_label(job.apply_link)}]({job.apply_link})")
        lines.append("")

    lines.append("---")
    lines.append("")
    lines.append("## Quick Reference")
    lines.append("")
    lines.append("| # | Role | Company | Location | Match | Apply |")
    lines.append("|--:|------|---------|----------|------:|-------|")
    for i, job in enumerate(jobs, 1):
        loc = job.location.split(",")[0][:18]
        link = f"[{_short_url_label(job.apply_link)}]({job.apply_link})"
        lines.append(
            f"| {i} | {_clip(job.title, 40)} | {_clip(job.company, 22)} | {loc} "
            f"| {_score(job.match_score)} | {link} |"
        )
    lines.append("")
    return "\n".join(lines)


def build_history_report(records: list[AnalysisRecord]) -> str:
    lines: list[str] = ["# Analysis History", ""]
    if not records:
        lines.append("No analyses saved yet.")
        return "\n".join(lines)
    lines.append("| Analyzed | ATS | Skill match | Fit | Id |")
    lines.append("|----------|----:|------------:|-----|----|")
    for r in records:
        fit = r.result.job_fit.value if r.result.job_fit else "—"
        lines.append(
            f"| {r.analyzed_at[:16].replace('T', ' ')} | {_score(r.result.ats_score)} "
            f"| {_score(r.result.skill_match_percentage)} | {fit} | `{r.id[:8]}` |"
        )
    lines.append("")
    return "\n".join(lines)


def write_report(content: str, name: str, directory: Path | None = None) -> Path:
    directory = directory or REPORTS_DIR
    directory.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d_%H%M%S")
    safe = re.sub(r"[^A-Za-z0-9_-]+", "_", name).strip("_")[:40] or "report"
    path = directory / f"{safe}_{stamp}.md"
    path.write_text(content, encoding="utf-8")
    log.info("Report written → %s", path)
    return path
