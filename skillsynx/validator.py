"""Parse sanitized oracle text into typed results.

Parsing is strict: text that is not JSON raises MalformedResponseError and is
never guessed at. Once parsed, an incomplete payload is normalised: list
fields default to [], scores are clamped to 0..100, and a missing score
stays None for the caller to present. An object carrying none of the
analysis fields is not an incomplete analysis and raises.
"""
from __future__ import annotations

import json
import math
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlencode

from skillsynx.errors import MalformedResponseError
from skillsynx.log import get_logger
from skillsynx.models import AnalysisResult, JobFit, JobListing
from skillsynx.prompts import JOB_COUNT

log = get_logger(__name__)

SCORE_MIN = 0
SCORE_MAX = 100

_ANALYSIS_KEYS: set[str] = {
    "ats_score", "skill_match_percentage", "summary", "strengths",
    "weaknesses", "missing_skills", "job_fit", "suggestions",
}
_LIST_FIELDS: tuple[str, ...] = ("strengths", "weaknesses", "missing_skills", "suggestions")

LINKEDIN_SEARCH_URL = "https://www.linkedin.com/jobs/search/"


def parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError) as exc:
        raise MalformedResponseError(f"Oracle reply is not valid JSON: {exc}", raw=str(text)) from exc


# ── Field coercion ───────────────────────────────────────────────────────


def clamp_score(value: Any, field_name: str = "score") -> int | None:
    """Round and clamp a numeric value into 0..100; None if absent or unreadable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        stripped = value.strip().rstrip("%").strip()
        if not stripped:
            return None
        try:
            value = float(stripped)
        except ValueError:
            log.warning("Ignoring non-numeric %s: %r", field_name, value)
            return None
    if not isinstance(value, (int, float)) or math.isnan(value):
        log.warning("Ignoring non-numeric %s: %r", field_name, value)
        return None
    if math.isinf(value):
        return SCORE_MAX if value > 0 else SCORE_MIN
    clamped = max(SCORE_MIN, min(SCORE_MAX, int(round(value))))
    if clamped != value:
        log.debug("%s %r normalised to %d", field_name, value, clamped)
    return clamped


def as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if not isinstance(value, (list, tuple)):
        value = [value]
    items: list[str] = []
    for item in value:
        if item is None or isinstance(item, (Mapping, list, tuple)):
            continue
        text = str(item).strip()
        if text:
            items.append(text)
    return items


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_job_fit(value: Any) -> JobFit | None:
    if value is None:
        return None
    words = str(value).strip().split()
    if words:
        first = words[0].strip(".,;:!/").capitalize()
        for fit in JobFit:
            if fit.value == first:
                return fit
    log.warning("Unknown job_fit %r — leaving it unset", value)
    return None


# ── Payload location ─────────────────────────────────────────────────────


def _analysis_payload(data: Any) -> Mapping:
    if isinstance(data, list) and len(data) == 1:
        data = data[0]
    if isinstance(data, Mapping) and not (_ANALYSIS_KEYS & data.keys()) and len(data) == 1:
        (inner,) = data.values()
        if isinstance(inner, Mapping):
            data = inner
    if not isinstance(data, Mapping):
        raise MalformedResponseError(
            f"Expected a JSON object for the analysis, got {type(data).__name__}",
            raw=json.dumps(data)[:200],
        )
    return data


def _job_items(data: Any) -> list:
    if isinstance(data, list):
        return data
    if isinstance(data, Mapping):
        if isinstance(data.get("jobs"), list):
            return data["jobs"]
        if len(data) == 1:
            (inner,) = data.values()
            if isinstance(inner, list):
                return inner
        if data.get("jobs") is None and "jobs" in data:
            return []
    raise MalformedResponseError(
        f"Expected a job list, got {type(data).__name__}",
        raw=json.dumps(data)[:200],
    )


# ── Public API ───────────────────────────────────────────────────────────


def validate_analysis(text: str) -> AnalysisResult:
    payload = _analysis_payload(parse_json(text))
    if not _ANALYSIS_KEYS & payload.keys():
        raise MalformedResponseError(
            "Oracle reply has none of the analysis fields", raw=str(text)
        )
    missing = _ANALYSIS_KEYS - payload.keys()
    if missing:
        log.debug("Analysis reply missing fields: %s", ", ".join(sorted(missing)))
    return AnalysisResult(
        ats_score=clamp_score(payload.get("ats_score"), "ats_score"),
        skill_match_percentage=clamp_score(
            payload.get("skill_match_percentage"), "skill_match_percentage"
        ),
        summary=_as_text(payload.get("summary")),
        job_fit=_as_job_fit(payload.get("job_fit")),
        **{name: as_str_list(payload.get(name)) for name in _LIST_FIELDS},
    )


def search_url(title: str, company: str) -> str:
    keywords = " ".join(part for part in (title, company) if part)
    return f"{LINKEDIN_SEARCH_URL}?{urlencode({'keywords': keywords})}"


def _job_listing(item: Mapping, position: int) -> JobListing:
    title = _as_text(item.get("title")) or ""
    company = _as_text(item.get("company")) or ""
    link = _as_text(item.get("apply_link") or item.get("link")) or ""
    if not link.lower().startswith(("http://", "https://")):
        link = search_url(title, company)
    return JobListing(
        id=_as_text(item.get("id")) or str(position),
        title=title,
        company=company,
        location=_as_text(item.get("location")) or "",
        job_type=_as_text(item.get("type")) or "",
        salary_range=_as_text(item.get("salary_range")) or "",
        match_score=clamp_score(item.get("match_score"), "match_score"),
        match_reason=_as_text(item.get("match_reason")) or "",
        requirements=as_str_list(item.get("requirements")),
        posted_date=_as_text(item.get("posted_date")) or "",
        apply_link=link,
    )


def validate_job_list(text: str, limit: int = JOB_COUNT) -> list[JobListing]:
    """Parse a job list; at most *limit* listings, fewer if the oracle under-produced."""
    items = _job_items(parse_json(text))
    jobs: list[JobListing] = []
    for position, item in enumerate(items, 1):
        if not isinstance(item, Mapping):
            log.warning("Skipping job entry %d: expected an object, got %s", position, type(item).__name__)
            continue
        jobs.append(_job_listing(item, position))
        if len(jobs) == limit:
            break
    if len(items) > limit:
        log.debug("Oracle returned %d jobs, kept %d", len(items), limit)
    return jobs
