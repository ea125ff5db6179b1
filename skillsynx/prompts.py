"""Prompt construction for resume analysis and job matching.

The JSON schemas spelled out here are the contract that skillsynx.validator
reads back; a field renamed in one must be renamed in the other.
"""
from __future__ import annotations

from skillsynx.config import DEFAULT_ROLE
from skillsynx.log import get_logger
from skillsynx.models import AnalysisRequest, AnalysisResult, JobMatchRequest

log = get_logger(__name__)

RESUME_CHAR_LIMIT = 4000
SUMMARY_CHAR_LIMIT = 500
JOB_COUNT = 6

DEFAULT_LOCATION = "Flexible/Remote"
DEFAULT_SALARY = "Market Rate"
DEFAULT_SKILLS = "General Professional Skills"
DEFAULT_SUMMARY = "Experienced Professional"

_ANALYSIS_PROMPT = """\
You are an expert ATS (Applicant Tracking System) and Resume Coach.
Analyze the following resume text for the role of "{target_role}".

Resume Text:
"{resume_text}"

Return a valid JSON object with the following structure (do NOT return markdown code blocks, just raw JSON):
{{
  "ats_score": (integer 0-100),
  "skill_match_percentage": (integer 0-100),
  "summary": "Brief professional summary of the candidate",
  "strengths": ["array", "of", "strings"],
  "weaknesses": ["array", "of", "strings"],
  "missing_skills": ["array", "of", "strings"],
  "job_fit": "High" | "Medium" | "Low",
  "suggestions": ["Actionable improvement 1", "Actionable improvement 2"]
}}
"""

_JOB_MATCH_PROMPT = """\
You are a sophisticated Career Matchmaker and Recruiter AI.
Based on the following candidate profile and preferences, identify {count} highly relevant job opportunities.

Candidate Profile:
- Target Role: {target_role}
- Location Preference: {location}
- Salary Expectation: {salary}
- Key Skills: {skills}
- Resume Summary: {summary}

Task:
Generate a JSON list of {count} realistic job listings that would be a perfect fit.
For the "apply_link", since you cannot browse live real-time listings, construct a valid
LinkedIn Job Search URL or Indeed Search URL for that specific title and company.

Return ONLY raw JSON (no markdown code blocks) with this structure:
{{
  "jobs": [
    {{
      "id": 1,
      "title": "Job Title",
      "company": "Company Name (Real, top-tier tech/industry companies)",
      "location": "Location (Remote/Hybrid/City)",
      "type": "Full-time/Contract",
      "salary_range": "$X - $Y",
      "match_score": (integer 0-100),
      "match_reason": "Why this fits the candidate (1 short sentence)",
      "requirements": ["Skill 1", "Skill 2", "Skill 3"],
      "posted_date": "2 days ago",
      "apply_link": "URL"
    }}
  ]
}}
"""


def truncate_resume(text: str, limit: int = RESUME_CHAR_LIMIT) -> str:
    """Keep the first *limit* characters."""
    if len(text) > limit:
        log.debug("Resume text truncated %d → %d chars", len(text), limit)
        return text[:limit]
    return text


def build_analysis_request(
    resume_text: str,
    target_role: str | None = None,
    *,
    char_limit: int = RESUME_CHAR_LIMIT,
    default_role: str = DEFAULT_ROLE,
) -> AnalysisRequest:
    role = (target_role or "").strip() or default_role
    return AnalysisRequest(resume_text=truncate_resume(resume_text, char_limit), target_role=role)


def build_analysis_prompt(request: AnalysisRequest) -> str:
    return _ANALYSIS_PROMPT.format(
        target_role=request.target_role,
        resume_text=request.resume_text,
    )


def build_job_match_request(
    target_role: str | None,
    analysis: AnalysisResult | None = None,
    *,
    resume_text: str | None = None,
    location: str | None = None,
    salary: str | None = None,
    summary_limit: int = SUMMARY_CHAR_LIMIT,
    default_role: str = DEFAULT_ROLE,
) -> JobMatchRequest:
    """Seed a job search from an analysis; every analysis field may be absent."""
    role = (target_role or "").strip()
    if not role:
        log.warning("No target role given — searching for %r", default_role)
        role = default_role

    skills: tuple[str, ...] = tuple(analysis.strengths) if analysis else ()
    summary = analysis.summary if analysis and analysis.summary else None
    if not summary and resume_text and resume_text.strip():
        summary = resume_text.strip()[:summary_limit]

    return JobMatchRequest(
        target_role=role,
        location_preference=(location or "").strip() or None,
        salary_expectation=(salary or "").strip() or None,
        key_skills=skills,
        resume_summary=summary,
    )


def build_job_match_prompt(request: JobMatchRequest, count: int = JOB_COUNT) -> str:
    return _JOB_MATCH_PROMPT.format(
        count=count,
        target_role=request.target_role,
        location=request.location_preference or DEFAULT_LOCATION,
        salary=request.salary_expectation or DEFAULT_SALARY,
        skills=", ".join(request.key_skills) or DEFAULT_SKILLS,
        summary=request.resume_summary or DEFAULT_SUMMARY,
    )
