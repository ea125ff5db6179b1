"""Data models for resumes, analyses and job listings."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


@dataclass
class ResumeDocument:
    """An uploaded resume; discarded once its text is extracted."""

    content: bytes | str
    mime_type: str | None = None
    filename: str | None = None

    @classmethod
    def from_path(cls, path: Path, mime_type: str | None = None) -> ResumeDocument:
        return cls(content=path.read_bytes(), mime_type=mime_type, filename=path.name)

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class SessionContext:
    """Caller identity passed explicitly into each pipeline invocation."""

    user_id: str | None = None
    session_token: str | None = None


@dataclass(frozen=True)
class AnalysisRequest:
    resume_text: str
    target_role: str


class JobFit(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


@dataclass
class AnalysisResult:
    ats_score: int | None = None
    skill_match_percentage: int | None = None
    summary: str | None = None
    strengths: list[str] = field(default_factory=list)
    weaknesses: list[str] = field(default_factory=list)
    missing_skills: list[str] = field(default_factory=list)
    job_fit: JobFit | None = None
    suggestions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ats_score": self.ats_score,
            "skill_match_percentage": self.skill_match_percentage,
            "summary": self.summary,
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "missing_skills": list(self.missing_skills),
            "job_fit": self.job_fit.value if self.job_fit else None,
            "suggestions": list(self.suggestions),
        }


@dataclass(frozen=True)
class AnalysisRecord:
    """A persisted analysis. A new analysis is always a new record."""

    id: str
    resume_id: str | None
    analyzed_at: str
    result: AnalysisResult

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "resume_id": self.resume_id,
            **self.result.to_dict(),
            "analyzed_at": self.analyzed_at,
        }


@dataclass(frozen=True)
class JobMatchRequest:
    target_role: str
    location_preference: str | None = None
    salary_expectation: str | None = None
    key_skills: tuple[str, ...] = ()
    resume_summary: str | None = None


@dataclass
class JobListing:
    id: str
    title: str
    company: str
    location: str = ""
    job_type: str = ""
    salary_range: str = ""
    match_score: int | None = None
    match_reason: str = ""
    requirements: list[str] = field(default_factory=list)
    posted_date: str = ""
    apply_link: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "company": self.company,
            "location": self.location,
            "type": self.job_type,
            "salary_range": self.salary_range,
            "match_score": self.match_score,
            "match_reason": self.match_reason,
            "requirements": list(self.requirements),
            "posted_date": self.posted_date,
            "apply_link": self.apply_link,
        }
