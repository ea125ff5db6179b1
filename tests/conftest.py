"""
Pytest configuration and shared fixtures.

Puts the project root on sys.path, sets dummy credentials, and provides a
scripted oracle so pipeline tests never touch the network.
"""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

os.environ.setdefault("GROQ_API_KEY", "test-api-key-for-testing")
os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.setdefault("SKILLSYNX_LOG_FILE", "0")

import json
from typing import Any

import pytest

from skillsynx.config import Settings
from skillsynx.oracle import OracleClient


class ScriptedOracle(OracleClient):
    """Replays queued envelopes (or raises queued exceptions) and records prompts."""

    def __init__(self, *replies: Any) -> None:
        self.replies = list(replies)
        self.prompts: list[str] = []

    async def complete(self, prompt: str) -> Any:
        self.prompts.append(prompt)
        if not self.replies:
            raise AssertionError("ScriptedOracle called more times than scripted")
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


SENIOR_FRONTEND_RESUME = (
    "Jane Doe\n"
    "Senior Frontend Developer\n"
    "6 years React, TypeScript and Next.js experience building design systems.\n"
    "Led migration of a 200k-line codebase to React 18, cutting bundle size by 35%.\n"
    "Skills: React, TypeScript, Redux, Jest, Cypress, GraphQL, CSS-in-JS\n"
)


@pytest.fixture
def settings(tmp_path):
    return Settings(api_key="test-key", data_dir=tmp_path / "data", retry_base_delay=0.0)


@pytest.fixture
def resume_text():
    return SENIOR_FRONTEND_RESUME


@pytest.fixture
def analysis_payload():
    return {
        "ats_score": 82,
        "skill_match_percentage": 76,
        "summary": "Senior frontend engineer with deep React expertise.",
        "strengths": ["React", "TypeScript", "Performance tuning"],
        "weaknesses": ["Little backend exposure"],
        "missing_skills": ["Accessibility audits"],
        "job_fit": "High",
        "suggestions": ["Quantify design-system adoption"],
    }


@pytest.fixture
def jobs_payload():
    def make(count: int = 6) -> dict:
        return {
            "jobs": [
                {
                    "id": i,
                    "title": f"Data Scientist {i}",
                    "company": f"Company {i}",
                    "location": "Remote",
                    "type": "Full-time",
                    "salary_range": "$120k - $150k",
                    "match_score": 90 - i,
                    "match_reason": "Strong modelling background",
                    "requirements": ["Python", "SQL", "Statistics"],
                    "posted_date": "2 days ago",
                    "apply_link": f"https://www.linkedin.com/jobs/search/?keywords=Data+Scientist+{i}",
                }
                for i in range(1, count + 1)
            ]
        }

    return make


@pytest.fixture
def fenced():
    """Wrap a payload in a ```json fence the way chat models often do."""

    def wrap(payload: Any) -> str:
        return f"```json\n{json.dumps(payload, indent=2)}\n```"

    return wrap


@pytest.fixture
def scripted():
    """Factory: ``scripted(reply, ...)`` builds a ScriptedOracle."""
    return ScriptedOracle
