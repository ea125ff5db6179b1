"""Per-user JSON document store for resumes and analyses.

Layout under the data directory::

    users/{user_id}/profile.json
    users/{user_id}/resumes/{resume_id}.json
    users/{user_id}/analyses/{analysis_id}.json
"""
from __future__ import annotations

import json
import os
import re
import tempfile
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from skillsynx.errors import MalformedResponseError
from skillsynx.log import get_logger
from skillsynx.models import AnalysisRecord, AnalysisResult
from skillsynx.validator import validate_analysis

log = get_logger(__name__)

_ID_RE = re.compile(r"^[A-Za-z0-9._@-]{1,128}$")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _check_id(value: str, kind: str) -> str:
    if not value or not _ID_RE.match(value) or value in (".", ".."):
        raise ValueError(f"Invalid {kind} id: {value!r}")
    return value


class PersistenceGateway(ABC):
    @abstractmethod
    def save_resume(self, user_id: str, metadata: dict[str, Any]) -> dict[str, Any]:
        """Store resume metadata; return it with ``id`` and ``created_at``."""

    @abstractmethod
    def save_analysis(
        self, user_id: str, result: AnalysisResult, resume_id: str | None
    ) -> AnalysisRecord:
        pass

    @abstractmethod
    def list_analyses(self, user_id: str) -> list[AnalysisRecord]:
        """Newest first."""


class FileStore(PersistenceGateway):
    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir)

    # ── Paths ────────────────────────────────────────────────────────────

    def _user_dir(self, user_id: str) -> Path:
        return self.base_dir / "users" / _check_id(user_id, "user")

    def initialize_user(self, user_id: str) -> Path:
        base = self._user_dir(user_id)
        for sub in ("resumes", "analyses"):
            (base / sub).mkdir(parents=True, exist_ok=True)
        return base

    # ── JSON I/O ─────────────────────────────────────────────────────────

    @staticmethod
    def _write_json(path: Path, data: dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=".", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    @staticmethod
    def _read_json(path: Path) -> dict[str, Any] | None:
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    # ── Profile ──────────────────────────────────────────────────────────

    def save_profile(self, user_id: str, profile: dict[str, Any]) -> dict[str, Any]:
        data = {**profile, "updated_at": _now()}
        self._write_json(self._user_dir(user_id) / "profile.json", data)
        return data

    def get_profile(self, user_id: str) -> dict[str, Any] | None:
        return self._read_json(self._user_dir(user_id) / "profile.json")

    # ── Resumes ──────────────────────────────────────────────────────────

    def save_resume(self, user_id: str, metadata: dict[str, Any]) -> dict[str, Any]:
        resume_id = _check_id(metadata.get("id") or str(uuid.uuid4()), "resume")
        data = {**metadata, "id": resume_id, "created_at": _now()}
        self._write_json(self._user_dir(user_id) / "resumes" / f"{resume_id}.json", data)
        log.info("Saved resume metadata %s for %s", resume_id, user_id)
        return data

    # ── Analyses ─────────────────────────────────────────────────────────

    def save_analysis(
        self, user_id: str, result: AnalysisResult, resume_id: str | None
    ) -> AnalysisRecord:
        record = AnalysisRecord(
            id=str(uuid.uuid4()),
            resume_id=resume_id,
            analyzed_at=_now(),
            result=result,
        )
        self._write_json(
            self._user_dir(user_id) / "analyses" / f"{record.id}.json", record.to_dict()
        )
        log.info("Saved analysis %s for %s", record.id, user_id)
        return record

    @staticmethod
    def _to_record(data: dict[str, Any]) -> AnalysisRecord:
        return AnalysisRecord(
            id=data["id"],
            resume_id=data.get("resume_id"),
            analyzed_at=data.get("analyzed_at", ""),
            result=validate_analysis(json.dumps(data)),
        )

    def get_analysis(self, user_id: str, analysis_id: str) -> AnalysisRecord | None:
        path = self._user_dir(user_id) / "analyses" / f"{_check_id(analysis_id, 'analysis')}.json"
        data = self._read_json(path)
        return self._to_record(data) if data else None

    def list_analyses(self, user_id: str) -> list[AnalysisRecord]:
        directory = self._user_dir(user_id) / "analyses"
        if not directory.exists():
            return []
        records: list[AnalysisRecord] = []
        for path in directory.glob("*.json"):
            try:
                data = self._read_json(path)
                if data and data.get("id"):
                    records.append(self._to_record(data))
            except (ValueError, MalformedResponseError) as exc:
                log.warning("Skipping unreadable analysis %s: %s", path.name, exc)
        records.sort(key=lambda r: r.analyzed_at, reverse=True)
        return records
