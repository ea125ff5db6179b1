"""
Resume analysis and job matching pipelines.

Analysis:  document → extract → prompt → oracle → sanitize → validate → (persist)
Matching:  analysis subset + preferences → prompt → oracle → sanitize → validate

Each invocation gets a fresh PipelineRun state machine. Failures end in
FAILED with the error attached; nothing is retried here beyond what the
oracle client is configured to do.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Generic, TypeVar

from skillsynx.config import Settings
from skillsynx.errors import ExtractionError, SkillSynxError
from skillsynx.extractor import extract_text_async
from skillsynx.log import get_logger
from skillsynx.models import (
    AnalysisRecord,
    AnalysisResult,
    JobListing,
    JobMatchRequest,
    ResumeDocument,
    SessionContext,
)
from skillsynx.oracle import OracleClient
from skillsynx.prompts import (
    build_analysis_prompt,
    build_analysis_request,
    build_job_match_prompt,
    build_job_match_request,
)
from skillsynx.sanitizer import sanitize
from skillsynx.storage import PersistenceGateway
from skillsynx.validator import validate_analysis, validate_job_list

log = get_logger(__name__)

T = TypeVar("T")


class PipelineState(str, Enum):
    IDLE = "idle"
    EXTRACTING = "extracting"
    ANALYZING = "analyzing"
    MATCHING = "matching"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


_TRANSITIONS: dict[PipelineState, set[PipelineState]] = {
    PipelineState.IDLE: {PipelineState.EXTRACTING, PipelineState.ANALYZING, PipelineState.MATCHING},
    PipelineState.EXTRACTING: {PipelineState.ANALYZING, PipelineState.FAILED},
    PipelineState.ANALYZING: {PipelineState.SUCCEEDED, PipelineState.FAILED},
    PipelineState.MATCHING: {PipelineState.SUCCEEDED, PipelineState.FAILED},
    PipelineState.SUCCEEDED: set(),
    PipelineState.FAILED: set(),
}


@dataclass
class PipelineRun(Generic[T]):
    """Outcome of one pipeline invocation."""

    kind: str
    state: PipelineState = PipelineState.IDLE
    result: T | None = None
    error: SkillSynxError | None = None
    history: list[PipelineState] = field(default_factory=lambda: [PipelineState.IDLE])
    started_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    resume_text: str | None = None
    record: AnalysisRecord | None = None
    persist_error: Exception | None = None

    @property
    def terminal(self) -> bool:
        return self.state in (PipelineState.SUCCEEDED, PipelineState.FAILED)

    @property
    def ok(self) -> bool:
        return self.state is PipelineState.SUCCEEDED

    def advance(self, state: PipelineState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"{self.kind}: illegal transition {self.state.value} → {state.value}")
        log.debug("%s: %s → %s", self.kind, self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def succeed(self, result: T) -> None:
        self.result = result
        self.advance(PipelineState.SUCCEEDED)

    def fail(self, error: SkillSynxError) -> None:
        self.error = error
        self.advance(PipelineState.FAILED)
        log.error("%s failed in %s: %s", self.kind, self.history[-2].value, error)

    def result_or_raise(self) -> T:
        if self.error is not None:
            raise self.error
        if not self.ok:
            raise RuntimeError(f"{self.kind} has not finished (state={self.state.value})")
        return self.result  # type: ignore[return-value]


class AnalysisPipeline:
    def __init__(
        self,
        oracle: OracleClient,
        settings: Settings,
        gateway: PersistenceGateway | None = None,
    ) -> None:
        self.oracle = oracle
        self.settings = settings
        self.gateway = gateway

    async def analyze_document(
        self,
        document: ResumeDocument,
        target_role: str | None = None,
        context: SessionContext | None = None,
        resume_id: str | None = None,
    ) -> PipelineRun[AnalysisResult]:
        run: PipelineRun[AnalysisResult] = PipelineRun(kind="analysis")
        run.advance(PipelineState.EXTRACTING)
        try:
            text = await extract_text_async(document)
        except SkillSynxError as exc:
            run.fail(exc)
            return run

        if resume_id is None and self._persisting(context):
            resume_id = await self._save_resume(run, context, document, text)
        return await self._analyze(run, text, target_role, context, resume_id)

    async def analyze_text(
        self,
        resume_text: str,
        target_role: str | None = None,
        context: SessionContext | None = None,
        resume_id: str | None = None,
    ) -> PipelineRun[AnalysisResult]:
        """Pasted text skips extraction."""
        run: PipelineRun[AnalysisResult] = PipelineRun(kind="analysis")
        return await self._analyze(run, resume_text, target_role, context, resume_id)

    async def _analyze(
        self,
        run: PipelineRun[AnalysisResult],
        text: str,
        target_role: str | None,
        context: SessionContext | None,
        resume_id: str | None,
    ) -> PipelineRun[AnalysisResult]:
        run.advance(PipelineState.ANALYZING)
        if not text.strip():
            run.fail(ExtractionError("Resume text is empty"))
            return run
        run.resume_text = text
        request = build_analysis_request(
            text,
            target_role,
            char_limit=self.settings.resume_char_limit,
            default_role=self.settings.default_role,
        )
        log.info("Analyzing resume (%d chars) for %r", len(request.resume_text), request.target_role)
        try:
            raw = await self.oracle.complete(build_analysis_prompt(request))
            result = validate_analysis(sanitize(raw))
        except SkillSynxError as exc:
            run.fail(exc)
            return run

        if self._persisting(context):
            await self._save_analysis(run, context, result, resume_id)
        run.succeed(result)
        log.info("Analysis complete — ats_score=%s, job_fit=%s", result.ats_score,
                 result.job_fit.value if result.job_fit else None)
        return run

    # ── Persistence ──────────────────────────────────────────────────────

    def _persisting(self, context: SessionContext | None) -> bool:
        return self.gateway is not None and context is not None and bool(context.user_id)

    async def _save_resume(
        self,
        run: PipelineRun[AnalysisResult],
        context: SessionContext,
        document: ResumeDocument,
        text: str,
    ) -> str | None:
        metadata = {
            "filename": document.filename,
            "mime_type": document.mime_type,
            "size": document.size,
            "char_count": len(text),
        }
        try:
            saved = await asyncio.to_thread(self.gateway.save_resume, context.user_id, metadata)
        except (OSError, ValueError) as exc:
            run.persist_error = exc
            log.error("Could not save resume metadata for %s: %s", context.user_id, exc)
            return None
        return saved["id"]

    async def _save_analysis(
        self,
        run: PipelineRun[AnalysisResult],
        context: SessionContext,
        result: AnalysisResult,
        resume_id: str | None,
    ) -> None:
        try:
            run.record = await asyncio.to_thread(
                self.gateway.save_analysis, context.user_id, result, resume_id
            )
        except (OSError, ValueError) as exc:
            run.persist_error = exc
            log.error("Could not save analysis for %s: %s", context.user_id, exc)


class MatchingPipeline:
    def __init__(self, oracle: OracleClient, settings: Settings) -> None:
        self.oracle = oracle
        self.settings = settings

    async def search(
        self,
        target_role: str | None,
        analysis: AnalysisResult | None = None,
        *,
        resume_text: str | None = None,
        location: str | None = None,
        salary: str | None = None,
    ) -> PipelineRun[list[JobListing]]:
        """Find jobs for *target_role*; *analysis* is optional (degraded mode without it)."""
        request = build_job_match_request(
            target_role,
            analysis,
            resume_text=resume_text,
            location=location,
            salary=salary,
            summary_limit=self.settings.summary_char_limit,
            default_role=self.settings.default_role,
        )
        return await self.run(request)

    async def run(self, request: JobMatchRequest) -> PipelineRun[list[JobListing]]:
        run: PipelineRun[list[JobListing]] = PipelineRun(kind="matching")
        run.advance(PipelineState.MATCHING)
        log.info("Matching jobs for %r (%d key skills)", request.target_role, len(request.key_skills))
        try:
            raw = await self.oracle.complete(build_job_match_prompt(request, self.settings.job_count))
            jobs = validate_job_list(sanitize(raw), limit=self.settings.job_count)
        except SkillSynxError as exc:
            run.fail(exc)
            return run
        run.succeed(jobs)
        log.info("Matching complete — %d job(s)", len(jobs))
        return run
