"""SkillSynx resume intelligence pipeline."""
from .errors import (
    ExtractionError,
    MalformedResponseError,
    OracleUnavailableError,
    SkillSynxError,
    UnsupportedFormatError,
)
from .models import AnalysisResult, JobFit, JobListing, ResumeDocument, SessionContext
from .pipeline import AnalysisPipeline, MatchingPipeline, PipelineRun, PipelineState

__all__ = [
    "SkillSynxError", "UnsupportedFormatError", "ExtractionError",
    "OracleUnavailableError", "MalformedResponseError",
    "AnalysisResult", "JobFit", "JobListing", "ResumeDocument", "SessionContext",
    "AnalysisPipeline", "MatchingPipeline", "PipelineRun", "PipelineState",
]

__version__ = "0.1.0"
