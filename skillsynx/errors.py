"""Failure taxonomy for one pipeline invocation."""
from __future__ import annotations


class SkillSynxError(Exception):
    """Base class for recoverable pipeline failures."""

    user_message = "Something went wrong. Please try again."


class UnsupportedFormatError(SkillSynxError):
    user_message = "This file type is not supported. Please paste the resume text instead."

    def __init__(self, mime_type: str | None = None, filename: str | None = None) -> None:
        self.mime_type = mime_type
        self.filename = filename
        label = filename or mime_type or "unknown"
        super().__init__(f"Unsupported document format: {label} (mime={mime_type or '-'})")


class ExtractionError(SkillSynxError):
    user_message = "Error reading file. Please try pasting the text instead."


class OracleUnavailableError(SkillSynxError):
    user_message = "The AI service is unavailable right now. Please try again."


class MalformedResponseError(SkillSynxError):
    user_message = "The AI returned an unreadable response. Please try again."

    def __init__(self, message: str, raw: str = "") -> None:
        self.raw_excerpt = raw[:200]
        super().__init__(message)
