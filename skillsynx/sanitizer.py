"""Reduce a raw oracle reply to a single candidate JSON string.

The oracle answers in one of several envelopes:

    RawString       "…"                                    plain text
    WrappedMessage  {"message": {"content": "…"}}          (or choices/content/text)
    WrappedArray    [{"message": {"content": "…"}}, …]
    Opaque          anything else that serialises to JSON

Each variant knows how to pull its textual content out. When none is found
the whole envelope is serialised and handed on as-is. Nothing here checks
that the result is valid JSON; that is skillsynx.validator's job.
"""
from __future__ import annotations

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

from skillsynx.log import get_logger

log = get_logger(__name__)

_MAX_DEPTH = 8
_TEXT_KEYS: tuple[str, ...] = ("content", "text", "output_text", "response", "output", "refusal")
_FENCE_RE = re.compile(r"```[ \t]*(?:json)?", re.IGNORECASE)


def _to_plain(value: Any) -> Any:
    # SDK response objects (pydantic models) expose model_dump()
    dump = getattr(value, "model_dump", None)
    if callable(dump) and not isinstance(value, (str, bytes, Mapping, list, tuple)):
        return dump()
    return value


def _find_text(value: Any, depth: int = 0) -> str | None:
    if depth > _MAX_DEPTH:
        return None
    value = _to_plain(value)
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        return _text_from_mapping(value, depth)
    if isinstance(value, (list, tuple)):
        for item in value:
            text = _find_text(item, depth + 1)
            if text is not None:
                return text
    return None


def _text_from_mapping(obj: Mapping, depth: int) -> str | None:
    for key in ("message", "choices"):
        if obj.get(key) is not None:
            text = _find_text(obj[key], depth + 1)
            if text is not None:
                return text
    for key in _TEXT_KEYS:
        if obj.get(key) is not None:
            text = _find_text(obj[key], depth + 1)
            if text is not None:
                return text
    return None


# ── Envelope variants ────────────────────────────────────────────────────


@dataclass(frozen=True)
class RawString:
    value: str

    def text(self) -> str | None:
        return self.value


@dataclass(frozen=True)
class WrappedMessage:
    value: Mapping

    def text(self) -> str | None:
        return _text_from_mapping(self.value, 0)


@dataclass(frozen=True)
class WrappedArray:
    value: list

    def text(self) -> str | None:
        for item in self.value:
            found = _find_text(item, 1)
            if found is not None:
                return found
        return None


@dataclass(frozen=True)
class Opaque:
    value: Any

    def text(self) -> str | None:
        return None


OracleEnvelope = Union[RawString, WrappedMessage, WrappedArray, Opaque]


def classify_envelope(raw: Any) -> OracleEnvelope:
    raw = _to_plain(raw)
    if isinstance(raw, str):
        return RawString(raw)
    if isinstance(raw, Mapping):
        return WrappedMessage(raw)
    if isinstance(raw, (list, tuple)):
        return WrappedArray(list(raw))
    return Opaque(raw)


def _stringify(value: Any) -> str:
    try:
        return json.dumps(_to_plain(value), default=str)
    except (TypeError, ValueError):
        return str(value)


def unwrap_envelope(raw: Any) -> str:
    """Return the textual content of *raw*, or *raw* serialised as a last resort."""
    envelope = classify_envelope(raw)
    text = envelope.text()
    if text is None:
        log.debug("No textual content in %s envelope — serialising it whole", type(envelope).__name__)
        return _stringify(envelope.value)
    return text


# ── Text clean-up ────────────────────────────────────────────────────────


def strip_fences(text: str) -> str:
    """Remove every ```json / ``` marker, wherever it appears."""
    if "```" not in text:
        return text
    cleaned = _FENCE_RE.sub("", text)
    log.debug("Stripped %d code fence marker(s)", len(_FENCE_RE.findall(text)))
    return cleaned.strip()


def isolate_json(text: str) -> str:
    """Cut prose before the first { or [ and after its last matching closer."""
    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if not starts:
        return text
    start = min(starts)
    end = text.rfind("}" if text[start] == "{" else "]")
    if end <= start:
        return text
    if start == 0 and end == len(text) - 1:
        return text
    log.debug("Discarded %d chars of surrounding prose", len(text) - (end + 1 - start))
    return text[start:end + 1]


def sanitize(raw: Any) -> str:
    """Best-effort JSON text from a raw oracle envelope."""
    text = unwrap_envelope(raw).strip()
    text = strip_fences(text)
    return isolate_json(text)
