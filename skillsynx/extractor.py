"""Extract plain text from an uploaded resume.

Supports plain-text formats (txt, md, rst, json, csv, yaml), PDF via pypdf,
and DOCX via stdlib zipfile. Anything else raises UnsupportedFormatError so
the caller can ask for pasted text before any oracle call is made.
"""
from __future__ import annotations

import asyncio
import io
import re
import zipfile
import zlib
from pathlib import PurePath
from xml.etree import ElementTree

from pypdf import PdfReader

from skillsynx.errors import ExtractionError, UnsupportedFormatError
from skillsynx.log import get_logger
from skillsynx.models import ResumeDocument

log = get_logger(__name__)

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

TEXT_MIMES: set[str] = {
    "application/json",
    "application/xml",
    "application/x-yaml",
    "application/yaml",
    "application/rtf",
}
TEXT_SUFFIXES: set[str] = {
    ".txt", ".text", ".md", ".markdown", ".rst", ".json",
    ".csv", ".yaml", ".yml", ".xml", ".tex", ".org",
}

PAGE_SEPARATOR = "\n"

# ── Format detection ─────────────────────────────────────────────────────


def detect_format(document: ResumeDocument) -> str:
    """Return "text", "pdf" or "docx"; raise UnsupportedFormatError otherwise."""
    mime = (document.mime_type or "").split(";")[0].strip().lower()
    suffix = PurePath(document.filename).suffix.lower() if document.filename else ""

    if isinstance(document.content, str):
        return "text"
    if mime == PDF_MIME or suffix == ".pdf" or document.content[:5] == b"%PDF-":
        return "pdf"
    if mime == DOCX_MIME or suffix == ".docx":
        return "docx"
    if mime.startswith("text/") or mime in TEXT_MIMES or suffix in TEXT_SUFFIXES:
        return "text"
    raise UnsupportedFormatError(mime_type=document.mime_type, filename=document.filename)


# ── Text extraction ──────────────────────────────────────────────────────


def _decode_text(content: bytes | str) -> str:
    if isinstance(content, str):
        return content
    if b"\x00" in content:
        raise ExtractionError("Text document contains binary data")
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ExtractionError(f"Text document is not valid UTF-8: {exc}") from exc


def _fix_spacing(text: str) -> str:
    """Re-insert spaces when PDF extraction merges words together.

    Detects the problem by checking if the space-to-character ratio is
    abnormally low, then applies heuristic space insertion.
    """
    if not text or len(text) < 50:
        return text
    space_ratio = text.count(" ") / len(text)
    if space_ratio > 0.08:
        return text

    log.debug("Low space ratio (%.2f%%) — applying spacing fix", space_ratio * 100)
    fixed = re.sub(r"([a-z])([A-Z])", r"\1 \2", text)
    fixed = re.sub(r"([a-zA-Z])(\d)", r"\1 \2", fixed)
    fixed = re.sub(r"(\d)([a-zA-Z])", r"\1 \2", fixed)
    fixed = re.sub(r"([.!?,;:])([A-Za-z])", r"\1 \2", fixed)
    return fixed


def _extract_pdf(content: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(content))
        pages: list[str] = []
        for page in reader.pages:
            raw = page.extract_text() or ""
            pages.append(_fix_spacing(raw))
    except Exception as exc:
        raise ExtractionError(f"Cannot read PDF: {exc}") from exc
    log.debug("PDF decoded: %d page(s)", len(pages))
    return PAGE_SEPARATOR.join(pages)


def _extract_docx(content: bytes) -> str:
    """Parse DOCX using only stdlib (zipfile + xml)."""
    ns = "{http://schemas.openxmlformats.org/wordprocessingml/2006/main}"
    texts: list[str] = []
    try:
        with zipfile.ZipFile(io.BytesIO(content)) as zf:
            with zf.open("word/document.xml") as f:
                tree = ElementTree.parse(f)
    except (
        zipfile.BadZipFile,
        zlib.error,
        KeyError,
        EOFError,
        RuntimeError,
        NotImplementedError,
        ElementTree.ParseError,
    ) as exc:
        raise ExtractionError(f"Cannot read DOCX: {exc}") from exc
    for para in tree.iter(f"{ns}p"):
        parts = [node.text for node in para.iter(f"{ns}t") if node.text]
        if parts:
            texts.append("".join(parts))
    return "\n".join(texts)


def extract_text(document: ResumeDocument) -> str:
    """Return non-empty plain text from *document*.

    Raises UnsupportedFormatError for unknown formats and ExtractionError
    when a supported document cannot be read or yields no text.
    """
    fmt = detect_format(document)
    label = document.filename or document.mime_type or "pasted text"
    log.info("Extracting text from %s (%s)", label, fmt)

    if fmt == "pdf":
        text = _extract_pdf(document.content)  # type: ignore[arg-type]
    elif fmt == "docx":
        text = _extract_docx(document.content)  # type: ignore[arg-type]
    else:
        text = _decode_text(document.content)

    text = text.strip()
    if not text:
        raise ExtractionError(f"Could not extract any text from {label}")
    log.info("Extracted %d characters from %s", len(text), label)
    return text


async def extract_text_async(document: ResumeDocument) -> str:
    """Run extract_text in a worker thread; PDF decoding is CPU-bound."""
    return await asyncio.to_thread(extract_text, document)
