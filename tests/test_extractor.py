"""Tests for document format detection and text extraction."""

import io
import zipfile
import zlib
from unittest.mock import MagicMock, patch

import pytest

from skillsynx.errors import ExtractionError, UnsupportedFormatError
from skillsynx.extractor import DOCX_MIME, detect_format, extract_text, extract_text_async
from skillsynx.models import ResumeDocument


def _fake_reader(*page_texts):
    reader = MagicMock()
    pages = []
    for text in page_texts:
        page = MagicMock()
        page.extract_text.return_value = text
        pages.append(page)
    reader.pages = pages
    return reader


def _docx_bytes(*paragraphs, compression=zipfile.ZIP_STORED):
    ns = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
    body = "".join(f"<w:p><w:r><w:t>{p}</w:t></w:r></w:p>" for p in paragraphs)
    xml = f'<?xml version="1.0" encoding="UTF-8"?><w:document xmlns:w="{ns}"><w:body>{body}</w:body></w:document>'
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=compression) as zf:
        zf.writestr("word/document.xml", xml)
    return buf.getvalue()


class TestDetectFormat:
    @pytest.mark.parametrize("mime,filename", [
        ("text/plain", "resume.txt"),
        ("text/markdown", "resume.md"),
        (None, "resume.rst"),
        ("application/octet-stream", "resume.md"),
        ("application/json", None),
        ("text/plain; charset=utf-8", None),
    ])
    def test_text_family(self, mime, filename):
        assert detect_format(ResumeDocument(b"hello", mime, filename)) == "text"

    def test_pdf_by_mime_suffix_or_magic(self):
        assert detect_format(ResumeDocument(b"x", "application/pdf", None)) == "pdf"
        assert detect_format(ResumeDocument(b"x", None, "CV.PDF")) == "pdf"
        assert detect_format(ResumeDocument(b"%PDF-1.7 ...", None, None)) == "pdf"

    def test_docx(self):
        assert detect_format(ResumeDocument(b"PK", DOCX_MIME, None)) == "docx"
        assert detect_format(ResumeDocument(b"PK", None, "cv.docx")) == "docx"

    def test_string_content_is_text(self):
        assert detect_format(ResumeDocument("pasted", None, None)) == "text"

    def test_executable_is_unsupported(self):
        doc = ResumeDocument(b"MZ\x90\x00\x03", "application/x-msdownload", "setup.exe")
        with pytest.raises(UnsupportedFormatError) as exc_info:
            detect_format(doc)
        assert exc_info.value.filename == "setup.exe"
        assert "paste" in exc_info.value.user_message.lower()

    def test_no_hints_binary_is_unsupported(self):
        with pytest.raises(UnsupportedFormatError):
            detect_format(ResumeDocument(b"\x7fELF\x02\x01", None, None))


class TestExtractText:
    def test_plain_text_is_trimmed(self):
        doc = ResumeDocument(b"\n  Jane Doe\nEngineer  \n\n", "text/plain", "cv.txt")
        assert extract_text(doc) == "Jane Doe\nEngineer"

    def test_utf8_bom_is_dropped(self):
        doc = ResumeDocument("\ufeffJosé Núñez".encode("utf-8"), "text/plain", "cv.txt")
        assert extract_text(doc) == "José Núñez"

    def test_invalid_utf8_raises_extraction_error(self):
        doc = ResumeDocument(b"\xff\xfe\xfa bad", "text/plain", "cv.txt")
        with pytest.raises(ExtractionError):
            extract_text(doc)

    def test_binary_disguised_as_text_raises(self):
        doc = ResumeDocument(b"abc\x00def", "text/plain", "cv.txt")
        with pytest.raises(ExtractionError):
            extract_text(doc)

    def test_empty_text_is_an_error_not_empty_string(self):
        doc = ResumeDocument(b"   \n\t ", "text/plain", "cv.txt")
        with pytest.raises(ExtractionError):
            extract_text(doc)

    def test_pdf_pages_in_order_with_separator(self):
        reader = _fake_reader("Page one text", "Page two text", "Page three text")
        with patch("skillsynx.extractor.PdfReader", return_value=reader):
            text = extract_text(ResumeDocument(b"%PDF-1.4", "application/pdf", "cv.pdf"))
        assert text == "Page one text\nPage two text\nPage three text"
        assert text.index("one") < text.index("two") < text.index("three")

    def test_pdf_none_page_text_is_tolerated(self):
        reader = _fake_reader("  First", None, "Last  ")
        with patch("skillsynx.extractor.PdfReader", return_value=reader):
            text = extract_text(ResumeDocument(b"%PDF-1.4", "application/pdf", "cv.pdf"))
        assert text == "First\n\nLast"

    def test_pdf_without_text_raises(self):
        reader = _fake_reader("", None)
        with patch("skillsynx.extractor.PdfReader", return_value=reader):
            with pytest.raises(ExtractionError):
                extract_text(ResumeDocument(b"%PDF-1.4", "application/pdf", "scan.pdf"))

    def test_corrupt_pdf_raises_extraction_error(self):
        with patch("skillsynx.extractor.PdfReader", side_effect=ValueError("EOF marker not found")):
            with pytest.raises(ExtractionError, match="Cannot read PDF"):
                extract_text(ResumeDocument(b"%PDF-garbage", "application/pdf", "cv.pdf"))

    def test_merged_pdf_words_get_spaces(self):
        merged = "SeniorFrontendDeveloperWithSixYearsOfReactExperienceAtBigCompanyInc"
        reader = _fake_reader(merged)
        with patch("skillsynx.extractor.PdfReader", return_value=reader):
            text = extract_text(ResumeDocument(b"%PDF-1.4", "application/pdf", "cv.pdf"))
        assert "Senior Frontend Developer" in text

    def test_docx_paragraphs(self):
        doc = ResumeDocument(_docx_bytes("Jane Doe", "Frontend Developer"), DOCX_MIME, "cv.docx")
        assert extract_text(doc) == "Jane Doe\nFrontend Developer"

    def test_corrupt_docx_raises(self):
        with pytest.raises(ExtractionError, match="DOCX"):
            extract_text(ResumeDocument(b"not a zip", DOCX_MIME, "cv.docx"))

    def test_damaged_deflate_stream_raises_extraction_error(self):
        paragraphs = [f"Paragraph {i} about distributed systems and React" for i in range(200)]
        data = bytearray(_docx_bytes(*paragraphs, compression=zipfile.ZIP_DEFLATED))
        # local header (30 bytes) + "word/document.xml" (17 bytes), then deflate data
        for i in range(60, 90):
            data[i] ^= 0xFF
        with pytest.raises(ExtractionError, match="DOCX"):
            extract_text(ResumeDocument(bytes(data), DOCX_MIME, "cv.docx"))

    @pytest.mark.parametrize("exc", [
        zlib.error("Error -3 while decompressing data: invalid bit length repeat"),
        EOFError("Compressed file ended before the end-of-stream marker was reached"),
        RuntimeError("File <ZipInfo> is encrypted, password required for extraction"),
        NotImplementedError("That compression method is not supported"),
    ])
    def test_zip_library_errors_become_extraction_errors(self, exc):
        doc = ResumeDocument(_docx_bytes("Jane Doe"), DOCX_MIME, "cv.docx")
        with patch("skillsynx.extractor.zipfile.ZipFile.open", side_effect=exc):
            with pytest.raises(ExtractionError, match="Cannot read DOCX"):
                extract_text(doc)

    @pytest.mark.asyncio
    async def test_async_wrapper(self):
        doc = ResumeDocument(b"Jane Doe", "text/plain", "cv.txt")
        assert await extract_text_async(doc) == "Jane Doe"
