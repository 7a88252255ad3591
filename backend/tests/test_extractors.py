"""Tests for document text extraction."""

import io

import fitz
import pytest
from docx import Document

from crop_rag.core.errors import ExtractionError
from crop_rag.ingest.extractors import DocxExtractor, ExtractorRegistry, PDFExtractor, extract_text


def _docx_bytes(*paragraphs: str) -> bytes:
    document = Document()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def _pdf_bytes(text: str) -> bytes:
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), text)
    payload = doc.tobytes()
    doc.close()
    return payload


def test_plain_text_is_decoded_as_utf8() -> None:
    assert extract_text("Blé et maïs".encode("utf-8"), "notes.txt") == "Blé et maïs"


def test_unknown_suffix_falls_back_to_text() -> None:
    assert extract_text(b"aphids on kale", "field.log") == "aphids on kale"


def test_docx_paragraphs_are_joined() -> None:
    content = _docx_bytes("Late blight", "Remove infected leaves.")
    assert extract_text(content, "guide.docx") == "Late blight\nRemove infected leaves."


def test_pdf_text_is_extracted() -> None:
    content = _pdf_bytes("Rust spreads in humid weather")
    text = extract_text(content, "REPORT.PDF")
    assert "Rust spreads in humid weather" in text


def test_registry_dispatches_by_suffix() -> None:
    registry = ExtractorRegistry()
    assert isinstance(registry.for_filename("a.pdf"), PDFExtractor)
    assert isinstance(registry.for_filename("a.DOCX"), DocxExtractor)


def test_broken_file_raises_extraction_error() -> None:
    with pytest.raises(ExtractionError) as info:
        extract_text(b"not a pdf at all", "broken.pdf")
    assert info.value.filename == "broken.pdf"
    assert "Failed to extract text from broken.pdf" in info.value.message
    assert info.value.cause is not None
