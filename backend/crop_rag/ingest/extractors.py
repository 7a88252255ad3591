"""Text extraction for uploaded documents."""

from __future__ import annotations

import io
from pathlib import PurePath

import fitz
from docx import Document

from crop_rag.core.errors import ExtractionError
from crop_rag.core.logging import get_logger

logger = get_logger(__name__)


class BaseExtractor:
    """Common extractor interface."""

    suffixes: tuple[str, ...] = ()
    mime_type: str = "application/octet-stream"

    def can_extract(self, filename: str) -> bool:
        return PurePath(filename).suffix.lower() in self.suffixes

    def extract(self, content: bytes) -> str:  # pragma: no cover - interface
        raise NotImplementedError


class PDFExtractor(BaseExtractor):
    suffixes = (".pdf",)
    mime_type = "application/pdf"

    def extract(self, content: bytes) -> str:
        with fitz.open(stream=content, filetype="pdf") as doc:
            pages = [page.get_text("text", sort=True) for page in doc]
        return "\n\n".join(pages)


class DocxExtractor(BaseExtractor):
    suffixes = (".docx",)
    mime_type = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

    def extract(self, content: bytes) -> str:
        document = Document(io.BytesIO(content))
        return "\n".join(para.text for para in document.paragraphs)


class PlainTextExtractor(BaseExtractor):
    mime_type = "text/plain"

    def can_extract(self, filename: str) -> bool:
        return True

    def extract(self, content: bytes) -> str:
        return content.decode("utf-8", errors="replace")


class ExtractorRegistry:
    """Registry that selects an extractor by filename suffix; plain text is the catch-all."""

    def __init__(self) -> None:
        self._extractors: list[BaseExtractor] = [PDFExtractor(), DocxExtractor()]
        self._fallback: BaseExtractor = PlainTextExtractor()

    def register(self, extractor: BaseExtractor) -> None:
        self._extractors.append(extractor)

    def for_filename(self, filename: str) -> BaseExtractor:
        for extractor in self._extractors:
            if extractor.can_extract(filename):
                return extractor
        return self._fallback

    def extract(self, content: bytes, filename: str) -> str:
        extractor = self.for_filename(filename)
        logger.info("Extracting %s as %s", filename, extractor.mime_type)
        try:
            text = extractor.extract(content)
        except Exception as exc:
            logger.exception("Extraction failed for %s", filename)
            raise ExtractionError(filename, exc) from exc
        logger.info("Extracted %d characters from %s", len(text), filename)
        return text


_DEFAULT_REGISTRY = ExtractorRegistry()


def extract_text(content: bytes, filename: str) -> str:
    """Return the text of ``content`` using the extractor matching ``filename``."""
    return _DEFAULT_REGISTRY.extract(content, filename)


__all__ = [
    "BaseExtractor",
    "PDFExtractor",
    "DocxExtractor",
    "PlainTextExtractor",
    "ExtractorRegistry",
    "extract_text",
]
