"""Exceptions raised by the ingest and question-answering pipelines."""

from __future__ import annotations


class CropRagError(Exception):
    """Base exception carrying an error code and the HTTP status it maps to."""

    code = "internal_error"
    http_status = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_payload(self) -> dict[str, str]:
        return {"error": self.code, "message": self.message}


class ExtractionError(CropRagError):
    """An uploaded file could not be parsed."""

    code = "extraction_failed"

    def __init__(self, filename: str, cause: BaseException) -> None:
        self.filename = filename
        self.cause = cause
        super().__init__(f"Failed to extract text from {filename}: {cause}")


class EmbeddingUnavailable(CropRagError):
    """Every configured embedding provider failed or none is configured."""

    code = "embedding_unavailable"

    def __init__(self, message: str, attempts: list[str] | None = None) -> None:
        self.attempts = list(attempts or [])
        super().__init__(message)


class StoreError(CropRagError):
    """The vector store snapshot could not be read or written."""

    code = "store_failed"


class ValidationError(CropRagError):
    """A request is missing required input."""

    code = "validation_error"
    http_status = 400


class IngestValidationError(ValidationError):
    """No files or no usable content were supplied for ingestion."""


class QueryValidationError(ValidationError):
    """The question is missing or blank."""


__all__ = [
    "CropRagError",
    "ExtractionError",
    "EmbeddingUnavailable",
    "StoreError",
    "ValidationError",
    "IngestValidationError",
    "QueryValidationError",
]
