"""Common ingestion data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class UploadedFile:
    """Raw upload handed to the pipeline by the HTTP layer or CLI."""

    filename: str
    content: bytes


@dataclass(slots=True)
class FileOutcome:
    """Outcome for a single uploaded file."""

    source: str
    status: str
    chunks: int = 0
    detail: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "source": self.source,
            "status": self.status,
            "chunks": self.chunks,
            "detail": self.detail,
        }


@dataclass(slots=True)
class IngestReport:
    """Aggregated result of one ingest call."""

    inserted: int = 0
    files: list[FileOutcome] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return sum(1 for item in self.files if item.status == "processed")

    @property
    def skipped(self) -> int:
        return sum(1 for item in self.files if item.status == "skipped")


__all__ = ["UploadedFile", "FileOutcome", "IngestReport"]
