"""Internal dataclasses shared by the ingest and query paths."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass(slots=True, frozen=True)
class Chunk:
    id: str
    text: str
    metadata: dict[str, Any]


@dataclass(slots=True)
class VectorRecord:
    """Persisted unit of the vector store."""

    id: str
    values: list[float]
    metadata: dict[str, Any]
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "values": self.values, "metadata": self.metadata, "text": self.text}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "VectorRecord":
        return cls(
            id=str(data["id"]),
            values=[float(value) for value in data.get("values") or []],
            metadata=dict(data.get("metadata") or {}),
            text=str(data.get("text") or ""),
        )


@dataclass(slots=True)
class QueryResult:
    id: str
    score: float
    metadata: dict[str, Any]
    text: str

    @property
    def source(self) -> str:
        source = self.metadata.get("source")
        return self.id if source is None else source


@dataclass(slots=True)
class SourceRef:
    id: str
    score: float


@dataclass(slots=True)
class Answer:
    answer: str
    sources: list[SourceRef] = field(default_factory=list)
    raw: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "answer": self.answer,
            "sources": [{"id": ref.id, "score": ref.score} for ref in self.sources],
            "raw": self.raw,
        }


__all__ = ["Chunk", "VectorRecord", "QueryResult", "SourceRef", "Answer"]
