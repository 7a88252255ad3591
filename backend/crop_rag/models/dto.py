"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    error: str
    message: str


class FileResult(BaseModel):
    source: str
    status: Literal["processed", "skipped"]
    chunks: int
    detail: str | None = None


class IngestResponse(BaseModel):
    ok: bool = True
    inserted: int
    message: str
    files: list[FileResult]


class QARequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: str | None = None
    top_k: int | None = Field(default=None, alias="topK", ge=1, le=50)


class SourceItem(BaseModel):
    id: str
    score: float


class QAResponse(BaseModel):
    answer: str
    sources: list[SourceItem]
    raw: dict[str, Any] | None = None


class StoreStatsResponse(BaseModel):
    records: int
    dim: int | None
    sources: dict[str, int]


class ClearResponse(BaseModel):
    ok: bool = True


__all__ = [
    "ErrorResponse",
    "FileResult",
    "IngestResponse",
    "QARequest",
    "SourceItem",
    "QAResponse",
    "StoreStatsResponse",
    "ClearResponse",
]
