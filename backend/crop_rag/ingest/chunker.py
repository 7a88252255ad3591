"""Chunking utilities."""

from __future__ import annotations

from typing import Iterable

from crop_rag.core.logging import get_logger
from crop_rag.models.entities import Chunk

logger = get_logger(__name__)

DEFAULT_CHUNK_SIZE = 800
DEFAULT_CHUNK_OVERLAP = 120
DEFAULT_MAX_CHUNKS = 100


def chunk_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
    max_chunks: int | None = DEFAULT_MAX_CHUNKS,
) -> list[str]:
    """Split text into overlapping fixed-size character windows.

    Consecutive windows share exactly ``chunk_overlap`` characters. Windows that
    are only whitespace are dropped. At most ``max_chunks`` windows are produced;
    pass ``None`` to cover the whole text regardless of length.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if chunk_overlap < 0 or chunk_overlap >= chunk_size:
        raise ValueError("chunk_overlap must be in [0, chunk_size)")

    if not text:
        return []
    if len(text) <= chunk_size:
        return [text]

    chunks: list[str] = []
    start = 0
    end = 0
    length = len(text)
    while start < length:
        if max_chunks is not None and len(chunks) >= max_chunks:
            logger.warning(
                "Chunk cap of %d reached; %d trailing characters not chunked",
                max_chunks,
                length - end,
            )
            break
        end = min(start + chunk_size, length)
        window = text[start:end]
        if window.strip():
            chunks.append(window)
        if end >= length:
            break
        start = max(0, end - chunk_overlap)

    logger.debug("Split %d characters into %d chunks", length, len(chunks))
    return chunks


def build_chunks(file_id: str, source: str, pieces: Iterable[str]) -> list[Chunk]:
    """Attach ids and source metadata to raw chunk strings."""
    return [
        Chunk(id=f"{file_id}_{ordinal}", text=piece, metadata={"source": source, "page": None})
        for ordinal, piece in enumerate(pieces)
    ]


__all__ = ["chunk_text", "build_chunks", "DEFAULT_CHUNK_SIZE", "DEFAULT_CHUNK_OVERLAP", "DEFAULT_MAX_CHUNKS"]
