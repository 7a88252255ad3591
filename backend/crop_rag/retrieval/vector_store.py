"""Flat-file vector store with exact cosine search."""

from __future__ import annotations

import math
import os
import threading
from collections import Counter
from pathlib import Path
from typing import Sequence

import orjson

from crop_rag.core.errors import StoreError
from crop_rag.core.logging import get_logger
from crop_rag.core.metrics import STORE_SIZE
from crop_rag.models.entities import QueryResult, VectorRecord

logger = get_logger(__name__)

DEFAULT_MIN_SCORE = 0.1


class VectorStore:
    """In-memory list of records mirrored to a single JSON snapshot.

    The snapshot is read once at construction and rewritten wholesale after each
    mutation. The lock serializes access within one process only; several
    processes sharing a snapshot file will overwrite each other.
    """

    def __init__(self, path: Path, min_score: float = DEFAULT_MIN_SCORE) -> None:
        self.path = path
        self.min_score = min_score
        self._lock = threading.RLock()
        self._records: list[VectorRecord] = []
        self._positions: dict[str, int] = {}
        self._dim: int | None = None
        self._load()

    @property
    def size(self) -> int:
        return len(self._records)

    @property
    def dim(self) -> int | None:
        return self._dim

    def upsert(self, records: Sequence[VectorRecord]) -> int:
        """Insert or replace records by id; return how many were accepted."""
        accepted = 0
        with self._lock:
            previous = (list(self._records), dict(self._positions), self._dim)
            for record in records:
                if not self._is_valid(record):
                    continue
                position = self._positions.get(record.id)
                if position is not None:
                    self._records[position] = record
                    logger.debug("Replaced vector %s", record.id)
                else:
                    self._positions[record.id] = len(self._records)
                    self._records.append(record)
                    logger.debug("Added vector %s", record.id)
                if self._dim is None:
                    self._dim = len(record.values)
                accepted += 1
            if accepted:
                try:
                    self._save()
                except StoreError:
                    self._records, self._positions, self._dim = previous
                    raise
            rejected = len(records) - accepted
            if rejected:
                logger.warning("Rejected %d of %d records", rejected, len(records))
            logger.info("Upserted %d vectors; store holds %d", accepted, len(self._records))
            STORE_SIZE.set(len(self._records))
        return accepted

    def query(self, embedding: Sequence[float], top_k: int = 5) -> list[QueryResult]:
        """Return up to ``top_k`` records scoring above the relevance floor, best first."""
        with self._lock:
            records = list(self._records)
        if not records or top_k <= 0:
            return []
        logger.info("Scoring %d stored vectors against query of length %d", len(records), len(embedding))
        scored = [(record, cosine_similarity(embedding, record.values)) for record in records]
        relevant = [(record, score) for record, score in scored if score > self.min_score]
        relevant.sort(key=lambda item: item[1], reverse=True)
        matches = relevant[:top_k]
        for rank, (record, score) in enumerate(matches, start=1):
            logger.debug("Match %d: score=%.4f source=%s", rank, score, record.metadata.get("source", "unknown"))
        return [
            QueryResult(id=record.id, score=score, metadata=dict(record.metadata), text=record.text)
            for record, score in matches
        ]

    def clear(self) -> None:
        with self._lock:
            self._records = []
            self._positions = {}
            self._dim = None
            self._save()
            STORE_SIZE.set(0)
        logger.info("Cleared vector store at %s", self.path)

    def sources(self) -> dict[str, int]:
        """Chunk counts per source document, in first-ingested order."""
        with self._lock:
            counts = Counter(record.metadata.get("source") or "unknown" for record in self._records)
        return dict(counts)

    # Internal helpers -------------------------------------------------

    def _is_valid(self, record: VectorRecord) -> bool:
        if not record.id:
            logger.warning("Skipping record without id")
            return False
        if not record.values:
            logger.warning("Skipping %s with empty vector", record.id)
            return False
        if all(value == 0 for value in record.values):
            logger.warning("Skipping %s with all-zero vector", record.id)
            return False
        if self._dim is not None and len(record.values) != self._dim:
            logger.warning(
                "Skipping %s: dimension %d does not match store dimension %d",
                record.id,
                len(record.values),
                self._dim,
            )
            return False
        return True

    def _load(self) -> None:
        if not self.path.exists():
            logger.info("No vector store snapshot at %s; starting empty", self.path)
            return
        try:
            raw = orjson.loads(self.path.read_bytes())
            records = [VectorRecord.from_dict(item) for item in raw]
        except (OSError, orjson.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
            raise StoreError(f"Failed to load vector store from {self.path}: {exc}") from exc
        self._records = records
        self._positions = {record.id: idx for idx, record in enumerate(records)}
        self._dim = len(records[0].values) if records else None
        STORE_SIZE.set(len(records))
        logger.info("Loaded %d vectors from %s", len(records), self.path)

    def _save(self) -> None:
        payload = orjson.dumps([record.to_dict() for record in self._records], option=orjson.OPT_INDENT_2)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(payload)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise StoreError(f"Failed to save vector store to {self.path}: {exc}") from exc


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between ``a`` and ``b`` clamped to [-1, 1].

    Vectors of different lengths are compared over their common prefix. Empty or
    zero-magnitude vectors and non-finite results score 0.
    """
    if not a or not b:
        return 0.0
    if len(a) != len(b):
        logger.warning("Cosine similarity over vectors of different lengths: %d vs %d", len(a), len(b))
        length = min(len(a), len(b))
        a = a[:length]
        b = b[:length]
    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y
    if norm_a == 0 or norm_b == 0:
        return 0.0
    similarity = dot / (math.sqrt(norm_a) * math.sqrt(norm_b))
    if not math.isfinite(similarity):
        return 0.0
    return max(-1.0, min(1.0, similarity))


__all__ = ["VectorStore", "cosine_similarity", "DEFAULT_MIN_SCORE"]
