"""Ingest pipeline orchestration."""

from __future__ import annotations

import time
from collections import Counter
from typing import Sequence

from crop_rag.core.config import Settings
from crop_rag.core.errors import IngestValidationError, StoreError
from crop_rag.core.logging import get_logger
from crop_rag.core.metrics import INGEST_DURATION
from crop_rag.ingest.chunker import build_chunks, chunk_text
from crop_rag.ingest.embeddings import EmbeddingService
from crop_rag.ingest.extractors import ExtractorRegistry
from crop_rag.ingest.types import FileOutcome, IngestReport, UploadedFile
from crop_rag.models.entities import Chunk, VectorRecord
from crop_rag.retrieval.vector_store import VectorStore
from crop_rag.utils.ids import new_id

logger = get_logger(__name__)


class IngestPipeline:
    """Coordinate extraction, chunking, embeddings, and the vector store.

    Files are processed in order. An extraction error aborts the whole batch,
    and nothing is written unless every stage up to the upsert succeeds.
    """

    def __init__(
        self,
        settings: Settings,
        embedding_service: EmbeddingService,
        vector_store: VectorStore,
        extractors: ExtractorRegistry | None = None,
    ) -> None:
        self.settings = settings
        self.embedding_service = embedding_service
        self.vector_store = vector_store
        self.extractors = extractors or ExtractorRegistry()

    async def ingest(self, files: Sequence[UploadedFile]) -> IngestReport:
        if not files:
            raise IngestValidationError("No files uploaded")
        started = time.perf_counter()
        logger.info("Processing %d uploaded files", len(files))

        report = IngestReport()
        chunks: list[Chunk] = []
        for upload in files:
            outcome, file_chunks = self._prepare(upload)
            report.files.append(outcome)
            chunks.extend(file_chunks)

        if not chunks:
            raise IngestValidationError("No valid content found in uploaded files")

        vectors = await self.embedding_service.embed([chunk.text for chunk in chunks])
        records = self._usable_records(chunks, vectors, report)
        if not records:
            raise IngestValidationError("No valid content found in uploaded files")
        self._check_dimension(records)

        report.inserted = self.vector_store.upsert(records)
        if report.inserted != len(records):
            raise StoreError(f"Vector store accepted {report.inserted} of {len(records)} chunks")

        duration = time.perf_counter() - started
        INGEST_DURATION.observe(duration)
        logger.info(
            "Ingested %d chunks from %d files in %.2fs",
            report.inserted,
            report.processed,
            duration,
            extra={"ctx_inserted": report.inserted, "ctx_files": len(files)},
        )
        return report

    def _prepare(self, upload: UploadedFile) -> tuple[FileOutcome, list[Chunk]]:
        text = self.extractors.extract(upload.content, upload.filename)
        if not text.strip():
            logger.warning("No text extracted from %s", upload.filename)
            return FileOutcome(source=upload.filename, status="skipped", detail="no text extracted"), []

        pieces = chunk_text(
            text,
            chunk_size=self.settings.chunk_size,
            chunk_overlap=self.settings.chunk_overlap,
            max_chunks=self.settings.max_chunks,
        )
        if not pieces:
            logger.warning("No chunks created from %s", upload.filename)
            return FileOutcome(source=upload.filename, status="skipped", detail="no chunks created"), []

        chunks = build_chunks(new_id(), upload.filename, pieces)
        logger.info("Split %s into %d chunks", upload.filename, len(chunks))
        return FileOutcome(source=upload.filename, status="processed", chunks=len(chunks)), chunks

    @staticmethod
    def _usable_records(
        chunks: Sequence[Chunk], vectors: Sequence[Sequence[float]], report: IngestReport
    ) -> list[VectorRecord]:
        """Pair chunks with their vectors, dropping all-zero embeddings."""
        records: list[VectorRecord] = []
        dropped: Counter[str] = Counter()
        for chunk, vector in zip(chunks, vectors):
            if not any(vector):
                dropped[chunk.metadata["source"]] += 1
                continue
            records.append(VectorRecord(id=chunk.id, values=list(vector), metadata=dict(chunk.metadata), text=chunk.text))
        if dropped:
            logger.warning("Dropped %d chunks with all-zero embeddings", sum(dropped.values()))
        for outcome in report.files:
            if outcome.status != "processed" or outcome.source not in dropped:
                continue
            outcome.chunks -= dropped.pop(outcome.source)
            if outcome.chunks <= 0:
                outcome.chunks = 0
                outcome.status = "skipped"
                outcome.detail = "no usable embeddings"
        return records

    def _check_dimension(self, records: Sequence[VectorRecord]) -> None:
        expected = self.vector_store.dim or len(records[0].values)
        for record in records:
            if len(record.values) != expected:
                raise StoreError(
                    f"Embedding dimension {len(record.values)} does not match vector store dimension {expected}; "
                    "clear the store before switching embedding providers"
                )


__all__ = ["IngestPipeline"]
