"""Question answering orchestration."""

from __future__ import annotations

import time

from crop_rag.core.errors import QueryValidationError
from crop_rag.core.logging import get_logger
from crop_rag.core.metrics import REQUEST_LATENCY
from crop_rag.ingest.embeddings import EmbeddingService
from crop_rag.models.entities import Answer
from crop_rag.retrieval.generator import AnswerGenerator
from crop_rag.retrieval.vector_store import VectorStore

logger = get_logger(__name__)


class QAService:
    """Embed the question, retrieve nearest chunks, and generate an answer."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_store: VectorStore,
        generator: AnswerGenerator,
        default_top_k: int = 5,
    ) -> None:
        self.embedding_service = embedding_service
        self.vector_store = vector_store
        self.generator = generator
        self.default_top_k = default_top_k

    async def ask(self, query: str | None, top_k: int | None = None) -> Answer:
        if not query or not query.strip():
            raise QueryValidationError("Missing query")
        start_time = time.perf_counter()
        k = top_k or self.default_top_k
        logger.info("Processing query %r with top_k=%d", query, k)

        embeddings = await self.embedding_service.embed([query])
        nearest = self.vector_store.query(embeddings[0], top_k=k)
        logger.info("Retrieved %d candidate chunks", len(nearest))
        answer = await self.generator.answer(query, nearest)

        REQUEST_LATENCY.labels(endpoint="qa", method="POST").observe(time.perf_counter() - start_time)
        return answer


def classify_error(exc: BaseException) -> str:
    """User-facing explanation for a failure outside the generator's own fallback."""
    message = str(exc)
    if "quota" in message:
        return (
            "The AI service is temporarily unavailable due to usage limits. "
            "Please try again later or ask a different question."
        )
    if "API key" in message:
        return "The AI service is not properly configured. Please contact the administrator."
    if message:
        return f"I encountered an issue: {message}"
    return "Sorry, I'm having trouble answering your question right now."


__all__ = ["QAService", "classify_error"]
