"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from crop_rag.core.config import Settings, get_settings
from crop_rag.ingest.embeddings import EmbeddingService
from crop_rag.ingest.pipeline import IngestPipeline
from crop_rag.retrieval import AnswerGenerator, QAService, VectorStore

_VECTOR_STORE: VectorStore | None = None
_EMBEDDING_SERVICE: EmbeddingService | None = None
_GENERATOR: AnswerGenerator | None = None
_PIPELINE: IngestPipeline | None = None
_QA_SERVICE: QAService | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_vector_store() -> VectorStore:
    global _VECTOR_STORE
    if _VECTOR_STORE is None:
        settings = get_app_settings()
        _VECTOR_STORE = VectorStore(settings.store_path, min_score=settings.store_min_score)
    return _VECTOR_STORE


def get_embedding_service() -> EmbeddingService:
    global _EMBEDDING_SERVICE
    if _EMBEDDING_SERVICE is None:
        _EMBEDDING_SERVICE = EmbeddingService.from_settings(get_app_settings())
    return _EMBEDDING_SERVICE


def get_answer_generator() -> AnswerGenerator:
    global _GENERATOR
    if _GENERATOR is None:
        _GENERATOR = AnswerGenerator.from_settings(get_app_settings())
    return _GENERATOR


def get_ingest_pipeline() -> IngestPipeline:
    global _PIPELINE
    if _PIPELINE is None:
        _PIPELINE = IngestPipeline(
            settings=get_app_settings(),
            embedding_service=get_embedding_service(),
            vector_store=get_vector_store(),
        )
    return _PIPELINE


def get_qa_service() -> QAService:
    global _QA_SERVICE
    if _QA_SERVICE is None:
        _QA_SERVICE = QAService(
            embedding_service=get_embedding_service(),
            vector_store=get_vector_store(),
            generator=get_answer_generator(),
            default_top_k=get_app_settings().default_top_k,
        )
    return _QA_SERVICE


__all__ = [
    "get_app_settings",
    "get_vector_store",
    "get_embedding_service",
    "get_answer_generator",
    "get_ingest_pipeline",
    "get_qa_service",
]
