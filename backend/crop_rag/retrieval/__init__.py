"""Retrieval and answer generation components."""

from .vector_store import VectorStore, cosine_similarity
from .generator import AnswerGenerator
from .qa import QAService, classify_error

__all__ = [
    "VectorStore",
    "cosine_similarity",
    "AnswerGenerator",
    "QAService",
    "classify_error",
]
