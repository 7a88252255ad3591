"""Embedding providers and the fallback chain that drives them."""

from __future__ import annotations

import asyncio
import hashlib
import math
import re
from typing import Any, Protocol, Sequence

import google.generativeai as genai

from crop_rag.core.clients import configure_gemini, credential_is_usable, make_openrouter_client
from crop_rag.core.config import Settings
from crop_rag.core.errors import EmbeddingUnavailable
from crop_rag.core.logging import get_logger
from crop_rag.core.metrics import PROVIDER_CALLS

logger = get_logger(__name__)

_TOKEN_RE = re.compile(r"\w+")


class EmbeddingProvider(Protocol):
    """Strategy turning a batch of texts into one vector per text."""

    name: str

    @property
    def available(self) -> bool: ...

    async def embed(self, texts: Sequence[str]) -> list[list[float]]: ...


class OpenRouterEmbeddingProvider:
    """OpenAI-compatible embeddings served through OpenRouter."""

    name = "openrouter"

    def __init__(self, api_key: str | None, base_url: str, model: str) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self.model = model
        self._client: Any = None

    @property
    def available(self) -> bool:
        return credential_is_usable(self._api_key)

    async def embed(self, texts: Sequence[str]) -> list[list[float]]:
        if self._client is None:
            self._client = make_openrouter_client(self._api_key or "", self._base_url)
        response = await self._client.embeddings.create(model=self.model, input=list(texts))
        if not response or not response.data:
            raise ValueError("Received empty response from OpenRouter embeddings API")
        return [list(item.embedding) for item in response.data]


class GeminiEmbeddingProvider:
    """Gemini embeddings, trying each model in order; one request per text."""

    name = "gemini"

    def __init__(self, api_key: str | None, models: Sequence[str]) -> None:
        self._api_key = api_key
        self.models = list(models)
        self._configured = False

    @property
    def available(self) -> bool:
        return credential_is_usable(self._api_key) and bool(self.models)

    async def embed(self, texts: Sequence[str]) -> list[list[float]]:
        if not self._configured:
            configure_gemini(self._api_key or "")
            self._configured = True
        errors: list[str] = []
        for model in self.models:
            try:
                vectors = [await self._embed_one(model, text) for text in texts]
            except Exception as exc:
                logger.info("Gemini embedding model %s failed: %s", model, exc)
                errors.append(f"{model}: {exc}")
                continue
            logger.info("Embedded %d texts with Gemini model %s", len(vectors), model)
            return vectors
        raise RuntimeError("All Gemini embedding models failed (" + "; ".join(errors) + ")")

    async def _embed_one(self, model: str, text: str) -> list[float]:
        result = await asyncio.to_thread(genai.embed_content, model=model, content=text)
        values = result.get("embedding") if result else None
        if not values:
            raise ValueError(f"Empty embedding result from Gemini model {model}")
        return list(values)


class HashedEmbeddingProvider:
    """Deterministic hashed bag-of-words embeddings for offline use."""

    name = "hashed"

    def __init__(self, dim: int = 384) -> None:
        self.dim = dim

    @property
    def available(self) -> bool:
        return True

    async def embed(self, texts: Sequence[str]) -> list[list[float]]:
        return [self.encode(text) for text in texts]

    def encode(self, text: str) -> list[float]:
        vector = [0.0] * self.dim
        for token in _tokenize(text):
            vector[_hash_token(token, self.dim)] += 1.0
        _normalize(vector)
        return vector


class EmbeddingService:
    """Try each provider in order until one returns a complete, non-empty batch."""

    def __init__(self, providers: Sequence[EmbeddingProvider]) -> None:
        self.providers = list(providers)

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmbeddingService":
        providers: list[EmbeddingProvider] = [
            OpenRouterEmbeddingProvider(
                api_key=settings.openrouter_api_key,
                base_url=settings.openrouter_base_url,
                model=settings.openrouter_embedding_model,
            ),
            GeminiEmbeddingProvider(
                api_key=settings.gemini_api_key,
                models=settings.gemini_embedding_models,
            ),
        ]
        if settings.embedding_local_fallback:
            providers.append(HashedEmbeddingProvider())
        return cls(providers)

    async def embed(self, texts: Sequence[str]) -> list[list[float]]:
        if not texts:
            return []
        logger.info("Generating embeddings for %d texts", len(texts))
        attempts: list[str] = []
        for provider in self.providers:
            if not provider.available:
                logger.info("Embedding provider %s not configured, skipping", provider.name)
                attempts.append(f"{provider.name}: not configured")
                PROVIDER_CALLS.labels(kind="embedding", provider=provider.name, outcome="skipped").inc()
                continue
            try:
                vectors = await provider.embed(texts)
                _validate(vectors, len(texts))
            except Exception as exc:
                logger.warning("Embedding provider %s failed: %s", provider.name, exc)
                attempts.append(f"{provider.name}: {exc}")
                PROVIDER_CALLS.labels(kind="embedding", provider=provider.name, outcome="error").inc()
                continue
            PROVIDER_CALLS.labels(kind="embedding", provider=provider.name, outcome="ok").inc()
            logger.info("Got %d embeddings from %s", len(vectors), provider.name)
            return vectors
        logger.error("All embedding providers failed: %s", attempts)
        raise EmbeddingUnavailable(
            "Unable to generate embeddings: no embedding provider is available",
            attempts=attempts,
        )


def _validate(vectors: Sequence[Sequence[float]], expected: int) -> None:
    if not vectors:
        raise ValueError("provider returned no embeddings")
    if len(vectors) != expected:
        raise ValueError(f"provider returned {len(vectors)} embeddings for {expected} texts")
    if any(len(vector) == 0 for vector in vectors):
        raise ValueError("provider returned an empty embedding")


def _tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(text.lower())


def _hash_token(token: str, dim: int) -> int:
    digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
    value = int.from_bytes(digest, "big")
    return value % dim


def _normalize(vector: list[float]) -> None:
    norm = math.sqrt(sum(value * value for value in vector))
    if norm == 0:
        return
    inv = 1.0 / norm
    for idx, value in enumerate(vector):
        vector[idx] = value * inv


__all__ = [
    "EmbeddingProvider",
    "OpenRouterEmbeddingProvider",
    "GeminiEmbeddingProvider",
    "HashedEmbeddingProvider",
    "EmbeddingService",
]
