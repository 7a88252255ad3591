"""Test fixtures for Crop RAG."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Sequence

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from crop_rag.retrieval.llm import Completion  # noqa: E402

KEYWORDS = ("tomato", "blight", "prevent", "water", "wheat", "rust", "aphid")


class KeywordEmbeddingProvider:
    """Counts a fixed vocabulary so related texts land close together."""

    name = "keywords"

    def __init__(self, available: bool = True) -> None:
        self._available = available
        self.calls: list[list[str]] = []

    @property
    def available(self) -> bool:
        return self._available

    async def embed(self, texts: Sequence[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [[float(text.lower().count(word)) for word in KEYWORDS] + [0.01] for text in texts]


class FailingEmbeddingProvider:
    name = "broken"

    def __init__(self, error: Exception | None = None, available: bool = True) -> None:
        self.error = error or RuntimeError("provider down")
        self._available = available
        self.calls = 0

    @property
    def available(self) -> bool:
        return self._available

    async def embed(self, texts: Sequence[str]) -> list[list[float]]:
        self.calls += 1
        raise self.error


class FakeChatProvider:
    """Chat provider answering from a model -> text (or exception) table."""

    def __init__(
        self,
        name: str = "primary",
        label: str = "Primary",
        models: Sequence[str] = ("model-a",),
        responses: dict[str, object] | None = None,
        available: bool = True,
    ) -> None:
        self.name = name
        self.label = label
        self.models = list(models)
        self.responses = responses or {}
        self._available = available
        self.calls: list[tuple[str, str, str | None]] = []

    @property
    def available(self) -> bool:
        return self._available

    async def complete(self, prompt: str, model: str, system: str | None = None) -> Completion:
        self.calls.append((prompt, model, system))
        outcome = self.responses.get(model, "")
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return await outcome(prompt)
        return Completion(text=str(outcome), provider=self.name, model=model, raw={"model": model})


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset global singletons and environment between tests."""
    monkeypatch.setenv("CROPRAG_STORE_PATH", str(tmp_path / "data" / "vectorstore.json"))
    monkeypatch.setenv("CROPRAG_CONFIG", str(tmp_path / "missing.yaml"))
    for key in (
        "OPENROUTER_API_KEY",
        "GEMINI_API_KEY",
        "CROPRAG_OPENROUTER_API_KEY",
        "CROPRAG_GEMINI_API_KEY",
        "CROPRAG_EMBEDDING_LOCAL_FALLBACK",
    ):
        monkeypatch.delenv(key, raising=False)

    from crop_rag.api import dependencies as deps
    from crop_rag.core.config import get_settings

    def _reset() -> None:
        get_settings.cache_clear()
        deps.get_app_settings.cache_clear()
        deps._VECTOR_STORE = None
        deps._EMBEDDING_SERVICE = None
        deps._GENERATOR = None
        deps._PIPELINE = None
        deps._QA_SERVICE = None

    _reset()
    yield
    _reset()


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "store" / "vectorstore.json"


@pytest.fixture(scope="session")
def blight_text() -> str:
    return "Tomato blight is prevented by watering at the base."
