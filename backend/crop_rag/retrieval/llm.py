"""Chat completion providers used by the answer generator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Sequence

import google.generativeai as genai

from crop_rag.core.clients import configure_gemini, credential_is_usable, make_openrouter_client
from crop_rag.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(slots=True)
class Completion:
    text: str
    provider: str
    model: str
    raw: dict[str, Any] | None = None


class ChatProvider(Protocol):
    """Strategy producing a completion for a prompt with one of its models."""

    name: str
    label: str
    models: list[str]

    @property
    def available(self) -> bool: ...

    async def complete(self, prompt: str, model: str, system: str | None = None) -> Completion: ...


class OpenRouterChatProvider:
    """Chat completions through OpenRouter's OpenAI-compatible API."""

    name = "openrouter"
    label = "OpenRouter"

    def __init__(
        self,
        api_key: str | None,
        base_url: str,
        model: str,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        top_p: float = 0.9,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self.models = [model]
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.top_p = top_p
        self._client: Any = None

    @property
    def available(self) -> bool:
        return credential_is_usable(self._api_key)

    def _make_messages(self, prompt: str, system: str | None) -> list[dict[str, str]]:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    async def complete(self, prompt: str, model: str, system: str | None = None) -> Completion:
        if self._client is None:
            self._client = make_openrouter_client(self._api_key or "", self._base_url)
        response = await self._client.chat.completions.create(
            model=model,
            messages=self._make_messages(prompt, system),
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            top_p=self.top_p,
        )
        text = (response.choices[0].message.content or "").strip()
        return Completion(text=text, provider=self.name, model=model, raw=response.model_dump(mode="json"))


class GeminiChatProvider:
    """Gemini generative models; the caller walks ``models`` in order."""

    name = "gemini"
    label = "Gemini"

    def __init__(self, api_key: str | None, models: Sequence[str]) -> None:
        self._api_key = api_key
        self.models = list(models)
        self._configured = False

    @property
    def available(self) -> bool:
        return credential_is_usable(self._api_key) and bool(self.models)

    async def complete(self, prompt: str, model: str, system: str | None = None) -> Completion:
        if not self._configured:
            configure_gemini(self._api_key or "")
            self._configured = True
        generative_model = genai.GenerativeModel(model, system_instruction=system)
        response = await generative_model.generate_content_async(prompt)
        text = (response.text or "").strip()
        return Completion(text=text, provider=self.name, model=model, raw=response.to_dict())


__all__ = ["Completion", "ChatProvider", "OpenRouterChatProvider", "GeminiChatProvider"]
