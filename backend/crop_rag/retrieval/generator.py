"""Answer generation over retrieved passages with provider fallback."""

from __future__ import annotations

import asyncio
from typing import Sequence

from openai import APITimeoutError

from crop_rag.core.config import Settings
from crop_rag.core.logging import get_logger
from crop_rag.core.metrics import PROVIDER_CALLS
from crop_rag.models.entities import Answer, QueryResult, SourceRef
from crop_rag.retrieval.llm import ChatProvider, Completion, GeminiChatProvider, OpenRouterChatProvider
from crop_rag.retrieval.prompts import SYSTEM_PROMPT, build_minimal_prompt, build_prompt

logger = get_logger(__name__)

MIN_ANSWER_CHARS = 5

TIMEOUT_MESSAGE = (
    "The AI model is taking too long to respond. Please try again or use a different question."
)
OUTAGE_MESSAGE = (
    "I'm currently experiencing technical difficulties with the AI services. As a crop disease "
    "and pest management assistant, I'm designed to help farmers with agricultural questions. "
    "For immediate assistance, please contact your system administrator."
)


class GenerationTimeout(Exception):
    """A provider call exceeded the generation timeout."""


class AnswerGenerator:
    """Build a grounding prompt and walk the chat providers until one answers.

    Provider failures never escape :meth:`answer`; the caller always receives an
    :class:`Answer`, degraded to an explanatory message when nothing worked.
    """

    def __init__(
        self,
        providers: Sequence[ChatProvider],
        relevance_threshold: float = 0.5,
        excerpt_chars: int = 1000,
        timeout: float = 30.0,
        system_prompt: str = SYSTEM_PROMPT,
    ) -> None:
        self.providers = list(providers)
        self.relevance_threshold = relevance_threshold
        self.excerpt_chars = excerpt_chars
        self.timeout = timeout
        self.system_prompt = system_prompt

    @classmethod
    def from_settings(cls, settings: Settings) -> "AnswerGenerator":
        providers: list[ChatProvider] = [
            OpenRouterChatProvider(
                api_key=settings.openrouter_api_key,
                base_url=settings.openrouter_base_url,
                model=settings.openrouter_chat_model,
                max_tokens=settings.generation_max_tokens,
                temperature=settings.generation_temperature,
                top_p=settings.generation_top_p,
            ),
            GeminiChatProvider(api_key=settings.gemini_api_key, models=settings.gemini_chat_models),
        ]
        return cls(
            providers,
            relevance_threshold=settings.relevance_threshold,
            excerpt_chars=settings.excerpt_chars,
            timeout=settings.generation_timeout,
        )

    def relevant(self, candidates: Sequence[QueryResult]) -> list[QueryResult]:
        return [doc for doc in candidates if doc.score > self.relevance_threshold]

    async def answer(self, question: str, candidates: Sequence[QueryResult]) -> Answer:
        logger.info("Generating answer for question %r", question)
        try:
            return await self._answer(question, candidates)
        except GenerationTimeout:
            return Answer(answer=TIMEOUT_MESSAGE, sources=[], raw=None)
        except Exception:
            logger.exception("Unexpected error while generating answer")
            message = "I'm currently unable to access the AI service due to a system error. Please contact the administrator."
            return Answer(answer=f"{message}\n\n{OUTAGE_MESSAGE}", sources=[], raw=None)

    async def _answer(self, question: str, candidates: Sequence[QueryResult]) -> Answer:
        relevant = self.relevant(candidates)
        logger.info("Found %d relevant documents of %d candidates", len(relevant), len(candidates))
        prompt = build_prompt(question, relevant, self.excerpt_chars)
        sources = [SourceRef(id=doc.source, score=doc.score) for doc in relevant]

        failures: dict[str, str] = {}
        for provider in self.providers:
            if not provider.available:
                logger.info("Chat provider %s not configured, skipping", provider.name)
                PROVIDER_CALLS.labels(kind="generation", provider=provider.name, outcome="skipped").inc()
                continue
            for model in provider.models:
                completion = await self._try(provider, model, prompt, failures)
                if completion is not None:
                    return Answer(answer=completion.text, sources=sources, raw=completion.raw)

        last = self.providers[-1] if self.providers else None
        if last is not None and last.available and last.models:
            logger.info("All models failed, trying minimal prompt on %s", last.name)
            completion = await self._try(last, last.models[0], build_minimal_prompt(question), failures)
            if completion is not None:
                return Answer(answer=completion.text, sources=[], raw=completion.raw)

        return self._degraded(failures)

    async def _try(
        self,
        provider: ChatProvider,
        model: str,
        prompt: str,
        failures: dict[str, str],
    ) -> Completion | None:
        logger.info("Attempting %s model %s", provider.name, model)
        try:
            completion = await asyncio.wait_for(
                provider.complete(prompt, model, system=self.system_prompt),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, APITimeoutError) as exc:
            logger.error("%s model %s timed out after %.0fs", provider.name, model, self.timeout)
            PROVIDER_CALLS.labels(kind="generation", provider=provider.name, outcome="timeout").inc()
            raise GenerationTimeout(str(exc)) from exc
        except Exception as exc:
            logger.warning("%s model %s failed: %s", provider.name, model, exc)
            PROVIDER_CALLS.labels(kind="generation", provider=provider.name, outcome="error").inc()
            failures[provider.name] = str(exc)
            return None
        if len(completion.text) < MIN_ANSWER_CHARS:
            logger.warning("%s model %s returned an empty or insufficient answer", provider.name, model)
            PROVIDER_CALLS.labels(kind="generation", provider=provider.name, outcome="empty").inc()
            failures[provider.name] = "empty response"
            return None
        PROVIDER_CALLS.labels(kind="generation", provider=provider.name, outcome="ok").inc()
        logger.info("Generated answer with %s model %s", provider.name, model)
        return completion

    def _degraded(self, failures: dict[str, str]) -> Answer:
        parts = ["I'm currently unable to access the AI service."]
        for provider in self.providers:
            if not provider.available:
                parts.append(f"The {provider.label} service is not configured.")
                continue
            parts.append(f"There was an issue with the {provider.label} service.")
            if "api key" in failures.get(provider.name, "").lower():
                parts.append(f"The {provider.label} API key appears to be invalid or not properly configured.")
        parts.append("Please contact the administrator to resolve these API configuration issues.")
        logger.error("All chat providers failed: %s", failures or "none configured")
        return Answer(answer=" ".join(parts) + "\n\n" + OUTAGE_MESSAGE, sources=[], raw=None)


__all__ = ["AnswerGenerator", "GenerationTimeout", "TIMEOUT_MESSAGE", "OUTAGE_MESSAGE"]
