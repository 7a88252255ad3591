"""Factories for the external provider SDK clients."""

from __future__ import annotations

import google.generativeai as genai
from openai import AsyncOpenAI

from crop_rag.core.logging import get_logger

logger = get_logger(__name__)

_PLACEHOLDER_KEYS = frozenset({"YOUR_GEMINI_API_KEY_HERE", "YOUR_OPENROUTER_API_KEY_HERE"})
_MIN_KEY_LENGTH = 10

OPENROUTER_HEADERS = {
    "HTTP-Referer": "http://localhost:3000",
    "X-Title": "Crop Disease Pest Management System",
}


def credential_is_usable(api_key: str | None) -> bool:
    """Reject missing, placeholder and implausibly short credentials."""
    if not api_key:
        return False
    key = api_key.strip()
    return len(key) >= _MIN_KEY_LENGTH and key not in _PLACEHOLDER_KEYS


def make_openrouter_client(api_key: str, base_url: str) -> AsyncOpenAI:
    logger.info("Initializing OpenRouter client at %s", base_url)
    # Fallback replaces retries; the SDK must not retry on its own.
    return AsyncOpenAI(
        api_key=api_key,
        base_url=base_url,
        default_headers=OPENROUTER_HEADERS,
        max_retries=0,
    )


def configure_gemini(api_key: str) -> None:
    logger.info("Configuring Gemini client")
    genai.configure(api_key=api_key)


__all__ = ["credential_is_usable", "make_openrouter_client", "configure_gemini", "OPENROUTER_HEADERS"]
