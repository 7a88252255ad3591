"""Application configuration handling."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "CROPRAG_"
DEFAULT_CONFIG_PATH = Path("~/.config/crop-rag/config.yaml")

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("storage", "store_path"): "store_path",
    ("chunking", "chunk_size"): "chunk_size",
    ("chunking", "chunk_overlap"): "chunk_overlap",
    ("chunking", "max_chunks"): "max_chunks",
    ("embeddings", "openrouter_model"): "openrouter_embedding_model",
    ("embeddings", "gemini_models"): "gemini_embedding_models",
    ("embeddings", "local_fallback"): "embedding_local_fallback",
    ("generation", "openrouter_model"): "openrouter_chat_model",
    ("generation", "gemini_models"): "gemini_chat_models",
    ("generation", "timeout"): "generation_timeout",
    ("generation", "max_tokens"): "generation_max_tokens",
    ("generation", "temperature"): "generation_temperature",
    ("generation", "top_p"): "generation_top_p",
    ("retrieval", "top_k"): "default_top_k",
    ("retrieval", "min_score"): "store_min_score",
    ("retrieval", "relevance_threshold"): "relevance_threshold",
    ("retrieval", "excerpt_chars"): "excerpt_chars",
    ("providers", "openrouter_api_key"): "openrouter_api_key",
    ("providers", "openrouter_base_url"): "openrouter_base_url",
    ("providers", "gemini_api_key"): "gemini_api_key",
}

# Credentials are also read from the variable names the providers document.
_PROVIDER_ENV_KEYS: Mapping[str, str] = {
    "OPENROUTER_API_KEY": "openrouter_api_key",
    "GEMINI_API_KEY": "gemini_api_key",
}

_LIST_FIELDS = ("gemini_embedding_models", "gemini_chat_models")


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    store_path: Path = Field(default=Path.home() / ".crop-rag" / "vectorstore.json")
    chunk_size: int = Field(default=800, gt=0)
    chunk_overlap: int = Field(default=120, ge=0)
    max_chunks: int | None = 100

    openrouter_api_key: str | None = None
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_embedding_model: str = "openai/text-embedding-3-small"
    openrouter_chat_model: str = "qwen/qwen3-coder:free"
    gemini_api_key: str | None = None
    gemini_embedding_models: list[str] = Field(
        default_factory=lambda: ["models/text-embedding-004", "models/embedding-001"]
    )
    gemini_chat_models: list[str] = Field(
        default_factory=lambda: [
            "models/gemini-2.5-flash",
            "models/gemini-1.5-flash",
            "models/gemini-pro",
            "models/gemini-1.0-pro",
        ]
    )
    embedding_local_fallback: bool = False

    default_top_k: int = Field(default=5, ge=1)
    store_min_score: float = 0.1
    relevance_threshold: float = 0.5
    excerpt_chars: int = 1000
    generation_timeout: float = 30.0
    generation_max_tokens: int = 1000
    generation_temperature: float = 0.7
    generation_top_p: float = 0.9

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("store_path", mode="before")
    @classmethod
    def _expand_store_path(cls, value: Any) -> Path:
        if isinstance(value, Path):
            return value.expanduser()
        if isinstance(value, str):
            return Path(value).expanduser()
        raise TypeError("store_path must be a path or string")

    @field_validator(*_LIST_FIELDS, mode="before")
    @classmethod
    def _split_model_list(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("max_chunks", mode="before")
    @classmethod
    def _disable_cap(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().lower() in {"", "none", "off", "0"}:
            return None
        if value == 0:
            return None
        return value

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Load YAML config and overlay env vars; fall back to defaults."""
        config_path = cls._resolve_config_path(path)
        data: dict[str, Any] = {}
        if config_path and config_path.exists():
            with config_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            data.update(_flatten_yaml(raw))
        data.update(_load_env_overrides())
        return cls(**data)

    @staticmethod
    def _resolve_config_path(path: Path | None) -> Path | None:
        if path is not None:
            return path.expanduser()
        env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
        if env_path:
            return Path(env_path).expanduser()
        resolved_default = DEFAULT_CONFIG_PATH.expanduser()
        return resolved_default if resolved_default.exists() else None


def _flatten_yaml(raw: Mapping[str, Any], prefix: tuple[str, ...] = ()) -> dict[str, Any]:
    """Flatten nested YAML configuration to Settings field names."""
    flat: dict[str, Any] = {}
    for key, value in raw.items():
        next_prefix = prefix + (key,)
        if isinstance(value, Mapping):
            flat.update(_flatten_yaml(value, prefix=next_prefix))
        else:
            mapped_key = _YAML_KEY_MAP.get(next_prefix)
            if mapped_key:
                flat[mapped_key] = value
            elif key in Settings.model_fields:
                flat[key] = value
    return flat


def _load_env_overrides() -> dict[str, Any]:
    """Map CROPRAG_ prefixed variables and provider credentials into Settings fields."""
    overrides: dict[str, Any] = {}
    for env_key, field_name in _PROVIDER_ENV_KEYS.items():
        value = os.environ.get(env_key)
        if value:
            overrides[field_name] = value
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in Settings.model_fields:
            overrides[field_name] = value
    return overrides


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings accessor for dependency injection."""
    return Settings.from_yaml()


__all__ = ["Settings", "get_settings"]
