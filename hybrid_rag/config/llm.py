"""
LLM Service Configuration
=========================

Settings for the OpenAI-compatible HTTP API used for relevance scoring and
remote embeddings.

Environment Variables:
    LLM_API_KEY: Key for the API (falls back to OPENROUTER_API_KEY)
    LLM_BASE_URL: API base URL (default: https://openrouter.ai/api/v1)
    RERANK_MODEL: Chat model used for relevance scoring
    EMBEDDING_API_MODEL: Model used by the HTTP embedding client
    EMBEDDING_MODEL: sentence-transformers model used by EmbeddingService
    LLM_TIMEOUT_SECONDS: Total HTTP timeout per request (default: 30)
"""

import os
from dataclasses import dataclass, field
from typing import Optional


def _get_env_str(key: str, default: str) -> str:
    return os.environ.get(key, default)


def _get_env_float(key: str, default: float) -> float:
    return float(os.environ.get(key, default))


def _get_api_key() -> Optional[str]:
    return os.environ.get("LLM_API_KEY") or os.environ.get("OPENROUTER_API_KEY") or None


@dataclass
class LLMServiceConfig:
    """
    OpenAI-compatible HTTP API settings (OpenRouter by default).

    Attributes:
        api_key: Bearer token, None when not configured
        base_url: API root, ``/chat/completions`` and ``/embeddings`` are appended
        rerank_model: Chat model for relevance scoring
        embedding_model: Model for the /embeddings endpoint
        local_embedding_model: sentence-transformers model name
        timeout_seconds: Total timeout of one HTTP request
    """
    api_key: Optional[str] = field(default_factory=_get_api_key)
    base_url: str = field(
        default_factory=lambda: _get_env_str("LLM_BASE_URL", "https://openrouter.ai/api/v1").rstrip("/")
    )
    rerank_model: str = field(default_factory=lambda: _get_env_str("RERANK_MODEL", "openai/gpt-4o-mini"))
    embedding_model: str = field(
        default_factory=lambda: _get_env_str("EMBEDDING_API_MODEL", "openai/text-embedding-3-small")
    )
    local_embedding_model: str = field(
        default_factory=lambda: _get_env_str(
            "EMBEDDING_MODEL", "sentence-transformers/all-MiniLM-L6-v2"
        )
    )
    timeout_seconds: float = field(default_factory=lambda: _get_env_float("LLM_TIMEOUT_SECONDS", 30.0))

    def __post_init__(self):
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)


