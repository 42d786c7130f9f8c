"""
Environment Configuration
=========================

Connection settings for every external service the engine talks to.

Usage:
    from hybrid_rag.config import get_environment_config

    env = get_environment_config()
    print(env.qdrant.documents_collection)  # "documents"
    print(env.llm.rerank_model)             # "openai/gpt-4o-mini"

Environment Variables:
    HYBRID_RAG_ENV: Deployment name, informational (default: dev)

LLM, FalkorDB and Qdrant variables are documented in their config modules.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from hybrid_rag.config.llm import LLMServiceConfig
from hybrid_rag.storage.graph.config import FalkorDBConfig
from hybrid_rag.storage.vectors.config import QdrantConfig


def _get_env_str(key: str, default: str) -> str:
    return os.environ.get(key, default)


@dataclass
class EngineEnvironment:
    """
    All connection settings for one deployment.

    Attributes:
        name: Deployment name (dev, test, prod)
        falkordb: Graph store settings
        qdrant: Vector store settings
        llm: Scoring and embedding API settings
    """
    name: str = field(default_factory=lambda: _get_env_str("HYBRID_RAG_ENV", "dev"))
    falkordb: FalkorDBConfig = field(default_factory=FalkorDBConfig)
    qdrant: QdrantConfig = field(default_factory=QdrantConfig)
    llm: LLMServiceConfig = field(default_factory=LLMServiceConfig)


_current_environment: Optional[EngineEnvironment] = None


def get_environment_config() -> EngineEnvironment:
    """
    Process-wide EngineEnvironment, read from the environment on first use.

    Example:
        env = get_environment_config()
        print(env.falkordb.graph_name)  # "knowledge_dev"
    """
    global _current_environment
    if _current_environment is None:
        _current_environment = EngineEnvironment()
    return _current_environment


def set_environment_config(env: Optional[EngineEnvironment]) -> None:
    """Replace the process-wide config. ``None`` re-reads the environment on next use."""
    global _current_environment
    _current_environment = env
