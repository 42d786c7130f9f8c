"""
FalkorDB Configuration
======================

Connection settings for the graph store adapter.

Usage:
    from hybrid_rag.storage.graph import FalkorDBConfig

    # Default (env vars or built-in defaults)
    config = FalkorDBConfig()

    # Explicit override
    config = FalkorDBConfig(host="localhost", port=6380, graph_name="knowledge_prod")

Environment Variables:
    FALKORDB_HOST: Server host (default: localhost)
    FALKORDB_PORT: Server port (default: 6380)
    FALKORDB_GRAPH_NAME: Graph name (default: knowledge_dev)
    FALKORDB_PASSWORD: Password (default: empty)
    FALKORDB_TIMEOUT_MS: Operation timeout in ms (default: 5000)
"""

import os
from dataclasses import dataclass, field
from typing import Optional


def _get_env_str(key: str, default: str) -> str:
    return os.environ.get(key, default)


def _get_env_int(key: str, default: int) -> int:
    return int(os.environ.get(key, default))


@dataclass
class FalkorDBConfig:
    """
    FalkorDB connection settings.

    Every field can be overridden from the environment.

    Attributes:
        host: FalkorDB server host
        port: Server port (6380 for the FalkorDB container)
        graph_name: Graph holding the Entity nodes
        timeout_ms: Operation timeout in milliseconds
        password: Optional authentication password
        entity_label: Node label of entities
    """
    host: str = field(default_factory=lambda: _get_env_str("FALKORDB_HOST", "localhost"))
    port: int = field(default_factory=lambda: _get_env_int("FALKORDB_PORT", 6380))
    graph_name: str = field(default_factory=lambda: _get_env_str("FALKORDB_GRAPH_NAME", "knowledge_dev"))
    timeout_ms: int = field(default_factory=lambda: _get_env_int("FALKORDB_TIMEOUT_MS", 5000))
    password: Optional[str] = field(default_factory=lambda: _get_env_str("FALKORDB_PASSWORD", "") or None)
    entity_label: str = "Entity"

    def __post_init__(self):
        if not self.entity_label.isidentifier():
            raise ValueError(f"entity_label must be an identifier, got {self.entity_label!r}")
