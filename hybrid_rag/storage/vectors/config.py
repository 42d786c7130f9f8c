"""
Qdrant Configuration
====================

Connection settings for the vector store adapter.

Environment Variables:
    QDRANT_HOST: Server host (default: localhost)
    QDRANT_PORT: Server port (default: 6333)
    QDRANT_API_KEY: API key (default: empty)
    QDRANT_DOCUMENTS_COLLECTION: Collection of document chunks (default: documents)
    QDRANT_ENTITIES_COLLECTION: Collection of entity embeddings (default: entities)
"""

import os
from dataclasses import dataclass, field
from typing import Optional


def _get_env_str(key: str, default: str) -> str:
    return os.environ.get(key, default)


def _get_env_int(key: str, default: int) -> int:
    return int(os.environ.get(key, default))


@dataclass
class QdrantConfig:
    """
    Qdrant connection settings.

    Attributes:
        host: Qdrant host
        port: Qdrant REST port
        api_key: Optional API key
        documents_collection: Collection searched for documents
        entities_collection: Collection searched for seed entities
        tenant_field: Payload key carrying the tenant id
    """
    host: str = field(default_factory=lambda: _get_env_str("QDRANT_HOST", "localhost"))
    port: int = field(default_factory=lambda: _get_env_int("QDRANT_PORT", 6333))
    api_key: Optional[str] = field(default_factory=lambda: _get_env_str("QDRANT_API_KEY", "") or None)
    documents_collection: str = field(
        default_factory=lambda: _get_env_str("QDRANT_DOCUMENTS_COLLECTION", "documents")
    )
    entities_collection: str = field(
        default_factory=lambda: _get_env_str("QDRANT_ENTITIES_COLLECTION", "entities")
    )
    tenant_field: str = "tenant_id"
