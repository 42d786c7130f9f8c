"""
Vector Storage
==============

Embedding providers and tenant-scoped similarity search.

Components:
- EmbeddingProvider / VectorStore / KeywordSource: interfaces
- EmbeddingService: local sentence-transformers embeddings
- HttpEmbeddingClient: OpenAI-compatible /embeddings client
- QdrantVectorStore: Qdrant adapter
- InMemoryVectorStore: numpy store, also a KeywordSource
"""

from hybrid_rag.storage.vectors.base import (
    EmbeddingProvider,
    KeywordSource,
    VectorCollection,
    VectorHit,
    VectorStore,
)
from hybrid_rag.storage.vectors.config import QdrantConfig
from hybrid_rag.storage.vectors.embeddings import EmbeddingService
from hybrid_rag.storage.vectors.http_embeddings import HttpEmbeddingClient
from hybrid_rag.storage.vectors.memory import InMemoryVectorStore
from hybrid_rag.storage.vectors.qdrant import QdrantVectorStore

__all__ = [
    "EmbeddingProvider",
    "EmbeddingService",
    "HttpEmbeddingClient",
    "InMemoryVectorStore",
    "KeywordSource",
    "QdrantConfig",
    "QdrantVectorStore",
    "VectorCollection",
    "VectorHit",
    "VectorStore",
]
