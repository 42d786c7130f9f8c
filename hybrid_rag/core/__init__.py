"""
Core data model and error taxonomy.
"""

from hybrid_rag.core.errors import (
    EmbeddingUnavailableError,
    GraphStoreUnavailableError,
    InvalidQueryError,
    MalformedScoreError,
    RetrievalError,
    RetrievalUnavailableError,
    ScoringUnavailableError,
    UpstreamUnavailableError,
    VectorStoreUnavailableError,
)
from hybrid_rag.core.models import (
    CacheEntry,
    Document,
    DocumentMetadata,
    Entity,
    Relationship,
    RetrievalOutcome,
    RetrievalQuery,
    RetrievalResult,
    SourceKind,
)

__all__ = [
    "CacheEntry",
    "Document",
    "DocumentMetadata",
    "EmbeddingUnavailableError",
    "Entity",
    "GraphStoreUnavailableError",
    "InvalidQueryError",
    "MalformedScoreError",
    "Relationship",
    "RetrievalError",
    "RetrievalOutcome",
    "RetrievalQuery",
    "RetrievalResult",
    "RetrievalUnavailableError",
    "ScoringUnavailableError",
    "SourceKind",
    "UpstreamUnavailableError",
    "VectorStoreUnavailableError",
]
