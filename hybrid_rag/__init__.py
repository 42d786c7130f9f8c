"""
hybrid_rag: Hybrid Retrieval and Reranking Engine
=================================================

Tenant-scoped retrieval combining vector similarity, knowledge-graph
expansion, BM25 and cross-encoder reranking into one ranked, cached result.

Quick Start:
    from hybrid_rag import HybridRetrievalEngine, RetrievalQuery
    from hybrid_rag.storage.vectors import HttpEmbeddingClient, QdrantVectorStore
    from hybrid_rag.storage.graph import FalkorDBClient
    from hybrid_rag.retrieval import LLMRelevanceScorer

    engine = HybridRetrievalEngine(
        embedder=HttpEmbeddingClient(),
        vector_store=QdrantVectorStore(),
        graph=FalkorDBClient(),
        scorer=LLMRelevanceScorer(),
    )
    async with engine:
        result = await engine.retrieve(RetrievalQuery("opening hours", tenant_id="acme"))
        print(result.confidence, [d.id for d in result.documents])

Components:
- core: RetrievalQuery, Document, Entity, RetrievalResult, errors
- storage: embedding providers, Qdrant / in-memory vector stores, FalkorDB / in-memory graph
- retrieval: pipeline stages and HybridRetrievalEngine
- weights: pydantic tunables loaded from YAML
"""

__version__ = "0.1.0"

from hybrid_rag.core import (
    Document,
    DocumentMetadata,
    Entity,
    InvalidQueryError,
    Relationship,
    RetrievalError,
    RetrievalOutcome,
    RetrievalQuery,
    RetrievalResult,
    RetrievalUnavailableError,
    SourceKind,
)
from hybrid_rag.retrieval import HybridRetrievalEngine, ResultCache
from hybrid_rag.weights import WeightConfig, get_weight_store

__all__ = [
    "Document",
    "DocumentMetadata",
    "Entity",
    "HybridRetrievalEngine",
    "InvalidQueryError",
    "Relationship",
    "ResultCache",
    "RetrievalError",
    "RetrievalOutcome",
    "RetrievalQuery",
    "RetrievalResult",
    "RetrievalUnavailableError",
    "SourceKind",
    "WeightConfig",
    "get_weight_store",
    "__version__",
]
