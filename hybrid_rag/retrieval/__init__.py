"""
Hybrid Retrieval Pipeline
=========================

Components:
- VectorRetriever: query embedding + tenant-scoped vector search
- GraphExpander: bounded expansion of seed entities
- LexicalScorer: BM25 over the candidate set
- CrossEncoderReranker: concurrent relevance scoring of the top slice
- HybridFusionRanker: weighted fusion of the three signals
- ContextAssembler: truncation, confidence, sources, bounded context
- ResultCache: per-tenant TTL cache
- HybridRetrievalEngine: the orchestrator
"""

from hybrid_rag.retrieval.assembler import ContextAssembler
from hybrid_rag.retrieval.cache import CacheLookup, CacheStats, ResultCache
from hybrid_rag.retrieval.engine import HybridRetrievalEngine
from hybrid_rag.retrieval.fusion import HybridFusionRanker, normalize_lexical
from hybrid_rag.retrieval.graph_expander import GraphExpander
from hybrid_rag.retrieval.lexical import LexicalScorer, query_terms
from hybrid_rag.retrieval.reranker import CrossEncoderReranker
from hybrid_rag.retrieval.scoring import (
    CrossEncoderScorer,
    LLMRelevanceScorer,
    ScoringService,
    parse_relevance,
)
from hybrid_rag.retrieval.tokens import TiktokenCounter, TokenCounter
from hybrid_rag.retrieval.vector_retriever import VectorCandidates, VectorRetriever

__all__ = [
    "CacheLookup",
    "CacheStats",
    "ContextAssembler",
    "CrossEncoderReranker",
    "CrossEncoderScorer",
    "GraphExpander",
    "HybridFusionRanker",
    "HybridRetrievalEngine",
    "LLMRelevanceScorer",
    "LexicalScorer",
    "ResultCache",
    "ScoringService",
    "TiktokenCounter",
    "TokenCounter",
    "VectorCandidates",
    "VectorRetriever",
    "normalize_lexical",
    "parse_relevance",
    "query_terms",
]
