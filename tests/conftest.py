"""
hybrid_rag Test Configuration
=============================

Shared fakes and fixtures for all tests.

Integration tests (real Qdrant / FalkorDB / LLM API) are marked with
``@pytest.mark.integration`` and skipped unless HYBRID_RAG_INTEGRATION=1.
"""

import os
from typing import Dict, List, Optional

import pytest

from hybrid_rag.core.models import Document, DocumentMetadata, SourceKind
from hybrid_rag.retrieval.scoring import ScoringService
from hybrid_rag.retrieval.tokens import TokenCounter
from hybrid_rag.storage.vectors.base import EmbeddingProvider
from hybrid_rag.weights.config import WeightConfig


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: needs live Qdrant, FalkorDB or LLM services")


def pytest_collection_modifyitems(config, items):
    if os.environ.get("HYBRID_RAG_INTEGRATION") == "1":
        return
    skip_integration = pytest.mark.skip(reason="set HYBRID_RAG_INTEGRATION=1 to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


# ============================================================================
# Fakes
# ============================================================================

class WordTokenCounter(TokenCounter):
    """One token per whitespace-separated word (no tokenizer download)."""

    def count(self, text: str) -> int:
        return len(text.split())

    def truncate(self, text: str, max_tokens: int) -> str:
        if max_tokens <= 0:
            return ""
        return " ".join(text.split()[:max_tokens])


class StaticEmbedder(EmbeddingProvider):
    """Returns a fixed vector per text, ``default`` otherwise."""

    def __init__(self, vectors: Optional[Dict[str, List[float]]] = None, default=None):
        self.vectors = vectors or {}
        self.default = default if default is not None else [1.0, 0.0]
        self.calls: List[str] = []

    async def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        return list(self.vectors.get(text, self.default))


class FixedScorer(ScoringService):
    """Scores passages from a dict keyed by passage text."""

    def __init__(self, scores: Optional[Dict[str, float]] = None, default: float = 0.5):
        self.scores = scores or {}
        self.default = default
        self.calls: List[str] = []
        self.closed = False

    async def score(self, query: str, passage: str) -> float:
        self.calls.append(passage)
        return self.scores.get(passage, self.default)

    async def close(self):
        self.closed = True


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def token_counter():
    return WordTokenCounter()


@pytest.fixture
def weights():
    """Default tunables, independent of the packaged YAML."""
    return WeightConfig()


@pytest.fixture
def make_document():
    """Factory for Documents with a vector score."""
    def _make(doc_id: str, content: str = "", score: float = 0.0, source=None, created_at=None):
        return Document(
            id=doc_id,
            content=content or f"content of {doc_id}",
            metadata=DocumentMetadata(source=source, created_at=created_at),
            score=score,
            source_kind=SourceKind.VECTOR,
        )
    return _make


@pytest.fixture
def embedder():
    return StaticEmbedder()


@pytest.fixture
def make_scorer():
    """Factory for FixedScorer."""
    def _make(scores=None, default: float = 0.5):
        return FixedScorer(scores, default)
    return _make
