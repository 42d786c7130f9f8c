"""
Vector Storage Interfaces
=========================

Abstract interfaces the retrieval engine depends on. Concrete adapters:
QdrantVectorStore, InMemoryVectorStore, EmbeddingService, HttpEmbeddingClient.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from hybrid_rag.core.models import Document


class VectorCollection(str, Enum):
    """Logical collections queried by the vector retriever."""
    DOCUMENTS = "documents"
    ENTITIES = "entities"


@dataclass
class VectorHit:
    """
    Raw vector store match.

    Attributes:
        id: Point id
        distance: Cosine distance in [0, 2]
        payload: Stored payload (content, metadata, entity fields)
        score: Similarity as reported by the store, when it reports one
    """
    id: str
    distance: float
    payload: Dict[str, Any] = field(default_factory=dict)
    score: Optional[float] = None

    @property
    def similarity(self) -> float:
        """Store similarity, or ``1 - distance`` when the store reports none."""
        if self.score is not None:
            return self.score
        return 1.0 - self.distance


class EmbeddingProvider(ABC):
    """Turns query text into a dense vector."""

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        pass


class VectorStore(ABC):
    """Similarity search scoped to one tenant."""

    @abstractmethod
    async def query(
        self,
        collection: VectorCollection,
        vector: List[float],
        tenant_id: str,
        threshold: float,
        limit: int,
    ) -> List[VectorHit]:
        """
        Nearest neighbours of ``vector``.

        Returns only hits with ``similarity >= threshold`` belonging to
        ``tenant_id``, at most ``limit``, best first.
        """
        pass

    async def health_check(self) -> bool:
        return True


class KeywordSource(ABC):
    """Keyword search used when vector retrieval is unavailable."""

    @abstractmethod
    async def search(self, tenant_id: str, text: str, limit: int) -> List[Document]:
        """Documents of ``tenant_id`` matching ``text``, source_kind lexical."""
        pass
