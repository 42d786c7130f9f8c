"""
Vector Retriever
================

Embeds the query once and searches the document and entity collections
concurrently, each scoped to the tenant and filtered by the similarity
threshold.

Failure policy:
- embedding fails -> EmbeddingUnavailableError
- document query fails -> VectorStoreUnavailableError (carrying any entities)
- entity query fails -> logged, entities = []
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import structlog

from hybrid_rag.core.errors import EmbeddingUnavailableError, VectorStoreUnavailableError
from hybrid_rag.core.models import (
    Document,
    DocumentMetadata,
    Entity,
    RetrievalQuery,
    SourceKind,
    clamp_unit,
)
from hybrid_rag.storage.vectors.base import (
    EmbeddingProvider,
    VectorCollection,
    VectorHit,
    VectorStore,
)
from hybrid_rag.weights.config import TimeoutSettings

log = structlog.get_logger()

_CONTENT_KEYS = ("content", "text")


@dataclass
class VectorCandidates:
    documents: List[Document] = field(default_factory=list)
    entities: List[Entity] = field(default_factory=list)


def hit_to_document(hit: VectorHit) -> Document:
    payload: Dict[str, Any] = dict(hit.payload)
    content = ""
    for key in _CONTENT_KEYS:
        if key in payload:
            content = str(payload.pop(key) or "")
            break
    return Document(
        id=hit.id,
        content=content,
        metadata=DocumentMetadata.from_payload(payload),
        score=clamp_unit(hit.similarity),
        source_kind=SourceKind.VECTOR,
    )


def hit_to_entity(hit: VectorHit) -> Entity:
    payload = dict(hit.payload)
    properties = dict(payload.pop("properties", None) or {})
    return Entity(
        id=str(payload.get("entity_id") or hit.id),
        name=str(payload.get("name") or hit.id),
        type=str(payload.get("type") or "unknown"),
        properties=properties,
    )


class VectorRetriever:
    """
    Example:
        retriever = VectorRetriever(EmbeddingService.get_instance(), QdrantVectorStore())
        candidates = await retriever.retrieve(query)
    """

    def __init__(
        self,
        embedder: EmbeddingProvider,
        store: VectorStore,
        timeouts: Optional[TimeoutSettings] = None,
        candidate_factor: int = 2,
    ):
        self.embedder = embedder
        self.store = store
        self.timeouts = timeouts or TimeoutSettings()
        self.candidate_factor = candidate_factor

    async def embed(self, text: str) -> List[float]:
        try:
            return await asyncio.wait_for(self.embedder.embed(text), timeout=self.timeouts.embedding)
        except asyncio.TimeoutError as e:
            raise EmbeddingUnavailableError(
                f"embedding timed out after {self.timeouts.embedding}s"
            ) from e
        except EmbeddingUnavailableError:
            raise
        except Exception as e:
            raise EmbeddingUnavailableError(f"embedding failed: {e}") from e

    async def _query(
        self,
        collection: VectorCollection,
        vector: List[float],
        query: RetrievalQuery,
        limit: int,
    ) -> List[VectorHit]:
        try:
            return await asyncio.wait_for(
                self.store.query(
                    collection,
                    vector,
                    query.tenant_id,
                    query.similarity_threshold,
                    limit,
                ),
                timeout=self.timeouts.vector_store,
            )
        except asyncio.TimeoutError as e:
            raise VectorStoreUnavailableError(
                f"{collection.value} query timed out after {self.timeouts.vector_store}s"
            ) from e
        except VectorStoreUnavailableError:
            raise
        except Exception as e:
            raise VectorStoreUnavailableError(f"{collection.value} query failed: {e}") from e

    async def retrieve(self, query: RetrievalQuery) -> VectorCandidates:
        """
        Candidate documents and seed entities for ``query``.

        Documents are sorted by similarity, best first, and never fall below
        the query threshold. At most ``candidate_factor * max_results`` of
        each are returned.
        """
        vector = await self.embed(query.text)
        limit = self.candidate_factor * query.max_results

        doc_result, entity_result = await asyncio.gather(
            self._query(VectorCollection.DOCUMENTS, vector, query, limit),
            self._query(VectorCollection.ENTITIES, vector, query, limit),
            return_exceptions=True,
        )

        for outcome in (doc_result, entity_result):
            if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
                raise outcome

        entities: List[Entity] = []
        if isinstance(entity_result, Exception):
            log.warning("Entity vector query failed", tenant_id=query.tenant_id, error=str(entity_result))
        else:
            entities = self._dedupe_entities(hit_to_entity(h) for h in entity_result)

        if isinstance(doc_result, Exception):
            if isinstance(doc_result, VectorStoreUnavailableError):
                doc_result.entities = entities
                raise doc_result
            raise VectorStoreUnavailableError(f"document query failed: {doc_result}", entities=entities) from doc_result

        documents = [
            d for d in (hit_to_document(h) for h in doc_result)
            if d.score >= query.similarity_threshold
        ]
        documents.sort(key=lambda d: -d.score)
        documents = documents[:limit]

        log.debug(
            "Vector retrieval",
            tenant_id=query.tenant_id,
            documents=len(documents),
            entities=len(entities),
            limit=limit,
        )
        return VectorCandidates(documents=documents, entities=entities)

    @staticmethod
    def _dedupe_entities(entities) -> List[Entity]:
        seen: Dict[str, Entity] = {}
        for entity in entities:
            seen.setdefault(entity.id, entity)
        return list(seen.values())
