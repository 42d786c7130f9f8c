"""
In-Memory Vector Store
======================

numpy cosine search over points held in process. Useful for tests, demos
and small corpora. Also serves keyword search, so it can back the lexical
fallback of the engine.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np
import structlog

from hybrid_rag.core.models import Document, DocumentMetadata, SourceKind
from hybrid_rag.core.text import tokenize
from hybrid_rag.storage.vectors.base import (
    KeywordSource,
    VectorCollection,
    VectorHit,
    VectorStore,
)

log = structlog.get_logger()


@dataclass
class _Point:
    id: str
    tenant_id: str
    vector: np.ndarray
    payload: Dict[str, Any] = field(default_factory=dict)


class InMemoryVectorStore(VectorStore, KeywordSource):
    """
    Example:
        store = InMemoryVectorStore()
        store.add_document("acme", "d1", "Quarterly revenue grew", [0.1, 0.9])
        hits = await store.query(VectorCollection.DOCUMENTS, [0.1, 0.9], "acme", 0.5, 10)
    """

    def __init__(self):
        self._points: Dict[VectorCollection, Dict[str, _Point]] = {
            VectorCollection.DOCUMENTS: {},
            VectorCollection.ENTITIES: {},
        }

    def upsert(
        self,
        collection: VectorCollection,
        point_id: str,
        vector: List[float],
        tenant_id: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        payload = dict(payload or {})
        payload["tenant_id"] = tenant_id
        self._points[collection][point_id] = _Point(
            id=point_id,
            tenant_id=tenant_id,
            vector=np.asarray(vector, dtype=np.float64),
            payload=payload,
        )

    def add_document(
        self,
        tenant_id: str,
        doc_id: str,
        content: str,
        vector: List[float],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        payload = dict(metadata or {})
        payload["content"] = content
        self.upsert(VectorCollection.DOCUMENTS, doc_id, vector, tenant_id, payload)

    def add_entity(
        self,
        tenant_id: str,
        entity_id: str,
        name: str,
        entity_type: str,
        vector: List[float],
        properties: Optional[Dict[str, Any]] = None,
    ) -> None:
        payload = {"name": name, "type": entity_type, "properties": dict(properties or {})}
        self.upsert(VectorCollection.ENTITIES, entity_id, vector, tenant_id, payload)

    def count(self, collection: VectorCollection) -> int:
        return len(self._points[collection])

    async def query(
        self,
        collection: VectorCollection,
        vector: List[float],
        tenant_id: str,
        threshold: float,
        limit: int,
    ) -> List[VectorHit]:
        points = [p for p in self._points[collection].values() if p.tenant_id == tenant_id]
        if not points or limit <= 0:
            return []

        query_vec = np.asarray(vector, dtype=np.float64)
        matrix = np.vstack([p.vector for p in points])
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query_vec)
        dots = matrix @ query_vec
        sims = np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)

        order = np.argsort(-sims, kind="stable")
        hits = []
        for idx in order:
            similarity = float(sims[idx])
            if similarity < threshold:
                break
            point = points[idx]
            hits.append(VectorHit(
                id=point.id,
                distance=1.0 - similarity,
                payload=dict(point.payload),
                score=similarity,
            ))
            if len(hits) >= limit:
                break
        return hits

    async def search(self, tenant_id: str, text: str, limit: int) -> List[Document]:
        """Documents sharing at least one term with ``text``, most shared terms first."""
        terms = set(tokenize(text))
        if not terms or limit <= 0:
            return []

        matches = []
        for point in self._points[VectorCollection.DOCUMENTS].values():
            if point.tenant_id != tenant_id:
                continue
            overlap = len(terms & set(tokenize(point.payload.get("content", ""))))
            if overlap:
                matches.append((overlap, point))

        matches.sort(key=lambda m: -m[0])
        documents = []
        for _, point in matches[:limit]:
            payload = dict(point.payload)
            content = payload.pop("content", "")
            documents.append(Document(
                id=point.id,
                content=content,
                metadata=DocumentMetadata.from_payload(payload),
                score=0.0,
                source_kind=SourceKind.LEXICAL,
            ))
        log.debug("Keyword search", tenant_id=tenant_id, matches=len(documents))
        return documents
