"""
Qdrant Vector Store
===================

VectorStore adapter over ``AsyncQdrantClient.query_points``.

Collections are expected to use cosine distance. Qdrant reports cosine
similarity as ``score``; the adapter converts it to ``distance = 1 - score``.
"""

from typing import List, Optional

import structlog
from qdrant_client import AsyncQdrantClient
from qdrant_client.models import FieldCondition, Filter, MatchValue

from hybrid_rag.storage.vectors.base import VectorCollection, VectorHit, VectorStore
from hybrid_rag.storage.vectors.config import QdrantConfig

log = structlog.get_logger()


class QdrantVectorStore(VectorStore):
    """
    Tenant-scoped similarity search in Qdrant.

    Example:
        store = QdrantVectorStore(QdrantConfig(host="localhost"))
        hits = await store.query(VectorCollection.DOCUMENTS, vector, "acme", 0.7, 20)
        await store.close()
    """

    def __init__(
        self,
        config: Optional[QdrantConfig] = None,
        client: Optional[AsyncQdrantClient] = None,
    ):
        self.config = config or QdrantConfig()
        self._client = client

    @property
    def client(self) -> AsyncQdrantClient:
        if self._client is None:
            self._client = AsyncQdrantClient(
                host=self.config.host,
                port=self.config.port,
                api_key=self.config.api_key,
            )
            log.info("Qdrant client created", host=self.config.host, port=self.config.port)
        return self._client

    def collection_name(self, collection: VectorCollection) -> str:
        if collection == VectorCollection.ENTITIES:
            return self.config.entities_collection
        return self.config.documents_collection

    async def query(
        self,
        collection: VectorCollection,
        vector: List[float],
        tenant_id: str,
        threshold: float,
        limit: int,
    ) -> List[VectorHit]:
        query_filter = Filter(
            must=[
                FieldCondition(
                    key=self.config.tenant_field,
                    match=MatchValue(value=tenant_id),
                )
            ]
        )
        response = await self.client.query_points(
            collection_name=self.collection_name(collection),
            query=vector,
            query_filter=query_filter,
            score_threshold=threshold,
            limit=limit,
            with_payload=True,
        )

        hits = [
            VectorHit(
                id=str(point.id),
                distance=1.0 - float(point.score),
                score=float(point.score),
                payload=dict(point.payload or {}),
            )
            for point in response.points
        ]
        log.debug(
            "Qdrant query",
            collection=collection.value,
            tenant_id=tenant_id,
            hits=len(hits),
        )
        return hits

    async def health_check(self) -> bool:
        try:
            await self.client.get_collections()
            return True
        except Exception as e:
            log.warning("Qdrant health check failed", error=str(e))
            return False

    async def close(self):
        if self._client is not None:
            await self._client.close()
            self._client = None
