"""
Tests for vector store adapters and embedding providers.
"""

from unittest.mock import AsyncMock, MagicMock

import numpy as np
import pytest

from hybrid_rag.config.llm import LLMServiceConfig
from hybrid_rag.core.errors import EmbeddingUnavailableError
from hybrid_rag.core.models import SourceKind
from hybrid_rag.storage.vectors import (
    EmbeddingService,
    HttpEmbeddingClient,
    InMemoryVectorStore,
    QdrantConfig,
    QdrantVectorStore,
    VectorCollection,
)


@pytest.fixture
def memory_store():
    store = InMemoryVectorStore()
    store.add_document("acme", "d1", "quarterly revenue grew", [1.0, 0.0], {"source": "reports"})
    store.add_document("acme", "d2", "revenue forecast for next year", [0.6, 0.8])
    store.add_document("acme", "d3", "office closed on friday", [0.0, 1.0])
    store.add_document("globex", "g1", "revenue of globex", [1.0, 0.0])
    store.add_entity("acme", "e1", "Acme", "Company", [1.0, 0.0], {"hq": "Lisbon"})
    return store


class TestInMemoryVectorStore:

    @pytest.mark.asyncio
    async def test_cosine_order_and_threshold(self, memory_store):
        hits = await memory_store.query(VectorCollection.DOCUMENTS, [1.0, 0.0], "acme", 0.5, 10)
        assert [h.id for h in hits] == ["d1", "d2"]
        assert hits[0].distance == pytest.approx(0.0)
        assert hits[1].distance == pytest.approx(0.4)

    @pytest.mark.asyncio
    async def test_tenant_scoped(self, memory_store):
        hits = await memory_store.query(VectorCollection.DOCUMENTS, [1.0, 0.0], "globex", 0.0, 10)
        assert [h.id for h in hits] == ["g1"]

    @pytest.mark.asyncio
    async def test_limit(self, memory_store):
        hits = await memory_store.query(VectorCollection.DOCUMENTS, [1.0, 0.0], "acme", 0.0, 1)
        assert len(hits) == 1

    @pytest.mark.asyncio
    async def test_zero_vector_matches_nothing_above_zero(self, memory_store):
        hits = await memory_store.query(VectorCollection.DOCUMENTS, [0.0, 0.0], "acme", 0.1, 10)
        assert hits == []

    @pytest.mark.asyncio
    async def test_entity_payload(self, memory_store):
        hits = await memory_store.query(VectorCollection.ENTITIES, [1.0, 0.0], "acme", 0.5, 10)
        assert hits[0].payload["name"] == "Acme"
        assert hits[0].payload["properties"] == {"hq": "Lisbon"}
        assert memory_store.count(VectorCollection.ENTITIES) == 1

    @pytest.mark.asyncio
    async def test_keyword_search(self, memory_store):
        docs = await memory_store.search("acme", "revenue forecast", 10)
        assert [d.id for d in docs] == ["d2", "d1"]
        assert all(d.source_kind == SourceKind.LEXICAL for d in docs)
        assert all(d.score == 0.0 for d in docs)
        assert docs[1].metadata.source == "reports"

    @pytest.mark.asyncio
    async def test_keyword_search_no_terms(self, memory_store):
        assert await memory_store.search("acme", "!!!", 10) == []


class TestQdrantVectorStore:

    @pytest.fixture
    def client(self):
        point = MagicMock(id="d1", score=0.92, payload={"content": "Abrimos das 9h", "tenant_id": "acme"})
        client = MagicMock()
        client.query_points = AsyncMock(return_value=MagicMock(points=[point]))
        client.get_collections = AsyncMock()
        client.close = AsyncMock()
        return client

    @pytest.mark.asyncio
    async def test_query_converts_score_to_distance(self, client):
        store = QdrantVectorStore(QdrantConfig(host="qdrant"), client=client)
        hits = await store.query(VectorCollection.DOCUMENTS, [0.1, 0.2], "acme", 0.7, 20)

        assert len(hits) == 1
        assert hits[0].id == "d1"
        assert hits[0].distance == pytest.approx(0.08)
        assert hits[0].payload["content"] == "Abrimos das 9h"

    @pytest.mark.asyncio
    async def test_query_is_tenant_filtered(self, client):
        config = QdrantConfig(host="qdrant", entities_collection="kb_entities")
        store = QdrantVectorStore(config, client=client)
        await store.query(VectorCollection.ENTITIES, [0.1], "acme", 0.7, 20)

        kwargs = client.query_points.await_args.kwargs
        assert kwargs["collection_name"] == "kb_entities"
        assert kwargs["score_threshold"] == 0.7
        assert kwargs["limit"] == 20
        condition = kwargs["query_filter"].must[0]
        assert condition.key == "tenant_id"
        assert condition.match.value == "acme"

    @pytest.mark.asyncio
    async def test_health_check(self, client):
        store = QdrantVectorStore(QdrantConfig(host="qdrant"), client=client)
        assert await store.health_check() is True
        client.get_collections.side_effect = ConnectionError("down")
        assert await store.health_check() is False

    @pytest.mark.asyncio
    async def test_close(self, client):
        store = QdrantVectorStore(QdrantConfig(host="qdrant"), client=client)
        await store.close()
        client.close.assert_awaited_once()


class TestEmbeddingService:

    @pytest.mark.asyncio
    async def test_embed_uses_query_prefix(self):
        service = EmbeddingService(model_name="test-model", device="cpu", query_prefix="query: ")
        service._model = MagicMock()
        service._model.encode.return_value = np.array([0.6, 0.8])

        assert await service.embed("hours") == [0.6, 0.8]
        assert service._model.encode.call_args.args[0] == "query: hours"

    def test_encode_batch(self):
        service = EmbeddingService(model_name="test-model", device="cpu")
        service._model = MagicMock()
        service._model.encode.return_value = np.array([[1.0, 0.0], [0.0, 1.0]])
        assert service.encode_batch(["a", "b"]) == [[1.0, 0.0], [0.0, 1.0]]

    def test_lazy_loading(self):
        service = EmbeddingService(model_name="test-model", device="cpu")
        assert service.is_loaded is False


class TestHttpEmbeddingClient:

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        client = HttpEmbeddingClient(LLMServiceConfig(api_key=None))
        with pytest.raises(EmbeddingUnavailableError):
            await client.embed("hours")

    def test_model_defaults_to_config(self):
        config = LLMServiceConfig(api_key="k", embedding_model="custom/embedder")
        assert HttpEmbeddingClient(config).model == "custom/embedder"
