"""
Tests for VectorRetriever.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from hybrid_rag.core.errors import EmbeddingUnavailableError, VectorStoreUnavailableError
from hybrid_rag.core.models import RetrievalQuery
from hybrid_rag.retrieval.vector_retriever import VectorRetriever, hit_to_document, hit_to_entity
from hybrid_rag.storage.vectors import InMemoryVectorStore, VectorCollection, VectorHit
from hybrid_rag.weights.config import TimeoutSettings


def _store(documents=None, entities=None, doc_error=None, entity_error=None):
    """Mock VectorStore answering per collection."""
    async def query(collection, vector, tenant_id, threshold, limit):
        if collection == VectorCollection.DOCUMENTS:
            if doc_error:
                raise doc_error
            return list(documents or [])
        if entity_error:
            raise entity_error
        return list(entities or [])

    store = MagicMock()
    store.query = AsyncMock(side_effect=query)
    return store


class TestHitConversion:

    def test_document_similarity_from_distance(self):
        doc = hit_to_document(VectorHit("d1", 0.08, {"content": "Abrimos das 9h", "source": "faq"}))
        assert doc.score == pytest.approx(0.92)
        assert doc.content == "Abrimos das 9h"
        assert doc.metadata.source == "faq"
        assert "content" not in doc.metadata.extra

    def test_text_payload_key(self):
        assert hit_to_document(VectorHit("d1", 0.0, {"text": "hello"})).content == "hello"

    def test_similarity_clamped(self):
        assert hit_to_document(VectorHit("d1", 1.7, {})).score == 0.0

    def test_entity_fields(self):
        entity = hit_to_entity(VectorHit("p-1", 0.1, {
            "entity_id": "e1", "name": "Acme", "type": "Company", "properties": {"hq": "Lisbon"},
        }))
        assert (entity.id, entity.name, entity.type) == ("e1", "Acme", "Company")
        assert entity.properties == {"hq": "Lisbon"}

    def test_entity_defaults(self):
        entity = hit_to_entity(VectorHit("e9", 0.1, {}))
        assert (entity.id, entity.name, entity.type) == ("e9", "e9", "unknown")


class TestVectorRetriever:

    @pytest.mark.asyncio
    async def test_limit_is_twice_max_results(self, embedder):
        store = _store()
        retriever = VectorRetriever(embedder, store)
        await retriever.retrieve(RetrievalQuery("q", tenant_id="acme", max_results=7))

        assert store.query.await_count == 2
        for call in store.query.await_args_list:
            collection, vector, tenant_id, threshold, limit = call.args
            assert tenant_id == "acme"
            assert threshold == 0.7
            assert limit == 14

    @pytest.mark.asyncio
    async def test_embeds_once(self, embedder):
        await VectorRetriever(embedder, _store()).retrieve(RetrievalQuery("q", tenant_id="acme"))
        assert embedder.calls == ["q"]

    @pytest.mark.asyncio
    async def test_documents_sorted_and_thresholded(self, embedder):
        store = _store(documents=[
            VectorHit("low", 0.5, {"content": "x"}),
            VectorHit("mid", 0.2, {"content": "y"}),
            VectorHit("top", 0.05, {"content": "z"}),
        ])
        candidates = await VectorRetriever(embedder, store).retrieve(
            RetrievalQuery("q", tenant_id="acme", similarity_threshold=0.7)
        )
        assert [d.id for d in candidates.documents] == ["top", "mid"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("threshold", [0.1, 0.3, 0.55, 0.7, 0.9])
    async def test_hit_exactly_at_threshold_is_kept(self, embedder, threshold):
        store = _store(documents=[
            VectorHit("edge", 1.0 - threshold, {"content": "x"}, score=threshold),
        ])
        candidates = await VectorRetriever(embedder, store).retrieve(
            RetrievalQuery("q", tenant_id="acme", similarity_threshold=threshold)
        )
        assert [d.id for d in candidates.documents] == ["edge"]
        assert candidates.documents[0].score == threshold

    @pytest.mark.asyncio
    async def test_in_memory_hit_at_threshold_is_kept(self, embedder):
        store = InMemoryVectorStore()
        store.add_document("acme", "d1", "x", [1.0, 0.0])
        embedder.vectors["q"] = [1.0, 0.0]
        candidates = await VectorRetriever(embedder, store).retrieve(
            RetrievalQuery("q", tenant_id="acme", similarity_threshold=1.0)
        )
        assert [d.id for d in candidates.documents] == ["d1"]

    @pytest.mark.asyncio
    async def test_entity_failure_is_absorbed(self, embedder):
        store = _store(documents=[VectorHit("d1", 0.1, {"content": "x"})], entity_error=ConnectionError("down"))
        candidates = await VectorRetriever(embedder, store).retrieve(RetrievalQuery("q", tenant_id="acme"))
        assert [d.id for d in candidates.documents] == ["d1"]
        assert candidates.entities == []

    @pytest.mark.asyncio
    async def test_document_failure_keeps_entities(self, embedder):
        store = _store(
            entities=[VectorHit("e1", 0.1, {"name": "Acme", "type": "Company"})],
            doc_error=ConnectionError("down"),
        )
        with pytest.raises(VectorStoreUnavailableError) as exc_info:
            await VectorRetriever(embedder, store).retrieve(RetrievalQuery("q", tenant_id="acme"))
        assert [e.id for e in exc_info.value.entities] == ["e1"]

    @pytest.mark.asyncio
    async def test_duplicate_entities_collapsed(self, embedder):
        store = _store(entities=[
            VectorHit("p1", 0.1, {"entity_id": "e1", "name": "Acme"}),
            VectorHit("p2", 0.2, {"entity_id": "e1", "name": "Acme"}),
        ])
        candidates = await VectorRetriever(embedder, store).retrieve(RetrievalQuery("q", tenant_id="acme"))
        assert [e.id for e in candidates.entities] == ["e1"]

    @pytest.mark.asyncio
    async def test_embedding_failure(self):
        embedder = MagicMock()
        embedder.embed = AsyncMock(side_effect=RuntimeError("model crashed"))
        retriever = VectorRetriever(embedder, _store())
        with pytest.raises(EmbeddingUnavailableError):
            await retriever.retrieve(RetrievalQuery("q", tenant_id="acme"))

    @pytest.mark.asyncio
    async def test_embedding_timeout(self):
        async def slow(text):
            await asyncio.sleep(1)

        embedder = MagicMock()
        embedder.embed = slow
        retriever = VectorRetriever(embedder, _store(), timeouts=TimeoutSettings(embedding=0.01))
        with pytest.raises(EmbeddingUnavailableError):
            await retriever.retrieve(RetrievalQuery("q", tenant_id="acme"))

    @pytest.mark.asyncio
    async def test_store_timeout(self, embedder):
        async def slow(*args):
            await asyncio.sleep(1)

        store = MagicMock()
        store.query = slow
        retriever = VectorRetriever(embedder, store, timeouts=TimeoutSettings(vector_store=0.01))
        with pytest.raises(VectorStoreUnavailableError):
            await retriever.retrieve(RetrievalQuery("q", tenant_id="acme"))

    @pytest.mark.asyncio
    async def test_tenant_isolation_in_memory(self, embedder):
        store = InMemoryVectorStore()
        store.add_document("acme", "d1", "acme doc", [1.0, 0.0])
        store.add_document("globex", "d2", "globex doc", [1.0, 0.0])
        candidates = await VectorRetriever(embedder, store).retrieve(RetrievalQuery("q", tenant_id="acme"))
        assert [d.id for d in candidates.documents] == ["d1"]
        assert candidates.documents[0].metadata.tenant_id == "acme"
