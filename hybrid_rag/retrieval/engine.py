"""
Hybrid Retrieval Engine
=======================

Orchestrates the retrieval pipeline for one query:

    validate -> cache lookup
             -> vector retrieval (documents + seed entities)
                  | on failure: keyword fallback source
             -> graph expansion of seed entities      (best-effort)
             -> BM25 over the candidates
             -> cross-encoder rerank of the top slice (best-effort)
             -> weighted fusion -> context assembly -> cache store

Only InvalidQueryError and RetrievalUnavailableError ever escape
``retrieve``. Every other stage failure degrades to an empty or neutral
contribution and is logged.

Example:
    engine = HybridRetrievalEngine(
        embedder=EmbeddingService.get_instance(),
        vector_store=QdrantVectorStore(),
        graph=FalkorDBClient(),
        scorer=LLMRelevanceScorer(),
    )
    result = await engine.retrieve(RetrievalQuery("opening hours", tenant_id="acme"))
"""

import asyncio
import time
from typing import Any, Dict, List, Optional, Tuple

import structlog

from hybrid_rag.core.errors import (
    EmbeddingUnavailableError,
    RetrievalUnavailableError,
    VectorStoreUnavailableError,
)
from hybrid_rag.core.models import (
    Document,
    Entity,
    RetrievalOutcome,
    RetrievalQuery,
    RetrievalResult,
)
from hybrid_rag.retrieval.assembler import ContextAssembler
from hybrid_rag.retrieval.cache import CacheStats, ResultCache
from hybrid_rag.retrieval.fusion import HybridFusionRanker
from hybrid_rag.retrieval.graph_expander import GraphExpander
from hybrid_rag.retrieval.lexical import LexicalScorer, query_terms
from hybrid_rag.retrieval.reranker import CrossEncoderReranker
from hybrid_rag.retrieval.scoring import ScoringService
from hybrid_rag.retrieval.tokens import TokenCounter
from hybrid_rag.retrieval.vector_retriever import VectorRetriever
from hybrid_rag.storage.graph.base import GraphAdjacency
from hybrid_rag.storage.vectors.base import EmbeddingProvider, KeywordSource, VectorStore
from hybrid_rag.weights.config import WeightConfig
from hybrid_rag.weights.store import WeightStore, get_weight_store

log = structlog.get_logger()


class HybridRetrievalEngine:
    """
    Hybrid vector + graph + lexical retrieval with reranking and caching.

    Args:
        embedder: Query embedding provider
        vector_store: Tenant-scoped similarity search
        graph: Knowledge graph adjacency; None disables expansion
        scorer: Relevance scorer for reranking; None scores every candidate 0
        keyword_source: Fallback document source when vector retrieval fails
        cache: Result cache; a private one is created when None
        weights: Pinned tunables; when None the engine follows ``weight_store``
        token_counter: Context token counter; tiktoken when None
        weight_store: Tunables source; the process-wide WeightStore when None
    """

    def __init__(
        self,
        embedder: EmbeddingProvider,
        vector_store: VectorStore,
        graph: Optional[GraphAdjacency] = None,
        scorer: Optional[ScoringService] = None,
        keyword_source: Optional[KeywordSource] = None,
        cache: Optional[ResultCache] = None,
        weights: Optional[WeightConfig] = None,
        token_counter: Optional[TokenCounter] = None,
        weight_store: Optional[WeightStore] = None,
    ):
        if weights is None:
            self.weight_store = weight_store or get_weight_store()
            self._weights = self.weight_store.get_weights()
        else:
            self.weight_store = None
            self._weights = weights
        self.embedder = embedder
        self.vector_store = vector_store
        self.graph = graph
        self.scorer = scorer
        self.keyword_source = keyword_source
        self.token_counter = token_counter

        self._stage_key: Optional[Tuple[int, Optional[str]]] = None
        self._configure_stages(self.weights)
        self.cache = cache or ResultCache(sweep_interval_seconds=self.weights.cache.sweep_interval_seconds)

    @property
    def weights(self) -> WeightConfig:
        """Effective tunables; follows the WeightStore unless a config was pinned."""
        if self.weight_store is not None:
            self._weights = self.weight_store.get_weights()
        return self._weights

    def _configure_stages(self, weights: WeightConfig) -> None:
        self.vector_retriever = VectorRetriever(
            self.embedder,
            self.vector_store,
            timeouts=weights.timeouts,
            candidate_factor=weights.retrieval.candidate_factor,
        )
        self.graph_expander = (
            GraphExpander(
                self.graph,
                timeout=weights.timeouts.graph_store,
                max_entities=weights.graph.max_entities,
            )
            if self.graph is not None else None
        )
        self.lexical_scorer = LexicalScorer(k1=weights.lexical.k1, b=weights.lexical.b)
        self.reranker = (
            CrossEncoderReranker(self.scorer, settings=weights.rerank, timeout=weights.timeouts.rerank)
            if self.scorer is not None else None
        )
        self.fusion_ranker = HybridFusionRanker(weights.fusion)
        self.assembler = ContextAssembler(weights.assembly, self.token_counter)
        self._stage_key = (id(weights), weights.updated_at)

    def _refresh_stages(self) -> WeightConfig:
        """Rebuild the stages when the tunables were overridden or reloaded."""
        weights = self.weights
        if (id(weights), weights.updated_at) != self._stage_key:
            log.info("Tunables changed, reconfiguring pipeline stages", updated_at=weights.updated_at)
            self._configure_stages(weights)
        return weights

    async def __aenter__(self) -> "HybridRetrievalEngine":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.shutdown()

    def start(self) -> None:
        """Start background cache maintenance (needs a running loop)."""
        self.cache.start()

    async def shutdown(self) -> None:
        """Stop cache maintenance and close collaborators that hold sessions."""
        await self.cache.shutdown()
        for collaborator in (self.scorer, self.embedder, self.vector_store, self.graph):
            close = getattr(collaborator, "close", None)
            if close is None:
                continue
            try:
                result = close()
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                log.warning("Error closing collaborator", collaborator=type(collaborator).__name__, error=str(e))

    async def retrieve(self, query: RetrievalQuery) -> RetrievalResult:
        """
        Retrieve documents and entities for ``query``.

        Raises:
            InvalidQueryError: Raised by RetrievalQuery before this is reached
            RetrievalUnavailableError: No document source could answer
        """
        outcome = await self.retrieve_with_metadata(query)
        return outcome.result

    async def retrieve_with_metadata(self, query: RetrievalQuery) -> RetrievalOutcome:
        """Like ``retrieve`` but also reports cache hit, latency and fallback use."""
        weights = self._refresh_stages()
        start = time.perf_counter()
        state = {"fallback": False}

        async def compute() -> RetrievalResult:
            result, state["fallback"] = await self._run_pipeline(query)
            return result

        if query.use_cache:
            key = ResultCache.make_key(query.tenant_id, query.text, query.cache_options())
            lookup = await self.cache.get_or_compute(
                key,
                weights.cache.ttl_seconds,
                compute,
                tenant_id=query.tenant_id,
                query_text=query.text,
            )
            result, cache_hit = lookup.value, lookup.hit
        else:
            result, cache_hit = await compute(), False

        latency_ms = (time.perf_counter() - start) * 1000
        log.info(
            "Retrieval complete",
            tenant_id=query.tenant_id,
            documents=len(result.documents),
            entities=len(result.entities),
            confidence=round(result.confidence, 4),
            cache_hit=cache_hit,
            lexical_fallback=state["fallback"],
            latency_ms=round(latency_ms, 1),
        )
        return RetrievalOutcome(
            result=result,
            cache_hit=cache_hit,
            latency_ms=latency_ms,
            used_lexical_fallback=state["fallback"],
        )

    async def _run_pipeline(self, query: RetrievalQuery) -> Tuple[RetrievalResult, bool]:
        documents, seeds, used_fallback = await self._fetch_candidates(query)

        entities = seeds
        if query.enable_graph_expansion and seeds and self.graph_expander is not None:
            expanded = await self.graph_expander.expand(
                seeds,
                max_hops=self.weights.graph.max_hops,
                relation_types=self.weights.graph.relation_types,
            )
            entities = expanded or seeds

        if not documents:
            return self.assembler.assemble([], entities, query.max_results), used_fallback

        documents.sort(key=lambda d: -d.score)
        lexical_scores = self.lexical_scorer.score(documents, query_terms(query.text))

        rerank_scores: List[float] = []
        if self.reranker is not None:
            top = documents[:self.weights.rerank.max_candidates]
            rerank_scores = await self.reranker.rerank(top, query.text)

        ranked = self.fusion_ranker.fuse(documents, lexical_scores, rerank_scores)
        return self.assembler.assemble(ranked, entities, query.max_results), used_fallback

    async def _fetch_candidates(
        self,
        query: RetrievalQuery,
    ) -> Tuple[List[Document], List[Entity], bool]:
        try:
            candidates = await self.vector_retriever.retrieve(query)
            return candidates.documents, candidates.entities, False
        except (EmbeddingUnavailableError, VectorStoreUnavailableError) as e:
            entities = list(getattr(e, "entities", []))
            if self.keyword_source is None:
                log.error("Vector retrieval failed, no fallback", stage=e.stage, error=str(e))
                raise RetrievalUnavailableError(f"vector retrieval failed: {e}") from e
            log.warning("Vector retrieval failed, using keyword fallback", stage=e.stage, error=str(e))

        limit = self.weights.retrieval.candidate_factor * query.max_results
        try:
            documents = await asyncio.wait_for(
                self.keyword_source.search(query.tenant_id, query.text, limit),
                timeout=self.weights.timeouts.vector_store,
            )
        except Exception as e:
            log.error("Keyword fallback failed", error=str(e))
            raise RetrievalUnavailableError(f"vector retrieval and keyword fallback failed: {e}") from e

        for doc in documents:
            doc.score = 0.0
        return list(documents)[:limit], entities, True

    def invalidate(self, tenant_id: str, query_pattern: Optional[str] = None) -> int:
        """Drop cached results of a tenant (optionally only queries containing a pattern)."""
        return self.cache.invalidate(tenant_id, query_pattern)

    def clear_cache(self) -> None:
        self.cache.clear()

    def get_cache_stats(self) -> CacheStats:
        return self.cache.stats()

    async def health_check(self) -> Dict[str, Any]:
        """Per-collaborator health, never raises."""
        checks = {
            "vector_store": self.vector_store,
            "graph": self.graph,
            "keyword_source": self.keyword_source,
        }
        status: Dict[str, Any] = {}
        for name, collaborator in checks.items():
            probe = getattr(collaborator, "health_check", None)
            if probe is None:
                continue
            try:
                status[name] = bool(await probe())
            except Exception as e:
                log.warning("Health check failed", component=name, error=str(e))
                status[name] = False
        status["cache"] = self.cache.stats().to_dict()
        return status
