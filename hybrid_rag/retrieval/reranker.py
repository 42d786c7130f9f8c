"""
Cross-Encoder Reranker
======================

Scores the top candidates against the query with a ScoringService.

Calls run concurrently, bounded by a semaphore, each with its own timeout.
The output is aligned with the input order regardless of completion order.
A failed, timed-out or malformed call scores 0 for that document only.
"""

import asyncio
from typing import List, Optional, Sequence

import structlog

from hybrid_rag.core.models import Document, clamp_unit
from hybrid_rag.retrieval.scoring import ScoringService
from hybrid_rag.weights.config import RerankSettings

log = structlog.get_logger()


class CrossEncoderReranker:
    """
    Example:
        reranker = CrossEncoderReranker(LLMRelevanceScorer(), timeout=8.0)
        scores = await reranker.rerank(documents[:20], "opening hours")
    """

    def __init__(
        self,
        scorer: ScoringService,
        settings: Optional[RerankSettings] = None,
        timeout: float = 8.0,
    ):
        self.scorer = scorer
        self.settings = settings or RerankSettings()
        self.timeout = timeout

    async def rerank(self, documents: Sequence[Document], query: str) -> List[float]:
        """
        One score in [0, 1] per document, aligned with ``documents``.

        Args:
            documents: Candidates to score (already capped by the caller)
            query: Query text
        """
        if not documents:
            return []

        semaphore = asyncio.Semaphore(self.settings.concurrency)
        scores = await asyncio.gather(
            *(self._score_one(semaphore, query, doc) for doc in documents)
        )

        failed = sum(1 for s in scores if s is None)
        if failed:
            log.warning("Rerank degraded", failed=failed, total=len(documents))
        return [s if s is not None else 0.0 for s in scores]

    async def _score_one(
        self,
        semaphore: asyncio.Semaphore,
        query: str,
        doc: Document,
    ) -> Optional[float]:
        passage = doc.content[:self.settings.passage_chars]
        async with semaphore:
            try:
                value = await asyncio.wait_for(self.scorer.score(query, passage), timeout=self.timeout)
                return clamp_unit(value)
            except asyncio.TimeoutError:
                log.warning("Rerank call timed out", doc_id=doc.id, timeout=self.timeout)
                return None
            except Exception as e:
                log.warning("Rerank call failed", doc_id=doc.id, error=str(e))
                return None
