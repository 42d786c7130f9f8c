"""
Hybrid Fusion Ranker
====================

Combines the three relevance signals into one score per document:

    score = w_v * vector + w_l * lexical + w_r * rerank

Vector and rerank scores are already in [0, 1]. Lexical (BM25) scores are
unbounded, so they are divided by the candidate-set maximum when it exceeds
1 and only clamped otherwise. If the weights sum above 1 the result is
divided by their sum. Ties keep the input order.
"""

from typing import Dict, List, Optional, Sequence

import structlog

from hybrid_rag.core.models import Document, SourceKind, clamp_unit
from hybrid_rag.weights.config import FusionWeights

log = structlog.get_logger()


def normalize_lexical(scores: Sequence[float]) -> List[float]:
    """Map BM25 scores into [0, 1] (max-normalise when any exceeds 1)."""
    if not scores:
        return []
    top = max(scores)
    if top > 1.0:
        return [clamp_unit(s / top) for s in scores]
    return [clamp_unit(s) for s in scores]


class HybridFusionRanker:
    """
    Example:
        >>> ranker = HybridFusionRanker(FusionWeights(vector=0.4, lexical=0.3, rerank=0.3))
        >>> ranked = ranker.fuse(documents, lexical_scores, rerank_scores)
    """

    def __init__(self, weights: Optional[FusionWeights] = None):
        self.weights = weights or FusionWeights()

    def fuse(
        self,
        documents: Sequence[Document],
        lexical_scores: Sequence[float],
        rerank_scores: Sequence[float],
        weights: Optional[FusionWeights] = None,
    ) -> List[Document]:
        """
        Fuse, dedupe and sort.

        Args:
            documents: Candidates; ``score`` holds the vector similarity
            lexical_scores: Raw BM25 scores, aligned with ``documents``
            rerank_scores: Rerank scores for a prefix of ``documents``;
                documents past the end get 0
            weights: Per-call override of the configured weights

        Returns:
            Documents with fused ``score`` and ``source_kind = hybrid``,
            one per id (highest score kept), best first.

        Raises:
            ValueError: lexical_scores is not aligned with documents
        """
        if len(lexical_scores) != len(documents):
            raise ValueError(
                f"lexical_scores must align with documents: {len(lexical_scores)} != {len(documents)}"
            )
        weights = weights or self.weights
        scale = weights.total if weights.total > 1.0 else 1.0
        lexical = normalize_lexical(lexical_scores)

        best: Dict[str, Document] = {}
        order: Dict[str, int] = {}
        for i, doc in enumerate(documents):
            vector = clamp_unit(doc.score)
            rerank = clamp_unit(rerank_scores[i]) if i < len(rerank_scores) else 0.0
            fused = clamp_unit(
                (weights.vector * vector + weights.lexical * lexical[i] + weights.rerank * rerank) / scale
            )

            doc.signals = {"vector": vector, "lexical": lexical[i], "rerank": rerank}
            doc.score = fused
            doc.source_kind = SourceKind.HYBRID

            kept = best.get(doc.id)
            if kept is None:
                best[doc.id] = doc
                order[doc.id] = i
            elif fused > kept.score:
                best[doc.id] = doc

        ranked = sorted(best.values(), key=lambda d: (-d.score, order[d.id]))
        log.debug(
            "Fusion complete",
            candidates=len(documents),
            unique=len(ranked),
            top_score=ranked[0].score if ranked else None,
        )
        return ranked
