"""
Context Assembler
=================

Turns ranked documents and expanded entities into the final RetrievalResult.

Steps:
1. Optional recency tie-break: among documents with a parsable
   ``created_at``, newer ones get ``(created_at - oldest) / recency_divisor``
   added to their sort key. Scores are not modified.
2. Truncation to ``max_results``.
3. Confidence = mean score of the kept documents (0 when none).
4. Sources = distinct document origins.
5. Token-bounded context: document contents in rank order, blank-line
   separated; the first passage that does not fit is cut at a token
   boundary. Entity ``name (type)`` lines follow while budget remains.
"""

from typing import List, Optional, Sequence, Tuple

import structlog

from hybrid_rag.core.models import Document, Entity, RetrievalResult, clamp_unit
from hybrid_rag.retrieval.tokens import TiktokenCounter, TokenCounter
from hybrid_rag.weights.config import AssemblySettings

log = structlog.get_logger()


class ContextAssembler:

    def __init__(
        self,
        settings: Optional[AssemblySettings] = None,
        token_counter: Optional[TokenCounter] = None,
    ):
        self.settings = settings or AssemblySettings()
        self.token_counter = token_counter or TiktokenCounter()

    def assemble(
        self,
        ranked_documents: Sequence[Document],
        entities: Sequence[Entity],
        max_results: int,
        prioritize_recent: Optional[bool] = None,
    ) -> RetrievalResult:
        """
        Build the RetrievalResult.

        Args:
            ranked_documents: Fused documents, best first
            entities: Entities to report (seeds plus expansion)
            max_results: Maximum documents kept
            prioritize_recent: Override of the configured recency tie-break
        """
        if prioritize_recent is None:
            prioritize_recent = self.settings.prioritize_recent

        ordered = self._apply_recency(ranked_documents) if prioritize_recent else list(ranked_documents)
        selected = ordered[:max(0, max_results)]
        for doc in selected:
            doc.score = clamp_unit(doc.score)

        confidence = clamp_unit(sum(d.score for d in selected) / len(selected)) if selected else 0.0
        sources = {d.origin for d in selected}
        context, used_tokens = self._build_context(selected, entities)

        log.debug(
            "Context assembled",
            documents=len(selected),
            entities=len(entities),
            confidence=round(confidence, 4),
            used_tokens=used_tokens,
        )
        return RetrievalResult(
            documents=selected,
            entities=list(entities),
            confidence=confidence,
            sources=sources,
            context=context,
            used_tokens=used_tokens,
        )

    def _apply_recency(self, documents: Sequence[Document]) -> List[Document]:
        stamps = [d.metadata.created_at_epoch for d in documents]
        dated = [s for s in stamps if s is not None]
        if len(dated) < 2:
            return list(documents)

        oldest = min(dated)
        divisor = self.settings.recency_divisor
        keys = [
            d.score + ((s - oldest) / divisor if s is not None else 0.0)
            for d, s in zip(documents, stamps)
        ]
        order = sorted(range(len(documents)), key=lambda i: -keys[i])
        return [documents[i] for i in order]

    def _build_context(
        self,
        documents: Sequence[Document],
        entities: Sequence[Entity],
    ) -> Tuple[str, int]:
        budget = self.settings.max_context_tokens
        used = 0
        passages: List[str] = []

        for doc in documents:
            if used >= budget:
                break
            if not doc.content:
                continue
            tokens = self.token_counter.count(doc.content)
            if used + tokens <= budget:
                passages.append(doc.content)
                used += tokens
            else:
                remaining = budget - used
                partial = self.token_counter.truncate(doc.content, remaining)
                if partial:
                    passages.append(partial)
                    used += min(self.token_counter.count(partial), remaining)
                break

        entity_lines: List[str] = []
        for entity in entities:
            line = f"{entity.name} ({entity.type})"
            tokens = self.token_counter.count(line)
            if used + tokens > budget:
                break
            entity_lines.append(line)
            used += tokens

        if entity_lines:
            passages.append("\n".join(entity_lines))
        return "\n\n".join(passages), used
