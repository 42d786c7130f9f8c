"""
Lexical Scorer
==============

BM25 over the candidate set.

Statistics (document frequency, average length) are taken from the
candidates themselves, not from the whole corpus:

    idf(t)     = ln((N + 1) / (df(t) + 1))
    score(d)   = sum_t idf(t) * tf * (k1 + 1) / (tf + k1 * (1 - b + b * |d| / avgdl))

A term present in every candidate has idf 0, so a single candidate always
scores 0. Scores are unbounded; the fusion ranker normalises them.
"""

import math
from collections import Counter
from typing import List, Optional, Sequence

from hybrid_rag.core.models import Document
from hybrid_rag.core.text import tokenize, unique_terms

__all__ = ["LexicalScorer", "query_terms", "tokenize"]


def query_terms(text: str) -> List[str]:
    """Distinct query terms, in order."""
    return unique_terms(text)


class LexicalScorer:
    """
    Pure BM25 scorer.

    Example:
        >>> scorer = LexicalScorer()
        >>> scores = scorer.score(documents, query_terms("revenue forecast"))
    """

    def __init__(self, k1: float = 1.2, b: float = 0.75):
        if k1 <= 0:
            raise ValueError(f"k1 must be > 0, got {k1}")
        if not 0.0 <= b <= 1.0:
            raise ValueError(f"b must be in [0, 1], got {b}")
        self.k1 = k1
        self.b = b

    def score(
        self,
        documents: Sequence[Document],
        terms: Sequence[str],
        corpus_avg_length: Optional[float] = None,
    ) -> List[float]:
        """
        BM25 score of each document, aligned with ``documents``.

        Args:
            documents: Candidate set, also the statistics corpus
            terms: Query terms (already tokenized)
            corpus_avg_length: Average length in tokens; computed from
                ``documents`` when None

        Returns:
            One non-negative score per document
        """
        if not documents:
            return []
        if not terms:
            return [0.0] * len(documents)

        token_counts = [Counter(tokenize(doc.content)) for doc in documents]
        lengths = [sum(counts.values()) for counts in token_counts]
        avg_length = corpus_avg_length if corpus_avg_length is not None else sum(lengths) / len(lengths)
        if avg_length <= 0:
            return [0.0] * len(documents)

        n_docs = len(documents)
        idf = {}
        for term in terms:
            df = sum(1 for counts in token_counts if term in counts)
            idf[term] = math.log((n_docs + 1) / (df + 1))

        scores = []
        for counts, length in zip(token_counts, lengths):
            total = 0.0
            norm = self.k1 * (1 - self.b + self.b * length / avg_length)
            for term in terms:
                tf = counts.get(term, 0)
                if tf == 0:
                    continue
                total += idf[term] * tf * (self.k1 + 1) / (tf + norm)
            scores.append(total)
        return scores
