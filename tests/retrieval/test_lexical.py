"""
Tests for the BM25 LexicalScorer.
"""

import math

import pytest

from hybrid_rag.core.models import Document
from hybrid_rag.retrieval.lexical import LexicalScorer, query_terms, tokenize


def _docs(*contents):
    return [Document(f"d{i}", c) for i, c in enumerate(contents)]


class TestTokenize:

    def test_lowercase_word_runs(self):
        assert tokenize("Abrimos das 9h às 18h!") == ["abrimos", "das", "9h", "às", "18h"]

    def test_empty(self):
        assert tokenize("") == []

    def test_query_terms_are_unique_and_ordered(self):
        assert query_terms("Revenue revenue FORECAST") == ["revenue", "forecast"]


class TestLexicalScorer:

    def test_known_value(self):
        """A term in 1 of 3 equal-length docs: idf = ln(4/2), tf part = 1."""
        docs = _docs("apple banana", "banana cherry", "cherry date")
        scores = LexicalScorer().score(docs, ["apple"])
        assert scores[0] == pytest.approx(math.log(2))
        assert scores[1] == 0.0
        assert scores[2] == 0.0

    def test_single_candidate_scores_zero(self):
        scores = LexicalScorer().score(_docs("apple apple banana"), ["apple"])
        assert scores == [0.0]

    def test_term_in_every_candidate_has_no_weight(self):
        scores = LexicalScorer().score(_docs("apple x", "apple y"), ["apple"])
        assert scores == [0.0, 0.0]

    def test_empty_inputs(self):
        scorer = LexicalScorer()
        assert scorer.score([], ["apple"]) == []
        assert scorer.score(_docs("a", "b"), []) == [0.0, 0.0]

    def test_empty_contents(self):
        assert LexicalScorer().score(_docs("", ""), ["apple"]) == [0.0, 0.0]

    def test_shorter_document_wins_on_equal_tf(self):
        docs = _docs("apple", "apple filler filler filler filler", "other")
        scores = LexicalScorer().score(docs, ["apple"])
        assert scores[0] > scores[1] > scores[2]

    def test_scores_aligned_and_non_negative(self):
        docs = _docs("revenue forecast q3", "forecast", "unrelated text", "revenue revenue")
        scores = LexicalScorer().score(docs, query_terms("revenue forecast"))
        assert len(scores) == len(docs)
        assert all(s >= 0.0 for s in scores)

    def test_deterministic(self):
        docs = _docs("a b c", "b c d", "c d e")
        scorer = LexicalScorer()
        assert scorer.score(docs, ["a", "d"]) == scorer.score(docs, ["a", "d"])

    @pytest.mark.parametrize("k1,b", [(0.0, 0.75), (-1.0, 0.75), (1.2, 1.5), (1.2, -0.1)])
    def test_invalid_parameters(self, k1, b):
        with pytest.raises(ValueError):
            LexicalScorer(k1=k1, b=b)
