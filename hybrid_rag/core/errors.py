"""
Retrieval Errors
================

Error taxonomy for the retrieval pipeline.

Only two kinds of error ever escape ``HybridRetrievalEngine.retrieve``:

- ``InvalidQueryError``: the request is malformed, raised before any I/O.
- ``RetrievalUnavailableError``: the vector stage and the lexical fallback
  both failed, so no document source is left.

Every other stage error is caught at the stage boundary, logged, and the
stage contributes an empty or neutral value instead.
"""

from typing import Any, List, Optional


class RetrievalError(Exception):
    """Base class for every error raised by hybrid_rag."""


class InvalidQueryError(RetrievalError, ValueError):
    """The query failed validation."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class UpstreamUnavailableError(RetrievalError):
    """
    An upstream dependency failed or timed out.

    Attributes:
        stage: Pipeline stage that owns the dependency
            (embedding, vector_store, graph_store, scoring, retrieval)
    """

    stage = "upstream"

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class EmbeddingUnavailableError(UpstreamUnavailableError):
    stage = "embedding"


class VectorStoreUnavailableError(UpstreamUnavailableError):
    """
    The vector store could not answer.

    ``entities`` carries whatever entity hits were fetched before the
    document query failed, so the caller can keep them.
    """

    stage = "vector_store"

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        entities: Optional[List[Any]] = None,
    ):
        super().__init__(message, stage)
        self.entities = list(entities or [])


class GraphStoreUnavailableError(UpstreamUnavailableError):
    stage = "graph_store"


class ScoringUnavailableError(UpstreamUnavailableError):
    stage = "scoring"


class MalformedScoreError(ScoringUnavailableError):
    """The scoring service answered with something that is not a number."""

    def __init__(self, raw_output: str):
        super().__init__(f"Scoring service returned a non-numeric answer: {raw_output[:50]!r}")
        self.raw_output = raw_output


class RetrievalUnavailableError(UpstreamUnavailableError):
    """Neither the vector stage nor the lexical fallback produced documents."""

    stage = "retrieval"
