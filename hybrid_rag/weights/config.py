"""
Tunables Configuration Models
=============================

Pydantic models for every tunable of the retrieval pipeline: fusion weights,
BM25 parameters, stage caps, cache TTL and upstream timeouts.

Values come from ``weights/config/weights.yaml`` through the WeightStore and
can be overridden at runtime without a restart.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class WeightCategory(str, Enum):
    """Sections of the tunables file."""
    RETRIEVAL = "retrieval"
    FUSION = "fusion"
    LEXICAL = "lexical"
    RERANK = "rerank"
    GRAPH = "graph"
    ASSEMBLY = "assembly"
    CACHE = "cache"
    TIMEOUTS = "timeouts"


DEFAULT_RELATION_TYPES = ["RELATED_TO", "CONTAINS", "MENTIONS", "PART_OF"]


class RetrievalWeights(BaseModel):
    """
    Vector candidate sizing.

    Attributes:
        candidate_factor: Vector store limit = candidate_factor * max_results
    """
    candidate_factor: int = Field(default=2, ge=1, le=10)


class FusionWeights(BaseModel):
    """
    Weights of the hybrid score.

    score = vector * vectorScore + lexical * lexicalScore + rerank * rerankScore

    When the weights sum above 1 the fused score is divided by their sum so
    it stays in [0, 1].
    """
    vector: float = Field(default=0.4, ge=0.0, le=1.0)
    lexical: float = Field(default=0.3, ge=0.0, le=1.0)
    rerank: float = Field(default=0.3, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def at_least_one_signal(self) -> "FusionWeights":
        if self.vector + self.lexical + self.rerank <= 0.0:
            raise ValueError("at least one fusion weight must be > 0")
        return self

    @property
    def total(self) -> float:
        return self.vector + self.lexical + self.rerank


class LexicalWeights(BaseModel):
    """BM25 parameters."""
    k1: float = Field(default=1.2, gt=0.0, le=3.0)
    b: float = Field(default=0.75, ge=0.0, le=1.0)


class RerankSettings(BaseModel):
    """
    Cross-encoder reranking.

    Attributes:
        max_candidates: Top candidates (by vector score) sent to the scorer
        passage_chars: Characters of each passage shown to the scorer
        concurrency: Maximum in-flight scorer calls
    """
    max_candidates: int = Field(default=20, ge=0, le=100)
    passage_chars: int = Field(default=500, ge=50, le=8000)
    concurrency: int = Field(default=8, ge=1, le=64)


class GraphSettings(BaseModel):
    """Graph expansion limits."""
    max_hops: int = Field(default=2, ge=1, le=5)
    relation_types: List[str] = Field(default_factory=lambda: list(DEFAULT_RELATION_TYPES))
    max_entities: int = Field(default=50, ge=1, le=1000)

    @field_validator("relation_types")
    @classmethod
    def relation_types_are_identifiers(cls, v: List[str]) -> List[str]:
        for rel_type in v:
            if not rel_type or not rel_type.replace("_", "a").isalnum():
                raise ValueError(f"invalid relation type: {rel_type!r}")
        return list(dict.fromkeys(v))


class AssemblySettings(BaseModel):
    """
    Context assembly.

    Attributes:
        recency_divisor: Seconds of age difference worth one score point
        max_context_tokens: Token budget of RetrievalResult.context
        prioritize_recent: Apply the recency tie-break by default
    """
    recency_divisor: float = Field(default=1e9, gt=0.0)
    max_context_tokens: int = Field(default=1500, ge=1, le=128000)
    prioritize_recent: bool = True


class CacheSettings(BaseModel):
    ttl_seconds: int = Field(default=3600, ge=1)
    sweep_interval_seconds: float = Field(default=300.0, gt=0.0)


class TimeoutSettings(BaseModel):
    """Per-call upstream timeouts in seconds."""
    embedding: float = Field(default=5.0, gt=0.0, le=120.0)
    vector_store: float = Field(default=5.0, gt=0.0, le=120.0)
    graph_store: float = Field(default=5.0, gt=0.0, le=120.0)
    rerank: float = Field(default=8.0, gt=0.0, le=120.0)


class WeightConfig(BaseModel):
    """
    Complete tunables set.

    Example:
        >>> config = WeightConfig()
        >>> config.fusion.vector
        0.4
    """
    version: str = Field(default="1.0")

    retrieval: RetrievalWeights = Field(default_factory=RetrievalWeights)
    fusion: FusionWeights = Field(default_factory=FusionWeights)
    lexical: LexicalWeights = Field(default_factory=LexicalWeights)
    rerank: RerankSettings = Field(default_factory=RerankSettings)
    graph: GraphSettings = Field(default_factory=GraphSettings)
    assembly: AssemblySettings = Field(default_factory=AssemblySettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    timeouts: TimeoutSettings = Field(default_factory=TimeoutSettings)

    created_at: Optional[str] = Field(default=None)
    updated_at: Optional[str] = Field(default=None)
