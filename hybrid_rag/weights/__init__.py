"""
Retrieval Tunables
==================

Pydantic tunables for the hybrid retrieval pipeline, loaded from YAML.

Example:
    from hybrid_rag.weights import get_weight_store

    weights = get_weight_store().get_weights()
    print(weights.fusion.vector)  # 0.4
"""

from hybrid_rag.weights.config import (
    AssemblySettings,
    CacheSettings,
    FusionWeights,
    GraphSettings,
    LexicalWeights,
    RerankSettings,
    RetrievalWeights,
    TimeoutSettings,
    WeightCategory,
    WeightConfig,
)
from hybrid_rag.weights.store import WeightStore, get_weight_store

__all__ = [
    "AssemblySettings",
    "CacheSettings",
    "FusionWeights",
    "GraphSettings",
    "LexicalWeights",
    "RerankSettings",
    "RetrievalWeights",
    "TimeoutSettings",
    "WeightCategory",
    "WeightConfig",
    "WeightStore",
    "get_weight_store",
]
