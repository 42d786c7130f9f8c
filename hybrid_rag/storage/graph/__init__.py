"""
Graph Storage
=============

Knowledge graph adjacency for entity expansion.

Components:
- GraphAdjacency: interface walked by the graph expander
- FalkorDBClient: async client for FalkorDB
- FalkorDBConfig: connection settings
- InMemoryGraph: dictionary-backed graph

Example:
    from hybrid_rag.storage.graph import FalkorDBClient, FalkorDBConfig

    client = FalkorDBClient(FalkorDBConfig(graph_name="knowledge"))
    await client.connect()
"""

from hybrid_rag.storage.graph.base import (
    GraphAdjacency,
    GraphEdge,
    GraphNeighborhood,
    GraphNode,
    validate_relation_types,
)
from hybrid_rag.storage.graph.client import FalkorDBClient
from hybrid_rag.storage.graph.config import FalkorDBConfig
from hybrid_rag.storage.graph.memory import InMemoryGraph

__all__ = [
    "FalkorDBClient",
    "FalkorDBConfig",
    "GraphAdjacency",
    "GraphEdge",
    "GraphNeighborhood",
    "GraphNode",
    "InMemoryGraph",
    "validate_relation_types",
]
