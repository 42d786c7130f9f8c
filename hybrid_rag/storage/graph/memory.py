"""
In-Memory Graph
===============

Dictionary-backed GraphAdjacency for tests and small deployments.
"""

from collections import defaultdict
from typing import Any, Dict, List, Optional, Sequence

from hybrid_rag.storage.graph.base import (
    GraphAdjacency,
    GraphEdge,
    GraphNeighborhood,
    GraphNode,
)


class InMemoryGraph(GraphAdjacency):
    """
    Example:
        graph = InMemoryGraph()
        graph.add_node("e1", "Acme", "Company")
        graph.add_node("e2", "Widget", "Product")
        graph.add_edge("e1", "e2", "CONTAINS")
    """

    def __init__(self):
        self._nodes: Dict[str, GraphNode] = {}
        self._edges: Dict[str, List[GraphEdge]] = defaultdict(list)
        self._tenants: Dict[str, Optional[str]] = {}
        self.traversal_calls = 0

    def add_node(
        self,
        node_id: str,
        name: str,
        node_type: str,
        properties: Optional[Dict[str, Any]] = None,
        tenant_id: Optional[str] = None,
    ) -> None:
        self._nodes[node_id] = GraphNode(node_id, name, node_type, dict(properties or {}))
        self._tenants[node_id] = tenant_id

    def add_edge(
        self,
        source_id: str,
        target_id: str,
        relation_type: str,
        properties: Optional[Dict[str, Any]] = None,
    ) -> None:
        edge = GraphEdge(source_id, target_id, relation_type, dict(properties or {}))
        if edge not in self._edges[source_id]:
            self._edges[source_id].append(edge)

    async def neighborhood(
        self,
        seed_ids: Sequence[str],
        max_hops: int,
        relation_types: Sequence[str],
    ) -> GraphNeighborhood:
        self.traversal_calls += 1
        allowed = set(relation_types)
        reached = set(seed_ids)
        frontier = list(dict.fromkeys(seed_ids))
        edges: List[GraphEdge] = []
        targets: List[str] = []

        for _ in range(max_hops):
            next_frontier = []
            for node_id in frontier:
                for edge in self._edges.get(node_id, []):
                    if edge.relation_type not in allowed or edge.target_id not in self._nodes:
                        continue
                    # paths never leave the seed tenant
                    if self._tenants.get(edge.target_id) != self._tenants.get(edge.source_id):
                        continue
                    edges.append(edge)
                    if edge.target_id not in reached:
                        reached.add(edge.target_id)
                        targets.append(edge.target_id)
                        next_frontier.append(edge.target_id)
            frontier = next_frontier
            if not frontier:
                break

        return GraphNeighborhood(
            nodes=[self._nodes[t] for t in targets],
            edges=edges,
        )
