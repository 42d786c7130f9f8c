"""
Graph Expander
==============

Breadth-first expansion of seed entities over the knowledge graph.

A single bounded traversal covers every seed. Only outgoing edges of the
allowed relation types are followed, each entity appears once and the result
is capped at ``max_entities``.

Expansion is best-effort: any graph failure or timeout is logged and the
expander returns ``[]``, letting the caller keep its seed entities.
"""

import asyncio
from dataclasses import replace
from typing import Dict, List, Sequence

import structlog

from hybrid_rag.core.errors import GraphStoreUnavailableError
from hybrid_rag.core.models import Entity, Relationship
from hybrid_rag.storage.graph.base import GraphAdjacency, GraphEdge

log = structlog.get_logger()


class GraphExpander:
    """
    Example:
        expander = GraphExpander(FalkorDBClient(), timeout=5.0)
        entities = await expander.expand(seeds, max_hops=2, relation_types=["RELATED_TO"])
    """

    def __init__(self, graph: GraphAdjacency, timeout: float = 5.0, max_entities: int = 50):
        self.graph = graph
        self.timeout = timeout
        self.max_entities = max_entities

    async def expand(
        self,
        seeds: Sequence[Entity],
        max_hops: int,
        relation_types: Sequence[str],
    ) -> List[Entity]:
        """
        Seeds plus every entity reachable within ``max_hops``.

        Returns seeds first (input order), then discovered entities in
        traversal order, each carrying the relationships that point inside the
        returned set. Empty seeds, an empty allow-list or a graph failure
        give ``[]``.
        """
        if not seeds or not relation_types or max_hops < 1:
            return []

        try:
            return await asyncio.wait_for(
                self.traverse(seeds, max_hops, relation_types), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            log.warning("Graph expansion timed out", timeout=self.timeout, seeds=len(seeds))
            return []
        except Exception as e:
            log.warning("Graph expansion failed", error=str(e), seeds=len(seeds))
            return []

    async def traverse(
        self,
        seeds: Sequence[Entity],
        max_hops: int,
        relation_types: Sequence[str],
    ) -> List[Entity]:
        """
        Run the expansion without the failure guard.

        Raises:
            GraphStoreUnavailableError: The adjacency store failed
        """
        seed_map: Dict[str, Entity] = {}
        for seed in seeds:
            seed_map.setdefault(seed.id, seed)

        try:
            found = await self.graph.neighborhood(list(seed_map), max_hops, list(relation_types))
        except Exception as e:
            raise GraphStoreUnavailableError(f"graph traversal failed: {e}") from e

        allowed = set(relation_types)
        nodes = {n.id: n for n in found.nodes}
        edges = [e for e in found.edges if e.relation_type in allowed]

        ordered: List[Entity] = [replace(s, relationships=[]) for s in seed_map.values()]
        included = set(seed_map)
        for edge in edges:
            if len(ordered) >= max(self.max_entities, len(seed_map)):
                break
            node = nodes.get(edge.target_id)
            if node is None or node.id in included:
                continue
            included.add(node.id)
            ordered.append(Entity(id=node.id, name=node.name, type=node.type, properties=dict(node.properties)))

        self._attach_relationships(ordered, edges)

        log.debug(
            "Graph expansion",
            seeds=len(seed_map),
            discovered=len(ordered) - len(seed_map),
            edges=len(edges),
            hops=max_hops,
        )
        return ordered

    @staticmethod
    def _attach_relationships(entities: List[Entity], edges: Sequence[GraphEdge]) -> None:
        by_id = {e.id: e for e in entities}
        seen = set()
        for edge in edges:
            source = by_id.get(edge.source_id)
            if source is None or edge.target_id not in by_id:
                continue
            key = (edge.source_id, edge.target_id, edge.relation_type)
            if key in seen:
                continue
            seen.add(key)
            source.relationships.append(
                Relationship(edge.target_id, edge.relation_type, dict(edge.properties))
            )

