"""
Graph Storage Interface
=======================

Adjacency contract used by the graph expander. One ``neighborhood`` call
covers every seed and every hop.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

_RELATION_TYPE_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def validate_relation_types(relation_types: Sequence[str]) -> List[str]:
    """
    Relation types safe to splice into a Cypher pattern.

    Raises:
        ValueError: A type is not a plain identifier
    """
    for rel_type in relation_types:
        if not _RELATION_TYPE_PATTERN.match(rel_type):
            raise ValueError(f"invalid relation type: {rel_type!r}")
    return list(dict.fromkeys(relation_types))


@dataclass(frozen=True)
class GraphEdge:
    """Directed, typed edge between two entity ids."""
    source_id: str
    target_id: str
    relation_type: str
    properties: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


@dataclass
class GraphNode:
    id: str
    name: str
    type: str
    properties: Dict[str, Any] = field(default_factory=dict)


@dataclass
class GraphNeighborhood:
    """
    Result of a bounded traversal.

    ``edges`` are listed in discovery order (nearer hops first where the
    backend can tell). ``nodes`` holds the reached nodes other than the seeds.
    """
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)


class GraphAdjacency(ABC):

    @abstractmethod
    async def neighborhood(
        self,
        seed_ids: Sequence[str],
        max_hops: int,
        relation_types: Sequence[str],
    ) -> GraphNeighborhood:
        """
        Outgoing paths of 1..max_hops edges from ``seed_ids``, following only
        ``relation_types``.
        """
        pass

    async def health_check(self) -> bool:
        return True
