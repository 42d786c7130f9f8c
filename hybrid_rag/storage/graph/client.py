"""
FalkorDB Client
===============

Async adjacency adapter over FalkorDB.

FalkorDB speaks the Redis protocol and runs Cypher. falkordb-py is
synchronous, so every call runs in the default executor.

Expected graph shape:
    (:Entity {id, name, type, tenant_id, ...})-[:RELATED_TO|CONTAINS|...]->(:Entity)
"""

import asyncio
from typing import Any, Dict, List, Optional, Sequence

import structlog
from falkordb import FalkorDB, Graph

from hybrid_rag.storage.graph.base import (
    GraphAdjacency,
    GraphEdge,
    GraphNeighborhood,
    GraphNode,
    validate_relation_types,
)
from hybrid_rag.storage.graph.config import FalkorDBConfig

log = structlog.get_logger()

_RESERVED_NODE_KEYS = ("id", "name", "type")


class FalkorDBClient(GraphAdjacency):
    """
    Async client for the FalkorDB knowledge graph.

    Example:
        client = FalkorDBClient(config)
        await client.connect()

        found = await client.neighborhood(["e-1"], max_hops=2, relation_types=["RELATED_TO"])

        await client.close()
    """

    def __init__(self, config: Optional[FalkorDBConfig] = None):
        self.config = config or FalkorDBConfig()
        self._db: Optional[FalkorDB] = None
        self._graph: Optional[Graph] = None
        self._connected = False

        log.info(
            f"FalkorDBClient initialized - "
            f"host={self.config.host}:{self.config.port}, "
            f"graph={self.config.graph_name}"
        )

    async def connect(self):
        if self._connected:
            log.debug("Already connected to FalkorDB")
            return

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._connect_sync)

        log.info(f"Connected to FalkorDB at {self.config.host}:{self.config.port}")

    def _connect_sync(self):
        self._db = FalkorDB(
            host=self.config.host,
            port=self.config.port,
            password=self.config.password,
        )
        self._graph = self._db.select_graph(self.config.graph_name)
        self._connected = True

    async def close(self):
        if not self._connected:
            return

        # Connections belong to the redis pool, nothing to release here
        self._connected = False
        self._db = None
        self._graph = None
        log.info("Disconnected from FalkorDB")

    async def query(
        self,
        cypher: str,
        params: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """
        Execute a Cypher query.

        Args:
            cypher: Cypher query string
            params: Query parameters

        Returns:
            List of result records as dicts
        """
        if not self._connected:
            await self.connect()

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            self._query_sync,
            cypher,
            params or {}
        )

    def _query_sync(self, cypher: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        try:
            result = self._graph.query(cypher, params, timeout=self.config.timeout_ms)

            records = []
            if result.result_set:
                headers = result.header
                for row in result.result_set:
                    record = {}
                    for i, header in enumerate(headers):
                        # header format is [type, alias]
                        col_name = header[1] if len(header) > 1 else f"col_{i}"
                        value = row[i]
                        if hasattr(value, "properties"):
                            record[col_name] = dict(value.properties)
                        else:
                            record[col_name] = value
                    records.append(record)

            log.debug(
                f"Query executed: {cypher[:100]}... "
                f"(params={list(params.keys())}) -> {len(records)} records"
            )
            return records

        except Exception as e:
            log.error(f"Query failed: {cypher[:100]}... Error: {e}")
            raise

    async def neighborhood(
        self,
        seed_ids: Sequence[str],
        max_hops: int,
        relation_types: Sequence[str],
    ) -> GraphNeighborhood:
        """
        Bounded traversal in a single variable-length Cypher match.

        Every node on a path must share the seed's ``tenant_id``; paths
        through another tenant's entities are not followed. Relation types
        are spliced into the pattern, so they are checked to
        be plain identifiers first.
        """
        if not seed_ids or not relation_types or max_hops < 1:
            return GraphNeighborhood()

        types = "|".join(validate_relation_types(relation_types))
        label = self.config.entity_label
        cypher = f"""
            MATCH p = (s:{label})-[:{types}*1..{int(max_hops)}]->(t:{label})
            WHERE s.id IN $ids
              AND all(n IN nodes(p) WHERE n.tenant_id = s.tenant_id)
            UNWIND relationships(p) AS rel
            WITH DISTINCT rel, startNode(rel) AS a, endNode(rel) AS b, length(p) AS depth
            RETURN a.id AS source_id, b.id AS target_id, type(rel) AS relation_type,
                   properties(rel) AS properties, b.name AS target_name,
                   b.type AS target_type, properties(b) AS target_properties, depth
            ORDER BY depth
        """
        records = await self.query(cypher, {"ids": list(seed_ids)})

        seeds = set(seed_ids)
        edges: List[GraphEdge] = []
        seen_edges = set()
        nodes: Dict[str, GraphNode] = {}
        for r in records:
            source_id, target_id = r.get("source_id"), r.get("target_id")
            if source_id is None or target_id is None:
                continue
            edge = GraphEdge(
                source_id=str(source_id),
                target_id=str(target_id),
                relation_type=str(r["relation_type"]),
                properties=dict(r.get("properties") or {}),
            )
            if edge not in seen_edges:
                seen_edges.add(edge)
                edges.append(edge)
            if edge.target_id not in seeds and edge.target_id not in nodes:
                properties = {
                    k: v for k, v in dict(r.get("target_properties") or {}).items()
                    if k not in _RESERVED_NODE_KEYS
                }
                nodes[edge.target_id] = GraphNode(
                    id=edge.target_id,
                    name=str(r.get("target_name") or edge.target_id),
                    type=str(r.get("target_type") or "unknown"),
                    properties=properties,
                )

        return GraphNeighborhood(nodes=list(nodes.values()), edges=edges)

    async def health_check(self) -> bool:
        try:
            await self.query("RETURN 1")
            return True
        except Exception as e:
            log.error(f"Health check failed: {e}")
            return False
