"""
Retrieval Models
================

Dataclasses shared by every stage of the hybrid retrieval pipeline.

Flow:
    RetrievalQuery -> Document/Entity candidates -> fused Documents
    -> RetrievalResult (cached as CacheEntry)
"""

import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from hybrid_rag.core.errors import InvalidQueryError

MAX_QUERY_CHARS = 1000
MAX_RESULTS_LIMIT = 100

_TENANT_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.:-]{0,127}$")


def clamp_unit(value: float) -> float:
    """Clamp a score into [0, 1]. NaN becomes 0."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return 0.0
    return max(0.0, min(1.0, float(value)))


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a creation timestamp from a metadata payload.

    Accepts datetimes, epoch seconds and ISO-8601 strings (a trailing ``Z``
    is understood). Naive values are taken as UTC. Anything else gives None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        try:
            parsed = datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class SourceKind(str, Enum):
    """Which stage produced a document's current score."""
    VECTOR = "vector"
    LEXICAL = "lexical"
    HYBRID = "hybrid"


@dataclass(frozen=True)
class RetrievalQuery:
    """
    A retrieval request, validated on construction.

    Attributes:
        text: Natural-language query, 1..1000 characters, not blank
        tenant_id: Scope of the request; every store query is filtered on it
        max_results: Documents to return, 1..100
        similarity_threshold: Minimum vector similarity [0-1]
        enable_graph_expansion: Follow relationships from seed entities
        use_cache: Read and write the result cache

    Raises:
        InvalidQueryError: On any invalid field
    """
    text: str
    tenant_id: str
    max_results: int = 10
    similarity_threshold: float = 0.7
    enable_graph_expansion: bool = True
    use_cache: bool = True

    def __post_init__(self):
        if not isinstance(self.text, str) or not self.text.strip():
            raise InvalidQueryError("query text must not be empty", field="text")
        if len(self.text) > MAX_QUERY_CHARS:
            raise InvalidQueryError(
                f"query text must be at most {MAX_QUERY_CHARS} characters, got {len(self.text)}",
                field="text",
            )
        if not isinstance(self.tenant_id, str) or not _TENANT_ID_PATTERN.match(self.tenant_id):
            raise InvalidQueryError(
                f"tenant_id is missing or malformed: {self.tenant_id!r}", field="tenant_id"
            )
        if (
            isinstance(self.max_results, bool)
            or not isinstance(self.max_results, int)
            or not 1 <= self.max_results <= MAX_RESULTS_LIMIT
        ):
            raise InvalidQueryError(
                f"max_results must be in [1, {MAX_RESULTS_LIMIT}], got {self.max_results}",
                field="max_results",
            )
        threshold = self.similarity_threshold
        if not isinstance(threshold, (int, float)) or math.isnan(threshold) or not 0.0 <= threshold <= 1.0:
            raise InvalidQueryError(
                f"similarity_threshold must be in [0, 1], got {threshold}",
                field="similarity_threshold",
            )

    def cache_options(self) -> Dict[str, Any]:
        """Options that change the result and therefore the cache key."""
        return {
            "max_results": self.max_results,
            "similarity_threshold": self.similarity_threshold,
            "enable_graph_expansion": self.enable_graph_expansion,
        }


@dataclass
class DocumentMetadata:
    """
    Typed document metadata.

    Producers fill the known keys; anything else lands in ``extra``.
    """
    source: Optional[str] = None
    created_at: Optional[datetime] = None
    title: Optional[str] = None
    tenant_id: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Optional[Dict[str, Any]]) -> "DocumentMetadata":
        payload = dict(payload or {})
        source = payload.pop("source", None)
        title = payload.pop("title", None)
        tenant_id = payload.pop("tenant_id", None)
        return cls(
            source=str(source) if source else None,
            created_at=parse_timestamp(payload.pop("created_at", None)),
            title=str(title) if title is not None else None,
            tenant_id=str(tenant_id) if tenant_id is not None else None,
            extra=payload,
        )

    @property
    def created_at_epoch(self) -> Optional[float]:
        return self.created_at.timestamp() if self.created_at else None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.extra)
        data.update({
            "source": self.source,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "title": self.title,
            "tenant_id": self.tenant_id,
        })
        return {k: v for k, v in data.items() if v is not None}


@dataclass
class Document:
    """
    Retrieved text unit.

    ``score`` is rewritten by each stage: vector similarity after retrieval,
    fused score after ranking. ``source_kind`` follows the score while
    ``retrieved_via`` keeps the stage that fetched the document.
    ``signals`` keeps the per-signal inputs of the fused score.
    """
    id: str
    content: str
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)
    score: float = 0.0
    source_kind: SourceKind = SourceKind.VECTOR
    retrieved_via: Optional[SourceKind] = None
    signals: Dict[str, float] = field(default_factory=dict)

    def __post_init__(self):
        if self.retrieved_via is None:
            self.retrieved_via = self.source_kind

    @property
    def origin(self) -> str:
        """Source label used in RetrievalResult.sources: metadata source, else the retrieving stage."""
        return self.metadata.source or self.retrieved_via.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "score": round(self.score, 6),
            "source_kind": self.source_kind.value,
            "metadata": self.metadata.to_dict(),
            "signals": {k: round(v, 6) for k, v in self.signals.items()},
        }

    def __repr__(self) -> str:
        return (
            f"<Document(id={self.id}, score={self.score:.3f}, "
            f"kind={self.source_kind.value}, chars={len(self.content)})>"
        )


@dataclass(frozen=True)
class Relationship:
    """Directed edge from the owning Entity to ``target_entity_id``."""
    target_entity_id: str
    relation_type: str
    properties: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


@dataclass
class Entity:
    """Named item from the knowledge graph."""
    id: str
    name: str
    type: str
    properties: Dict[str, Any] = field(default_factory=dict)
    relationships: List[Relationship] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "properties": self.properties,
            "relationships": [
                {"target": r.target_entity_id, "type": r.relation_type}
                for r in self.relationships
            ],
        }


@dataclass
class RetrievalResult:
    """
    Final answer of a retrieval.

    Attributes:
        documents: At most max_results documents, best first
        entities: Seed entities plus graph-expanded neighbours
        confidence: Mean fused score of the documents [0-1], 0 when empty
        sources: Distinct document origins
        context: Token-bounded text block built from documents and entities
        used_tokens: Tokens consumed by ``context``
    """
    documents: List[Document] = field(default_factory=list)
    entities: List[Entity] = field(default_factory=list)
    confidence: float = 0.0
    sources: Set[str] = field(default_factory=set)
    context: str = ""
    used_tokens: int = 0

    @classmethod
    def empty(cls) -> "RetrievalResult":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.documents and not self.entities

    def to_dict(self) -> Dict[str, Any]:
        return {
            "documents": [d.to_dict() for d in self.documents],
            "entities": [e.to_dict() for e in self.entities],
            "confidence": round(self.confidence, 6),
            "sources": sorted(self.sources),
            "context": self.context,
            "used_tokens": self.used_tokens,
        }

    def __repr__(self) -> str:
        return (
            f"<RetrievalResult(docs={len(self.documents)}, entities={len(self.entities)}, "
            f"confidence={self.confidence:.3f})>"
        )


@dataclass
class CacheEntry:
    """
    Cached RetrievalResult.

    ``expires_at`` is measured on the cache's clock. An entry is live while
    ``now < expires_at``.
    """
    key: str
    value: RetrievalResult
    expires_at: float
    tenant_id: str = ""
    query_text: str = ""

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass
class RetrievalOutcome:
    """RetrievalResult plus bookkeeping about how it was produced."""
    result: RetrievalResult
    cache_hit: bool = False
    latency_ms: float = 0.0
    used_lexical_fallback: bool = False
