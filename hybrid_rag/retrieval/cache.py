"""
Result Cache
============

Per-process TTL cache of RetrievalResults.

Keys are derived from (tenant_id, query text, result-affecting options), so
two tenants never share an entry. Expired entries are treated as misses on
lookup and removed by ``sweep()``, which the optional background task runs
every ``sweep_interval_seconds``.

Concurrent lookups of the same missing key both compute; the last write
wins. Failed computations are never cached.
"""

import asyncio
import hashlib
import inspect
import json
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Union

import structlog

from hybrid_rag.core.models import CacheEntry, RetrievalResult

log = structlog.get_logger()

ComputeFn = Callable[[], Union[RetrievalResult, Awaitable[RetrievalResult]]]


@dataclass
class CacheStats:
    entries: int
    hits: int
    misses: int

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entries": self.entries,
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": round(self.hit_rate, 4),
        }


@dataclass
class CacheLookup:
    value: RetrievalResult
    hit: bool


class ResultCache:
    """
    Example:
        cache = ResultCache()
        key = ResultCache.make_key("acme", "opening hours", {"max_results": 5})
        lookup = await cache.get_or_compute(key, 3600, compute)
        lookup.hit  # False the first time, True until the TTL elapses
    """

    def __init__(
        self,
        sweep_interval_seconds: float = 300.0,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Args:
            sweep_interval_seconds: Period of the background sweeper
            clock: Monotonic time source in seconds (injectable for tests)
        """
        self.sweep_interval_seconds = sweep_interval_seconds
        self._clock = clock or time.monotonic
        self._entries: Dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._sweeper: Optional[asyncio.Task] = None

    @staticmethod
    def make_key(tenant_id: str, query_text: str, options: Dict[str, Any]) -> str:
        raw = json.dumps(
            {"tenant": tenant_id, "query": query_text, "options": options},
            sort_keys=True,
            ensure_ascii=False,
            default=str,
        )
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()

    def get(self, key: str) -> Optional[RetrievalResult]:
        """Live value for ``key``, or None. Does not touch hit/miss counters."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        return entry.value

    def set(
        self,
        key: str,
        value: RetrievalResult,
        ttl_seconds: float,
        tenant_id: str = "",
        query_text: str = "",
    ) -> None:
        self._entries[key] = CacheEntry(
            key=key,
            value=value,
            expires_at=self._clock() + ttl_seconds,
            tenant_id=tenant_id,
            query_text=query_text,
        )

    async def get_or_compute(
        self,
        key: str,
        ttl_seconds: float,
        compute: ComputeFn,
        tenant_id: str = "",
        query_text: str = "",
    ) -> CacheLookup:
        """
        Cached value for ``key``, computing and storing it on a miss.

        ``compute`` may be sync or async. Its exceptions propagate and
        nothing is stored.
        """
        cached = self.get(key)
        if cached is not None:
            self._hits += 1
            return CacheLookup(value=cached, hit=True)

        self._misses += 1
        value = compute()
        if inspect.isawaitable(value):
            value = await value
        self.set(key, value, ttl_seconds, tenant_id=tenant_id, query_text=query_text)
        return CacheLookup(value=value, hit=False)

    def invalidate(self, tenant_id: str, query_pattern: Optional[str] = None) -> int:
        """
        Drop entries of ``tenant_id`` whose query text contains ``query_pattern``.

        An empty pattern drops every entry of the tenant.

        Returns:
            Number of entries removed
        """
        doomed = [
            key for key, entry in self._entries.items()
            if entry.tenant_id == tenant_id
            and (not query_pattern or query_pattern in entry.query_text)
        ]
        for key in doomed:
            del self._entries[key]
        log.info("Cache invalidated", tenant_id=tenant_id, pattern=query_pattern, removed=len(doomed))
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()

    def sweep(self) -> int:
        """Remove expired entries, returning how many were dropped."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            log.debug("Cache sweep", removed=len(expired), remaining=len(self._entries))
        return len(expired)

    def stats(self) -> CacheStats:
        now = self._clock()
        live = sum(1 for entry in self._entries.values() if not entry.is_expired(now))
        return CacheStats(entries=live, hits=self._hits, misses=self._misses)

    def __len__(self) -> int:
        return len(self._entries)

    def start(self) -> None:
        """Start the background sweeper on the running event loop."""
        if self._sweeper is not None and not self._sweeper.done():
            return
        self._sweeper = asyncio.get_running_loop().create_task(self._sweep_loop())

    async def shutdown(self) -> None:
        """Cancel the sweeper and wait for it to finish."""
        sweeper, self._sweeper = self._sweeper, None
        if sweeper is None:
            return
        sweeper.cancel()
        try:
            await sweeper
        except asyncio.CancelledError:
            pass

    @property
    def is_sweeping(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval_seconds)
            self.sweep()
