"""
Tests for ResultCache.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from hybrid_rag.core.models import RetrievalResult
from hybrid_rag.retrieval.cache import ResultCache


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return ResultCache(clock=clock)


class TestMakeKey:

    def test_stable(self):
        a = ResultCache.make_key("acme", "hours", {"max_results": 5, "similarity_threshold": 0.7})
        b = ResultCache.make_key("acme", "hours", {"similarity_threshold": 0.7, "max_results": 5})
        assert a == b

    def test_tenants_never_share(self):
        assert ResultCache.make_key("acme", "hours", {}) != ResultCache.make_key("globex", "hours", {})

    def test_options_change_key(self):
        base = ResultCache.make_key("acme", "hours", {"max_results": 5})
        assert base != ResultCache.make_key("acme", "hours", {"max_results": 6})


class TestGetOrCompute:

    @pytest.mark.asyncio
    async def test_miss_then_hit(self, cache):
        result = RetrievalResult(confidence=0.5)
        compute = AsyncMock(return_value=result)

        first = await cache.get_or_compute("k", 60, compute)
        second = await cache.get_or_compute("k", 60, compute)

        assert first.hit is False
        assert second.hit is True
        assert second.value is result
        compute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_sync_compute(self, cache):
        compute = MagicMock(return_value=RetrievalResult())
        lookup = await cache.get_or_compute("k", 60, compute)
        assert lookup.hit is False
        assert cache.get("k") is lookup.value

    @pytest.mark.asyncio
    async def test_expires_at_ttl(self, cache, clock):
        compute = AsyncMock(return_value=RetrievalResult())
        await cache.get_or_compute("k", 60, compute)

        clock.advance(59)
        assert (await cache.get_or_compute("k", 60, compute)).hit is True

        clock.advance(1)
        assert (await cache.get_or_compute("k", 60, compute)).hit is False
        assert compute.await_count == 2

    @pytest.mark.asyncio
    async def test_failures_not_cached(self, cache):
        compute = AsyncMock(side_effect=RuntimeError("boom"))
        with pytest.raises(RuntimeError):
            await cache.get_or_compute("k", 60, compute)
        assert cache.get("k") is None
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_concurrent_misses_same_key(self, cache):
        produced = []

        async def compute():
            result = RetrievalResult(confidence=len(produced) / 10)
            produced.append(result)
            await asyncio.sleep(0)
            return result

        first, second = await asyncio.gather(
            cache.get_or_compute("k", 60, compute),
            cache.get_or_compute("k", 60, compute),
        )

        assert first.hit is False and second.hit is False
        assert first.value is produced[0]
        assert second.value is produced[1]
        assert len(cache) == 1
        # last write wins
        assert cache.get("k") is produced[1]
        assert cache.stats().misses == 2

    @pytest.mark.asyncio
    async def test_empty_results_are_cached(self, cache):
        compute = AsyncMock(return_value=RetrievalResult.empty())
        await cache.get_or_compute("k", 60, compute)
        assert (await cache.get_or_compute("k", 60, compute)).hit is True


class TestMaintenance:

    def test_invalidate_by_tenant(self, cache):
        cache.set("a", RetrievalResult(), 60, tenant_id="acme", query_text="opening hours")
        cache.set("b", RetrievalResult(), 60, tenant_id="acme", query_text="refund policy")
        cache.set("c", RetrievalResult(), 60, tenant_id="globex", query_text="opening hours")

        assert cache.invalidate("acme") == 2
        assert cache.get("c") is not None
        assert len(cache) == 1

    def test_invalidate_by_pattern(self, cache):
        cache.set("a", RetrievalResult(), 60, tenant_id="acme", query_text="opening hours")
        cache.set("b", RetrievalResult(), 60, tenant_id="acme", query_text="refund policy")
        assert cache.invalidate("acme", "hours") == 1
        assert cache.get("a") is None
        assert cache.get("b") is not None

    def test_sweep_removes_expired(self, cache, clock):
        cache.set("short", RetrievalResult(), 10)
        cache.set("long", RetrievalResult(), 100)
        clock.advance(50)
        assert cache.sweep() == 1
        assert cache.get("long") is not None
        assert len(cache) == 1

    @pytest.mark.asyncio
    async def test_stats(self, cache, clock):
        compute = AsyncMock(return_value=RetrievalResult())
        await cache.get_or_compute("k", 10, compute)
        await cache.get_or_compute("k", 10, compute)
        clock.advance(20)

        stats = cache.stats()
        assert stats.entries == 0
        assert stats.hits == 1
        assert stats.misses == 1
        assert stats.hit_rate == 0.5

    def test_clear(self, cache):
        cache.set("k", RetrievalResult(), 60)
        cache.clear()
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_background_sweeper(self):
        clock = FakeClock()
        cache = ResultCache(sweep_interval_seconds=0.01, clock=clock)
        cache.set("k", RetrievalResult(), 1)
        clock.advance(5)

        cache.start()
        assert cache.is_sweeping
        await asyncio.sleep(0.05)
        assert len(cache) == 0

        await cache.shutdown()
        assert not cache.is_sweeping

    @pytest.mark.asyncio
    async def test_shutdown_without_start(self, cache):
        await cache.shutdown()
        assert not cache.is_sweeping
