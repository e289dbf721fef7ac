# tests/unit/cache/test_unit_result_cache.py — v2
"""Tests for cache/result_cache.py — TTL, best-effort persistence, stats."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from signalcx.cache.memory_store import MemoryCacheStore
from signalcx.cache.result_cache import ResultCache
from signalcx.pipeline.contracts import DiscoveryOutput


class TestResultCacheRoundTrip:
    @pytest.mark.asyncio
    async def test_put_then_get(self, result_cache, clock):
        await result_cache.put("discovery", "fp1", {"confidence_score": 0.9})
        entry = await result_cache.get("discovery", "fp1")
        assert entry is not None
        assert entry.payload == {"confidence_score": 0.9}
        assert entry.stored_at == clock.now
        assert entry.kind == "discovery"
        assert entry.fingerprint == "fp1"

    @pytest.mark.asyncio
    async def test_model_payload_stored_as_json(self, result_cache):
        out = DiscoveryOutput.empty().model_copy(update={"confidence_score": 0.4})
        await result_cache.put("discovery", "fp1", out)
        entry = await result_cache.get("discovery", "fp1")
        assert entry.payload["confidence_score"] == 0.4

    @pytest.mark.asyncio
    async def test_miss(self, result_cache):
        assert await result_cache.get("discovery", "missing") is None
        assert result_cache.stats.misses == 1

    @pytest.mark.asyncio
    async def test_put_overwrites_with_fresh_timestamp(self, result_cache, clock):
        await result_cache.put("k", "fp", {"v": 1})
        clock.advance(100)
        await result_cache.put("k", "fp", {"v": 2})
        entry = await result_cache.get("k", "fp")
        assert entry.payload == {"v": 2}
        assert entry.stored_at == clock.now

    @pytest.mark.asyncio
    async def test_kinds_are_isolated(self, result_cache):
        await result_cache.put("a", "fp", {"v": 1})
        assert await result_cache.get("b", "fp") is None


class TestResultCacheExpiry:
    @pytest.mark.asyncio
    async def test_fresh_just_before_ttl(self, result_cache, clock):
        await result_cache.put("k", "fp", {"v": 1})
        clock.advance(1799)
        assert await result_cache.get("k", "fp") is not None

    @pytest.mark.asyncio
    async def test_expired_at_ttl_is_deleted(self, clock):
        store = MemoryCacheStore()
        cache = ResultCache(store, default_ttl_s=1800, clock=clock)
        await cache.put("k", "fp", {"v": 1})
        clock.advance(1800)
        assert await cache.get("k", "fp") is None
        assert await store.keys() == []
        assert cache.stats.expired == 1

    @pytest.mark.asyncio
    async def test_kind_ttl_override(self, clock):
        cache = ResultCache(
            MemoryCacheStore(), default_ttl_s=10, kind_ttls={"performance": 100}, clock=clock
        )
        await cache.put("performance", "fp", {"v": 1})
        await cache.put("discovery", "fp", {"v": 1})
        clock.advance(50)
        assert await cache.get("performance", "fp") is not None
        assert await cache.get("discovery", "fp") is None


class TestResultCacheClear:
    @pytest.mark.asyncio
    async def test_clear_one_kind(self, result_cache):
        await result_cache.put("a", "fp1", {})
        await result_cache.put("a", "fp2", {})
        await result_cache.put("b", "fp1", {})
        assert await result_cache.clear("a") == 2
        assert await result_cache.get("a", "fp1") is None
        assert await result_cache.get("b", "fp1") is not None

    @pytest.mark.asyncio
    async def test_clear_all(self, result_cache):
        await result_cache.put("a", "fp", {})
        await result_cache.put("b", "fp", {})
        assert await result_cache.clear() == 2

    @pytest.mark.asyncio
    async def test_clear_leaves_other_namespaces(self, clock):
        store = MemoryCacheStore()
        mine = ResultCache(store, namespace="one", clock=clock)
        other = ResultCache(store, namespace="two", clock=clock)
        await mine.put("a", "fp", {})
        await other.put("a", "fp", {})
        await mine.clear()
        assert await other.get("a", "fp") is not None

    @pytest.mark.asyncio
    async def test_kind_with_colon_rejected(self, result_cache):
        with pytest.raises(ValueError, match="must not contain"):
            await result_cache.clear("bad:kind")


class TestResultCacheBestEffort:
    @pytest.mark.asyncio
    async def test_store_read_failure_is_a_miss(self, clock):
        store = MemoryCacheStore()
        store.get = AsyncMock(side_effect=OSError("disk gone"))
        cache = ResultCache(store, clock=clock)
        assert await cache.get("k", "fp") is None
        assert cache.stats.errors == 1

    @pytest.mark.asyncio
    async def test_store_write_failure_is_a_noop(self, clock):
        store = MemoryCacheStore()
        store.put = AsyncMock(side_effect=OSError("quota exceeded"))
        cache = ResultCache(store, clock=clock)
        assert await cache.put("k", "fp", {"v": 1}) is None
        assert cache.stats.errors == 1
        assert cache.stats.writes == 0

    @pytest.mark.asyncio
    async def test_unserializable_payload_is_a_noop(self, result_cache):
        assert await result_cache.put("k", "fp", {"v": object()}) is None
        assert result_cache.stats.errors == 1

    @pytest.mark.asyncio
    async def test_corrupt_entry_dropped(self, clock):
        store = MemoryCacheStore()
        cache = ResultCache(store, clock=clock)
        await store.put("signalcx:k:fp", "{not json")
        assert await cache.get("k", "fp") is None
        assert await store.get("signalcx:k:fp") is None
        assert cache.stats.errors == 1

    @pytest.mark.asyncio
    async def test_disabled_cache(self, clock):
        cache = ResultCache(MemoryCacheStore(), enabled=False, clock=clock)
        assert await cache.put("k", "fp", {"v": 1}) is None
        assert await cache.get("k", "fp") is None
        assert cache.stats.hits == cache.stats.misses == 0


class TestCacheStats:
    @pytest.mark.asyncio
    async def test_hit_rate(self, result_cache):
        await result_cache.put("k", "fp", {})
        await result_cache.get("k", "fp")
        await result_cache.get("k", "other")
        assert result_cache.stats.hits == 1
        assert result_cache.stats.hit_rate == 0.5
