# tests/integration/cache/test_int_cache_stores.py — v3
"""Integration tests for ResultCache over every cache backend.

JSON and SQLite need no external services; Redis runs in a container.
Coverage targets: result_cache.py, json_store.py, sqlite_store.py,
redis_store.py, cache_factory.py
"""

from __future__ import annotations

import pytest

from signalcx.cache.cache_factory import ENTITY_KINDS, create_cache_store, create_result_cache
from signalcx.cache.result_cache import ResultCache
from signalcx.config.settings import Settings
from signalcx.pipeline.contracts import PerformanceForecast


class FakeClock:
    def __init__(self) -> None:
        self.now = 1_000.0

    def __call__(self) -> float:
        return self.now


def _forecast(agent: str) -> PerformanceForecast:
    return PerformanceForecast(
        agent_id=agent, agent_name=agent, predicted_tickets_next_week=8,
        predicted_csat_next_week=4.5, confidence=0.9,
    )


def _clocked_cache(settings: Settings, clock: FakeClock) -> ResultCache:
    return ResultCache(
        create_cache_store(settings),
        default_ttl_s=settings.cache_ttl_seconds,
        kind_ttls={k: settings.entity_cache_ttl_seconds for k in ENTITY_KINDS},
        namespace=settings.cache_namespace,
        clock=clock,
    )


async def _exercise(cache: ResultCache, clock: FakeClock) -> None:
    await cache.put("performance", "fp-alice", _forecast("alice"))
    await cache.put("discovery", "fp-all", {"confidence_score": 0.8})

    entry = await cache.get("performance", "fp-alice")
    assert PerformanceForecast.model_validate(entry.payload) == _forecast("alice")

    clock.now += 1_800
    assert await cache.get("discovery", "fp-all") is None
    assert await cache.get("performance", "fp-alice") is not None

    assert await cache.clear("performance") == 1
    assert await cache.get("performance", "fp-alice") is None


class TestLocalBackends:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("backend", ["memory", "json", "sqlite"])
    async def test_result_cache_lifecycle(self, backend, tmp_path):
        settings = Settings(_env_file=None, cache_backend=backend, cache_root=tmp_path)
        clock = FakeClock()
        cache = _clocked_cache(settings, clock)
        await _exercise(cache, clock)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("backend", ["json", "sqlite"])
    async def test_survives_restart(self, backend, tmp_path):
        settings = Settings(_env_file=None, cache_backend=backend, cache_root=tmp_path)
        first = create_result_cache(settings)
        await first.put("burnout", "fp", {"risk_level": "low"})
        first._store.close()

        second = create_result_cache(settings)
        entry = await second.get("burnout", "fp")
        assert entry.payload == {"risk_level": "low"}
        second._store.close()

    @pytest.mark.asyncio
    async def test_namespaces_share_one_store(self, tmp_path):
        settings = Settings(_env_file=None, cache_backend="sqlite", cache_root=tmp_path)
        a = create_result_cache(settings.model_copy(update={"cache_namespace": "tenant-a"}))
        b = create_result_cache(settings.model_copy(update={"cache_namespace": "tenant-b"}))
        await a.put("discovery", "fp", {"v": "a"})
        await b.put("discovery", "fp", {"v": "b"})
        assert await a.clear() == 1
        assert (await b.get("discovery", "fp")).payload == {"v": "b"}


@pytest.mark.redis
class TestRedisBackend:
    @pytest.mark.asyncio
    async def test_result_cache_lifecycle(self, redis_url, unique_namespace):
        settings = Settings(_env_file=None, cache_backend="redis", cache_redis_url=redis_url,
                            cache_namespace=unique_namespace)
        clock = FakeClock()
        cache = _clocked_cache(settings, clock)
        try:
            await _exercise(cache, clock)
        finally:
            await cache.clear()
            cache._store.close()
