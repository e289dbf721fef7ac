# src/cache/redis_store.py — v3
"""Redis-based cache store (CACHE_BACKEND=redis).

Requires the ``redis`` extra. Several orchestrator instances can share one
cache. Values live under ``signalcx:store:<key>``; a set at
``signalcx:store:__index__`` lists the stored keys so prefix listing and
per-kind clears never need a KEYS scan. Each value write or delete is
applied together with its index update in one MULTI/EXEC transaction.
"""

from __future__ import annotations

import logging

from signalcx.cache.base_cache_store import BaseCacheStore

logger = logging.getLogger(__name__)

_KEY_PREFIX = "signalcx:store:"
_INDEX_KEY = f"{_KEY_PREFIX}__index__"


class RedisCacheStore(BaseCacheStore):
    def __init__(self, redis_url: str) -> None:
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install 'signalcx-orchestration[redis]'"
            ) from e

        self._client = redis.Redis.from_url(redis_url, decode_responses=True)

    async def get(self, key: str) -> str | None:
        return self._client.get(_KEY_PREFIX + key)

    async def put(self, key: str, value: str) -> None:
        with self._client.pipeline(transaction=True) as pipe:
            pipe.set(_KEY_PREFIX + key, value)
            pipe.sadd(_INDEX_KEY, key)
            pipe.execute()

    async def delete(self, key: str) -> None:
        with self._client.pipeline(transaction=True) as pipe:
            pipe.delete(_KEY_PREFIX + key)
            pipe.srem(_INDEX_KEY, key)
            pipe.execute()

    async def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._client.smembers(_INDEX_KEY) if k.startswith(prefix))

    async def delete_prefix(self, prefix: str) -> int:
        doomed = await self.keys(prefix)
        if not doomed:
            return 0
        with self._client.pipeline(transaction=True) as pipe:
            pipe.delete(*(_KEY_PREFIX + k for k in doomed))
            pipe.srem(_INDEX_KEY, *doomed)
            pipe.execute()
        logger.debug("Deleted %d Redis keys under %r", len(doomed), prefix)
        return len(doomed)

    def close(self) -> None:
        self._client.close()
