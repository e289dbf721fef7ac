# src/cache/cache_factory.py — v3
"""Factory for cache store and result cache instantiation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from signalcx.cache.base_cache_store import BaseCacheStore
from signalcx.config.settings import Settings

if TYPE_CHECKING:
    from signalcx.cache.result_cache import ResultCache

ENTITY_KINDS: tuple[str, ...] = ("performance", "burnout")


def create_cache_store(settings: Settings | None = None) -> BaseCacheStore:
    """Instantiate the configured cache backend.

    Args:
        settings: Application settings. Defaults to the memory backend.

    Returns:
        Configured BaseCacheStore implementation.
    """
    backend = "memory" if settings is None else settings.cache_backend

    if backend == "memory":
        from signalcx.cache.memory_store import MemoryCacheStore
        return MemoryCacheStore()

    if backend == "json":
        from signalcx.cache.json_store import JsonCacheStore
        return JsonCacheStore(cache_root=settings.cache_root)

    if backend == "sqlite":
        from signalcx.cache.sqlite_store import SqliteCacheStore
        return SqliteCacheStore(db_path=settings.cache_root / "signalcx_cache.db")

    if backend == "redis":
        from signalcx.cache.redis_store import RedisCacheStore
        if not settings.cache_redis_url:
            raise ValueError(
                "CACHE_REDIS_URL must be set when CACHE_BACKEND=redis"
            )
        return RedisCacheStore(redis_url=settings.cache_redis_url)

    raise ValueError(f"Unsupported cache backend: {backend!r}")


def create_result_cache(settings: Settings | None = None) -> ResultCache:
    """Build the process-wide ResultCache from settings.

    Per-entity analysis kinds get the longer entity TTL.
    """
    from signalcx.cache.result_cache import ResultCache

    settings = settings or Settings()
    return ResultCache(
        store=create_cache_store(settings),
        default_ttl_s=settings.cache_ttl_seconds,
        kind_ttls={kind: settings.entity_cache_ttl_seconds for kind in ENTITY_KINDS},
        namespace=settings.cache_namespace,
        enabled=settings.cache_enabled,
    )
