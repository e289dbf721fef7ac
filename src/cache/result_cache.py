# src/cache/result_cache.py — v1
"""Result cache: (kind, fingerprint) -> payload with TTL-based staleness.

One instance is constructed per process (see cache_factory) and injected
into the flow optimizer and entity analyzers. Persistence is best-effort:
any backend failure is logged and the operation degrades to a miss or a
no-op, so callers only ever lose performance, never correctness.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from pydantic import BaseModel, ValidationError

from signalcx.cache.base_cache_store import BaseCacheStore
from signalcx.cache.models import CacheEntry, CacheStats

logger = logging.getLogger(__name__)

DEFAULT_TTL_S = 30 * 60


class ResultCache:
    """TTL cache scoped by analysis kind.

    Args:
        store: Persistence backend.
        default_ttl_s: TTL applied to kinds without an explicit override.
        kind_ttls: Per-kind TTL overrides in seconds.
        namespace: Key prefix isolating this cache inside a shared store.
        enabled: When False every lookup misses and every write is skipped.
        clock: Time source returning POSIX seconds (injectable for tests).
    """

    def __init__(
        self,
        store: BaseCacheStore,
        default_ttl_s: float = DEFAULT_TTL_S,
        kind_ttls: dict[str, float] | None = None,
        namespace: str = "signalcx",
        enabled: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._default_ttl_s = default_ttl_s
        self._kind_ttls = dict(kind_ttls or {})
        self._namespace = namespace
        self._enabled = enabled
        self._clock = clock
        self.stats = CacheStats()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def ttl_for(self, kind: str) -> float:
        """TTL in seconds for an analysis kind."""
        return self._kind_ttls.get(kind, self._default_ttl_s)

    def now(self) -> float:
        return self._clock()

    async def get(self, kind: str, fingerprint: str) -> CacheEntry | None:
        """Return the fresh entry for (kind, fingerprint), or None.

        Expired or unreadable entries are dropped from the store.
        """
        if not self._enabled:
            return None
        key = self._key(kind, fingerprint)
        try:
            raw = await self._store.get(key)
        except Exception:
            self.stats.errors += 1
            logger.warning("Cache read failed for %s", key, exc_info=True)
            return None

        if raw is None:
            self.stats.misses += 1
            return None

        try:
            entry = CacheEntry.model_validate_json(raw)
        except ValidationError as e:
            self.stats.errors += 1
            self.stats.misses += 1
            logger.warning("Discarding corrupt cache entry %s: %s", key, e)
            await self._drop(key)
            return None

        if not entry.is_fresh(self.now(), self.ttl_for(kind)):
            self.stats.expired += 1
            self.stats.misses += 1
            logger.debug("Cache entry expired: %s", key)
            await self._drop(key)
            return None

        self.stats.hits += 1
        return entry

    async def put(self, kind: str, fingerprint: str, payload: Any) -> CacheEntry | None:
        """Store a payload, overwriting any prior entry with a fresh timestamp.

        Returns the stored entry, or None when caching is disabled or the
        write failed.
        """
        if not self._enabled:
            return None
        key = self._key(kind, fingerprint)
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(mode="json")
        try:
            entry = CacheEntry(
                kind=kind,
                fingerprint=fingerprint,
                payload=payload,
                stored_at=self.now(),
            )
            await self._store.put(key, entry.model_dump_json())
        except Exception:
            self.stats.errors += 1
            logger.warning("Cache write failed for %s", key, exc_info=True)
            return None
        self.stats.writes += 1
        return entry

    async def invalidate(self, kind: str, fingerprint: str) -> None:
        """Remove a single entry."""
        await self._drop(self._key(kind, fingerprint))

    async def clear(self, kind: str | None = None) -> int:
        """Remove all entries of one kind, or everything when kind is None.

        Returns the number of entries removed (0 if the store failed).
        """
        prefix = f"{self._namespace}:" if kind is None else self._prefix(kind)
        try:
            removed = await self._store.delete_prefix(prefix)
        except Exception:
            self.stats.errors += 1
            logger.warning("Cache clear failed for prefix %s", prefix, exc_info=True)
            return 0
        logger.info("Cleared %d cache entries (kind=%s)", removed, kind or "*")
        return removed

    # --- Internal helpers ---

    def _prefix(self, kind: str) -> str:
        if ":" in kind:
            raise ValueError(f"Analysis kind must not contain ':': {kind!r}")
        return f"{self._namespace}:{kind}:"

    def _key(self, kind: str, fingerprint: str) -> str:
        return f"{self._prefix(kind)}{fingerprint}"

    async def _drop(self, key: str) -> None:
        try:
            await self._store.delete(key)
        except Exception:
            self.stats.errors += 1
            logger.warning("Cache delete failed for %s", key, exc_info=True)
