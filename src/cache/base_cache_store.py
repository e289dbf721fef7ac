# src/cache/base_cache_store.py — v2
"""Abstract persistence boundary for the result cache.

A namespaced key-value surface holding serialized values. Implementations
must make ``put`` atomic: a reader sees either the previous value or the
new one, never a partial write.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseCacheStore(ABC):
    """Unified interface for cache storage backends."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Retrieve the serialized value stored under ``key``."""

    @abstractmethod
    async def put(self, key: str, value: str) -> None:
        """Store (or overwrite) a serialized value."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a key. Missing keys are ignored."""

    @abstractmethod
    async def keys(self, prefix: str = "") -> list[str]:
        """List stored keys starting with ``prefix``."""

    async def delete_prefix(self, prefix: str) -> int:
        """Remove every key starting with ``prefix``. Returns the count."""
        removed = 0
        for key in await self.keys(prefix):
            await self.delete(key)
            removed += 1
        return removed

    def close(self) -> None:
        """Release backend resources. No-op by default."""
