# src/cache/memory_store.py — v1
"""In-process cache store (default CACHE_BACKEND=memory).

Lives as long as the owning process; nothing survives a restart. An
optional ``max_entries`` bound evicts the oldest insertions first.
"""

from __future__ import annotations

from collections import OrderedDict

from signalcx.cache.base_cache_store import BaseCacheStore


class MemoryCacheStore(BaseCacheStore):
    """Dict-backed cache store."""

    def __init__(self, max_entries: int | None = 1000) -> None:
        self._data: OrderedDict[str, str] = OrderedDict()
        self._max_entries = max_entries

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def put(self, key: str, value: str) -> None:
        self._data.pop(key, None)
        self._data[key] = value
        if self._max_entries is not None:
            while len(self._data) > self._max_entries:
                self._data.popitem(last=False)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def keys(self, prefix: str = "") -> list[str]:
        return [k for k in self._data if k.startswith(prefix)]

    def __len__(self) -> int:
        return len(self._data)
