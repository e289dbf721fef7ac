# src/cache/json_store.py — v2
"""JSON file-based cache store (CACHE_BACKEND=json).

Stores one file per key under CACHE_ROOT. Writes go to a temporary file
that is then renamed over the target, so readers never see a partial file.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from urllib.parse import quote, unquote

from signalcx.cache.base_cache_store import BaseCacheStore

logger = logging.getLogger(__name__)

_SUFFIX = ".json"


class JsonCacheStore(BaseCacheStore):
    """File-based cache store using JSON files."""

    def __init__(self, cache_root: Path | str) -> None:
        self._root = Path(cache_root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    async def get(self, key: str) -> str | None:
        path = self._entry_path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    async def put(self, key: str, value: str) -> None:
        path = self._entry_path(key)
        fd, tmp_name = tempfile.mkstemp(dir=self._root, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    async def delete(self, key: str) -> None:
        self._entry_path(key).unlink(missing_ok=True)

    async def keys(self, prefix: str = "") -> list[str]:
        if not self._root.is_dir():
            return []
        found = [unquote(p.name[: -len(_SUFFIX)]) for p in self._root.glob(f"*{_SUFFIX}")]
        return sorted(k for k in found if k.startswith(prefix))

    def _entry_path(self, key: str) -> Path:
        """Return file path for a cache key (percent-encoded, reversible)."""
        return self._root / f"{quote(key, safe='')}{_SUFFIX}"
