# src/cache/sqlite_store.py — v3
"""SQLite-based cache store (CACHE_BACKEND=sqlite).

One ``kv`` table in WAL mode. Every write runs in its own transaction, so
readers in other processes see either the old or the new value.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from signalcx.cache.base_cache_store import BaseCacheStore

logger = logging.getLogger(__name__)

_DDL = (
    "CREATE TABLE IF NOT EXISTS kv ("
    " key TEXT PRIMARY KEY,"
    " value TEXT NOT NULL,"
    " written_at REAL NOT NULL DEFAULT (julianday('now'))"
    ")"
)
# Prefix match via substr() so LIKE wildcards in keys need no escaping.
_PREFIX_MATCH = "substr(key, 1, ?) = ?"


class SqliteCacheStore(BaseCacheStore):
    def __init__(self, db_path: Path | str) -> None:
        path = Path(db_path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        self.db_path = path
        self._conn = sqlite3.connect(str(path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute(_DDL)
        self._conn.commit()

    def _write(self, sql: str, params: tuple) -> int:
        with self._conn:
            return self._conn.execute(sql, params).rowcount

    async def get(self, key: str) -> str | None:
        row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    async def put(self, key: str, value: str) -> None:
        self._write(
            "INSERT INTO kv (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value, written_at = julianday('now')",
            (key, value),
        )

    async def delete(self, key: str) -> None:
        self._write("DELETE FROM kv WHERE key = ?", (key,))

    async def keys(self, prefix: str = "") -> list[str]:
        rows = self._conn.execute(
            f"SELECT key FROM kv WHERE {_PREFIX_MATCH} ORDER BY key", (len(prefix), prefix)
        ).fetchall()
        return [key for (key,) in rows]

    async def delete_prefix(self, prefix: str) -> int:
        removed = self._write(f"DELETE FROM kv WHERE {_PREFIX_MATCH}", (len(prefix), prefix))
        logger.debug("Deleted %d SQLite rows under %r", removed, prefix)
        return removed

    def close(self) -> None:
        self._conn.close()
