# src/cache/models.py — v2
"""Cache domain models: CacheEntry and CacheStats."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class CacheEntry(BaseModel):
    """A stored analysis result keyed by (kind, fingerprint).

    ``stored_at`` is a POSIX timestamp in seconds. ``payload`` holds the
    JSON form of the result; callers re-validate it against their contract.
    """

    kind: str
    fingerprint: str
    payload: Any
    stored_at: float

    def age(self, now: float) -> float:
        """Seconds elapsed since the entry was stored."""
        return now - self.stored_at

    def is_fresh(self, now: float, ttl_s: float) -> bool:
        """An entry is valid only while its age is strictly below the TTL."""
        return self.age(now) < ttl_s


class CacheStats(BaseModel):
    """Running counters for a ResultCache instance."""

    hits: int = 0
    misses: int = 0
    expired: int = 0
    writes: int = 0
    errors: int = 0

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0
