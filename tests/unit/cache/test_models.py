# tests/unit/cache/test_models.py — v2
"""Tests for cache/models.py."""

from __future__ import annotations

from signalcx.cache.models import CacheEntry, CacheStats


class TestCacheEntry:
    def test_fresh_strictly_below_ttl(self):
        entry = CacheEntry(kind="k", fingerprint="fp", payload={}, stored_at=100.0)
        assert entry.is_fresh(now=199.9, ttl_s=100)
        assert not entry.is_fresh(now=200.0, ttl_s=100)

    def test_age(self):
        entry = CacheEntry(kind="k", fingerprint="fp", payload=None, stored_at=10.0)
        assert entry.age(25.0) == 15.0

    def test_json_round_trip(self):
        entry = CacheEntry(kind="k", fingerprint="fp", payload={"a": [1, 2]}, stored_at=1.5)
        assert CacheEntry.model_validate_json(entry.model_dump_json()) == entry


class TestCacheStats:
    def test_hit_rate_empty(self):
        assert CacheStats().hit_rate == 0.0

    def test_hit_rate(self):
        assert CacheStats(hits=3, misses=1).hit_rate == 0.75
