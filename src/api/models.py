# src/api/models.py — v2
"""API-level models: FlowResult, FlowStats."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from signalcx.cache.models import CacheStats


class FlowResult(BaseModel):
    """Return value of FlowOptimizer.execute_phase().

    ``stored_at`` is when the payload was computed and cached; on a cache
    hit it is the original timestamp while ``served_at`` is fresh.
    """

    kind: str
    fingerprint: str
    data: Any
    cached: bool
    stored_at: float
    served_at: float
    execution_time_ms: int
    confidence: float | None = None

    @property
    def age_s(self) -> float:
        return max(0.0, self.served_at - self.stored_at)


class FlowStats(BaseModel):
    """Counters accumulated by a FlowOptimizer instance."""

    total_executions: int = 0
    cache_hits: int = 0
    computations: int = 0
    failures: int = 0
    total_compute_ms: int = 0
    executions_by_kind: dict[str, int] = Field(default_factory=dict)
    cache: CacheStats = Field(default_factory=CacheStats)

    @property
    def cache_hit_rate(self) -> float:
        return self.cache_hits / self.total_executions if self.total_executions else 0.0

    @property
    def avg_compute_ms(self) -> float:
        return self.total_compute_ms / self.computations if self.computations else 0.0
