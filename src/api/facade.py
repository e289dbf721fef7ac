# src/api/facade.py — v3
"""Flow optimizer: the single caller-facing entry point.

Usage:
    from signalcx.api.facade import FlowOptimizer
    optimizer = FlowOptimizer.from_settings(settings)
    result = await optimizer.execute_phase("discovery", inp, compute)

Every analysis goes through ``execute_phase``: a fresh cached payload is
returned without recomputation; otherwise ``compute`` runs and its result
is stored. Per-entity workloads go through ``run_batch``.
"""

from __future__ import annotations

import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Sequence

from pydantic import BaseModel, ValidationError

from signalcx.api.models import FlowResult, FlowStats
from signalcx.batch.models import BatchConfig
from signalcx.batch.scheduler import BatchScheduler, ProcessFn
from signalcx.cache.fingerprint import fingerprint_payload
from signalcx.cache.memory_store import MemoryCacheStore
from signalcx.cache.result_cache import ResultCache
from signalcx.config.settings import Settings
from signalcx.pipeline import confidence as confidence_gate

logger = logging.getLogger(__name__)

ComputeFn = Callable[[Any], "Awaitable[Any] | Any"]


class FlowOptimizer:
    """Cache-aware executor for analysis phases.

    Args:
        cache: Result cache shared by all phases. Defaults to an in-memory
            cache with default TTLs.
        batch_config: Default scheduling parameters for ``run_batch``.
    """

    def __init__(
        self,
        cache: ResultCache | None = None,
        batch_config: BatchConfig | None = None,
    ) -> None:
        self._cache = cache or ResultCache(MemoryCacheStore())
        self._batch_config = batch_config or BatchConfig()
        self._stats = FlowStats()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> FlowOptimizer:
        from signalcx.cache.cache_factory import create_result_cache

        settings = settings or Settings()
        return cls(
            cache=create_result_cache(settings),
            batch_config=BatchConfig.from_settings(settings),
        )

    @property
    def cache(self) -> ResultCache:
        return self._cache

    @property
    def batch_config(self) -> BatchConfig:
        return self._batch_config

    async def execute_phase(
        self,
        kind: str,
        input: Any,
        compute: ComputeFn,
        fingerprint: str | None = None,
        force_refresh: bool = False,
        result_type: type[BaseModel] | None = None,
    ) -> FlowResult:
        """Return the cached result for ``input`` or compute and cache it.

        Args:
            kind: Analysis kind (cache scope), e.g. "discovery".
            input: Phase input passed to ``compute``.
            compute: Sync or async callable producing the result.
            fingerprint: Explicit cache key; derived from ``input`` if None.
            force_refresh: Skip the cache lookup and overwrite the entry.
            result_type: Model used to rehydrate cached JSON payloads.

        Raises:
            Whatever ``compute`` raises; failures are never cached.
        """
        fp = fingerprint or fingerprint_payload(kind, input)
        start_ns = time.monotonic_ns()
        self._stats.total_executions += 1
        self._stats.executions_by_kind[kind] = self._stats.executions_by_kind.get(kind, 0) + 1

        if not force_refresh:
            entry = await self._cache.get(kind, fp)
            if entry is not None:
                data = entry.payload
                try:
                    if result_type is not None:
                        data = result_type.model_validate(data)
                except ValidationError as exc:
                    logger.warning(
                        "Discarding cached %s (%s) that no longer validates: %d error(s)",
                        kind, fp, exc.error_count(),
                    )
                    await self._cache.invalidate(kind, fp)
                else:
                    self._stats.cache_hits += 1
                    logger.info("Cache hit for %s (%s)", kind, fp)
                    return FlowResult(
                        kind=kind,
                        fingerprint=fp,
                        data=data,
                        cached=True,
                        stored_at=entry.stored_at,
                        served_at=self._cache.now(),
                        execution_time_ms=(time.monotonic_ns() - start_ns) // 1_000_000,
                        confidence=confidence_gate.extract_confidence(data),
                    )

        try:
            data = compute(input)
            if inspect.isawaitable(data):
                data = await data
        except Exception:
            self._stats.failures += 1
            logger.error("Flow '%s' failed (%s)", kind, fp, exc_info=True)
            raise

        elapsed_ms = (time.monotonic_ns() - start_ns) // 1_000_000
        self._stats.computations += 1
        self._stats.total_compute_ms += elapsed_ms

        entry = await self._cache.put(kind, fp, data)
        now = self._cache.now()
        logger.info("Computed %s in %dms (%s)", kind, elapsed_ms, fp)
        return FlowResult(
            kind=kind,
            fingerprint=fp,
            data=data,
            cached=False,
            stored_at=entry.stored_at if entry is not None else now,
            served_at=now,
            execution_time_ms=elapsed_ms,
            confidence=confidence_gate.extract_confidence(data),
        )

    async def run_batch(
        self,
        items: Sequence[Any],
        config: BatchConfig | None,
        compute: ProcessFn,
    ) -> list[Any]:
        """Drive ``compute(batch, index)`` over items with bounded concurrency."""
        scheduler: BatchScheduler[Any, Any] = BatchScheduler(config or self._batch_config)
        return await scheduler.run(items, compute)

    def should_rerun(self, confidence: float) -> bool:
        return confidence_gate.should_rerun(confidence)

    async def clear_cache(self, kind: str | None = None) -> int:
        """Drop cached results of one kind, or all of them."""
        return await self._cache.clear(kind)

    def get_stats(self) -> FlowStats:
        """Snapshot of execution counters and cache statistics."""
        stats = self._stats.model_copy(deep=True)
        stats.cache = self._cache.stats.model_copy()
        return stats
