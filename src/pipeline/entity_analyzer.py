# src/pipeline/entity_analyzer.py — v2
"""Batched per-entity analysis with caching and confidence-driven re-runs.

Entities (agents) are driven through a BatchScheduler created for each
call, so one analyzer can serve overlapping runs. Within a batch each
entity is handled on its own:

  - no recent work items  -> skipped (no inference, no cache write)
  - fresh cache entry     -> returned as is
  - otherwise             -> phase executed for that entity, then cached

A failing entity is logged and left out of the results; it never fails
its batch.

The cache key covers the entity identity plus a digest of the work-item
fields that drive the analysis (id, status, solve time, CSAT), so a status
change on any recent ticket forces recomputation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Sequence

from pydantic import BaseModel, ValidationError

from signalcx.batch.models import BatchConfig
from signalcx.batch.scheduler import BatchScheduler, ProgressCallback
from signalcx.cache.fingerprint import compute_fingerprint
from signalcx.config.settings import Settings
from signalcx.logging.context import log_context
from signalcx.pipeline.confidence import should_rerun
from signalcx.pipeline.contracts import EntityInput

if TYPE_CHECKING:
    from signalcx.cache.result_cache import ResultCache
    from signalcx.core.models import Ticket
    from signalcx.inference.base import InferenceCapability
    from signalcx.pipeline.phases.entity_phase import EntityPhase
    from signalcx.preprocess.preprocessor import ProcessedTickets

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 5
DEFAULT_RECENT_LIMIT = 20


def entity_fingerprint(kind: str, entity_id: str, tickets: Iterable[Ticket]) -> str:
    """Cache key for one entity's analysis over a given set of work items."""
    content = [[t.id, t.status, t.solved_at, t.csat_score] for t in tickets]
    return compute_fingerprint([entity_id], kind, content=content)


class EntityAnalyzer:
    """Run an EntityPhase over many entities with caching.

    Args:
        phase: Per-entity phase (e.g. PerformanceForecastPhase).
        cache: Shared result cache.
        batch_config: Scheduling limits; ``batch_size`` below takes precedence.
        inference: Inference capability passed to the phase.
        kind: Cache kind, defaults to the phase name.
        batch_size: Entities per batch.
        recent_limit: Most recent tickets considered per entity.
        on_progress: Called after every completed batch.
    """

    def __init__(
        self,
        phase: EntityPhase,
        cache: ResultCache,
        batch_config: BatchConfig | None,
        inference: InferenceCapability,
        kind: str | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        recent_limit: int = DEFAULT_RECENT_LIMIT,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self._phase = phase
        self._cache = cache
        self._batch_config = (batch_config or BatchConfig()).model_copy(update={"batch_size": batch_size})
        self._on_progress = on_progress
        self._active: set[BatchScheduler] = set()
        self._inference = inference
        self._kind = kind or phase.name
        self._batch_size = batch_size
        self._recent_limit = recent_limit

    @classmethod
    def from_settings(
        cls,
        phase: EntityPhase,
        cache: ResultCache,
        inference: InferenceCapability,
        settings: Settings | None = None,
    ) -> EntityAnalyzer:
        """Analyzer with batch and recent-ticket limits taken from settings."""
        settings = settings or Settings()
        return cls(
            phase,
            cache,
            BatchConfig.from_settings(settings),
            inference,
            batch_size=settings.batch_size,
            recent_limit=settings.entity_recent_ticket_limit,
        )

    @property
    def kind(self) -> str:
        return self._kind

    def cancel(self) -> None:
        """Stop issuing new batches in every run still in progress."""
        for scheduler in list(self._active):
            scheduler.cancel()

    async def analyze(
        self,
        processed: ProcessedTickets,
        target_entities: Sequence[str] | None = None,
    ) -> list[Any]:
        """Analyse every entity (or just ``target_entities``), cache first."""
        entity_ids = processed.agent_names if target_entities is None else target_entities
        return await self._run(entity_ids, processed, force=False)

    async def rerun(self, entity_ids: Sequence[str], processed: ProcessedTickets) -> list[Any]:
        """Recompute the given entities, replacing their cache entries."""
        return await self._run(entity_ids, processed, force=True)

    async def rerun_low_confidence(
        self,
        results: Sequence[Any],
        processed: ProcessedTickets,
    ) -> list[Any]:
        """Recompute only results that fail the confidence gate.

        Output order follows ``results``. A result whose re-run fails is
        kept as it was.
        """
        low = [r.entity_id for r in results if should_rerun(r.confidence)]
        if not low:
            return list(results)
        logger.info("Re-running %d low-confidence %s results", len(low), self._kind)
        fresh = {r.entity_id: r for r in await self.rerun(low, processed)}
        return [fresh.get(r.entity_id, r) for r in results]

    async def _run(
        self,
        entity_ids: Sequence[str],
        processed: ProcessedTickets,
        force: bool,
    ) -> list[Any]:
        unique = list(dict.fromkeys(entity_ids))

        async def process(batch: list[str], index: int) -> list[Any]:
            results = []
            for entity_id in batch:
                with log_context(phase=self._kind, entity=entity_id):
                    result = await self._analyze_entity(entity_id, processed, force)
                if result is not None:
                    results.append(result)
            return results

        scheduler: BatchScheduler[str, Any] = BatchScheduler(
            self._batch_config, on_progress=self._on_progress
        )
        self._active.add(scheduler)
        try:
            results = await scheduler.run(unique, process)
        finally:
            self._active.discard(scheduler)
        logger.info(
            "%s: %d/%d entities analysed%s",
            self._kind, len(results), len(unique), " (forced)" if force else "",
        )
        return results

    async def _analyze_entity(
        self,
        entity_id: str,
        processed: ProcessedTickets,
        force: bool,
    ) -> BaseModel | None:
        tickets = processed.recent_agent_tickets(entity_id, self._recent_limit)
        if not tickets:
            logger.debug("Skipping %s: no work items", entity_id)
            return None

        fp = entity_fingerprint(self._kind, entity_id, tickets)
        if not force:
            entry = await self._cache.get(self._kind, fp)
            if entry is not None:
                try:
                    return self._phase.output_schema.model_validate(entry.payload)
                except ValidationError as exc:
                    logger.warning("Ignoring invalid cached %s for %s: %s", self._kind, entity_id, exc)

        inp = EntityInput(entity_id=entity_id, entity_name=entity_id, tickets=tickets)
        try:
            result = await self._phase.execute(inp, self._inference)
        except Exception as exc:
            logger.warning("%s failed for %s: %s", self._kind, entity_id, exc)
            return None

        await self._cache.put(self._kind, fp, result)
        return result
