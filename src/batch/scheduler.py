# src/batch/scheduler.py — v1
"""Bounded-concurrency batch scheduler.

Partitions an item list into fixed-size batches and drives them through a
pool of at most ``max_concurrent`` workers. A worker pulls the next queued
batch as soon as its current one finishes (no wave barrier), then pauses
``inter_batch_delay_s`` to pace load on the upstream inference service.

Failure of one batch is logged and isolated: siblings keep running and the
run returns the contributions of the successful batches only.

Cancellation is cooperative. After ``cancel()`` no new batch starts;
batches already in flight run to completion but their results are
discarded.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections import deque
from typing import Any, Awaitable, Callable, Generic, Sequence, TypeVar

from signalcx.batch.models import BatchConfig, BatchProgress, BatchRecord, BatchRunResult

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

ProcessFn = Callable[[list[T], int], "Awaitable[list[R]] | list[R]"]
ProgressCallback = Callable[[BatchProgress], None]


def partition(items: Sequence[T], batch_size: int) -> list[list[T]]:
    """Split items into ordered batches of at most ``batch_size``."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    return [list(items[i : i + batch_size]) for i in range(0, len(items), batch_size)]


class BatchScheduler(Generic[T, R]):
    """Worker-pool scheduler for per-batch async processing.

    One instance drives one run at a time; bookkeeping lives only for the
    duration of that run.

    Args:
        config: Default scheduling parameters.
        on_progress: Called after every finished batch (success or failure).
    """

    def __init__(
        self,
        config: BatchConfig | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self._config = config or BatchConfig()
        self._on_progress = on_progress
        self._records: list[BatchRecord] | None = None
        self._cancelled = False

    @property
    def config(self) -> BatchConfig:
        return self._config

    @property
    def is_running(self) -> bool:
        return self._records is not None

    @property
    def progress(self) -> float:
        """Finished batches / total batches for the active run, else 0.0."""
        if self._records is None or self._cancelled:
            return 0.0
        finished = sum(1 for r in self._records if r.status in ("completed", "failed"))
        return finished / len(self._records)

    def cancel(self) -> None:
        """Stop issuing new batches for the active run."""
        if self._records is not None and not self._cancelled:
            logger.info("Batch run cancelled; in-flight batches will be discarded")
        self._cancelled = True

    async def run(
        self,
        items: Sequence[T],
        process: ProcessFn,
        config: BatchConfig | None = None,
    ) -> list[R]:
        """Process items in batches and return the flattened results."""
        result = await self.run_detailed(items, process, config)
        return result.results

    async def run_detailed(
        self,
        items: Sequence[T],
        process: ProcessFn,
        config: BatchConfig | None = None,
    ) -> BatchRunResult:
        """Process items in batches and return results plus per-batch records.

        Results are concatenated in batch order, independent of the order in
        which batches completed.
        """
        cfg = config or self._config
        items = list(items)
        if not items:
            return BatchRunResult()
        if self._records is not None:
            raise RuntimeError("BatchScheduler is already running")

        batches = partition(items, cfg.batch_size)
        records = [BatchRecord(index=i, size=len(b)) for i, b in enumerate(batches)]
        outputs: dict[int, list[R]] = {}
        queue: deque[int] = deque(range(len(batches)))

        self._records = records
        self._cancelled = False
        start_ns = time.monotonic_ns()

        logger.info(
            "Processing %d items in %d batches (batch_size=%d, max_concurrent=%d)",
            len(items), len(batches), cfg.batch_size, cfg.max_concurrent,
        )

        async def worker() -> None:
            while queue and not self._cancelled:
                index = queue.popleft()
                await self._run_batch(batches[index], records[index], process, outputs)
                self._emit_progress(records, index)
                if queue and not self._cancelled and cfg.inter_batch_delay_s > 0:
                    await asyncio.sleep(cfg.inter_batch_delay_s)

        cancelled = False
        try:
            workers = min(cfg.max_concurrent, len(batches))
            await asyncio.gather(*(worker() for _ in range(workers)))
        finally:
            cancelled = self._cancelled
            self._records = None
            self._cancelled = False

        result = BatchRunResult(
            results=[] if cancelled else [r for i in sorted(outputs) for r in outputs[i]],
            batches=records,
            total_items=len(items),
            cancelled=cancelled,
            duration_ms=(time.monotonic_ns() - start_ns) // 1_000_000,
        )
        logger.info(
            "Batch run finished: %d/%d batches completed, %d failed, %d results, %dms%s",
            result.completed_batches,
            result.total_batches,
            len(result.failed_batches),
            len(result.results),
            result.duration_ms,
            " (cancelled)" if cancelled else "",
        )
        return result

    async def _run_batch(
        self,
        batch: list[T],
        record: BatchRecord,
        process: ProcessFn,
        outputs: dict[int, list[R]],
    ) -> None:
        record.status = "running"
        start_ns = time.monotonic_ns()
        try:
            produced: Any = process(batch, record.index)
            if inspect.isawaitable(produced):
                produced = await produced
            batch_results = list(produced or [])
        except Exception as exc:
            record.status = "failed"
            record.error = f"{type(exc).__name__}: {exc}"
            logger.error(
                "Batch %d failed (%d items): %s", record.index, record.size, exc,
                exc_info=True,
            )
        else:
            record.status = "completed"
            record.result_count = len(batch_results)
            outputs[record.index] = batch_results
            logger.debug(
                "Batch %d completed: %d items -> %d results",
                record.index, record.size, len(batch_results),
            )
        finally:
            record.duration_ms = (time.monotonic_ns() - start_ns) // 1_000_000

    def _emit_progress(self, records: list[BatchRecord], index: int) -> None:
        if self._on_progress is None or self._cancelled:
            return
        event = BatchProgress(
            batch_index=index,
            status=records[index].status,
            completed_batches=sum(1 for r in records if r.status == "completed"),
            failed_batches=sum(1 for r in records if r.status == "failed"),
            total_batches=len(records),
        )
        try:
            self._on_progress(event)
        except Exception:
            logger.warning("Progress callback raised", exc_info=True)
