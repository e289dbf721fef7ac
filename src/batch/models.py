# src/batch/models.py — v2
"""Batch scheduling models: BatchConfig, BatchRecord, BatchProgress, BatchRunResult."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

BatchStatus = Literal["queued", "running", "completed", "failed"]


class BatchConfig(BaseModel):
    """Scheduling parameters for one run."""

    batch_size: int = Field(default=5, ge=1)
    max_concurrent: int = Field(default=3, ge=1)
    inter_batch_delay_s: float = Field(default=0.1, ge=0.0)

    @classmethod
    def from_settings(cls, settings: Any) -> BatchConfig:
        return cls(
            batch_size=settings.batch_size,
            max_concurrent=settings.batch_max_concurrent,
            inter_batch_delay_s=settings.batch_delay_seconds,
        )


class BatchRecord(BaseModel):
    """Lifecycle bookkeeping for a single batch."""

    index: int
    size: int
    status: BatchStatus = "queued"
    result_count: int = 0
    error: str | None = None
    duration_ms: int = 0


class BatchProgress(BaseModel):
    """Progress event emitted after every finished batch."""

    batch_index: int
    status: BatchStatus
    completed_batches: int
    failed_batches: int
    total_batches: int

    @property
    def finished_batches(self) -> int:
        return self.completed_batches + self.failed_batches

    @property
    def fraction(self) -> float:
        return self.finished_batches / self.total_batches if self.total_batches else 1.0

    @property
    def is_complete(self) -> bool:
        return self.finished_batches == self.total_batches


class BatchRunResult(BaseModel):
    """Outcome of one scheduler run."""

    results: list[Any] = Field(default_factory=list)
    batches: list[BatchRecord] = Field(default_factory=list)
    total_items: int = 0
    cancelled: bool = False
    duration_ms: int = 0

    @property
    def total_batches(self) -> int:
        return len(self.batches)

    @property
    def completed_batches(self) -> int:
        return sum(1 for b in self.batches if b.status == "completed")

    @property
    def failed_batches(self) -> list[int]:
        return [b.index for b in self.batches if b.status == "failed"]
