# src/pipeline/state.py — v2
"""Pipeline state for one Discovery → Hypothesis → Targeted Analysis run.

Phases are strictly ordered. A phase may start only once its upstream
output is present and consistent; ``require_upstream`` enforces this.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field

from signalcx.pipeline.contracts import (
    DiscoveryOutput,
    HypothesisOutput,
    TargetedAnalysisOutput,
)
from signalcx.pipeline.errors import PhaseInputError

PHASE_ORDER: tuple[str, ...] = ("discovery", "hypothesis", "targeted_analysis")


class PhaseRecord(BaseModel):
    """How a phase result was obtained."""

    fingerprint: str
    cached: bool
    confidence: float | None = None
    execution_time_ms: int = 0


class PipelineState(BaseModel):
    """Accumulates phase outputs across a pipeline run."""

    run_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    discovery: DiscoveryOutput | None = None
    hypothesis: HypothesisOutput | None = None
    targeted_analysis: TargetedAnalysisOutput | None = None

    records: dict[str, PhaseRecord] = Field(default_factory=dict)
    errors: list[str] = Field(default_factory=list)

    @property
    def completed_phases(self) -> list[str]:
        return [p for p in PHASE_ORDER if getattr(self, p) is not None]

    def next_phase(self) -> str | None:
        for phase in PHASE_ORDER:
            if getattr(self, phase) is None:
                return phase
        return None

    def require_upstream(self, phase: str) -> None:
        """Raise PhaseInputError unless ``phase`` may start now."""
        if phase not in PHASE_ORDER:
            raise PhaseInputError(f"Unknown phase '{phase}'")
        index = PHASE_ORDER.index(phase)
        for upstream in PHASE_ORDER[:index]:
            if getattr(self, upstream) is None:
                raise PhaseInputError(
                    f"Phase '{phase}' requires '{upstream}' output, which is missing"
                )
        if phase == "targeted_analysis":
            errors = self.hypothesis.integrity_errors()
            if errors:
                raise PhaseInputError(
                    f"Hypothesis output is inconsistent: {'; '.join(errors)}"
                )

    def record(
        self,
        phase: str,
        output: BaseModel,
        record: PhaseRecord,
    ) -> None:
        """Store a phase output; downstream outputs become stale and are dropped."""
        self.require_upstream(phase)
        setattr(self, phase, output)
        self.records[phase] = record
        for downstream in PHASE_ORDER[PHASE_ORDER.index(phase) + 1 :]:
            setattr(self, downstream, None)
            self.records.pop(downstream, None)

    @property
    def confidence_scores(self) -> dict[str, float]:
        return {
            name: rec.confidence
            for name, rec in self.records.items()
            if rec.confidence is not None
        }
