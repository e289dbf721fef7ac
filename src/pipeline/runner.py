# src/pipeline/runner.py — v3
"""Pipeline runner: Discovery → Hypothesis → Targeted Analysis.

Each phase runs through the FlowOptimizer, so a repeated run over the same
tickets is served from cache phase by phase. Phases are sequential; the
first failing phase stops the run (downstream phases cannot start without
its output). No retries happen here.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable

from signalcx.api.facade import FlowOptimizer
from signalcx.config.settings import Settings
from signalcx.core.models import Ticket
from signalcx.logging.context import log_context
from signalcx.pipeline.contracts import (
    BusinessContext,
    DiscoveryInput,
    DiscoveryOutput,
    HypothesisInput,
    HypothesisOutput,
    TargetedAnalysisOutput,
)
from signalcx.pipeline.errors import SignalCXError
from signalcx.pipeline.phases.discovery import DiscoveryPhase
from signalcx.pipeline.phases.hypothesis import HypothesisPhase
from signalcx.pipeline.phases.targeted_analysis import (
    DEFAULT_TOOLS,
    TargetedAnalysisPhase,
    build_targeted_input,
)
from signalcx.pipeline.state import PHASE_ORDER, PhaseRecord, PipelineState
from signalcx.preprocess.preprocessor import ProcessedTickets, preprocess
from signalcx.privacy.scrubber import Scrubber, scrub_pii

if TYPE_CHECKING:
    from pydantic import BaseModel

    from signalcx.inference.base import InferenceCapability
    from signalcx.pipeline.plugin_kit.base_phase import BasePhase

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Result of a full pipeline run."""

    state: PipelineState
    success: bool = True
    failed_phase: str | None = None
    cached_phases: list[str] = field(default_factory=list)
    duration_ms: int = 0


class PipelineRunner:
    """Execute the three analysis phases in order.

    Args:
        inference: Inference capability used by every phase.
        optimizer: Cache-aware executor; built from settings if None.
        settings: Tuning (sample sizes, text limits).
        scrubber: PII scrubber for every request.
        available_tools: Tool names offered to targeted analysis.
    """

    def __init__(
        self,
        inference: InferenceCapability,
        optimizer: FlowOptimizer | None = None,
        settings: Settings | None = None,
        scrubber: Scrubber = scrub_pii,
        available_tools: Iterable[str] = DEFAULT_TOOLS,
    ) -> None:
        self._settings = settings or Settings()
        self._inference = inference
        self._optimizer = optimizer or FlowOptimizer.from_settings(self._settings)
        self._scrubber = scrubber
        self._available_tools = list(available_tools)
        self.discovery = DiscoveryPhase(
            scrubber,
            sample_limit=self._settings.discovery_sample_size,
            text_limit=self._settings.discovery_text_limit,
        )
        self.hypothesis = HypothesisPhase(scrubber)
        self.targeted = TargetedAnalysisPhase(scrubber)

    @property
    def optimizer(self) -> FlowOptimizer:
        return self._optimizer

    async def run(
        self,
        tickets: Iterable[Ticket],
        business_context: BusinessContext | None = None,
        sample_size: int | None = None,
        force_refresh: bool = False,
        state: PipelineState | None = None,
    ) -> RunResult:
        """Preprocess tickets and run all phases."""
        start_ns = time.monotonic_ns()
        state = state or PipelineState()
        result = RunResult(state=state)
        processed = preprocess(tickets, self._scrubber)

        steps = (
            ("discovery", lambda: self.run_discovery(
                state, processed, sample_size=sample_size, force_refresh=force_refresh)),
            ("hypothesis", lambda: self.run_hypothesis(
                state, business_context, force_refresh=force_refresh,
                ticket_count=processed.stats.total_tickets)),
            ("targeted_analysis", lambda: self.run_targeted_analysis(
                state, processed, force_refresh=force_refresh)),
        )
        with log_context(run_id=state.run_id):
            for phase_name, step in steps:
                try:
                    await step()
                except SignalCXError as exc:
                    logger.error("Pipeline stopped at '%s': %s", phase_name, exc)
                    state.errors.append(f"{phase_name}: {exc}")
                    result.success = False
                    result.failed_phase = phase_name
                    break
                if state.records[phase_name].cached:
                    result.cached_phases.append(phase_name)

        result.duration_ms = (time.monotonic_ns() - start_ns) // 1_000_000
        logger.info(
            "Pipeline %s: %d/%d phases, %d from cache, %dms",
            "complete" if result.success else "failed",
            len(state.completed_phases), len(PHASE_ORDER), len(result.cached_phases), result.duration_ms,
        )
        return result

    async def run_discovery(
        self,
        state: PipelineState,
        processed: ProcessedTickets,
        sample_size: int | None = None,
        force_refresh: bool = False,
    ) -> DiscoveryOutput:
        inp = DiscoveryInput(
            tickets=processed.tickets,
            sample_size=sample_size,
            total_ticket_count=processed.stats.total_tickets,
        )
        return await self._execute(state, self.discovery, inp, force_refresh)

    async def run_hypothesis(
        self,
        state: PipelineState,
        business_context: BusinessContext | None = None,
        force_refresh: bool = False,
        ticket_count: int | None = None,
    ) -> HypothesisOutput:
        state.require_upstream(self.hypothesis.name)
        inp = HypothesisInput(
            discovery_results=state.discovery,
            business_context=business_context,
            ticket_count=ticket_count,
        )
        return await self._execute(state, self.hypothesis, inp, force_refresh)

    async def run_targeted_analysis(
        self,
        state: PipelineState,
        processed: ProcessedTickets,
        force_refresh: bool = False,
    ) -> TargetedAnalysisOutput:
        state.require_upstream(self.targeted.name)
        inp = build_targeted_input(
            state.hypothesis,
            processed.tickets,
            available_tools=self._available_tools,
            sample_size=self._settings.targeted_sample_size,
            time_range=processed.time_range.describe(),
        )
        return await self._execute(state, self.targeted, inp, force_refresh)

    async def _execute(
        self,
        state: PipelineState,
        phase: BasePhase,
        inp: BaseModel,
        force_refresh: bool,
    ) -> BaseModel:
        with log_context(phase=phase.name):
            flow = await self._optimizer.execute_phase(
                phase.name,
                inp,
                lambda i: phase.execute(i, self._inference),
                force_refresh=force_refresh,
                result_type=phase.output_schema,
            )
        state.record(
            phase.name,
            flow.data,
            PhaseRecord(
                fingerprint=flow.fingerprint,
                cached=flow.cached,
                confidence=flow.confidence,
                execution_time_ms=flow.execution_time_ms,
            ),
        )
        return flow.data
