# src/pipeline/phases/targeted_analysis.py — v2
"""Targeted analysis phase: tests each hypothesis against ticket data."""

from __future__ import annotations

from collections import Counter
from typing import Iterable

from pydantic import BaseModel

from signalcx.core.models import Ticket
from signalcx.pipeline.contracts import (
    HypothesisOutput,
    SampleTicket,
    TargetedAnalysisInput,
    TargetedAnalysisOutput,
    TicketData,
    TicketSummary,
)
from signalcx.pipeline.errors import ContractViolationError
from signalcx.pipeline.plugin_kit.base_phase import BasePhase

DEFAULT_TOOLS: tuple[str, ...] = (
    "statistical_analysis",
    "trend_analysis",
    "correlation_analysis",
    "segmentation",
    "sentiment_analysis",
)
DEFAULT_SAMPLE_SIZE = 50


class TargetedAnalysisPhase(BasePhase):
    """Test hypotheses and report findings, metrics and actions."""

    @property
    def name(self) -> str:
        return "targeted_analysis"

    @property
    def description(self) -> str:
        return "Test hypotheses and report findings, metrics and actions"

    @property
    def input_schema(self) -> type[BaseModel]:
        return TargetedAnalysisInput

    @property
    def output_schema(self) -> type[BaseModel]:
        return TargetedAnalysisOutput

    @property
    def dependencies(self) -> list[str]:
        return ["hypothesis"]

    def is_empty(self, inp: TargetedAnalysisInput) -> bool:
        return not inp.hypotheses

    def empty_output(self, inp: TargetedAnalysisInput) -> TargetedAnalysisOutput:
        return TargetedAnalysisOutput.empty()

    def check_output(
        self, inp: TargetedAnalysisInput, output: TargetedAnalysisOutput
    ) -> None:
        unknown = sorted(output.referenced_ids() - inp.hypothesis_ids())
        if unknown:
            raise ContractViolationError(
                self.name, f"results reference unknown hypotheses {unknown}"
            )


def build_ticket_data(
    tickets: Iterable[Ticket],
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    time_range: str = "unknown",
) -> TicketData:
    """Summary plus a structured (free-text-free) prefix sample."""
    tickets = list(tickets)
    categories = Counter(t.category for t in tickets)
    breached = sum(1 for t in tickets if t.sla_breached)
    csat = [t.csat_score for t in tickets if t.csat_score is not None]
    key_metrics: dict[str, float | int | None] = {
        "sla_breach_rate": breached / len(tickets) if tickets else 0.0,
        "avg_csat_score": sum(csat) / len(csat) if csat else None,
        "open_tickets": sum(1 for t in tickets if t.status not in ("solved", "closed")),
    }
    return TicketData(
        summary=TicketSummary(
            total_tickets=len(tickets),
            categories=[c for c, _ in categories.most_common()],
            time_range=time_range,
            key_metrics=key_metrics,
        ),
        sample_data=[
            SampleTicket(
                id=t.id,
                category=t.category,
                priority=t.priority,
                status=t.status,
                created_at=t.created_at,
                tags=list(t.tags),
                sla_breached=t.sla_breached,
                csat_score=t.csat_score,
            )
            for t in tickets[:sample_size]
        ],
    )


def build_targeted_input(
    hypotheses: HypothesisOutput,
    tickets: Iterable[Ticket],
    available_tools: Iterable[str] = DEFAULT_TOOLS,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    time_range: str = "unknown",
) -> TargetedAnalysisInput:
    """Assemble the targeted-analysis input from the hypothesis output."""
    return TargetedAnalysisInput(
        hypotheses=hypotheses.hypotheses,
        investigation_plan=hypotheses.investigation_plan,
        available_tools=list(available_tools),
        ticket_data=build_ticket_data(tickets, sample_size, time_range),
    )
