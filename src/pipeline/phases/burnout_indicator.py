# src/pipeline/phases/burnout_indicator.py — v1
"""Per-agent burnout risk assessment.

Workload figures (ticket count, average resolution time, last activity)
are computed from the tickets and only filled in when the response omits
them.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from signalcx.pipeline.contracts import BurnoutIndicator, EntityInput
from signalcx.pipeline.phases.entity_phase import EntityPhase
from signalcx.preprocess.preprocessor import parse_timestamp, resolution_hours


class BurnoutIndicatorPhase(EntityPhase):
    """Assess an agent's burnout risk from recent workload."""

    wrapper_key = "burnout_indicators"

    @property
    def name(self) -> str:
        return "burnout"

    @property
    def description(self) -> str:
        return "Assess an agent's burnout risk from recent workload"

    @property
    def output_schema(self) -> type[BaseModel]:
        return BurnoutIndicator

    def build_payload(self, inp: EntityInput) -> dict[str, Any]:
        return {
            "agent_id": inp.entity_id,
            "agent_name": inp.display_name,
            "workload": workload_stats(inp),
            "tickets": [
                {
                    "id": t.id,
                    "subject": t.subject,
                    "created_at": t.created_at,
                    "solved_at": t.solved_at,
                    "status": t.status,
                    "priority": t.priority,
                }
                for t in inp.tickets
            ],
        }

    def prepare_output(self, inp: EntityInput, data: dict[str, Any]) -> dict[str, Any]:
        data = super().prepare_output(inp, data)
        for key, value in workload_stats(inp).items():
            data.setdefault(key, value)
        return data


def workload_stats(inp: EntityInput) -> dict[str, Any]:
    """Ticket count, mean resolution hours and latest activity timestamp."""
    hours = [h for h in (resolution_hours(t) for t in inp.tickets) if h is not None]
    stamps = [
        ts
        for t in inp.tickets
        for ts in (parse_timestamp(t.solved_at), parse_timestamp(t.created_at))
        if ts is not None
    ]
    return {
        "ticket_count": len(inp.tickets),
        "avg_resolution_time": round(sum(hours) / len(hours), 2) if hours else 0.0,
        "last_activity": max(stamps).isoformat() if stamps else "",
    }
