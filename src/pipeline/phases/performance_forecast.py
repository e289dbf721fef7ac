# src/pipeline/phases/performance_forecast.py — v1
"""Per-agent performance forecast (next-week volume and CSAT)."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from signalcx.pipeline.contracts import EntityInput, PerformanceForecast
from signalcx.pipeline.phases.entity_phase import EntityPhase


class PerformanceForecastPhase(EntityPhase):
    """Forecast an agent's ticket volume and CSAT for next week."""

    wrapper_key = "forecasts"

    @property
    def name(self) -> str:
        return "performance"

    @property
    def description(self) -> str:
        return "Forecast an agent's ticket volume and CSAT for next week"

    @property
    def output_schema(self) -> type[BaseModel]:
        return PerformanceForecast

    def build_payload(self, inp: EntityInput) -> dict[str, Any]:
        return {
            "agent_id": inp.entity_id,
            "agent_name": inp.display_name,
            "ticket_count": len(inp.tickets),
            "tickets": [
                {
                    "id": t.id,
                    "category": t.category,
                    "sentiment": t.sentiment or "Neutral",
                    "csat_score": t.csat_score,
                    "created_at": t.created_at,
                    "solved_at": t.solved_at,
                    "status": t.status,
                    "priority": t.priority,
                }
                for t in inp.tickets
            ],
        }
