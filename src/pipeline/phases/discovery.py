# src/pipeline/phases/discovery.py — v2
"""Discovery phase: exploratory analysis over a deterministic ticket sample.

The sample is a prefix of the input (``sample_size`` or at most
``sample_limit`` tickets). Subjects and descriptions are scrubbed and
then truncated to ``text_limit`` characters.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from signalcx.pipeline.contracts import DiscoveryInput, DiscoveryOutput
from signalcx.pipeline.plugin_kit.base_phase import BasePhase
from signalcx.privacy.scrubber import Scrubber, scrub_pii

DEFAULT_SAMPLE_LIMIT = 500
DEFAULT_TEXT_LIMIT = 500


class DiscoveryPhase(BasePhase):
    """Assess data quality, distributions, patterns and anomalies."""

    def __init__(
        self,
        scrubber: Scrubber = scrub_pii,
        sample_limit: int = DEFAULT_SAMPLE_LIMIT,
        text_limit: int = DEFAULT_TEXT_LIMIT,
    ) -> None:
        super().__init__(scrubber)
        self._sample_limit = sample_limit
        self._text_limit = text_limit

    @property
    def name(self) -> str:
        return "discovery"

    @property
    def description(self) -> str:
        return "Assess data quality, distributions, patterns and anomalies"

    @property
    def input_schema(self) -> type[BaseModel]:
        return DiscoveryInput

    @property
    def output_schema(self) -> type[BaseModel]:
        return DiscoveryOutput

    def sample_size_for(self, inp: DiscoveryInput) -> int:
        return inp.sample_size or min(self._sample_limit, len(inp.tickets))

    def is_empty(self, inp: DiscoveryInput) -> bool:
        return not inp.tickets

    def empty_output(self, inp: DiscoveryInput) -> DiscoveryOutput:
        return DiscoveryOutput.empty()

    def build_payload(self, inp: DiscoveryInput) -> dict[str, Any]:
        sample_size = self.sample_size_for(inp)
        tickets = [
            {
                "id": t.id,
                "subject": self._scrubber(t.subject)[: self._text_limit],
                "description": self._scrubber(t.description)[: self._text_limit],
                "category": t.category,
                "priority": t.priority,
                "status": t.status,
                "created_at": t.created_at,
                "assignee": t.assignee,
                "tags": list(t.tags),
                "sla_breached": t.sla_breached,
                "csat_score": t.csat_score,
            }
            for t in inp.tickets[:sample_size]
        ]
        return {
            "total_ticket_count": inp.total_ticket_count or len(inp.tickets),
            "tickets_provided": len(inp.tickets),
            "sample_size": sample_size,
            "tickets": tickets,
        }
