# src/pipeline/phases/hypothesis.py — v2
"""Hypothesis formation phase: turns discovery results into testable claims."""

from __future__ import annotations

from pydantic import BaseModel

from signalcx.pipeline.contracts import HypothesisInput, HypothesisOutput
from signalcx.pipeline.plugin_kit.base_phase import BasePhase


class HypothesisPhase(BasePhase):
    """Form, prioritize and plan hypotheses from discovery output."""

    @property
    def name(self) -> str:
        return "hypothesis"

    @property
    def description(self) -> str:
        return "Form, prioritize and plan hypotheses from discovery output"

    @property
    def input_schema(self) -> type[BaseModel]:
        return HypothesisInput

    @property
    def output_schema(self) -> type[BaseModel]:
        return HypothesisOutput

    @property
    def dependencies(self) -> list[str]:
        return ["discovery"]

    def is_empty(self, inp: HypothesisInput) -> bool:
        return inp.ticket_count == 0

    def empty_output(self, inp: HypothesisInput) -> HypothesisOutput:
        return HypothesisOutput.empty()
