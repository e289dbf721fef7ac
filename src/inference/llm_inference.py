# src/inference/llm_inference.py — v1
"""LLM-backed InferenceCapability.

Serializes the phase request to JSON, sends it with a short per-phase
instruction, and asks the provider for output constrained to the phase's
output schema. Callers with tuned prompts pass their own
``instructions`` mapping.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import BaseModel

from signalcx.config.settings import Settings
from signalcx.inference.base import InferenceCapability
from signalcx.llm.base_client import BaseLLMClient
from signalcx.llm.models import CompletionRequest

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a customer-support analytics engine. "
    "Respond only with valid JSON matching the requested schema."
)

DEFAULT_INSTRUCTIONS: dict[str, str] = {
    "discovery": (
        "Assess data quality, distributions, patterns, key metrics and "
        "anomalies in the ticket sample."
    ),
    "hypothesis": (
        "Form testable hypotheses from the discovery results, prioritize "
        "them and lay out an investigation plan."
    ),
    "targeted_analysis": (
        "Test each hypothesis against the ticket data and report findings, "
        "metrics, validation and recommended actions."
    ),
    "performance": (
        "Forecast next-week ticket volume and CSAT for the agent from their "
        "recent tickets."
    ),
    "burnout": "Assess burnout risk for the agent from their recent workload.",
}


class LLMInference(InferenceCapability):
    """InferenceCapability backed by a BaseLLMClient.

    Args:
        client: LLM client used for every call.
        temperature: Sampling temperature.
        max_tokens: Completion budget per call.
        instructions: Per-phase instruction overrides.
    """

    def __init__(
        self,
        client: BaseLLMClient,
        temperature: float = 0.2,
        max_tokens: int = 4096,
        instructions: dict[str, str] | None = None,
    ) -> None:
        self._client = client
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._instructions = {**DEFAULT_INSTRUCTIONS, **(instructions or {})}
        self.calls = 0
        self.tokens_used = 0

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> LLMInference:
        from signalcx.llm.client_factory import create_llm_client

        settings = settings or Settings()
        return cls(
            client=create_llm_client(settings),
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
        )

    def build_prompt(self, phase_name: str, request: dict[str, Any]) -> str:
        instruction = self._instructions.get(phase_name, f"Perform the {phase_name} analysis.")
        return (
            f"{instruction}\n\n"
            f"INPUT:\n{json.dumps(request, indent=2, default=str)}"
        )

    async def invoke(
        self,
        phase_name: str,
        request: dict[str, Any],
        output_schema: type[BaseModel] | None = None,
    ) -> str:
        completion = await self._client.complete(CompletionRequest(
            phase=phase_name,
            prompt=self.build_prompt(phase_name, request),
            system=SYSTEM_PROMPT,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            output_schema=output_schema,
        ))
        self.calls += 1
        self.tokens_used += completion.tokens
        return completion.text
