# src/pipeline/phases/entity_phase.py — v1
"""Shared base for phases that analyse a single entity (agent)."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from signalcx.pipeline.contracts import EntityInput
from signalcx.pipeline.errors import ContractViolationError, PhaseInputError
from signalcx.pipeline.plugin_kit.base_phase import BasePhase


class EntityPhase(BasePhase):
    """A phase whose input is one entity and its recent tickets.

    Subclasses name the list key a provider may wrap single results in
    (``wrapper_key``); a one-element wrapper is unwrapped before
    validation. The entity identity is always taken from the input.
    """

    wrapper_key: str = ""

    @property
    def input_schema(self) -> type[BaseModel]:
        return EntityInput

    def is_empty(self, inp: EntityInput) -> bool:
        return not inp.tickets

    def empty_output(self, inp: EntityInput) -> BaseModel:
        raise PhaseInputError(
            f"{self.name}: entity '{inp.entity_id}' has no work items"
        )

    def prepare_output(self, inp: EntityInput, data: dict[str, Any]) -> dict[str, Any]:
        wrapped = data.get(self.wrapper_key) if self.wrapper_key else None
        if isinstance(wrapped, list):
            if len(wrapped) != 1 or not isinstance(wrapped[0], dict):
                raise ContractViolationError(
                    self.name,
                    f"expected exactly one result for '{inp.entity_id}', got {len(wrapped)}",
                )
            data = wrapped[0]
        data = dict(data)
        data.setdefault("agent_id", inp.entity_id)
        data.setdefault("agent_name", inp.display_name)
        return data

    def check_output(self, inp: EntityInput, output: BaseModel) -> None:
        if getattr(output, "agent_id", None) != inp.entity_id:
            raise ContractViolationError(
                self.name,
                f"result is for '{getattr(output, 'agent_id', None)}', "
                f"expected '{inp.entity_id}'",
            )
