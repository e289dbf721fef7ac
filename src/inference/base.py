# src/inference/base.py — v1
"""Inference capability consumed by pipeline phases.

The orchestration layer treats inference as opaque: a phase hands over a
scrubbed request payload and receives a response that it then validates
against its own output schema. Responses may be a dict, a pydantic model
or a JSON string.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

from pydantic import BaseModel


class InferenceCapability(ABC):
    """Unified interface for inference backends."""

    @abstractmethod
    async def invoke(
        self,
        phase_name: str,
        request: dict[str, Any],
        output_schema: type[BaseModel] | None = None,
    ) -> Any:
        """Run inference for one phase request.

        Args:
            phase_name: Name of the requesting phase (routing / prompt key).
            request: Scrubbed, JSON-compatible request payload.
            output_schema: Expected response shape, if the backend can
                constrain its output.

        Returns:
            Raw response (dict, BaseModel or JSON string).
        """


InferFn = Callable[[str, dict[str, Any]], "Awaitable[Any] | Any"]


class CallableInference(InferenceCapability):
    """Adapt a plain (sync or async) function into an InferenceCapability.

    The function receives ``(phase_name, request)``.
    """

    def __init__(self, fn: InferFn) -> None:
        self._fn = fn

    async def invoke(
        self,
        phase_name: str,
        request: dict[str, Any],
        output_schema: type[BaseModel] | None = None,
    ) -> Any:
        result = self._fn(phase_name, request)
        if inspect.isawaitable(result):
            result = await result
        return result
