# src/pipeline/plugin_kit/base_phase.py — v1
"""Standard phase interface for the analysis pipeline.

A phase turns a typed input into a typed output through exactly one
inference call. ``execute`` is the only entry point and always goes
through the same steps:

  1. validate the input against ``input_schema``
  2. short-circuit empty input to ``empty_output`` (no inference)
  3. build the request and scrub every free-text field
  4. invoke inference, wrapping transport errors in InferenceError
  5. parse the response and validate it against ``output_schema``
  6. run the phase's cross-checks between input and output

Any schema or integrity failure raises ContractViolationError.
"""

from __future__ import annotations

import json
import logging
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError

from signalcx.cache.fingerprint import content_digest
from signalcx.pipeline.confidence import extract_confidence
from signalcx.pipeline.errors import ContractViolationError, InferenceError, SignalCXError
from signalcx.pipeline.plugin_kit.models import PhaseMetadata, PhaseRun
from signalcx.privacy.scrubber import Scrubber, scrub_payload, scrub_pii

if TYPE_CHECKING:
    from signalcx.inference.base import InferenceCapability

logger = logging.getLogger(__name__)

_MAX_ERROR_DETAILS = 5


class BasePhase(ABC):
    """Standard interface for all pipeline phases.

    Args:
        scrubber: Text transform applied to every free-text field of the
            inference request.
    """

    def __init__(self, scrubber: Scrubber = scrub_pii) -> None:
        self._scrubber = scrubber

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique phase identifier, also used as the cache kind."""

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of what this phase does."""

    @property
    @abstractmethod
    def input_schema(self) -> type[BaseModel]:
        """Pydantic model the phase input must satisfy."""

    @property
    @abstractmethod
    def output_schema(self) -> type[BaseModel]:
        """Pydantic model the inference response must satisfy."""

    @property
    def dependencies(self) -> list[str]:
        """Names of phases whose output this phase consumes."""
        return []

    # --- Hooks ---

    def is_empty(self, inp: BaseModel) -> bool:
        """True when there is nothing to analyse."""
        return False

    def empty_output(self, inp: BaseModel) -> BaseModel:
        """Explicit empty result returned for empty input."""
        return self.output_schema()

    def build_payload(self, inp: BaseModel) -> dict[str, Any]:
        """Inference request body (before scrubbing)."""
        return inp.model_dump(mode="json")

    def prepare_output(self, inp: BaseModel, data: dict[str, Any]) -> dict[str, Any]:
        """Adjust the parsed response before schema validation."""
        return data

    def check_output(self, inp: BaseModel, output: BaseModel) -> None:
        """Cross-check output against input; raise ContractViolationError."""

    # --- Pipeline ---

    def validate_input(self, inp: Any) -> BaseModel:
        schema = self.input_schema
        if isinstance(inp, schema):
            return inp
        try:
            if isinstance(inp, BaseModel):
                return schema.model_validate(inp.model_dump())
            return schema.model_validate(inp)
        except ValidationError as exc:
            raise ContractViolationError(
                self.name, f"invalid input: {_summarize(exc)}"
            ) from exc

    def _build_request(self, inp: BaseModel) -> dict[str, Any]:
        """Scrubbed request body; the only way requests reach inference."""
        return scrub_payload(self.build_payload(inp), self._scrubber)

    def parse_response(self, raw: Any) -> dict[str, Any]:
        """Normalize a dict, model or (fenced) JSON string into a dict."""
        if isinstance(raw, BaseModel):
            return raw.model_dump()
        if isinstance(raw, dict):
            return raw
        if isinstance(raw, (str, bytes)):
            text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
            text = text.strip()
            if text.startswith("```"):
                lines = text.split("\n")
                lines = [ln for ln in lines if not ln.strip().startswith("```")]
                text = "\n".join(lines)
            try:
                parsed = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ContractViolationError(
                    self.name, f"response is not valid JSON: {exc}"
                ) from exc
            if isinstance(parsed, dict):
                return parsed
            raise ContractViolationError(
                self.name, f"response must be a JSON object, got {type(parsed).__name__}"
            )
        if raw is None:
            raise ContractViolationError(self.name, "inference returned no output")
        raise ContractViolationError(
            self.name, f"unsupported response type {type(raw).__name__}"
        )

    async def execute(self, inp: Any, inference: InferenceCapability) -> BaseModel:
        """Run the phase once and return its validated output."""
        run = await self.run(inp, inference)
        return run.output

    async def run(self, inp: Any, inference: InferenceCapability) -> PhaseRun:
        """Run the phase once and return output plus execution metadata."""
        start_ms = time.monotonic_ns() // 1_000_000
        inp = self.validate_input(inp)

        if self.is_empty(inp):
            logger.info("Phase '%s': empty input, skipping inference", self.name)
            output = self.empty_output(inp)
            return self._wrap(output, start_ms, calls=0, request_hash=None)

        request = self._build_request(inp)
        request_hash = content_digest(request)[:16]
        try:
            raw = await inference.invoke(self.name, request, self.output_schema)
        except SignalCXError:
            raise
        except Exception as exc:
            logger.error("Phase '%s' inference failed: %s", self.name, exc)
            raise InferenceError(self.name, exc) from exc

        data = self.prepare_output(inp, self.parse_response(raw))
        try:
            output = self.output_schema.model_validate(data)
        except ValidationError as exc:
            raise ContractViolationError(self.name, _summarize(exc)) from exc
        self.check_output(inp, output)

        run = self._wrap(output, start_ms, calls=1, request_hash=request_hash)
        logger.info(
            "Phase '%s' completed: confidence=%.2f, time=%dms",
            self.name, run.confidence, run.metadata.execution_time_ms,
        )
        return run

    def _wrap(
        self,
        output: BaseModel,
        start_ms: int,
        calls: int,
        request_hash: str | None,
    ) -> PhaseRun:
        confidence = extract_confidence(output)
        return PhaseRun(
            output=output,
            confidence=0.0 if confidence is None else confidence,
            metadata=PhaseMetadata(
                phase_name=self.name,
                phase_version=self.version,
                execution_time_ms=(time.monotonic_ns() // 1_000_000) - start_ms,
                inference_calls=calls,
                request_hash=request_hash,
            ),
        )


def _summarize(exc: ValidationError) -> str:
    """Compact one-line rendering of a pydantic ValidationError."""
    parts = []
    for err in exc.errors()[:_MAX_ERROR_DETAILS]:
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {err.get('msg', '')}")
    extra = exc.error_count() - _MAX_ERROR_DETAILS
    if extra > 0:
        parts.append(f"(+{extra} more)")
    return "; ".join(parts)
