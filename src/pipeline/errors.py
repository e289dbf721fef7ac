# src/pipeline/errors.py — v1
"""Exception hierarchy for the orchestration layer."""

from __future__ import annotations


class SignalCXError(Exception):
    """Base class for all errors raised by signalcx."""


class ConfigurationError(SignalCXError):
    """Raised when configuration is internally inconsistent."""


class ContractViolationError(SignalCXError):
    """A phase input or output failed its schema or integrity checks."""

    def __init__(self, phase: str, reason: str) -> None:
        self.phase = phase
        self.reason = reason
        super().__init__(f"Contract violation in phase '{phase}': {reason}")


class PhaseInputError(SignalCXError):
    """Upstream pipeline state is missing or inconsistent."""


class InferenceError(SignalCXError):
    """The inference capability failed to produce a response."""

    def __init__(self, phase: str, cause: Exception) -> None:
        self.phase = phase
        self.cause = cause
        super().__init__(f"Inference failed in phase '{phase}': {cause}")
