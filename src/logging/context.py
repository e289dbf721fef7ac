# src/logging/context.py — v2
"""Run, phase and entity fields carried on every signalcx log record.

Bindings live in contextvars, so each asyncio task sees its own values
and concurrent entity batches never cross-label each other's records.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import Iterator

CONTEXT_FIELDS = ("run_id", "phase", "entity")

_vars: dict[str, contextvars.ContextVar[str | None]] = {
    name: contextvars.ContextVar(f"signalcx_{name}", default=None) for name in CONTEXT_FIELDS
}


def current_context() -> dict[str, str]:
    """Bound fields only, in run_id/phase/entity order."""
    return {name: value for name in CONTEXT_FIELDS if (value := _vars[name].get()) is not None}


@contextmanager
def log_context(**fields: str | None) -> Iterator[None]:
    """Bind fields for the block and restore the previous values on exit.

    Passing ``None`` unbinds a field inside the block.
    """
    unknown = set(fields) - set(CONTEXT_FIELDS)
    if unknown:
        raise TypeError(f"Unknown log context field(s): {', '.join(sorted(unknown))}")
    tokens = [(_vars[name], _vars[name].set(value)) for name, value in fields.items()]
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


class ContextFilter(logging.Filter):
    """Copy the bound context onto each record as attributes."""

    def filter(self, record: logging.LogRecord) -> bool:
        for name in CONTEXT_FIELDS:
            if not hasattr(record, name):
                setattr(record, name, _vars[name].get())
        return True
