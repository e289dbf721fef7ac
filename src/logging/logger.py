# src/logging/logger.py — v2
"""Formatters and setup for the ``signalcx`` logger tree."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from signalcx.logging.context import CONTEXT_FIELDS, ContextFilter

ROOT_LOGGER = "signalcx"


def _record_context(record: logging.LogRecord) -> dict[str, str]:
    return {
        name: value for name in CONTEXT_FIELDS
        if (value := getattr(record, name, None)) is not None
    }


class JsonFormatter(logging.Formatter):
    """One JSON object per line; context fields sit at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            **_record_context(record),
        }
        data = getattr(record, "data", None)
        if data:
            entry["data"] = data
        if record.exc_info and record.exc_info[1] is not None:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """``time level logger [phase/entity] run=… - message`` for terminals."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = _record_context(record)
        stamp = datetime.fromtimestamp(record.created, timezone.utc).strftime("%H:%M:%S")
        head = f"{stamp} {record.levelname:<7} {record.name}"
        scope = "/".join(ctx[k] for k in ("phase", "entity") if k in ctx)
        if scope:
            head += f" [{scope}]"
        if "run_id" in ctx:
            head += f" run={ctx['run_id'][:8]}"
        line = f"{head} - {record.getMessage()}"
        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``signalcx`` tree, configured by setup_logging()."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    log_file: str | None = None,
    rotation: str = "10MB",
    retention: int = 30,
) -> logging.Logger:
    """(Re)configure the ``signalcx`` logger.

    Replaces any handlers from an earlier call. Records go to stdout and,
    when ``log_file`` is set, to a size-rotated file; every handler carries
    the context filter so run/phase/entity reach both.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        from signalcx.logging.handlers import create_rotating_handler

        handlers.append(create_rotating_handler(log_file, rotation=rotation, retention=retention))

    formatter = JsonFormatter() if log_format == "json" else TextFormatter()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(ContextFilter())
        root.addHandler(handler)
    return root


def setup_logging_from_settings(settings: Any) -> logging.Logger:
    return setup_logging(
        level=settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
