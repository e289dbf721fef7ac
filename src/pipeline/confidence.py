# src/pipeline/confidence.py — v1
"""Confidence tiers and the re-run gate for per-entity results."""

from __future__ import annotations

from typing import Any, Literal

ConfidenceLevel = Literal["high", "medium", "low", "critical"]

CONFIDENCE_THRESHOLDS: dict[str, float] = {
    "high": 0.8,
    "medium": 0.6,
    "low": 0.4,
    "critical": 0.3,
}

RERUN_THRESHOLD = CONFIDENCE_THRESHOLDS["medium"]


def should_rerun(confidence: float) -> bool:
    """True when a result is too uncertain to keep (strictly below medium)."""
    return confidence < RERUN_THRESHOLD


def confidence_level(confidence: float) -> ConfidenceLevel:
    """Map a confidence score to its tier label.

    Scores below the ``low`` threshold are ``critical``.
    """
    if confidence >= CONFIDENCE_THRESHOLDS["high"]:
        return "high"
    if confidence >= CONFIDENCE_THRESHOLDS["medium"]:
        return "medium"
    if confidence >= CONFIDENCE_THRESHOLDS["low"]:
        return "low"
    return "critical"


def extract_confidence(result: Any) -> float | None:
    """Read the overall confidence of a phase or per-entity result.

    Phase outputs carry ``confidence_score``, per-entity results carry
    ``confidence``; plain dicts are accepted too.
    """
    for attr in ("confidence_score", "confidence"):
        if isinstance(result, dict):
            value = result.get(attr)
        else:
            value = getattr(result, attr, None)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    return None
