# src/pipeline/plugin_kit/models.py — v2
"""Phase plugin models: PhaseMetadata, PhaseRun."""

from __future__ import annotations

from pydantic import BaseModel, Field, SerializeAsAny


class PhaseMetadata(BaseModel):
    """Metadata about a phase execution, attached to every PhaseRun."""

    phase_name: str
    phase_version: str
    execution_time_ms: int
    inference_calls: int
    request_hash: str | None = None


class PhaseRun(BaseModel):
    """Validated phase output plus execution metadata."""

    output: SerializeAsAny[BaseModel]
    confidence: float
    metadata: PhaseMetadata
    warnings: list[str] = Field(default_factory=list)
