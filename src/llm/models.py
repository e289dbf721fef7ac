# src/llm/models.py — v3
"""Provider-neutral request/reply pair for one phase call."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class CompletionRequest(BaseModel):
    """A rendered phase prompt, ready to send to any provider."""

    phase: str
    prompt: str
    system: str | None = None
    max_tokens: int = Field(default=4096, ge=1)
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    output_schema: type[BaseModel] | None = None

    @property
    def schema_name(self) -> str | None:
        return self.output_schema.__name__ if self.output_schema else None

    def json_schema(self) -> dict[str, Any] | None:
        return self.output_schema.model_json_schema() if self.output_schema else None


class Completion(BaseModel):
    """Raw provider text plus usage accounting for one phase call."""

    phase: str
    text: str
    provider: str
    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    elapsed_ms: int = 0

    @property
    def tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens
