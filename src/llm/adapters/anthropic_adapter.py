# src/llm/adapters/anthropic_adapter.py — v4
"""Anthropic Messages API adapter.

When the phase has an output contract, the reply is forced through a
single tool whose input schema is that contract, and the tool input is
returned as JSON text.
"""

from __future__ import annotations

import json
from typing import Any

from signalcx.llm.base_client import BaseLLMClient
from signalcx.llm.models import CompletionRequest

_TOOL_NAME = "phase_output"


class AnthropicAdapter(BaseLLMClient):
    provider = "anthropic"

    def __init__(self, model: str = "claude-sonnet-4-20250514", api_key: str | None = None) -> None:
        super().__init__(model, api_key)
        self._sdk: Any = None

    def _get_sdk(self) -> Any:
        if self._sdk is None:
            try:
                import anthropic
            except ImportError as e:
                raise ImportError(
                    "anthropic package required: pip install 'signalcx-orchestration[anthropic]'"
                ) from e
            self._sdk = anthropic.AsyncAnthropic(api_key=self._api_key or "")
        return self._sdk

    def _build_kwargs(self, request: CompletionRequest) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
            "messages": [{"role": "user", "content": request.prompt}],
        }
        if request.system:
            kwargs["system"] = request.system
        schema = request.json_schema()
        if schema is not None:
            kwargs["tools"] = [{
                "name": _TOOL_NAME,
                "description": f"Report the {request.phase} result as {request.schema_name}",
                "input_schema": schema,
            }]
            kwargs["tool_choice"] = {"type": "tool", "name": _TOOL_NAME}
        return kwargs

    async def _send(self, request: CompletionRequest) -> tuple[str, int, int]:
        message = await self._get_sdk().messages.create(**self._build_kwargs(request))
        forced = request.output_schema is not None
        text = ""
        for block in message.content:
            kind = getattr(block, "type", None)
            if forced and kind == "tool_use":
                text = json.dumps(block.input)
                break
            if kind == "text" and not text:
                text = block.text
                if not forced:
                    break
        return text, message.usage.input_tokens, message.usage.output_tokens
