# src/llm/adapters/openai_adapter.py — v3
"""OpenAI Chat Completions adapter with json_schema response format."""

from __future__ import annotations

from typing import Any

from signalcx.llm.base_client import BaseLLMClient
from signalcx.llm.models import CompletionRequest


class OpenAIAdapter(BaseLLMClient):
    provider = "openai"

    def __init__(self, model: str = "gpt-4o", api_key: str | None = None) -> None:
        super().__init__(model, api_key)
        self._sdk: Any = None

    def _get_sdk(self) -> Any:
        if self._sdk is None:
            try:
                import openai
            except ImportError as e:
                raise ImportError(
                    "openai package required: pip install 'signalcx-orchestration[openai]'"
                ) from e
            self._sdk = openai.AsyncOpenAI(api_key=self._api_key or "")
        return self._sdk

    async def _send(self, request: CompletionRequest) -> tuple[str, int, int]:
        messages = [{"role": "user", "content": request.prompt}]
        if request.system:
            messages.insert(0, {"role": "system", "content": request.system})
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
        }
        schema = request.json_schema()
        if schema is not None:
            kwargs["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": request.schema_name, "schema": schema},
            }

        reply = await self._get_sdk().chat.completions.create(**kwargs)
        usage = reply.usage
        return (
            reply.choices[0].message.content or "",
            usage.prompt_tokens if usage else 0,
            usage.completion_tokens if usage else 0,
        )
