# src/llm/base_client.py — v3
"""Abstract LLM client.

Adapters implement ``_send`` only; timing, usage bookkeeping and the
normalized ``Completion`` are built here so every provider reports the
same way.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import ClassVar

from signalcx.llm.models import Completion, CompletionRequest

logger = logging.getLogger(__name__)


class BaseLLMClient(ABC):
    """One provider, one model."""

    provider: ClassVar[str]

    def __init__(self, model: str, api_key: str | None = None) -> None:
        self.model = model
        self._api_key = api_key

    async def complete(self, request: CompletionRequest) -> Completion:
        started = time.monotonic()
        text, prompt_tokens, completion_tokens = await self._send(request)
        completion = Completion(
            phase=request.phase,
            text=text,
            provider=self.provider,
            model=self.model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            elapsed_ms=int((time.monotonic() - started) * 1000),
        )
        logger.debug(
            "%s/%s answered '%s' in %dms (%d tokens)",
            self.provider, self.model, request.phase, completion.elapsed_ms, completion.tokens,
        )
        return completion

    @abstractmethod
    async def _send(self, request: CompletionRequest) -> tuple[str, int, int]:
        """Return (text, prompt_tokens, completion_tokens) for the request."""
