# src/llm/client_factory.py — v4
"""Build the configured LLM client.

Adapter modules are imported only when selected, so an install with a
single provider extra never touches the other SDK.
"""

from __future__ import annotations

import importlib
import logging

from signalcx.config.settings import Settings
from signalcx.llm.base_client import BaseLLMClient
from signalcx.pipeline.errors import ConfigurationError

logger = logging.getLogger(__name__)

# provider -> (adapter module, adapter class, Settings field holding the key)
_ADAPTERS: dict[str, tuple[str, str, str]] = {
    "anthropic": ("signalcx.llm.adapters.anthropic_adapter", "AnthropicAdapter", "anthropic_api_key"),
    "openai": ("signalcx.llm.adapters.openai_adapter", "OpenAIAdapter", "openai_api_key"),
}


class UnsupportedProviderError(ConfigurationError):
    """LLM_PROVIDER names no known adapter."""


def create_llm_client(
    settings: Settings | None = None,
    *,
    provider: str | None = None,
    model: str | None = None,
    api_key: str | None = None,
) -> BaseLLMClient:
    """Client for ``settings.llm_provider``/``llm_model``.

    Keyword arguments override the corresponding settings; the API key
    otherwise comes from the provider's own settings field.

    Raises:
        UnsupportedProviderError: If the provider has no adapter.
    """
    settings = settings or Settings()
    provider = provider or settings.llm_provider
    if provider not in _ADAPTERS:
        raise UnsupportedProviderError(
            f"Unsupported LLM provider: {provider!r}. "
            f"Available: {', '.join(sorted(_ADAPTERS))}"
        )

    module_path, class_name, key_field = _ADAPTERS[provider]
    adapter_cls = getattr(importlib.import_module(module_path), class_name)
    model = model or settings.llm_model
    logger.debug("Creating LLM client: provider=%s, model=%s", provider, model)
    return adapter_cls(model=model, api_key=api_key or getattr(settings, key_field))
