# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for orchestration tuning: cache backend and TTLs,
batch scheduling limits, phase sampling and LLM routing.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from signalcx.pipeline.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === LLM ===
    llm_provider: str = "anthropic"
    llm_model: str = "claude-sonnet-4-20250514"
    llm_temperature: float = 0.2
    llm_max_tokens: int = 4096
    anthropic_api_key: str = ""
    openai_api_key: str = ""

    # === Cache ===
    cache_enabled: bool = True
    cache_backend: Literal["memory", "json", "sqlite", "redis"] = "memory"
    cache_root: Path = Path("~/.signalcx/cache")
    cache_redis_url: str = ""
    cache_namespace: str = "signalcx"
    cache_ttl_seconds: int = 30 * 60
    entity_cache_ttl_seconds: int = 60 * 60

    # === Batch scheduling ===
    batch_size: int = 5
    batch_max_concurrent: int = 3
    batch_delay_seconds: float = 0.1

    # === Phases ===
    discovery_sample_size: int = 500
    discovery_text_limit: int = 500
    entity_recent_ticket_limit: int = 20
    targeted_sample_size: int = 50

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("batch_size", "batch_max_concurrent")
    @classmethod
    def validate_positive(cls, v: int) -> int:  # noqa: N805
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @field_validator("batch_delay_seconds")
    @classmethod
    def validate_delay(cls, v: float) -> float:  # noqa: N805
        if v < 0:
            raise ValueError("batch_delay_seconds must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.cache_backend == "redis" and not self.cache_redis_url:
            errors.append("CACHE_BACKEND=redis requires CACHE_REDIS_URL")

        if self.cache_ttl_seconds <= 0 or self.entity_cache_ttl_seconds <= 0:
            errors.append("Cache TTLs must be > 0")

        if self.discovery_sample_size < 1:
            errors.append("DISCOVERY_SAMPLE_SIZE must be >= 1")

        if self.discovery_text_limit < 1:
            errors.append("DISCOVERY_TEXT_LIMIT must be >= 1")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-session config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
