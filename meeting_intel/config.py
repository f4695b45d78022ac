"""Settings, model presets and logging for the meeting pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from meeting_intel.errors import APIKeyMissingError, PipelineStage

load_dotenv()

AIProvider = Literal["openai", "anthropic"]


@dataclass(frozen=True)
class ModelPreset:
    name: str
    provider: AIProvider
    model: str
    description: str = ""


BUILT_IN_PRESETS: dict[str, ModelPreset] = {
    "fast": ModelPreset("fast", "openai", "gpt-4o-mini", "Quick tasks, lower cost"),
    "quality": ModelPreset(
        "quality", "anthropic", "claude-sonnet-4-20250514", "Best output quality"
    ),
    "balanced": ModelPreset("balanced", "openai", "gpt-4o", "Good balance of speed/quality"),
    "cheap": ModelPreset("cheap", "openai", "gpt-3.5-turbo", "Lowest cost"),
}

DEFAULT_PRESET = "balanced"


class Settings(BaseSettings):
    """Environment-driven settings; every field reads MEETING_INTEL_<NAME>."""

    model_config = SettingsConfigDict(
        env_prefix="MEETING_INTEL_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Model selection
    ai_provider: AIProvider | None = None
    ai_model: str | None = None
    preset: str | None = None

    # Credentials
    openai_api_key: str | None = None
    anthropic_api_key: str | None = None

    # Per-call timeout; stage defaults apply when unset
    ai_request_timeout_ms: float | None = None

    # Chunking
    chunk_size: int = Field(default=4000, gt=0)
    overlap_size: int = Field(default=200, ge=0)

    # Output token limits per stage
    extraction_max_tokens: int = Field(default=4000, gt=0)
    refinement_max_tokens: int = Field(default=8000, gt=0)
    generation_max_tokens: int = Field(default=4000, gt=0)
    editing_max_tokens: int = Field(default=8000, gt=0)

    def api_key_for(self, provider: str) -> str | None:
        if provider == "anthropic":
            return self.anthropic_api_key or None
        return self.openai_api_key or None


settings = Settings()


@dataclass(frozen=True)
class ResolvedModel:
    """Provider, model and credential selected for a run."""

    provider: AIProvider
    model: str
    api_key: str
    source: str = "default"

    @property
    def label(self) -> str:
        return f"{self.provider}:{self.model}"


def parse_model_string(model_string: str) -> tuple[AIProvider, str] | None:
    """Parse ``provider:model``; returns None for anything else."""
    parts = model_string.split(":")
    if len(parts) != 2:
        return None
    provider, model = parts
    if provider not in ("openai", "anthropic") or not model:
        return None
    return provider, model  # type: ignore[return-value]


def resolve_model(
    model: str | None = None,
    preset: str | None = None,
    *,
    config: Settings | None = None,
    stage: PipelineStage | str = PipelineStage.EXTRACTION,
) -> ResolvedModel:
    """
    Pick provider and model, then attach the matching API key.

    Priority:
    1. explicit ``provider:model`` string
    2. explicit preset name
    3. ai_model + ai_provider settings
    4. preset setting (silently ignored when unknown)
    5. the balanced preset
    """
    config = config or settings

    if model:
        parsed = parse_model_string(model)
        if parsed is None:
            raise ValueError(
                f'Invalid model format: "{model}". Use format "provider:model" '
                '(e.g., "anthropic:claude-3-haiku-20240307")'
            )
        provider, model_name = parsed
        source = "explicit-model"
    elif preset:
        found = BUILT_IN_PRESETS.get(preset)
        if found is None:
            available = ", ".join(sorted(BUILT_IN_PRESETS))
            raise ValueError(f'Preset "{preset}" not found. Available presets: {available}')
        provider, model_name, source = found.provider, found.model, "explicit-preset"
    elif config.ai_model and config.ai_provider:
        provider, model_name, source = config.ai_provider, config.ai_model, "env-model"
    elif config.preset and config.preset in BUILT_IN_PRESETS:
        found = BUILT_IN_PRESETS[config.preset]
        provider, model_name, source = found.provider, found.model, "env-preset"
    else:
        found = BUILT_IN_PRESETS[DEFAULT_PRESET]
        provider, model_name, source = found.provider, found.model, "default"

    api_key = config.api_key_for(provider)
    if not api_key:
        raise APIKeyMissingError(provider, stage)

    return ResolvedModel(provider=provider, model=model_name, api_key=api_key, source=source)


def configure_structlog(config: Settings | None = None) -> None:
    """Simple logging setup."""
    import logging
    import sys

    import structlog

    config = config or settings

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        stream=sys.stdout,
        format="%(message)s",
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if config.log_json
        else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.stdlib.add_log_level,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
