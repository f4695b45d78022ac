"""Utilities for building provider models and per-call model settings."""

from __future__ import annotations

from typing import Any

from pydantic_ai.models import Model
from pydantic_ai.models.anthropic import AnthropicModel, AnthropicModelSettings
from pydantic_ai.models.openai import OpenAIResponsesModel, OpenAIResponsesModelSettings
from pydantic_ai.providers.anthropic import AnthropicProvider
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.settings import ModelSettings

from meeting_intel.config import ResolvedModel

_REASONING_PREFIXES = ("o1", "o2", "o3", "o4", "o-")


def is_reasoning_model(model_name: str | None) -> bool:
    return bool(model_name) and model_name.strip().lower().startswith(_REASONING_PREFIXES)


def build_model(resolved: ResolvedModel) -> Model:
    """Instantiate the pydantic-ai model for a resolved provider/model pair."""
    if resolved.provider == "anthropic":
        return AnthropicModel(
            resolved.model, provider=AnthropicProvider(api_key=resolved.api_key)
        )
    return OpenAIResponsesModel(
        resolved.model, provider=OpenAIProvider(api_key=resolved.api_key)
    )


def build_model_settings(
    resolved: ResolvedModel,
    *,
    temperature: float,
    max_tokens: int,
    reasoning_effort: str | None = None,
    **overrides: Any,
) -> ModelSettings:
    """Create per-call settings, gating sampling and reasoning kwargs by model capability."""
    kwargs: dict[str, Any] = {"max_tokens": max_tokens, **overrides}

    if resolved.provider == "anthropic":
        kwargs["temperature"] = temperature
        return AnthropicModelSettings(**kwargs)

    # Reasoning models reject temperature but accept an effort hint
    if is_reasoning_model(resolved.model):
        if reasoning_effort:
            kwargs["openai_reasoning_effort"] = reasoning_effort
    else:
        kwargs["temperature"] = temperature
    return OpenAIResponsesModelSettings(**kwargs)
