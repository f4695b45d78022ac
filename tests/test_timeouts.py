"""
Tests for timeout parsing and per-call model settings.
"""

import math

from pydantic_ai.models.anthropic import AnthropicModel
from pydantic_ai.models.openai import OpenAIResponsesModel
from pydantic_ai.models.test import TestModel
import pytest

from meeting_intel.config import ResolvedModel
from meeting_intel.errors import PipelineStage
from meeting_intel.intelligence.agents.extraction import extraction_agent
from meeting_intel.intelligence.models import ChunkExtraction
from meeting_intel.utils.model_settings import build_model, build_model_settings, is_reasoning_model
from meeting_intel.utils.timeouts import MIN_TIMEOUT_MS, parse_timeout_ms, run_agent_with_timeout


class TestParseTimeout:
    """Configured timeout validation."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, 180_000),
            (5_000, 5_000),
            ("2500", 2_500),
            (MIN_TIMEOUT_MS, MIN_TIMEOUT_MS),
            (999, 180_000),
            (0, 180_000),
            (-10, 180_000),
            (math.inf, 180_000),
            (math.nan, 180_000),
            ("soon", 180_000),
        ],
    )
    def test_parse_timeout_ms(self, value, expected):
        assert parse_timeout_ms(value, 180_000) == expected


class TestModelSettings:
    """Per-call settings gated by model capability."""

    def test_reasoning_model_detection(self):
        assert is_reasoning_model("o3-mini")
        assert is_reasoning_model(" O1 ")
        assert not is_reasoning_model("gpt-4o")
        assert not is_reasoning_model(None)

    def test_openai_chat_model_settings(self):
        resolved = ResolvedModel(provider="openai", model="gpt-4o", api_key="k")
        model_settings = build_model_settings(
            resolved, temperature=0.1, max_tokens=4000, reasoning_effort="low"
        )
        assert model_settings["temperature"] == 0.1
        assert model_settings["max_tokens"] == 4000
        assert "openai_reasoning_effort" not in model_settings

    def test_reasoning_model_drops_temperature(self):
        resolved = ResolvedModel(provider="openai", model="o3-mini", api_key="k")
        model_settings = build_model_settings(
            resolved, temperature=0.1, max_tokens=4000, reasoning_effort="low"
        )
        assert "temperature" not in model_settings
        assert model_settings["openai_reasoning_effort"] == "low"

    def test_anthropic_model_settings(self):
        resolved = ResolvedModel(provider="anthropic", model="claude-3-haiku", api_key="k")
        model_settings = build_model_settings(resolved, temperature=0.2, max_tokens=8000)
        assert model_settings == {"max_tokens": 8000, "temperature": 0.2}

    def test_build_model_per_provider(self):
        openai_model = build_model(ResolvedModel(provider="openai", model="gpt-4o", api_key="k"))
        anthropic_model = build_model(
            ResolvedModel(provider="anthropic", model="claude-3-haiku", api_key="k")
        )
        assert isinstance(openai_model, OpenAIResponsesModel)
        assert openai_model.model_name == "gpt-4o"
        assert isinstance(anthropic_model, AnthropicModel)
        assert anthropic_model.model_name == "claude-3-haiku"


class TestTimedModelCall:
    """Successful calls hand back the validated output."""

    @pytest.mark.asyncio
    async def test_returns_output(self, resolved_model, extraction_args):
        model_settings = build_model_settings(resolved_model, temperature=0.1, max_tokens=1000)

        with extraction_agent.override(model=TestModel(custom_output_args=extraction_args)):
            output = await run_agent_with_timeout(
                extraction_agent,
                "Alice: we will ship on Friday.",
                resolved=resolved_model,
                stage=PipelineStage.EXTRACTION,
                timeout_ms=5_000,
                model_settings=model_settings,
            )

        assert isinstance(output, ChunkExtraction)
        assert output == ChunkExtraction.model_validate(extraction_args)
