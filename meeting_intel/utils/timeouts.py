"""Per-call timeout handling shared by every model-calling stage."""

from __future__ import annotations

import asyncio
import math
import time
from typing import Any

from pydantic_ai import Agent
from pydantic_ai.settings import ModelSettings
import structlog

from meeting_intel.config import ResolvedModel
from meeting_intel.errors import (
    ErrorContext,
    MeetingPipelineError,
    MeetingTimeoutError,
    PipelineStage,
    wrap_error,
)
from meeting_intel.utils.model_settings import build_model

logger = structlog.get_logger(__name__)

MIN_TIMEOUT_MS = 1_000
DEFAULT_EXTRACTION_TIMEOUT_MS = 120_000
DEFAULT_REFINEMENT_TIMEOUT_MS = 180_000
DEFAULT_GENERATION_TIMEOUT_MS = 180_000
DEFAULT_EDITING_TIMEOUT_MS = 180_000


def parse_timeout_ms(value: Any, default_ms: float) -> float:
    """Return a usable timeout; unset, non-numeric, non-finite or sub-floor values use the default."""
    if value is None:
        return default_ms
    try:
        timeout_ms = float(value)
    except (TypeError, ValueError):
        return default_ms
    if not math.isfinite(timeout_ms) or timeout_ms < MIN_TIMEOUT_MS:
        return default_ms
    return timeout_ms


async def run_agent_with_timeout(
    agent: Agent[Any, Any],
    prompt: str,
    *,
    resolved: ResolvedModel,
    stage: PipelineStage,
    timeout_ms: float,
    model_settings: ModelSettings,
    deps: Any = None,
    context: ErrorContext | None = None,
) -> Any:
    """
    Run one agent call under a deadline and return its validated output.

    Expiry cancels the in-flight call and raises MeetingTimeoutError; any other
    failure is classified with wrap_error for the given stage. Nothing is retried.
    """
    context = context or ErrorContext(model=resolved.model, provider=resolved.provider)
    start_time = time.time()

    try:
        async with asyncio.timeout(timeout_ms / 1000):
            result = await agent.run(
                prompt,
                model=build_model(resolved),
                model_settings=model_settings,
                deps=deps,
            )
    except TimeoutError as e:
        logger.warning(
            "Model call timed out",
            stage=stage.value,
            timeout_ms=timeout_ms,
            model=resolved.label,
            chunk_index=context.chunk_index,
        )
        raise MeetingTimeoutError(
            stage,
            timeout_ms,
            chunk_index=context.chunk_index,
            total_chunks=context.total_chunks,
            model=context.model,
            provider=context.provider,
        ) from e
    except MeetingPipelineError:
        raise
    except Exception as e:
        wrapped = wrap_error(e, stage, context)
        logger.error(
            "Model call failed",
            stage=stage.value,
            model=resolved.label,
            error=str(e),
            error_kind=wrapped.kind,
        )
        raise wrapped from e

    logger.debug(
        "Model call completed",
        stage=stage.value,
        model=resolved.label,
        duration_ms=int((time.time() - start_time) * 1000),
    )
    return result.output
