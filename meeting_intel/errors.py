"""Stage-tagged error taxonomy for the meeting intelligence pipeline."""

from __future__ import annotations

import builtins
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, ClassVar


class PipelineStage(str, Enum):
    """Ordered stages of a pipeline run."""

    CHUNKING = "chunking"
    EXTRACTION = "extraction"
    REFINEMENT = "refinement"
    GENERATION = "generation"
    EDITING = "editing"


STAGE_NUMBERS: dict[PipelineStage, int] = {
    PipelineStage.CHUNKING: 1,
    PipelineStage.EXTRACTION: 2,
    PipelineStage.REFINEMENT: 3,
    PipelineStage.GENERATION: 4,
    PipelineStage.EDITING: 5,
}

TOTAL_STAGES = 5

DEFAULT_WRAPPED_TIMEOUT_MS = 120_000

RATE_LIMIT_SUGGESTIONS = [
    "Wait a few minutes and try again",
    "--preset cheap (uses a lower-tier model)",
]


@dataclass(frozen=True)
class ErrorContext:
    """Whatever is known about the call that failed."""

    chunk_index: int | None = None  # 1-based, for display
    total_chunks: int | None = None
    model: str | None = None
    provider: str | None = None


class MeetingPipelineError(Exception):
    """Base error carrying stage, context and actionable suggestions."""

    kind: ClassVar[str] = "pipeline"

    def __init__(
        self,
        message: str,
        stage: PipelineStage | str,
        *,
        cause: BaseException | None = None,
        suggestions: list[str] | None = None,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.stage = PipelineStage(stage)
        self.stage_number = STAGE_NUMBERS[self.stage]
        self.cause = cause
        self.suggestions = list(suggestions or [])
        self.context = context or ErrorContext()
        if cause is not None:
            self.__cause__ = cause

    @property
    def stage_name(self) -> str:
        return self.stage.value.capitalize()

    def get_formatted_message(self) -> str:
        """Render the stage position, message and suggestions for display."""
        if self.context.chunk_index is not None:
            total = self.context.total_chunks if self.context.total_chunks is not None else "?"
            stage_info = (
                f"Stage {self.stage_number}/{TOTAL_STAGES}, "
                f"chunk {self.context.chunk_index}/{total}"
            )
        else:
            stage_info = f"Stage {self.stage_number}/{TOTAL_STAGES}"

        lines = [f"{self.stage_name} failed ({stage_info})", "", f"Error: {self.message}"]
        if self.suggestions:
            lines.append("")
            lines.append("Try one of these:")
            lines.extend(f"  {suggestion}" for suggestion in self.suggestions)
        return "\n".join(lines)


class ModelCompatibilityError(MeetingPipelineError):
    """The selected model rejected a request parameter."""

    kind: ClassVar[str] = "model_compatibility"

    def __init__(
        self,
        model: str,
        provider: str,
        issue: str,
        *,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            f"Model '{model}' ({provider}): {issue}",
            PipelineStage.EXTRACTION,
            cause=cause,
            suggestions=[
                "--model openai:gpt-4o",
                "--preset fast",
                "Set MEETING_INTEL_AI_MODEL=gpt-4o and MEETING_INTEL_AI_PROVIDER=openai",
            ],
            context=ErrorContext(model=model, provider=provider),
        )


class APIKeyMissingError(MeetingPipelineError):
    """No credential is configured for the active provider."""

    kind: ClassVar[str] = "api_key_missing"

    def __init__(
        self,
        provider: str,
        stage: PipelineStage | str = PipelineStage.EXTRACTION,
    ) -> None:
        is_anthropic = provider == "anthropic"
        env_var = (
            "MEETING_INTEL_ANTHROPIC_API_KEY" if is_anthropic else "MEETING_INTEL_OPENAI_API_KEY"
        )
        super().__init__(
            f"{'Anthropic' if is_anthropic else 'OpenAI'} API key not configured",
            stage,
            suggestions=[
                f"Set {env_var} environment variable",
                f"Add {env_var}=<your-key> to your .env file",
                f"Set MEETING_INTEL_AI_PROVIDER={'openai' if is_anthropic else 'anthropic'} "
                "to use a provider you have a key for",
            ],
            context=ErrorContext(provider=provider),
        )


class MeetingTimeoutError(MeetingPipelineError):
    """A model call exceeded its allotted time."""

    kind: ClassVar[str] = "timeout"

    def __init__(
        self,
        stage: PipelineStage | str,
        timeout_ms: float,
        *,
        chunk_index: int | None = None,
        total_chunks: int | None = None,
        model: str | None = None,
        provider: str | None = None,
    ) -> None:
        self.timeout_ms = timeout_ms
        super().__init__(
            f"Request timed out after {int(timeout_ms / 1000 + 0.5)}s",
            stage,
            suggestions=[
                "--preset fast (uses a faster model)",
                "Split the transcript into smaller files",
                "Set MEETING_INTEL_AI_REQUEST_TIMEOUT_MS to a higher value",
            ],
            context=ErrorContext(
                chunk_index=chunk_index,
                total_chunks=total_chunks,
                model=model,
                provider=provider,
            ),
        )


class TranscriptError(MeetingPipelineError):
    """The input transcript itself is unusable."""

    kind: ClassVar[str] = "transcript"

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(
            message,
            PipelineStage.CHUNKING,
            cause=cause,
            suggestions=[
                "Check the file path is correct",
                "Ensure the file is a text file (not binary)",
                "Verify the file has valid content",
            ],
        )


def _describe(error: Any) -> tuple[BaseException, str]:
    if isinstance(error, BaseException):
        original = error
        message = str(error)
    else:
        message = str(error)
        original = Exception(message)
    return original, message or "Unknown error"


def _is_timeout(error: BaseException, message: str) -> bool:
    if type(error).__name__ == "AbortError" or isinstance(error, builtins.TimeoutError):
        return True
    lowered = message.lower()
    return "timeout" in lowered or "timed out" in lowered or "aborted" in lowered


def wrap_error(
    error: Any,
    stage: PipelineStage | str,
    context: ErrorContext | None = None,
) -> MeetingPipelineError:
    """Classify an arbitrary failure into a stage-tagged pipeline error."""
    if isinstance(error, MeetingPipelineError):
        return error

    context = context or ErrorContext()
    original, message = _describe(error)

    wrapped: MeetingPipelineError
    if "max_tokens" in message or "max_completion_tokens" in message:
        wrapped = ModelCompatibilityError(
            context.model or "unknown",
            context.provider or "unknown",
            "does not support 'max_tokens' parameter",
            cause=original,
        )
    elif "API key" in message or "Unauthorized" in message or "401" in message:
        wrapped = APIKeyMissingError(context.provider or "unknown", stage)
        wrapped.cause = original
        wrapped.__cause__ = original
    elif _is_timeout(original, message):
        wrapped = MeetingTimeoutError(
            stage,
            DEFAULT_WRAPPED_TIMEOUT_MS,
            chunk_index=context.chunk_index,
            total_chunks=context.total_chunks,
            model=context.model,
            provider=context.provider,
        )
        wrapped.cause = original
        wrapped.__cause__ = original
    else:
        wrapped = MeetingPipelineError(message, stage, cause=original, context=context)

    if "429" in message or "rate limit" in message.lower():
        wrapped.suggestions.extend(RATE_LIMIT_SUGGESTIONS)

    return wrapped


def with_chunk_context(
    error: MeetingPipelineError,
    chunk_index: int,
    total_chunks: int,
) -> MeetingPipelineError:
    """Attach chunk position to an error raised without it."""
    if error.context.chunk_index is None:
        error.context = replace(error.context, chunk_index=chunk_index, total_chunks=total_chunks)
    return error


def format_error(error: Any) -> str:
    """Render any error for display."""
    if isinstance(error, MeetingPipelineError):
        return error.get_formatted_message()
    return f"Error processing meeting: {error}"
