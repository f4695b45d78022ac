"""
Tests for the stage-tagged error taxonomy and failure classification.
"""

import pytest

from meeting_intel.errors import (
    RATE_LIMIT_SUGGESTIONS,
    APIKeyMissingError,
    ErrorContext,
    MeetingPipelineError,
    MeetingTimeoutError,
    ModelCompatibilityError,
    PipelineStage,
    TranscriptError,
    format_error,
    with_chunk_context,
    wrap_error,
)


class AbortError(Exception):
    """Stand-in for a cancelled request reported by an HTTP client."""


class TestErrorVariants:
    """Named error constructors."""

    def test_model_compatibility_error(self):
        error = ModelCompatibilityError("o1-mini", "openai", "does not support 'max_tokens' parameter")
        assert error.stage == PipelineStage.EXTRACTION
        assert error.message == "Model 'o1-mini' (openai): does not support 'max_tokens' parameter"
        assert "--model openai:gpt-4o" in error.suggestions
        assert "--preset fast" in error.suggestions
        assert any("MEETING_INTEL_AI_MODEL" in s for s in error.suggestions)
        assert error.kind == "model_compatibility"

    def test_api_key_missing_error(self):
        error = APIKeyMissingError("anthropic", PipelineStage.REFINEMENT)
        assert error.message == "Anthropic API key not configured"
        assert error.stage_number == 3
        assert any("MEETING_INTEL_ANTHROPIC_API_KEY" in s for s in error.suggestions)
        assert any(".env" in s for s in error.suggestions)

    def test_api_key_missing_defaults_to_extraction(self):
        error = APIKeyMissingError("openai")
        assert error.stage == PipelineStage.EXTRACTION
        assert error.message == "OpenAI API key not configured"

    @pytest.mark.parametrize(
        "timeout_ms,seconds",
        [(180_000, 180), (120_000, 120), (1_500, 2), (1_000, 1)],
    )
    def test_timeout_message_rounds_seconds(self, timeout_ms, seconds):
        error = MeetingTimeoutError(PipelineStage.REFINEMENT, timeout_ms)
        assert error.message == f"Request timed out after {seconds}s"
        assert error.timeout_ms == timeout_ms

    def test_transcript_error_is_chunking_stage(self):
        error = TranscriptError("Transcript is empty")
        assert error.stage == PipelineStage.CHUNKING
        assert error.stage_number == 1
        assert len(error.suggestions) == 3

    def test_stage_accepts_string(self):
        error = MeetingPipelineError("boom", "generation")
        assert error.stage is PipelineStage.GENERATION
        assert error.stage_name == "Generation"

    def test_unknown_stage_rejected(self):
        with pytest.raises(ValueError):
            MeetingPipelineError("boom", "publishing")


class TestFormatting:
    """User-facing rendering."""

    def test_formatted_message_with_chunk_context(self):
        error = MeetingTimeoutError("extraction", 120_000, chunk_index=3, total_chunks=7)
        formatted = error.get_formatted_message()

        assert formatted.startswith("Extraction failed (Stage 2/5, chunk 3/7)")
        assert "Error: Request timed out after 120s" in formatted
        assert "Try one of these:" in formatted
        assert "  --preset fast (uses a faster model)" in formatted

    def test_formatted_message_without_context_or_suggestions(self):
        formatted = MeetingPipelineError("boom", PipelineStage.EDITING).get_formatted_message()
        assert formatted == "Editing failed (Stage 5/5)\n\nError: boom"

    def test_format_error_for_foreign_exceptions(self):
        assert format_error(ValueError("bad input")) == "Error processing meeting: bad input"

    def test_format_error_for_pipeline_errors(self):
        error = TranscriptError("Transcript is empty")
        assert format_error(error) == error.get_formatted_message()


class TestWrapError:
    """Classification of arbitrary failures."""

    def test_pipeline_errors_pass_through(self):
        error = TranscriptError("Transcript is empty")
        assert wrap_error(error, PipelineStage.REFINEMENT) is error

    def test_max_tokens_becomes_model_compatibility(self):
        context = ErrorContext(model="o1", provider="openai")
        error = wrap_error(
            Exception("Unsupported parameter: 'max_tokens'"), PipelineStage.EXTRACTION, context
        )
        assert isinstance(error, ModelCompatibilityError)
        assert error.message == "Model 'o1' (openai): does not support 'max_tokens' parameter"

    def test_max_completion_tokens_without_context(self):
        error = wrap_error(Exception("use max_completion_tokens instead"), "refinement")
        assert isinstance(error, ModelCompatibilityError)
        assert error.message.startswith("Model 'unknown' (unknown)")

    @pytest.mark.parametrize("message", ["Invalid API key", "401 Unauthorized", "status 401"])
    def test_credential_failures(self, message):
        error = wrap_error(
            Exception(message), PipelineStage.REFINEMENT, ErrorContext(provider="anthropic")
        )
        assert isinstance(error, APIKeyMissingError)
        assert error.stage == PipelineStage.REFINEMENT
        assert error.message == "Anthropic API key not configured"
        assert str(error.cause) == message

    def test_abort_error_becomes_timeout_with_chunk_context(self):
        error = wrap_error(
            AbortError("The operation was aborted"),
            PipelineStage.EXTRACTION,
            ErrorContext(chunk_index=2, total_chunks=5),
        )
        assert isinstance(error, MeetingTimeoutError)
        assert error.context.chunk_index == 2
        assert error.context.total_chunks == 5

    def test_builtin_timeout_error_becomes_timeout(self):
        error = wrap_error(TimeoutError(), PipelineStage.GENERATION)
        assert isinstance(error, MeetingTimeoutError)
        assert error.stage == PipelineStage.GENERATION

    def test_timeout_message_becomes_timeout(self):
        error = wrap_error(Exception("Request timeout"), PipelineStage.REFINEMENT)
        assert isinstance(error, MeetingTimeoutError)

    def test_generic_error_keeps_cause_and_context(self):
        original = RuntimeError("schema mismatch")
        context = ErrorContext(model="gpt-4o", provider="openai")
        error = wrap_error(original, PipelineStage.REFINEMENT, context)

        assert type(error) is MeetingPipelineError
        assert error.message == "schema mismatch"
        assert error.cause is original
        assert error.__cause__ is original
        assert error.context == context
        assert error.suggestions == []

    def test_rate_limit_suggestions_on_generic_error(self):
        error = wrap_error(Exception("429 Too Many Requests"), PipelineStage.EXTRACTION)
        assert error.suggestions == RATE_LIMIT_SUGGESTIONS

    def test_rate_limit_suggestions_appended_to_timeout(self):
        error = wrap_error(Exception("Rate limit hit, request timed out"), PipelineStage.EXTRACTION)
        assert isinstance(error, MeetingTimeoutError)
        assert error.suggestions[-2:] == RATE_LIMIT_SUGGESTIONS
        assert len(error.suggestions) == 5

    def test_rate_limit_suggestions_do_not_leak_between_errors(self):
        first = wrap_error(Exception("429"), "extraction")
        second = wrap_error(Exception("429"), "extraction")
        assert first.suggestions == second.suggestions == RATE_LIMIT_SUGGESTIONS

    @pytest.mark.parametrize(
        "value,message",
        [(None, "None"), ("", "Unknown error"), ("plain string", "plain string"), (42, "42")],
    )
    def test_non_exception_values_are_stringified(self, value, message):
        error = wrap_error(value, PipelineStage.GENERATION)
        assert isinstance(error, MeetingPipelineError)
        assert error.message == message

    def test_empty_exception_message(self):
        assert wrap_error(Exception(), PipelineStage.EDITING).message == "Unknown error"


class TestChunkContext:
    """Attaching chunk position after the fact."""

    def test_with_chunk_context_fills_missing_position(self):
        error = wrap_error(Exception("boom"), PipelineStage.EXTRACTION)
        with_chunk_context(error, 4, 9)
        assert error.context.chunk_index == 4
        assert error.context.total_chunks == 9

    def test_with_chunk_context_keeps_existing_position(self):
        error = MeetingTimeoutError("extraction", 1000, chunk_index=1, total_chunks=2)
        with_chunk_context(error, 4, 9)
        assert error.context.chunk_index == 1
