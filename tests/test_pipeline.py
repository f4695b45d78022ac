"""
End-to-end pipeline tests with every agent mocked.
"""

from contextlib import ExitStack

from pydantic_ai.messages import ModelResponse, ToolCallPart
from pydantic_ai.models.function import AgentInfo, FunctionModel
from pydantic_ai.models.test import TestModel
import pytest

from meeting_intel.config import Settings
from meeting_intel.errors import MeetingPipelineError, PipelineStage, TranscriptError
from meeting_intel.intelligence.agents import (
    editing_agent,
    extraction_agent,
    prd_agent,
    refinement_agent,
)
from meeting_intel.intelligence.processor import MeetingProcessor


@pytest.fixture
def config() -> Settings:
    return Settings(chunk_size=120, overlap_size=20, ai_request_timeout_ms=None, _env_file=None)


@pytest.fixture
def mocked_agents(extraction_args, refined_args, prd_args):
    with ExitStack() as stack:
        stack.enter_context(
            extraction_agent.override(model=TestModel(custom_output_args=extraction_args))
        )
        stack.enter_context(
            refinement_agent.override(model=TestModel(custom_output_args=refined_args))
        )
        stack.enter_context(prd_agent.override(model=TestModel(custom_output_args=prd_args)))
        yield stack


class TestMeetingProcessor:
    """Stage wiring, stats and error tagging."""

    @pytest.mark.asyncio
    async def test_process_runs_all_stages(
        self, resolved_model, config, sample_transcript, mocked_agents
    ):
        progress: list[tuple[float, str]] = []
        processor = MeetingProcessor(resolved_model, config=config)

        result = await processor.process(
            sample_transcript, progress_callback=lambda p, m: progress.append((p, m))
        )

        stats = result.stats
        assert stats.total_chunks > 1
        assert stats.refinement_passes == 1
        assert stats.decisions_found == 1
        assert stats.action_items_found == 1
        assert stats.deliverables_found == 1
        assert stats.prd_generated is True
        assert stats.changes_applied == 0

        assert result.metadata.title == "Mobile Checkout Sync"
        assert result.output.notes.date == "March 5, 2025"
        assert result.output.notes.attendees == ["Alice", "Bob", "Carol"]
        assert result.output.notes.decisions[0].id == "D1"
        assert "# Product Requirements: One-page checkout" in result.output.markdown
        assert '"feature_name": "One-page checkout"' in result.output.json_output

        fractions = [p for p, _ in progress]
        assert fractions == sorted(fractions)
        assert progress[-1] == (1.0, "Processing complete")

    @pytest.mark.asyncio
    async def test_process_without_prd(
        self, resolved_model, config, sample_transcript, mocked_agents
    ):
        result = await MeetingProcessor(resolved_model, config=config).process(
            sample_transcript, generate_prd=False
        )
        assert result.stats.prd_generated is False
        assert result.output.prd is None

    @pytest.mark.asyncio
    async def test_process_concurrently_with_async_progress(
        self, resolved_model, config, sample_transcript, mocked_agents
    ):
        messages: list[str] = []

        async def on_progress(progress: float, message: str) -> None:
            messages.append(message)

        processor = MeetingProcessor(resolved_model, config=config, max_concurrency=3)
        result = await processor.process(sample_transcript, progress_callback=on_progress)

        assert result.stats.total_chunks > 1
        assert messages[-1] == "Processing complete"

    @pytest.mark.asyncio
    async def test_process_with_editing(
        self, resolved_model, config, sample_transcript, mocked_agents
    ):
        captured: dict = {}

        def edit(messages, info: AgentInfo):
            notes = captured["notes"]
            payload = {"notes": notes, "prd": None, "changes_applied": ["Normalized names"]}
            return ModelResponse(parts=[ToolCallPart(info.output_tools[0].name, payload)])

        processor = MeetingProcessor(resolved_model, config=config)
        baseline = await processor.process(sample_transcript, generate_prd=False)
        captured["notes"] = baseline.output.notes.model_dump(mode="json")

        with editing_agent.override(model=FunctionModel(edit)):
            result = await processor.process(sample_transcript, generate_prd=False, edit=True)

        assert result.stats.changes_applied == 1
        assert result.output.notes == baseline.output.notes

    @pytest.mark.asyncio
    async def test_invalid_transcript_fails_in_chunking(self, resolved_model, config):
        with pytest.raises(TranscriptError) as exc_info:
            await MeetingProcessor(resolved_model, config=config).process("Alice: hi")
        assert exc_info.value.stage == PipelineStage.CHUNKING

    @pytest.mark.asyncio
    async def test_extraction_failure_is_tagged(
        self, resolved_model, config, sample_transcript
    ):
        def broken(messages, info: AgentInfo) -> ModelResponse:
            raise RuntimeError("connection reset")

        with extraction_agent.override(model=FunctionModel(broken)):
            with pytest.raises(MeetingPipelineError) as exc_info:
                await MeetingProcessor(resolved_model, config=config).process(sample_transcript)

        error = exc_info.value
        assert error.stage == PipelineStage.EXTRACTION
        assert error.context.chunk_index == 1
        assert error.get_formatted_message().startswith("Extraction failed (Stage 2/5, chunk 1/")
