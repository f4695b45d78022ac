"""Final polish pass over generated notes and PRD."""

from __future__ import annotations

import time

import structlog

from meeting_intel.config import ResolvedModel, Settings, resolve_model, settings
from meeting_intel.errors import ErrorContext, MeetingPipelineError, PipelineStage, wrap_error
from meeting_intel.intelligence.agents.editing import editing_agent
from meeting_intel.intelligence.generation.markdown import render_json, render_markdown
from meeting_intel.intelligence.models import (
    EditingPayload,
    EditorResult,
    FinalOutput,
    MeetingResources,
)
from meeting_intel.utils.model_settings import build_model_settings
from meeting_intel.utils.timeouts import (
    DEFAULT_EDITING_TIMEOUT_MS,
    parse_timeout_ms,
    run_agent_with_timeout,
)

logger = structlog.get_logger(__name__)

EDITING_TEMPERATURE = 0.1


def to_final_output(resources: MeetingResources) -> FinalOutput:
    return FinalOutput(
        notes=resources.notes,
        prd=resources.prd,
        markdown=render_markdown(resources),
        json_output=render_json(resources),
    )


class MeetingEditor:
    """Checks consistency between notes and PRD and tightens wording."""

    def __init__(
        self,
        resolved: ResolvedModel | None = None,
        *,
        max_tokens: int | None = None,
        timeout_ms: float | None = None,
        config: Settings | None = None,
    ) -> None:
        config = config or settings
        self._resolved = resolved or resolve_model(config=config, stage=PipelineStage.EDITING)
        self._agent = editing_agent
        self._max_tokens = max_tokens or config.editing_max_tokens
        self._timeout_ms = parse_timeout_ms(
            timeout_ms if timeout_ms is not None else config.ai_request_timeout_ms,
            DEFAULT_EDITING_TIMEOUT_MS,
        )

    async def edit(self, resources: MeetingResources) -> EditorResult:
        start_time = time.time()
        context = ErrorContext(model=self._resolved.model, provider=self._resolved.provider)

        logger.info(
            "Running editing agent",
            model=self._resolved.label,
            has_prd=resources.prd is not None,
        )
        try:
            payload: EditingPayload = await run_agent_with_timeout(
                self._agent,
                self.build_prompt(resources),
                resolved=self._resolved,
                stage=PipelineStage.EDITING,
                timeout_ms=self._timeout_ms,
                model_settings=build_model_settings(
                    self._resolved,
                    temperature=EDITING_TEMPERATURE,
                    max_tokens=self._max_tokens,
                ),
                context=context,
            )
        except MeetingPipelineError:
            raise
        except Exception as e:
            raise wrap_error(e, PipelineStage.EDITING, context) from e

        # The editor may only polish a PRD that exists
        edited = MeetingResources(
            notes=payload.notes,
            prd=payload.prd if resources.prd is not None else None,
        )
        processing_time_ms = int((time.time() - start_time) * 1000)

        logger.info(
            "Editing completed",
            changes_applied=len(payload.changes_applied),
            processing_time_ms=processing_time_ms,
        )
        for change in payload.changes_applied:
            logger.debug("Editor change", change=change)

        return EditorResult(
            output=to_final_output(edited),
            processing_time_ms=processing_time_ms,
            changes_applied=list(payload.changes_applied),
        )

    @staticmethod
    def build_prompt(resources: MeetingResources) -> str:
        parts: list[str] = [
            "MEETING NOTES TO EDIT:\n",
            "```json",
            resources.notes.model_dump_json(indent=2),
            "```\n",
        ]
        if resources.prd:
            parts.extend(
                [
                    "PRD DOCUMENT TO EDIT:\n",
                    "```json",
                    resources.prd.model_dump_json(indent=2),
                    "```\n",
                ]
            )
        parts.append("---")
        parts.append(
            "Please review and polish the above documents for consistency, clarity, and "
            "actionability. Ensure alignment between the meeting notes and PRD (if present). "
            "Track all changes you make."
        )
        return "\n".join(parts)
