"""Meeting notes and PRD generation from a refined meeting."""

from __future__ import annotations

import time

import structlog

from meeting_intel.config import ResolvedModel, Settings, resolve_model, settings
from meeting_intel.errors import ErrorContext, MeetingPipelineError, PipelineStage, wrap_error
from meeting_intel.intelligence.agents.prd import prd_agent
from meeting_intel.intelligence.generation.markdown import render_markdown
from meeting_intel.intelligence.models import (
    PRD,
    GeneratorResult,
    MeetingNotes,
    MeetingResources,
    NoteActionItem,
    NoteDecision,
    PRDDocument,
    PRDRequirementItem,
    PRDTimeline,
    RefinedMeeting,
)
from meeting_intel.transcript.models import MeetingMetadata
from meeting_intel.utils.model_settings import build_model_settings
from meeting_intel.utils.timeouts import (
    DEFAULT_GENERATION_TIMEOUT_MS,
    parse_timeout_ms,
    run_agent_with_timeout,
)

logger = structlog.get_logger(__name__)

PRD_TEMPERATURE = 0.2
DEFAULT_TITLE = "Meeting Notes"
MAX_TITLE_DECISION_CHARS = 50


def infer_meeting_title(refined: RefinedMeeting) -> str:
    """First deliverable name, else the first decision (truncated), else a generic title."""
    if refined.deliverables:
        return f"{DEFAULT_TITLE}: {refined.deliverables[0].name}"

    if refined.decisions:
        decision = refined.decisions[0].decision
        if len(decision) > MAX_TITLE_DECISION_CHARS:
            decision = f"{decision[: MAX_TITLE_DECISION_CHARS - 3]}..."
        return f"{DEFAULT_TITLE}: {decision}"

    return DEFAULT_TITLE


class MeetingGenerator:
    """Maps a RefinedMeeting onto notes, an optional PRD and rendered markdown."""

    def __init__(
        self,
        resolved: ResolvedModel | None = None,
        *,
        max_tokens: int | None = None,
        timeout_ms: float | None = None,
        config: Settings | None = None,
    ) -> None:
        config = config or settings
        self._resolved = resolved or resolve_model(config=config, stage=PipelineStage.GENERATION)
        self._agent = prd_agent
        self._max_tokens = max_tokens or config.generation_max_tokens
        self._timeout_ms = parse_timeout_ms(
            timeout_ms if timeout_ms is not None else config.ai_request_timeout_ms,
            DEFAULT_GENERATION_TIMEOUT_MS,
        )

    @property
    def timeout_ms(self) -> float:
        return self._timeout_ms

    async def generate(
        self,
        refined: RefinedMeeting,
        generate_prd: bool | None = None,
        metadata: MeetingMetadata | None = None,
    ) -> GeneratorResult:
        start_time = time.time()
        notes = self.generate_meeting_notes(refined, metadata)

        prd: PRDDocument | None = None
        if generate_prd is not False and refined.deliverables:
            prd = await self.generate_prd(refined)
        else:
            logger.info(
                "Skipping PRD generation",
                requested=generate_prd,
                deliverables=len(refined.deliverables),
            )

        resources = MeetingResources(notes=notes, prd=prd)
        markdown = render_markdown(resources)
        processing_time_ms = int((time.time() - start_time) * 1000)

        logger.info(
            "Generation completed",
            prd_generated=prd is not None,
            markdown_chars=len(markdown),
            processing_time_ms=processing_time_ms,
        )
        return GeneratorResult(
            resources=resources,
            markdown=markdown,
            processing_time_ms=processing_time_ms,
            prd_generated=prd is not None,
        )

    def generate_meeting_notes(
        self,
        refined: RefinedMeeting,
        metadata: MeetingMetadata | None = None,
    ) -> MeetingNotes:
        """Pure 1:1 mapping of the refined record onto meeting notes."""
        return MeetingNotes(
            title=infer_meeting_title(refined),
            date=metadata.date if metadata else None,
            attendees=list(refined.attendees),
            summary=refined.meeting_summary,
            decisions=[
                NoteDecision(
                    id=d.id,
                    title=d.decision,
                    description=d.rationale or d.decision,
                    rationale=d.rationale,
                    participants=[d.made_by] if d.made_by else [],
                    related_action_items=[],
                )
                for d in refined.decisions
            ],
            action_items=[
                NoteActionItem(
                    id=a.id,
                    owner=a.owner or "TBD",
                    task=a.task,
                    due_date=a.deadline,
                    priority=a.priority or "medium",
                    status="open",
                    context=a.quote,
                )
                for a in refined.action_items
            ],
            key_discussion_points=[],
            open_questions=list(refined.open_questions),
        )

    async def generate_prd(self, refined: RefinedMeeting) -> PRDDocument | None:
        """One PRD call for the meeting's deliverables; None without a call when there are none."""
        if not refined.deliverables:
            return None

        context = ErrorContext(model=self._resolved.model, provider=self._resolved.provider)
        logger.info(
            "Running PRD agent",
            model=self._resolved.label,
            deliverables=len(refined.deliverables),
        )
        try:
            prd: PRD = await run_agent_with_timeout(
                self._agent,
                self.build_prd_prompt(refined),
                resolved=self._resolved,
                stage=PipelineStage.GENERATION,
                timeout_ms=self._timeout_ms,
                model_settings=build_model_settings(
                    self._resolved,
                    temperature=PRD_TEMPERATURE,
                    max_tokens=self._max_tokens,
                    reasoning_effort="medium",
                ),
                context=context,
            )
        except MeetingPipelineError:
            raise
        except Exception as e:
            raise wrap_error(e, PipelineStage.GENERATION, context) from e

        logger.info("PRD generated", requirements=len(prd.requirements))
        return self.to_prd_document(prd)

    @staticmethod
    def to_prd_document(prd: PRD) -> PRDDocument:
        return PRDDocument(
            feature_name=prd.feature_name,
            overview=prd.overview,
            requirements=[
                PRDRequirementItem(
                    id=r.id,
                    requirement=r.description,
                    priority=r.priority,
                    status="open",
                )
                for r in prd.requirements
            ],
            timeline=PRDTimeline(target=prd.timeline, milestones=[]) if prd.timeline else None,
            dependencies=list(prd.dependencies),
            open_questions=list(prd.open_questions),
        )

    @staticmethod
    def build_prd_prompt(refined: RefinedMeeting) -> str:
        parts: list[str] = ["DELIVERABLES DISCUSSED IN MEETING:\n"]

        for d in refined.deliverables:
            parts.append(f"## {d.name}")
            parts.append(f"Description: {d.description}")
            if d.timeline:
                parts.append(f"Timeline: {d.timeline}")
            if d.owner:
                parts.append(f"Owner: {d.owner}")
            parts.append(f'Supporting quote: "{d.quote}"')
            parts.append("")

        if refined.decisions:
            parts.append("\nRELATED DECISIONS:")
            for decision in refined.decisions:
                parts.append(f"- {decision.decision}")
                if decision.rationale:
                    parts.append(f"  Rationale: {decision.rationale}")

        if refined.action_items:
            parts.append("\nRELATED ACTION ITEMS:")
            for item in refined.action_items:
                parts.append(f"- {item.task}")
                if item.owner:
                    parts.append(f"  Owner: {item.owner}")
                if item.deadline:
                    parts.append(f"  Deadline: {item.deadline}")

        if refined.open_questions:
            parts.append("\nOPEN QUESTIONS FROM MEETING:")
            parts.extend(f"- {question}" for question in refined.open_questions)

        parts.append("\n---")
        parts.append(
            "Based on the above meeting discussion, create a focused PRD for the main "
            "deliverable(s). If multiple deliverables are related, combine them into a single "
            "coherent PRD. If they're unrelated, focus on the most significant one."
        )
        return "\n".join(parts)
