"""Consolidation of per-chunk extractions into one deduplicated meeting record."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
import time

import structlog

from meeting_intel.config import ResolvedModel, Settings, resolve_model, settings
from meeting_intel.errors import ErrorContext, MeetingPipelineError, PipelineStage, wrap_error
from meeting_intel.intelligence.agents.refinement import RefinementDeps, refinement_agent
from meeting_intel.intelligence.models import ChunkExtraction, RefinedMeeting, RefinementResult
from meeting_intel.utils.model_settings import build_model_settings
from meeting_intel.utils.timeouts import (
    DEFAULT_REFINEMENT_TIMEOUT_MS,
    parse_timeout_ms,
    run_agent_with_timeout,
)

logger = structlog.get_logger(__name__)

REFINEMENT_TEMPERATURE = 0.1
EMPTY_MEETING_SUMMARY = "No content was extracted from the meeting transcript."
NONE_EXTRACTED = "\n(None extracted)\n"


def empty_refined_meeting() -> RefinedMeeting:
    return RefinedMeeting(
        decisions=[],
        action_items=[],
        deliverables=[],
        meeting_summary=EMPTY_MEETING_SUMMARY,
        attendees=[],
        open_questions=[],
    )


def dedupe_case_insensitive(values: Iterable[str]) -> list[str]:
    """Drop blanks and case-insensitive repeats, keeping the first spelling seen."""
    seen: set[str] = set()
    unique: list[str] = []
    for value in values:
        cleaned = " ".join(value.split())
        key = cleaned.casefold()
        if not cleaned or key in seen:
            continue
        seen.add(key)
        unique.append(cleaned)
    return unique


class MeetingRefiner:
    """Merges chunk extractions with one schema-constrained consolidation call."""

    def __init__(
        self,
        resolved: ResolvedModel | None = None,
        *,
        max_tokens: int | None = None,
        timeout_ms: float | None = None,
        config: Settings | None = None,
    ) -> None:
        config = config or settings
        self._resolved = resolved or resolve_model(config=config, stage=PipelineStage.REFINEMENT)
        self._agent = refinement_agent
        self._max_tokens = max_tokens or config.refinement_max_tokens
        self._timeout_ms = parse_timeout_ms(
            timeout_ms if timeout_ms is not None else config.ai_request_timeout_ms,
            DEFAULT_REFINEMENT_TIMEOUT_MS,
        )

    @property
    def timeout_ms(self) -> float:
        return self._timeout_ms

    async def refine(self, extractions: Sequence[ChunkExtraction]) -> RefinementResult:
        """
        Consolidate extractions into a single RefinedMeeting.

        Empty input short-circuits to a placeholder without a model call. Otherwise
        the call either returns a complete record or raises a refinement-stage error.
        """
        start_time = time.time()

        if not extractions:
            logger.info("No extractions to refine, returning empty meeting")
            return RefinementResult(
                refined=empty_refined_meeting(),
                input_extraction_count=0,
                processing_time_ms=int((time.time() - start_time) * 1000),
            )

        context = ErrorContext(model=self._resolved.model, provider=self._resolved.provider)
        logger.info(
            "Running refinement agent",
            model=self._resolved.label,
            extractions=len(extractions),
            input_decisions=sum(len(e.decisions) for e in extractions),
            input_action_items=sum(len(e.action_items) for e in extractions),
            input_deliverables=sum(len(e.deliverables) for e in extractions),
        )

        try:
            raw: RefinedMeeting = await run_agent_with_timeout(
                self._agent,
                self.build_prompt(extractions),
                resolved=self._resolved,
                stage=PipelineStage.REFINEMENT,
                timeout_ms=self._timeout_ms,
                model_settings=build_model_settings(
                    self._resolved,
                    temperature=REFINEMENT_TEMPERATURE,
                    max_tokens=self._max_tokens,
                    reasoning_effort="medium",
                ),
                deps=RefinementDeps(source_quotes=self.collect_quotes(extractions)),
                context=context,
            )
            refined = self.normalize(raw)
        except MeetingPipelineError:
            raise
        except Exception as e:
            raise wrap_error(e, PipelineStage.REFINEMENT, context) from e

        processing_time_ms = int((time.time() - start_time) * 1000)
        logger.info(
            "Refinement completed",
            decisions=len(refined.decisions),
            action_items=len(refined.action_items),
            deliverables=len(refined.deliverables),
            attendees=len(refined.attendees),
            open_questions=len(refined.open_questions),
            processing_time_ms=processing_time_ms,
        )
        return RefinementResult(
            refined=refined,
            input_extraction_count=len(extractions),
            processing_time_ms=processing_time_ms,
        )

    @staticmethod
    def normalize(refined: RefinedMeeting) -> RefinedMeeting:
        """Renumber ids densely in output order and dedupe attendees and open questions."""
        return refined.model_copy(
            update={
                "decisions": [
                    d.model_copy(update={"id": f"D{i}"})
                    for i, d in enumerate(refined.decisions, start=1)
                ],
                "action_items": [
                    a.model_copy(update={"id": f"A{i}"})
                    for i, a in enumerate(refined.action_items, start=1)
                ],
                "deliverables": [
                    d.model_copy(update={"id": f"DEL{i}"})
                    for i, d in enumerate(refined.deliverables, start=1)
                ],
                "attendees": dedupe_case_insensitive(refined.attendees),
                "open_questions": dedupe_case_insensitive(refined.open_questions),
            }
        )

    @staticmethod
    def collect_quotes(extractions: Sequence[ChunkExtraction]) -> list[str]:
        quotes: list[str] = []
        for extraction in extractions:
            quotes.extend(d.quote for d in extraction.decisions)
            quotes.extend(a.quote for a in extraction.action_items)
            quotes.extend(d.quote for d in extraction.deliverables)
        return quotes

    @staticmethod
    def build_prompt(extractions: Sequence[ChunkExtraction]) -> str:
        """Every fact tagged with its 1-based chunk number, in chunk order."""
        parts: list[str] = [
            "EXTRACTED DATA FROM MEETING TRANSCRIPT CHUNKS:\n",
            f"Total chunks processed: {len(extractions)}\n",
        ]

        parts.append("---\n")
        parts.append("ALL DECISIONS:")
        decisions = [
            (number, d)
            for number, e in enumerate(extractions, start=1)
            for d in e.decisions
        ]
        if not decisions:
            parts.append(NONE_EXTRACTED)
        else:
            for number, d in decisions:
                parts.append(f"\n[Chunk {number}]")
                parts.append(f"Decision: {d.decision}")
                if d.made_by:
                    parts.append(f"Made by: {d.made_by}")
                parts.append(f'Quote: "{d.quote}"')
            parts.append("")

        parts.append("---\n")
        parts.append("ALL ACTION ITEMS:")
        action_items = [
            (number, a)
            for number, e in enumerate(extractions, start=1)
            for a in e.action_items
        ]
        if not action_items:
            parts.append(NONE_EXTRACTED)
        else:
            for number, a in action_items:
                parts.append(f"\n[Chunk {number}]")
                parts.append(f"Task: {a.task}")
                if a.owner:
                    parts.append(f"Owner: {a.owner}")
                if a.deadline:
                    parts.append(f"Deadline: {a.deadline}")
                parts.append(f'Quote: "{a.quote}"')
            parts.append("")

        parts.append("---\n")
        parts.append("ALL DELIVERABLES:")
        deliverables = [
            (number, d)
            for number, e in enumerate(extractions, start=1)
            for d in e.deliverables
        ]
        if not deliverables:
            parts.append(NONE_EXTRACTED)
        else:
            for number, d in deliverables:
                parts.append(f"\n[Chunk {number}]")
                parts.append(f"Name: {d.name}")
                parts.append(f"Description: {d.description}")
                if d.timeline:
                    parts.append(f"Timeline: {d.timeline}")
                parts.append(f'Quote: "{d.quote}"')
            parts.append("")

        parts.append("---\n")
        parts.append("KEY POINTS FROM ALL CHUNKS:")
        key_points = [
            f"[Chunk {number}] {point}"
            for number, e in enumerate(extractions, start=1)
            for point in e.key_points
        ]
        if not key_points:
            parts.append(NONE_EXTRACTED)
        else:
            parts.extend(f"- {point}" for point in key_points)
            parts.append("")

        parts.append("---\n")
        parts.append("CHUNK SUMMARIES (for context flow):")
        for number, e in enumerate(extractions, start=1):
            parts.append(f"\n[Chunk {number}] {e.summary_for_next_chunk}")

        parts.append("\n\n---")
        parts.append(
            "Please consolidate the above extractions into a single refined meeting summary. "
            "Merge duplicates, resolve any conflicts, identify all attendees, and create a "
            "cohesive executive summary."
        )
        return "\n".join(parts)
