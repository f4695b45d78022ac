"""
Structured contracts flowing between pipeline stages.

Every "optional" field is declared nullable but required, so strict
structured-output validation sees each property on every object. Consumers
treat None as unknown and fall back explicitly.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

NonBlankStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Priority = Literal["high", "medium", "low"]
ItemStatus = Literal["open", "in_progress", "completed"]


class FrozenModel(BaseModel):
    """Stage outputs are never mutated after the stage returns them."""

    model_config = ConfigDict(frozen=True)


# --- Per-chunk extraction -------------------------------------------------


class ExtractedDecision(FrozenModel):
    decision: str = Field(..., description="What was decided")
    made_by: str | None = Field(..., description="Who made/announced the decision")
    quote: str = Field(..., description="Supporting quote from transcript")


class ExtractedActionItem(FrozenModel):
    task: str = Field(..., description="What needs to be done")
    owner: str | None = Field(..., description="Who is responsible")
    deadline: str | None = Field(..., description="When it's due")
    quote: str = Field(..., description="Supporting quote from transcript")


class ExtractedDeliverable(FrozenModel):
    name: str = Field(..., description="Feature or deliverable name")
    description: str = Field(..., description="What it is")
    timeline: str | None = Field(..., description="Rough timeline mentioned")
    quote: str = Field(..., description="Supporting quote from transcript")


class ChunkExtraction(FrozenModel):
    """Schema expected from the extraction agent, one per chunk."""

    decisions: list[ExtractedDecision] = Field(
        ..., description="Decisions made in this section of the meeting"
    )
    action_items: list[ExtractedActionItem] = Field(
        ..., description="Action items assigned in this section"
    )
    deliverables: list[ExtractedDeliverable] = Field(
        ..., description="Features or deliverables discussed in this section"
    )
    key_points: list[str] = Field(
        ..., description="Important discussion points worth noting"
    )
    summary_for_next_chunk: str = Field(
        ...,
        description="2-3 sentence summary of context to pass to next chunk for continuity",
    )

    def fact_count(self) -> int:
        return len(self.decisions) + len(self.action_items) + len(self.deliverables)


# --- Consolidated meeting -------------------------------------------------


class RefinedDecision(FrozenModel):
    id: str = Field(..., description="Unique identifier for this decision (D1, D2, ...)")
    decision: str = Field(..., description="Clear statement of what was decided")
    made_by: str | None = Field(..., description="Who made or announced the decision")
    rationale: str | None = Field(..., description="Why this decision was made")
    quote: str = Field(..., description="Supporting quote from transcript")


class RefinedActionItem(FrozenModel):
    id: str = Field(..., description="Unique identifier for this action item (A1, A2, ...)")
    task: str = Field(..., description="Clear description of what needs to be done")
    owner: str | None = Field(..., description="Person responsible for this task")
    deadline: str | None = Field(..., description="When this is due")
    priority: Priority | None = Field(
        ..., description="Priority level based on discussion context"
    )
    quote: str = Field(..., description="Supporting quote from transcript")


class RefinedDeliverable(FrozenModel):
    id: str = Field(..., description="Unique identifier for this deliverable (DEL1, DEL2, ...)")
    name: str = Field(..., description="Name of the feature or deliverable")
    description: str = Field(..., description="What this deliverable is and does")
    timeline: str | None = Field(..., description="Target timeline if mentioned")
    owner: str | None = Field(..., description="Person or team responsible")
    quote: str = Field(..., description="Supporting quote from transcript")


class RefinedMeeting(FrozenModel):
    """Schema expected from the refinement agent."""

    decisions: list[RefinedDecision] = Field(
        ..., description="Consolidated and deduplicated decisions"
    )
    action_items: list[RefinedActionItem] = Field(
        ..., description="Consolidated and deduplicated action items"
    )
    deliverables: list[RefinedDeliverable] = Field(
        ..., description="Consolidated and deduplicated deliverables"
    )
    meeting_summary: NonBlankStr = Field(
        ..., description="Executive summary of the meeting in 2-4 sentences"
    )
    attendees: list[str] = Field(
        ..., description="List of meeting participants identified from transcript"
    )
    open_questions: list[str] = Field(
        ..., description="Unresolved questions that need follow-up"
    )


class RefinementResult(FrozenModel):
    refined: RefinedMeeting
    input_extraction_count: int = Field(..., ge=0)
    processing_time_ms: int = Field(..., ge=0)


class ExtractionResult(FrozenModel):
    extractions: list[ChunkExtraction]
    total_chunks: int = Field(..., ge=0)
    processing_time_ms: int = Field(..., ge=0)


# --- PRD ------------------------------------------------------------------


class PRDRequirement(FrozenModel):
    id: str = Field(..., description="Requirement identifier (e.g., R1, R2)")
    description: str = Field(..., description="Clear description of the requirement")
    priority: Literal["must", "should", "could"] = Field(
        ..., description="MoSCoW priority level"
    )


class PRD(FrozenModel):
    """Schema expected from the PRD agent."""

    feature_name: str = Field(..., description="Name of the feature being specified")
    overview: str = Field(
        ..., description="High-level description of the feature and its purpose"
    )
    requirements: list[PRDRequirement] = Field(
        ..., description="List of functional requirements"
    )
    timeline: str | None = Field(..., description="Target delivery timeline")
    dependencies: list[str] = Field(..., description="External dependencies or blockers")
    open_questions: list[str] = Field(
        ..., description="Questions that need answers before implementation"
    )


# --- Presentation records -------------------------------------------------


class NoteDecision(FrozenModel):
    id: str
    title: str = Field(..., description="Clear, actionable decision statement")
    description: str
    rationale: str | None
    participants: list[str]
    related_action_items: list[str]


class NoteActionItem(FrozenModel):
    id: str
    owner: str = Field(..., description="Person responsible, or TBD")
    task: str = Field(..., description="Clear, actionable task description")
    due_date: str | None
    priority: Priority
    status: ItemStatus
    context: str | None


class DiscussionPoint(FrozenModel):
    topic: str
    summary: str


class MeetingNotes(FrozenModel):
    title: str
    date: str | None
    attendees: list[str]
    summary: str
    decisions: list[NoteDecision]
    action_items: list[NoteActionItem]
    key_discussion_points: list[DiscussionPoint]
    open_questions: list[str]


class PRDRequirementItem(FrozenModel):
    id: str
    requirement: str = Field(..., description="Clear, testable requirement")
    priority: Literal["must", "should", "could", "wont"]
    status: ItemStatus


class PRDTimeline(FrozenModel):
    target: str | None
    milestones: list[str]


class PRDDocument(FrozenModel):
    feature_name: str
    overview: str
    requirements: list[PRDRequirementItem]
    timeline: PRDTimeline | None
    dependencies: list[str]
    open_questions: list[str]


class MeetingResources(FrozenModel):
    notes: MeetingNotes
    prd: PRDDocument | None = None


class GeneratorResult(FrozenModel):
    resources: MeetingResources
    markdown: str
    processing_time_ms: int = Field(..., ge=0)
    prd_generated: bool


class FinalOutput(FrozenModel):
    notes: MeetingNotes
    prd: PRDDocument | None = None
    markdown: str
    json_output: str = Field(..., alias="json")

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class EditingPayload(FrozenModel):
    """Schema expected from the editing agent."""

    notes: MeetingNotes = Field(..., description="Polished meeting notes")
    prd: PRDDocument | None = Field(..., description="Polished PRD, or null when none was given")
    changes_applied: list[str] = Field(
        ..., description="List of specific changes made for consistency and clarity"
    )


class EditorResult(FrozenModel):
    output: FinalOutput
    processing_time_ms: int = Field(..., ge=0)
    changes_applied: list[str]


class ProcessingStats(FrozenModel):
    total_chunks: int
    refinement_passes: int
    processing_time_ms: int
    decisions_found: int
    action_items_found: int
    deliverables_found: int
    prd_generated: bool
    changes_applied: int = 0
