"""Markdown and JSON rendering for generated meeting resources."""

from __future__ import annotations

from meeting_intel.intelligence.models import MeetingNotes, MeetingResources, PRDDocument

DOCUMENT_SEPARATOR = "\n---\n"


def render_markdown(resources: MeetingResources) -> str:
    """Notes first, then the PRD behind a horizontal rule when one exists."""
    sections = [render_notes_markdown(resources.notes)]
    if resources.prd:
        sections.append(DOCUMENT_SEPARATOR)
        sections.append(render_prd_markdown(resources.prd))
    return "\n".join(sections)


def render_json(resources: MeetingResources) -> str:
    return resources.model_dump_json(indent=2)


def render_notes_markdown(notes: MeetingNotes) -> str:
    lines: list[str] = [f"# {notes.title}", ""]

    if notes.date:
        lines.append(f"**Date:** {notes.date}")
    if notes.attendees:
        lines.append(f"**Attendees:** {', '.join(notes.attendees)}")

    lines.extend(["", "## Summary", "", notes.summary])

    if notes.decisions:
        lines.extend(["", "## Decisions", ""])
        for idx, decision in enumerate(notes.decisions, 1):
            lines.append(f"{idx}. **{decision.title}**")
            if decision.rationale and decision.rationale != decision.title:
                lines.append(f"   > {decision.rationale}")
            if decision.participants:
                lines.append(f"   - *Decision by: {', '.join(decision.participants)}*")

    if notes.action_items:
        lines.extend(["", "## Action Items", ""])
        lines.append("| Owner | Task | Due | Priority |")
        lines.append("|-------|------|-----|----------|")
        for item in notes.action_items:
            lines.append(
                f"| {_cell(item.owner)} | {_cell(item.task)} | "
                f"{_cell(item.due_date or '-')} | {item.priority} |"
            )

    if notes.key_discussion_points:
        lines.extend(["", "## Key Discussion Points", ""])
        for point in notes.key_discussion_points:
            lines.extend([f"### {point.topic}", "", point.summary, ""])

    if notes.open_questions:
        lines.extend(["", "## Open Questions", ""])
        lines.extend(f"- [ ] {question}" for question in notes.open_questions)

    return "\n".join(lines)


def render_prd_markdown(prd: PRDDocument) -> str:
    lines: list[str] = [
        f"# Product Requirements: {prd.feature_name}",
        "",
        "## Overview",
        "",
        prd.overview,
    ]

    if prd.requirements:
        lines.extend(["", "## Requirements", ""])
        lines.append("| ID | Requirement | Priority |")
        lines.append("|----|-------------|----------|")
        for requirement in prd.requirements:
            lines.append(
                f"| {requirement.id} | {_cell(requirement.requirement)} | "
                f"{requirement.priority.capitalize()} |"
            )

    if prd.timeline and prd.timeline.target:
        lines.extend(["", "## Timeline", "", f"**Target:** {prd.timeline.target}"])
        if prd.timeline.milestones:
            lines.extend(["", "**Milestones:**"])
            lines.extend(f"- {milestone}" for milestone in prd.timeline.milestones)

    if prd.dependencies:
        lines.extend(["", "## Dependencies", ""])
        lines.extend(f"- {dependency}" for dependency in prd.dependencies)

    if prd.open_questions:
        lines.extend(["", "## Open Questions", ""])
        lines.extend(f"- {question}" for question in prd.open_questions)

    return "\n".join(lines)


def _cell(value: str) -> str:
    """Keep table rows on one line."""
    return " ".join(value.replace("|", "\\|").split())
