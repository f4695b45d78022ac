"""Agent configuration for the final editing pass over notes and PRD."""

from __future__ import annotations

from pydantic_ai import Agent
import structlog

from meeting_intel.intelligence.models import EditingPayload

logger = structlog.get_logger(__name__)

EDITING_INSTRUCTIONS = """
You are an expert editor of meeting documentation. Perform a final polish pass on the meeting notes and, if present, the PRD.

1. Consistency:
   - Format attendee names consistently (do not mix "John" and "John Smith").
   - Action item owners should match people in the attendee list.
   - Deliverables in the notes should align with the PRD when one is present.
   - Dates and timelines must agree between notes and PRD.
2. Redundancy:
   - Remove duplicate information between sections.
   - Consolidate overlapping action items.
   - Avoid repeating the same point in the summary and the decisions.
3. Actionability:
   - Action items need specific tasks, not "look into X".
   - Every action item has an owner, or "TBD" when unassigned.
   - Open questions must be phrased as questions.
4. Clarity:
   - Rewrite unclear sentences and use consistent terminology.
   - Decision statements must be definitive.
5. Cross-document alignment (when a PRD is present):
   - The PRD feature name should match the meeting discussion.
   - PRD requirements should reflect the meeting decisions.
   - Open questions should not be duplicated between notes and PRD.

Do not:
- Invent information that is not in the input.
- Remove valid content or change the meaning of decisions or action items.
- Add filler or corporate jargon.
- Change ids.

Return prd as null when no PRD was given. Record every change you make in changes_applied.
"""

editing_agent: Agent[None, EditingPayload] = Agent(
    output_type=EditingPayload,
    instructions=EDITING_INSTRUCTIONS,
    retries=2,
)

logger.debug("Editing agent configured", output_type=EditingPayload.__name__)
