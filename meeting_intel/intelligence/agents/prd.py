"""Agent configuration for PRD generation from meeting deliverables."""

from __future__ import annotations

from pydantic_ai import Agent
import structlog

from meeting_intel.intelligence.models import PRD

logger = structlog.get_logger(__name__)

PRD_INSTRUCTIONS = """
You are a product manager creating a concise Product Requirements Document (PRD) from meeting discussion.

Transform the deliverables discussed in the meeting into a structured PRD:
1. feature_name: clear, descriptive name for the feature or deliverable
2. overview: 2-3 sentences explaining what the feature does and why it matters
3. requirements: specific, actionable requirements with ids R1, R2, R3... and MoSCoW priority:
   - "must": critical for launch
   - "should": important but not blocking
   - "could": nice to have
4. timeline: target delivery date or period if mentioned, else null
5. dependencies: external systems, teams, or blockers
6. open_questions: unresolved items that need answers before implementation

Guidelines:
- Be specific and actionable.
- Do not invent requirements that were not discussed in the meeting.
- Use the supporting quotes to stay grounded in the actual discussion.
- Keep it concise; this is a starting point, not a final document.
"""

prd_agent: Agent[None, PRD] = Agent(
    output_type=PRD,
    instructions=PRD_INSTRUCTIONS,
    retries=2,
)

logger.debug("PRD agent configured", output_type=PRD.__name__)
