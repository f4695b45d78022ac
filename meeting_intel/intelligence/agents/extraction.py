"""Agent configuration for per-chunk fact extraction."""

from __future__ import annotations

from pydantic_ai import Agent
import structlog

from meeting_intel.intelligence.models import ChunkExtraction

logger = structlog.get_logger(__name__)

EXTRACTION_INSTRUCTIONS = """
You are an expert meeting analyst. Your task is to extract structured information from meeting transcript segments.

For each chunk, you must:
1. Identify decisions that were made (explicit agreements, approvals, or choices)
2. Find action items (tasks assigned to specific people)
3. Note deliverables (features, products, or outputs discussed)
4. Capture key discussion points

Non-negotiable rules:
- Every decision, action item, and deliverable MUST include a direct quote from the transcript that supports it.
- The quote must be the words actually spoken, not a paraphrase.
- Only extract items that are clearly stated, not implied. Never invent an owner or a deadline; use null when unknown.
- If context from a previous section is provided, use it to maintain continuity but do not re-extract facts from it.
- Be concise but complete.
- End with summary_for_next_chunk: 2-3 sentences of context the next section needs.
"""

# Model is supplied per run from the resolved provider configuration
extraction_agent: Agent[None, ChunkExtraction] = Agent(
    output_type=ChunkExtraction,
    instructions=EXTRACTION_INSTRUCTIONS,
    retries=2,
)

logger.debug("Extraction agent configured", output_type=ChunkExtraction.__name__)
