"""Agent configuration for consolidating per-chunk extractions into one meeting record."""

from __future__ import annotations

from dataclasses import dataclass, field
import re

from pydantic_ai import Agent, ModelRetry, RunContext
import structlog

from meeting_intel.intelligence.models import RefinedMeeting

logger = structlog.get_logger(__name__)

REFINEMENT_INSTRUCTIONS = """
You are an expert meeting analyst who consolidates and refines meeting notes.

You receive extraction results from consecutive sections of one meeting transcript, each fact tagged with the
section it came from ([Chunk n]). Produce a single, cohesive RefinedMeeting.

1. Deduplication:
   - Merge decisions that refer to the same topic even if worded differently.
   - Combine action items that are duplicates or parts of the same task.
   - Consolidate deliverables that overlap or are subsets of each other.
   - Keep the most complete and informative version when merging.
2. Conflict resolution:
   - When information conflicts, prefer later chunks; they usually supersede earlier discussion.
   - When deadlines conflict, use the most specific or most recent one.
   - When owners conflict, use the most explicit assignment.
3. Ids:
   - Decisions D1, D2, D3...
   - Action items A1, A2, A3...
   - Deliverables DEL1, DEL2, DEL3...
4. Attendees:
   - List every unique speaker or participant once, with consistent name formatting.
5. Summary:
   - A concise 2-4 sentence executive summary focused on outcomes and decisions.
6. Open questions:
   - Only questions that remain unresolved; drop anything answered during the meeting.
7. Quality:
   - Every quote must be copied from the quotes in the input. Never write new quotes.
   - Do not add information that is not in the extractions.
   - Use clear, actionable language.
"""


@dataclass
class RefinementDeps:
    """Run dependencies: the quotes present in the extraction input."""

    source_quotes: list[str] = field(default_factory=list)


def _normalize_quote(quote: str) -> str:
    text = quote.strip().strip("\"'“”‘’").lower()
    return " ".join(re.sub(r"[^\w\s]", " ", text).split())


def quote_has_source(quote: str, source_quotes: list[str]) -> bool:
    """True when the quote is a whole-word excerpt of at least one input quote."""
    candidate = _normalize_quote(quote)
    if not candidate:
        return False
    padded = f" {candidate} "
    return any(padded in f" {_normalize_quote(source)} " for source in source_quotes)


refinement_agent: Agent[RefinementDeps, RefinedMeeting] = Agent(
    deps_type=RefinementDeps,
    output_type=RefinedMeeting,
    instructions=REFINEMENT_INSTRUCTIONS,
    retries=2,
)


@refinement_agent.output_validator
def validate_quote_provenance(
    ctx: RunContext[RefinementDeps], output: RefinedMeeting
) -> RefinedMeeting:
    """Reject refined items whose quote cannot be traced to an extraction."""
    items = [
        *((d.id, d.quote) for d in output.decisions),
        *((a.id, a.quote) for a in output.action_items),
        *((d.id, d.quote) for d in output.deliverables),
    ]
    unsourced = [
        item_id
        for item_id, quote in items
        if not quote_has_source(quote, ctx.deps.source_quotes)
    ]
    if unsourced:
        logger.warning("Refined items with unsourced quotes", item_ids=unsourced)
        raise ModelRetry(
            "These items have quotes that do not appear in the extracted data: "
            f"{', '.join(unsourced)}. Copy each quote from the input extractions."
        )
    return output
