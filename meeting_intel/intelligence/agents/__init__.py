"""Agents used across the intelligence pipeline."""

from meeting_intel.intelligence.agents.editing import editing_agent
from meeting_intel.intelligence.agents.extraction import extraction_agent
from meeting_intel.intelligence.agents.prd import prd_agent
from meeting_intel.intelligence.agents.refinement import RefinementDeps, refinement_agent

__all__ = [
    "RefinementDeps",
    "editing_agent",
    "extraction_agent",
    "prd_agent",
    "refinement_agent",
]
