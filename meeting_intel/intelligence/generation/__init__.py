"""Meeting notes, PRD and markdown generation."""

from meeting_intel.intelligence.generation.generator import MeetingGenerator

__all__ = ["MeetingGenerator"]
