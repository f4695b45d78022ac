"""Consolidation of chunk extractions."""

from meeting_intel.intelligence.refinement.refiner import MeetingRefiner

__all__ = ["MeetingRefiner"]
