"""Per-chunk extraction stage."""

from meeting_intel.intelligence.extraction.extractor import MeetingExtractor

__all__ = ["MeetingExtractor"]
