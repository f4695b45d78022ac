"""Final editing pass."""

from meeting_intel.intelligence.editing.editor import MeetingEditor

__all__ = ["MeetingEditor"]
