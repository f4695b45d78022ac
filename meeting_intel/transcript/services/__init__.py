"""Transcript services."""

from meeting_intel.transcript.services.chunker import TranscriptChunker, create_chunker
from meeting_intel.transcript.services.validator import load_transcript, validate_transcript

__all__ = [
    "TranscriptChunker",
    "create_chunker",
    "load_transcript",
    "validate_transcript",
]
