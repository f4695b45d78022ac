"""Transcript models - chunks, chunker options and detected metadata."""

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class TranscriptChunk:
    """Contiguous slice of the normalized transcript sent to one extraction call."""

    index: int  # Sequential: 0, 1, 2...
    content: str  # Trimmed slice text
    start_offset: int  # Offset into the normalized transcript
    end_offset: int  # Equals the next chunk's start_offset
    has_overlap: bool  # False only for the last chunk
    overlap_content: str | None = None  # Head of the next chunk, iff has_overlap
    speakers_present: list[str] = field(default_factory=list)

    @property
    def length(self) -> int:
        return self.end_offset - self.start_offset


@dataclass(frozen=True)
class MeetingMetadata:
    """Best-effort details detected from the transcript text."""

    title: str | None = None
    date: str | None = None  # As written, e.g. "March 5, 2025"
    attendees: list[str] = field(default_factory=list)
    duration: str | None = None
    source: str | None = None


class ChunkerOptions(BaseModel):
    """Validated chunker configuration (sizes are in characters)."""

    model_config = ConfigDict(frozen=True)

    chunk_size: int = Field(4000, gt=0, description="Target max characters per chunk")
    overlap_size: int = Field(
        200, ge=0, description="Characters of the next chunk copied as overlap"
    )
    preserve_speaker_context: bool = Field(
        True, description="Prefer line boundaries over mid-utterance splits"
    )
