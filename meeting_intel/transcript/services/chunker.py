import math
import re
import time

import structlog

from meeting_intel.transcript.models import ChunkerOptions, MeetingMetadata, TranscriptChunk

logger = structlog.get_logger(__name__)

# How far back from a window end to look for a clean boundary
BREAK_LOOKBACK = 500
# How far back from a chunk start to look for the speaker holding the floor
SPEAKER_LOOKBACK = 5000

FILLER_WORDS = frozenset(
    {
        "the", "a", "an", "this", "that", "it", "he", "she", "they", "we", "you", "i",
        "okay", "ok", "yes", "no", "yeah", "nope", "sure", "well", "so", "but", "and", "or",
    }
)
HEADER_LABELS = frozenset(
    {
        "meeting", "call", "discussion", "subject", "topic", "re", "date", "time",
        "agenda", "attendees", "participants", "location", "note", "notes", "title",
        "transcript", "summary",
    }
)


class TranscriptChunker:
    """Normalize transcripts, split them into overlapping chunks and detect metadata."""

    ## Regex patterns for speaker and metadata detection
    # "[00:01:23] Dr. Smith, CTO: Let's begin" -> "Dr. Smith"
    SPEAKER_LINE_PATTERN = re.compile(
        r"^(?:\[?\d{1,2}:\d{2}(?::\d{2})?\]?[ \t]*)?"
        r"([A-Z][A-Za-z .'\-]*)"
        r"(?:,[^:\n]*)?"
        r":[ \t]*"
    )
    DATE_PATTERNS = (
        re.compile(r"\b(\d{1,2}/\d{1,2}/\d{4})\b"),
        re.compile(
            r"\b((?:January|February|March|April|May|June|July|August|September|October"
            r"|November|December|Jan|Feb|Mar|Apr|Jun|Jul|Aug|Sept|Sep|Oct|Nov|Dec)\.?"
            r"\s+\d{1,2}(?:st|nd|rd|th)?,?\s+\d{4})\b"
        ),
        re.compile(r"\b(\d{4}-\d{2}-\d{2})\b"),
    )
    TITLE_PATTERNS = (
        re.compile(r"^#[ \t]+(.+)$", re.MULTILINE),
        re.compile(r"^(?:meeting|call|discussion):[ \t]*(.+)$", re.MULTILINE | re.IGNORECASE),
        re.compile(r"^(?:subject|topic|re):[ \t]*(.+)$", re.MULTILINE | re.IGNORECASE),
    )

    def __init__(self, options: ChunkerOptions | None = None, **overrides) -> None:
        if options is None:
            options = ChunkerOptions(**overrides)
        elif overrides:
            options = ChunkerOptions(**{**options.model_dump(), **overrides})
        self.options = options

    @staticmethod
    def normalize(text: str) -> str:
        """Unify line endings, collapse runs of blank lines and trim."""
        text = text.replace("\r\n", "\n").replace("\r", "\n")
        text = re.sub(r"\n{3,}", "\n\n", text)
        return text.strip()

    def chunk(self, transcript: str) -> list[TranscriptChunk]:
        """
        Split the transcript into contiguous chunks.

        Algorithm:
        1. Normalize the text
        2. Short transcripts become a single chunk
        3. Otherwise walk windows of chunk_size, pulling each end back to a clean boundary
        4. Copy the head of each following chunk into overlap_content
        """
        start_time = time.time()
        text = self.normalize(transcript)
        chunk_size = self.options.chunk_size

        if len(text) <= chunk_size:
            chunks = [
                TranscriptChunk(
                    index=0,
                    content=text,
                    start_offset=0,
                    end_offset=len(text),
                    has_overlap=False,
                    overlap_content=None,
                    speakers_present=self.extract_speakers(text),
                )
            ]
            logger.info(
                "Transcript fits in a single chunk",
                transcript_chars=len(text),
                chunk_size=chunk_size,
            )
            return chunks

        chunks = self._split(text)

        logger.info(
            "Transcript chunking completed",
            processing_time_ms=int((time.time() - start_time) * 1000),
            transcript_chars=len(text),
            total_chunks=len(chunks),
            chunk_size=chunk_size,
            overlap_size=self.options.overlap_size,
        )
        return chunks

    def _split(self, text: str) -> list[TranscriptChunk]:
        chunks: list[TranscriptChunk] = []
        total = len(text)
        position = 0

        while position < total:
            end = min(position + self.options.chunk_size, total)
            if end < total:
                end = self._find_break_point(text, position, end)

            raw = text[position:end]
            overlap = text[end : end + self.options.overlap_size] if end < total else None

            speakers = self.extract_speakers(raw)
            if self.options.preserve_speaker_context and chunks and not self._starts_with_speaker(raw):
                carried = self._last_speaker_before(text, position)
                if carried and carried not in speakers:
                    speakers.insert(0, carried)

            chunk = TranscriptChunk(
                index=len(chunks),
                content=raw.strip(),
                start_offset=position,
                end_offset=end,
                has_overlap=overlap is not None,
                overlap_content=overlap,
                speakers_present=speakers,
            )
            chunks.append(chunk)

            logger.debug(
                "Created transcript chunk",
                chunk_index=chunk.index,
                start_offset=position,
                end_offset=end,
                speakers=len(speakers),
            )
            position = end

        return chunks

    def _find_break_point(self, text: str, start: int, target_end: int) -> int:
        """Pull a window end back to the best boundary strictly after start."""
        window = min(BREAK_LOOKBACK, target_end - start)
        search_start = max(start, target_end - window)
        segment = text[search_start:target_end]

        candidates: list[int | None]
        if self.options.preserve_speaker_context:
            candidates = [
                self._last_speaker_line_start(text, search_start, target_end),
                self._after_last(segment, search_start, ("\n\n",)),
                self._after_last(segment, search_start, ("\n",)),
                self._after_last(segment, search_start, (". ", "! ", "? ")),
            ]
        else:
            candidates = [
                self._after_last(segment, search_start, (". ", "! ", "? ")),
                self._after_last(segment, search_start, (" ", "\n")),
            ]

        for candidate in candidates:
            if candidate is not None and candidate > start:
                return candidate
        return target_end

    @staticmethod
    def _after_last(segment: str, offset: int, separators: tuple[str, ...]) -> int | None:
        best = -1
        best_sep = ""
        for separator in separators:
            found = segment.rfind(separator)
            if found > best:
                best, best_sep = found, separator
        if best == -1:
            return None
        return offset + best + len(best_sep)

    def _last_speaker_line_start(self, text: str, search_start: int, end: int) -> int | None:
        position = search_start
        if position > 0 and text[position - 1] != "\n":
            newline = text.find("\n", position, end)
            if newline == -1:
                return None
            position = newline + 1

        last: int | None = None
        while position < end:
            newline = text.find("\n", position, end)
            line_end = end if newline == -1 else newline
            if self._speaker_from_line(text[position:line_end]):
                last = position
            if newline == -1:
                break
            position = newline + 1
        return last

    def _starts_with_speaker(self, raw: str) -> bool:
        first_line = raw.lstrip("\n").split("\n", 1)[0]
        return self._speaker_from_line(first_line) is not None

    def _last_speaker_before(self, text: str, position: int) -> str | None:
        window = text[max(0, position - SPEAKER_LOOKBACK) : position]
        for line in reversed(window.split("\n")):
            speaker = self._speaker_from_line(line)
            if speaker:
                return speaker
        return None

    def _speaker_from_line(self, line: str) -> str | None:
        match = self.SPEAKER_LINE_PATTERN.match(line)
        if not match:
            return None
        name = " ".join(match.group(1).split())
        return name if self.is_valid_speaker_name(name) else None

    def extract_speakers(self, text: str) -> list[str]:
        """Detected speaker names in first-seen order, without duplicates."""
        speakers: dict[str, None] = {}
        for line in text.split("\n"):
            speaker = self._speaker_from_line(line)
            if speaker:
                speakers.setdefault(speaker, None)
        return list(speakers)

    @staticmethod
    def is_valid_speaker_name(name: str) -> bool:
        if len(name) < 2 or len(name) > 50:
            return False
        if not any(ch.isalpha() for ch in name):
            return False
        if re.fullmatch(r"[A-Z]", name) or name.isdigit():
            return False
        lowered = name.lower().rstrip(".")
        if lowered in FILLER_WORDS or lowered in HEADER_LABELS:
            return False
        return len(name.split()) <= 5

    def extract_metadata(self, transcript: str) -> MeetingMetadata:
        """Title, date and attendees detected transcript-wide. Never raises."""
        text = self.normalize(transcript)
        metadata = MeetingMetadata(
            title=self._extract_title(text),
            date=self._extract_date(text),
            attendees=self.extract_speakers(text),
            source="transcript",
        )
        logger.info(
            "Transcript metadata extracted",
            has_title=metadata.title is not None,
            has_date=metadata.date is not None,
            attendees=len(metadata.attendees),
        )
        return metadata

    def _extract_date(self, text: str) -> str | None:
        earliest: re.Match[str] | None = None
        for pattern in self.DATE_PATTERNS:
            match = pattern.search(text)
            if match and (earliest is None or match.start() < earliest.start()):
                earliest = match
        return earliest.group(1) if earliest else None

    def _extract_title(self, text: str) -> str | None:
        head = text[:500]
        for pattern in self.TITLE_PATTERNS:
            match = pattern.search(head)
            if match and match.group(1).strip():
                return match.group(1).strip()
        return None

    def get_chunk_count(self, transcript: str) -> int:
        """Rough chunk estimate without running the splitter."""
        length = len(self.normalize(transcript))
        chunk_size = self.options.chunk_size
        if length <= chunk_size:
            return 1
        effective_overlap = min(self.options.overlap_size, chunk_size / 2)
        step = chunk_size - effective_overlap
        return math.ceil(length / step)

    def get_options(self) -> ChunkerOptions:
        return self.options.model_copy()


def create_chunker(options: ChunkerOptions | None = None, **overrides) -> TranscriptChunker:
    return TranscriptChunker(options, **overrides)
