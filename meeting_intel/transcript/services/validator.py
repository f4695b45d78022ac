"""Transcript input validation, run before chunking."""

from __future__ import annotations

from pathlib import Path
import re

import structlog

from meeting_intel.errors import TranscriptError

logger = structlog.get_logger(__name__)

MIN_TRANSCRIPT_CHARS = 100

# Control characters other than tab, LF, VT, FF and CR
_BINARY_PATTERN = re.compile(r"[\x00-\x08\x0e-\x1f\x7f]")


def validate_transcript(text: str) -> str:
    """Return the transcript unchanged, or raise TranscriptError if it is unusable."""
    if not text or not text.strip():
        raise TranscriptError("Transcript is empty")

    if _BINARY_PATTERN.search(text):
        raise TranscriptError("Transcript appears to be binary (contains control characters)")

    length = len(text.strip())
    if length < MIN_TRANSCRIPT_CHARS:
        raise TranscriptError(
            f"Transcript is too short ({length} characters, minimum {MIN_TRANSCRIPT_CHARS})"
        )

    return text


def load_transcript(path: str | Path) -> str:
    """Read a UTF-8 transcript file and validate its content."""
    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise TranscriptError(f"Transcript file not found: {file_path}", cause=e) from e
    except UnicodeDecodeError as e:
        raise TranscriptError(
            f"Transcript file is not valid UTF-8 text: {file_path}", cause=e
        ) from e
    except OSError as e:
        raise TranscriptError(f"Could not read transcript file {file_path}: {e}", cause=e) from e

    logger.info("Transcript loaded", path=str(file_path), chars=len(text))
    return validate_transcript(text)
