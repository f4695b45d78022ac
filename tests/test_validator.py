"""
Tests for transcript validation and loading.
"""

import pytest

from meeting_intel.errors import PipelineStage, TranscriptError
from meeting_intel.transcript.services.validator import (
    MIN_TRANSCRIPT_CHARS,
    load_transcript,
    validate_transcript,
)


class TestValidateTranscript:
    """Input checks run before chunking."""

    def test_valid_transcript_returned_unchanged(self, sample_transcript):
        assert validate_transcript(sample_transcript) == sample_transcript

    @pytest.mark.parametrize("text", ["", "   \n\t  "])
    def test_empty_transcript_rejected(self, text):
        with pytest.raises(TranscriptError, match="empty"):
            validate_transcript(text)

    def test_short_transcript_rejected(self):
        with pytest.raises(TranscriptError, match="too short"):
            validate_transcript("Alice: hi")

    def test_minimum_length_accepted(self):
        text = "a" * MIN_TRANSCRIPT_CHARS
        assert validate_transcript(text) == text

    def test_binary_content_rejected(self):
        with pytest.raises(TranscriptError, match="binary") as exc_info:
            validate_transcript("Alice: hello\x00\x01" + "x" * 200)
        assert exc_info.value.stage == PipelineStage.CHUNKING
        assert exc_info.value.stage_number == 1

    def test_tabs_and_form_feeds_allowed(self):
        text = "Alice:\thello\x0c" + "x" * 200
        assert validate_transcript(text) == text


class TestLoadTranscript:
    """Reading transcripts from disk."""

    def test_load_valid_file(self, tmp_path, sample_transcript):
        path = tmp_path / "meeting.txt"
        path.write_text(sample_transcript, encoding="utf-8")
        assert load_transcript(path) == sample_transcript

    def test_missing_file(self, tmp_path):
        with pytest.raises(TranscriptError, match="not found") as exc_info:
            load_transcript(tmp_path / "missing.txt")
        assert isinstance(exc_info.value.cause, FileNotFoundError)

    def test_undecodable_file(self, tmp_path):
        path = tmp_path / "meeting.bin"
        path.write_bytes(b"\xff\xfe\xfa" * 100)
        with pytest.raises(TranscriptError, match="UTF-8") as exc_info:
            load_transcript(path)
        assert isinstance(exc_info.value.cause, UnicodeDecodeError)

    def test_directory_is_unreadable(self, tmp_path):
        with pytest.raises(TranscriptError) as exc_info:
            load_transcript(tmp_path)
        assert isinstance(exc_info.value.cause, OSError)
