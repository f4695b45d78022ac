"""Shared test configuration and fixtures for all tests."""

import os

import pytest
from pydantic_ai import models

# Mock environment variables for testing
os.environ["MEETING_INTEL_OPENAI_API_KEY"] = "test-key-123"

# Every model call in tests must go through TestModel or FunctionModel
models.ALLOW_MODEL_REQUESTS = False

from meeting_intel.config import ResolvedModel  # noqa: E402
from meeting_intel.intelligence.models import ChunkExtraction, RefinedMeeting  # noqa: E402


@pytest.fixture
def resolved_model() -> ResolvedModel:
    return ResolvedModel(provider="openai", model="gpt-4o", api_key="test-key-123")


@pytest.fixture
def sample_transcript() -> str:
    """Small meeting transcript with a title, a date and three speakers."""
    return """# Mobile Checkout Sync
Date: March 5, 2025

Alice: Thanks for joining. We need to settle the checkout redesign today.
Bob: I think we should ship the one-page checkout in Q3.
Alice: Agreed, we will go with the one-page checkout.
Carol: I can draft the API changes by Friday.
Bob: Open question, do we keep guest checkout?
"""


@pytest.fixture
def extraction_args() -> dict:
    return {
        "decisions": [
            {
                "decision": "Use the one-page checkout",
                "made_by": "Alice",
                "quote": "Agreed, we will go with the one-page checkout.",
            }
        ],
        "action_items": [
            {
                "task": "Draft the API changes",
                "owner": "Carol",
                "deadline": "Friday",
                "quote": "I can draft the API changes by Friday.",
            }
        ],
        "deliverables": [
            {
                "name": "One-page checkout",
                "description": "Single page checkout flow for mobile",
                "timeline": "Q3",
                "quote": "I think we should ship the one-page checkout in Q3.",
            }
        ],
        "key_points": ["Checkout redesign is the main topic"],
        "summary_for_next_chunk": "The team chose a one-page checkout shipping in Q3.",
    }


@pytest.fixture
def sample_extractions(extraction_args: dict) -> list[ChunkExtraction]:
    second = {
        "decisions": [],
        "action_items": [],
        "deliverables": [],
        "key_points": ["Guest checkout is undecided"],
        "summary_for_next_chunk": "Guest checkout remains open.",
    }
    return [
        ChunkExtraction.model_validate(extraction_args),
        ChunkExtraction.model_validate(second),
    ]


@pytest.fixture
def refined_args() -> dict:
    return {
        "decisions": [
            {
                "id": "D7",
                "decision": "Use the one-page checkout",
                "made_by": "Alice",
                "rationale": "Fewer steps on mobile",
                "quote": "we will go with the one-page checkout",
            }
        ],
        "action_items": [
            {
                "id": "A3",
                "task": "Draft the API changes",
                "owner": "Carol",
                "deadline": "Friday",
                "priority": "high",
                "quote": "I can draft the API changes by Friday.",
            }
        ],
        "deliverables": [
            {
                "id": "DEL9",
                "name": "One-page checkout",
                "description": "Single page checkout flow for mobile",
                "timeline": "Q3",
                "owner": "Bob",
                "quote": "I think we should ship the one-page checkout in Q3.",
            }
        ],
        "meeting_summary": "The team agreed on a one-page checkout for Q3.",
        "attendees": ["Alice", "Bob", "alice", "Carol"],
        "open_questions": ["Do we keep guest checkout?", "do we keep guest checkout?"],
    }


@pytest.fixture
def refined_meeting(refined_args: dict) -> RefinedMeeting:
    return RefinedMeeting.model_validate(refined_args)


@pytest.fixture
def prd_args() -> dict:
    return {
        "feature_name": "One-page checkout",
        "overview": "A single page checkout for mobile users.",
        "requirements": [
            {"id": "R1", "description": "Collect payment on one page", "priority": "must"},
            {"id": "R2", "description": "Remember the shipping address", "priority": "could"},
        ],
        "timeline": "Q3",
        "dependencies": ["Payments API"],
        "open_questions": ["Do we keep guest checkout?"],
    }

