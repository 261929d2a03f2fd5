"""Unit tests for request validation (no database, no network)."""

import pytest

from app.core.db.schemas.flashcards import FlashcardSource
from app.modules.flashcards import (
    FlashcardCreate,
    validate_flashcards_create,
    validate_generation_request,
)


def messages(result) -> dict[str, str]:
    return {e.field: e.message for e in result.errors}


# ── Generation request ──────────────────────────────────────────────────────

@pytest.mark.parametrize("length", [1000, 5000, 10000])
def test_source_text_within_bounds_is_accepted(length):
    result = validate_generation_request({"source_text": "a" * length})
    assert result.ok
    assert len(result.value.source_text) == length


def test_source_text_too_short():
    result = validate_generation_request({"source_text": "a" * 999})
    assert not result.ok
    assert messages(result) == {
        "source_text": "Source text must be at least 1000 characters long"
    }


def test_source_text_too_long():
    result = validate_generation_request({"source_text": "a" * 10001})
    assert not result.ok
    assert messages(result) == {"source_text": "Source text cannot exceed 10000 characters"}


def test_source_text_missing():
    result = validate_generation_request({})
    assert not result.ok
    assert "source_text" in messages(result)


def test_non_object_payload_reports_body_error():
    result = validate_generation_request(["not", "an", "object"])
    assert not result.ok
    assert [e.field for e in result.errors] == ["body"]


# ── Flashcard creation ──────────────────────────────────────────────────────

def test_manual_and_ai_cards_are_accepted():
    result = validate_flashcards_create(
        {
            "flashcards": [
                {"front": "Q1", "back": "A1", "source": "manual", "generation_id": None},
                {"front": "Q2", "back": "A2", "source": "ai-full", "generation_id": 7},
                {"front": "Q3", "back": "A3", "source": "ai-edited", "generation_id": 7},
            ]
        }
    )
    assert result.ok
    sources = [card.source for card in result.value.flashcards]
    assert sources == [FlashcardSource.MANUAL, FlashcardSource.AI_FULL, FlashcardSource.AI_EDITED]


def test_empty_batch_is_rejected():
    result = validate_flashcards_create({"flashcards": []})
    assert messages(result) == {"flashcards": "At least one flashcard is required"}


@pytest.mark.parametrize(
    "source, generation_id",
    [("manual", 3), ("ai-full", None), ("ai-edited", None)],
)
def test_source_and_generation_id_must_agree(source, generation_id):
    result = validate_flashcards_create(
        {
            "flashcards": [
                {"front": "Q", "back": "A", "source": source, "generation_id": generation_id}
            ]
        }
    )
    assert not result.ok
    assert messages(result) == {
        "flashcards.0.generation_id": (
            "generation_id must be null for manual source and required for "
            "ai-full/ai-edited sources"
        )
    }


def test_generation_id_key_is_required_even_for_manual_cards():
    result = validate_flashcards_create(
        {"flashcards": [{"front": "Q", "back": "A", "source": "manual"}]}
    )
    assert not result.ok
    assert "flashcards.0.generation_id" in messages(result)


def test_unknown_source_is_rejected():
    result = validate_flashcards_create(
        {"flashcards": [{"front": "Q", "back": "A", "source": "imported", "generation_id": None}]}
    )
    assert not result.ok
    assert "flashcards.0.source" in messages(result)


def test_front_and_back_limits():
    result = validate_flashcards_create(
        {
            "flashcards": [
                {"front": "", "back": "A", "source": "manual", "generation_id": None},
                {"front": "Q", "back": "b" * 501, "source": "manual", "generation_id": None},
                {"front": "f" * 201, "back": "A", "source": "manual", "generation_id": None},
            ]
        }
    )
    assert messages(result) == {
        "flashcards.0.front": "Front text is required",
        "flashcards.1.back": "Back text cannot exceed 500 characters",
        "flashcards.2.front": "Front text cannot exceed 200 characters",
    }


def test_limits_are_inclusive():
    card = FlashcardCreate(
        front="f" * 200, back="b" * 500, source="ai-full", generation_id=1
    )
    assert len(card.front) == 200
    assert len(card.back) == 500
