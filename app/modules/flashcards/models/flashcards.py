"""Pydantic models for flashcard generation requests, proposals and creation.

Length limits and the source/generation_id pairing mirror the CHECK
constraints on the ``flashcards`` and ``generations`` tables, so anything
that validates here can be inserted as-is.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, StrictInt, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from app.core.db.schemas.flashcards import (
    BACK_MAX_LENGTH,
    FRONT_MAX_LENGTH,
    SOURCE_TEXT_MAX_LENGTH,
    SOURCE_TEXT_MIN_LENGTH,
    FlashcardSource,
)

AI_SOURCES = (FlashcardSource.AI_FULL, FlashcardSource.AI_EDITED)


def _check_text(value: str, *, label: str, max_length: int) -> str:
    if len(value) < 1:
        raise PydanticCustomError("required", "{label} text is required", {"label": label})
    if len(value) > max_length:
        raise PydanticCustomError(
            "too_long",
            "{label} text cannot exceed {max} characters",
            {"label": label, "max": max_length},
        )
    return value


class GenerateFlashcardsCommand(BaseModel):
    source_text: str

    @field_validator("source_text")
    @classmethod
    def _source_text_length(cls, value: str) -> str:
        if len(value) < SOURCE_TEXT_MIN_LENGTH:
            raise PydanticCustomError(
                "source_text_too_short",
                "Source text must be at least {min} characters long",
                {"min": SOURCE_TEXT_MIN_LENGTH},
            )
        if len(value) > SOURCE_TEXT_MAX_LENGTH:
            raise PydanticCustomError(
                "source_text_too_long",
                "Source text cannot exceed {max} characters",
                {"max": SOURCE_TEXT_MAX_LENGTH},
            )
        return value


class FlashcardProposal(BaseModel):
    """A model-produced card the user has not accepted yet."""

    front: str
    back: str
    source: Literal["ai-full"] = "ai-full"


class FlashcardCreate(BaseModel):
    front: str
    back: str
    source: FlashcardSource
    # Required key, nullable value: manual cards send an explicit null
    generation_id: Optional[StrictInt]

    @field_validator("front")
    @classmethod
    def _front(cls, value: str) -> str:
        return _check_text(value, label="Front", max_length=FRONT_MAX_LENGTH)

    @field_validator("back")
    @classmethod
    def _back(cls, value: str) -> str:
        return _check_text(value, label="Back", max_length=BACK_MAX_LENGTH)

    @field_validator("generation_id")
    @classmethod
    def _generation_matches_source(
        cls, value: Optional[int], info: ValidationInfo
    ) -> Optional[int]:
        source = info.data.get("source")
        if source is None:
            return value
        manual_ok = source == FlashcardSource.MANUAL and value is None
        ai_ok = source in AI_SOURCES and value is not None
        if not (manual_ok or ai_ok):
            raise PydanticCustomError(
                "generation_id_mismatch",
                "generation_id must be null for manual source and required for "
                "ai-full/ai-edited sources",
            )
        return value


class FlashcardsCreateCommand(BaseModel):
    flashcards: list[FlashcardCreate]

    @field_validator("flashcards")
    @classmethod
    def _not_empty(cls, value: list[FlashcardCreate]) -> list[FlashcardCreate]:
        if not value:
            raise PydanticCustomError(
                "too_short", "At least one flashcard is required"
            )
        return value


class GenerationResult(BaseModel):
    generation_id: int
    flashcards_proposals: list[FlashcardProposal] = Field(default_factory=list)
    generated_count: int
