from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.modules.flashcards.models.flashcards import FlashcardProposal


class GenerationCreateResponse(BaseModel):
    generation_id: int
    flashcards_proposals: list[FlashcardProposal] = Field(default_factory=list)
    generated_count: int


class FlashcardRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    front: str
    back: str
    source: str
    generation_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class FlashcardsCreateResponse(BaseModel):
    flashcards: list[FlashcardRead] = Field(default_factory=list)


class GenerationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    model: str
    generated_count: int
    accepted_unedited_count: Optional[int] = None
    accepted_edited_count: Optional[int] = None
    source_text_hash: str
    source_text_length: int
    generation_duration: int
    created_at: datetime
    updated_at: datetime


class GenerationErrorLogRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    model: str
    source_text_hash: str
    source_text_length: int
    error_code: str
    error_message: str
    created_at: datetime
