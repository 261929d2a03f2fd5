"""Flashcards module exports."""

from .models.flashcards import (
    FlashcardCreate,
    FlashcardProposal,
    FlashcardsCreateCommand,
    GenerateFlashcardsCommand,
    GenerationResult,
)
from .errors import FlashcardBatchError, GenerationFailed, PersistenceAnomaly
from .main import FlashcardsGenerator
from .validation import (
    FieldError,
    ValidationResult,
    validate_flashcards_create,
    validate_generation_request,
)
from .writer import FlashcardBatchWriter

__all__ = [
    "FlashcardCreate",
    "FlashcardProposal",
    "FlashcardsCreateCommand",
    "GenerateFlashcardsCommand",
    "GenerationResult",
    "FlashcardBatchError",
    "GenerationFailed",
    "PersistenceAnomaly",
    "FlashcardsGenerator",
    "FieldError",
    "ValidationResult",
    "validate_flashcards_create",
    "validate_generation_request",
    "FlashcardBatchWriter",
]
