from .flashcards import (
    FlashcardCreate,
    FlashcardProposal,
    FlashcardsCreateCommand,
    GenerateFlashcardsCommand,
    GenerationResult,
)

__all__ = [
    "FlashcardCreate",
    "FlashcardProposal",
    "FlashcardsCreateCommand",
    "GenerateFlashcardsCommand",
    "GenerationResult",
]
