"""Input validation for generation and flashcard-creation requests.

Both entry points return a ``ValidationResult`` instead of raising, so HTTP
handlers can render per-field feedback without exception plumbing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from app.modules.flashcards.models.flashcards import (
    FlashcardsCreateCommand,
    GenerateFlashcardsCommand,
)

T = TypeVar("T", bound=BaseModel)


class FieldError(BaseModel):
    field: str
    message: str


@dataclass
class ValidationResult(Generic[T]):
    value: Optional[T] = None
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.value is not None and not self.errors


def _field_errors(exc: ValidationError) -> list[FieldError]:
    return [
        FieldError(
            field=".".join(str(part) for part in err["loc"]) or "body",
            message=err["msg"],
        )
        for err in exc.errors()
    ]


def _validate(model: type[T], payload: Any) -> ValidationResult[T]:
    try:
        return ValidationResult(value=model.model_validate(payload))
    except ValidationError as exc:
        return ValidationResult(errors=_field_errors(exc))


def validate_generation_request(
    payload: Any,
) -> ValidationResult[GenerateFlashcardsCommand]:
    """``{"source_text": str}`` with 1000..10000 characters."""
    return _validate(GenerateFlashcardsCommand, payload)


def validate_flashcards_create(
    payload: Any,
) -> ValidationResult[FlashcardsCreateCommand]:
    """``{"flashcards": [...]}``; see ``FlashcardCreate`` for per-card rules."""
    return _validate(FlashcardsCreateCommand, payload)
