"""Persist user-approved flashcards in one batch."""

from __future__ import annotations

from typing import Any, Mapping, Sequence, Union

from pydantic import ValidationError

from app.core.db.schemas.flashcards import Flashcard
from app.core.db_services import FlashcardRecordStore
from app.core.logging import bind, get_logger
from app.modules.flashcards.errors import FlashcardBatchError, PersistenceAnomaly
from app.modules.flashcards.models.flashcards import FlashcardCreate

logger = get_logger(__name__)

_COLUMNS = ("front", "back", "source", "generation_id")

CardInput = Union[FlashcardCreate, Mapping[str, Any]]


def _validated(card: CardInput, index: int) -> FlashcardCreate:
    """Re-check raw mappings against the same rules as the HTTP boundary."""
    if isinstance(card, FlashcardCreate):
        return card
    try:
        return FlashcardCreate.model_validate(dict(card))
    except ValidationError as exc:
        err = exc.errors()[0]
        path = ".".join(str(part) for part in (index, *err["loc"]))
        raise FlashcardBatchError(err["msg"], field=f"flashcards.{path}") from None


def _to_row(card: FlashcardCreate, user_id: int) -> dict[str, Any]:
    row = {key: getattr(card, key) for key in _COLUMNS}
    row["source"] = card.source.value
    # Ownership always comes from the authenticated caller
    row["user_id"] = user_id
    return row


class FlashcardBatchWriter:
    def __init__(self, store: FlashcardRecordStore) -> None:
        self.store = store

    async def create_many(
        self, flashcards: Sequence[CardInput], user_id: int
    ) -> list[Flashcard]:
        """Insert all cards for ``user_id`` atomically and return stored rows.

        Raises ``FlashcardBatchError`` for an empty batch, a card breaking the
        length or source/generation_id rules, or generation ids the user does
        not own, and ``PersistenceAnomaly`` if the store returns no rows.
        """
        if not flashcards:
            raise FlashcardBatchError("At least one flashcard is required")

        cards = [_validated(card, i) for i, card in enumerate(flashcards)]
        rows = [_to_row(card, user_id) for card in cards]

        referenced = {r["generation_id"] for r in rows if r["generation_id"] is not None}
        if referenced:
            owned = await self.store.owned_generation_ids(referenced, user_id)
            missing = sorted(referenced - owned)
            if missing:
                raise FlashcardBatchError(
                    f"Unknown generation_id: {', '.join(map(str, missing))}",
                    field="generation_id",
                )

        created = await self.store.insert_flashcards(rows)
        if not created:
            raise PersistenceAnomaly("No flashcards were created")

        bind(logger, user_id=user_id).info(f"Created {len(created)} flashcards")
        return created
