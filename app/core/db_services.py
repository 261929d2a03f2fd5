"""Database service for generation metadata, flashcards and generation error logs."""

from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.db.schemas.flashcards import (
    Flashcard,
    Generation,
    GenerationErrorLog,
)


class FlashcardRecordStore:
    """Insert/select operations over the three generation tables.

    Every write commits on its own; a failed write is rolled back before the
    error propagates so the session stays usable for follow-up writes such as
    the error log.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def insert_generation(
        self,
        *,
        user_id: int,
        model: str,
        generated_count: int,
        source_text_hash: str,
        source_text_length: int,
        generation_duration: int,
    ) -> Generation:
        generation = Generation(
            user_id=user_id,
            model=model,
            generated_count=generated_count,
            source_text_hash=source_text_hash,
            source_text_length=source_text_length,
            generation_duration=generation_duration,
        )
        try:
            self.session.add(generation)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        await self.session.refresh(generation)
        return generation

    async def insert_flashcards(self, rows: Sequence[dict[str, Any]]) -> list[Flashcard]:
        """Insert all rows in one transaction; nothing is written on failure."""
        cards = [Flashcard(**row) for row in rows]
        try:
            self.session.add_all(cards)
            await self.session.flush()
            for card in cards:
                await self.session.refresh(card)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return cards

    async def insert_generation_error_log(
        self,
        *,
        user_id: int,
        model: str,
        source_text_hash: str,
        source_text_length: int,
        error_code: str,
        error_message: str,
    ) -> None:
        log = GenerationErrorLog(
            user_id=user_id,
            model=model,
            source_text_hash=source_text_hash,
            source_text_length=source_text_length,
            error_code=error_code[:100],
            error_message=error_message,
        )
        try:
            self.session.add(log)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

    async def get_generation(
        self, generation_id: int, user_id: int
    ) -> Optional[Generation]:
        result = await self.session.execute(
            select(Generation).where(
                Generation.id == generation_id, Generation.user_id == user_id
            )
        )
        return result.scalar_one_or_none()

    async def owned_generation_ids(
        self, generation_ids: Iterable[int], user_id: int
    ) -> set[int]:
        """Subset of ``generation_ids`` that exist and belong to ``user_id``."""
        ids = set(generation_ids)
        if not ids:
            return set()
        result = await self.session.execute(
            select(Generation.id).where(
                Generation.id.in_(ids), Generation.user_id == user_id
            )
        )
        return set(result.scalars().all())

    async def list_flashcards(
        self, user_id: int, *, limit: int = 50, offset: int = 0
    ) -> list[Flashcard]:
        result = await self.session.execute(
            select(Flashcard)
            .where(Flashcard.user_id == user_id)
            .order_by(Flashcard.created_at.desc(), Flashcard.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def list_generation_error_logs(self, user_id: int) -> list[GenerationErrorLog]:
        result = await self.session.execute(
            select(GenerationErrorLog)
            .where(GenerationErrorLog.user_id == user_id)
            .order_by(GenerationErrorLog.id)
        )
        return list(result.scalars().all())
