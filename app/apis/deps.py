from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db.base import get_session
from app.core.db.schemas.auth import User
from app.core.db_services import FlashcardRecordStore
from app.modules.auth import current_active_user
from app.modules.flashcards import FlashcardBatchWriter, FlashcardsGenerator


CurrentUser = Annotated[User, Depends(current_active_user)]


async def get_record_store(
    session: AsyncSession = Depends(get_session),
) -> FlashcardRecordStore:
    return FlashcardRecordStore(session)


async def get_generator(
    store: FlashcardRecordStore = Depends(get_record_store),
) -> FlashcardsGenerator:
    # The OpenRouter client is resolved lazily inside generate()
    return FlashcardsGenerator(store)


async def get_batch_writer(
    store: FlashcardRecordStore = Depends(get_record_store),
) -> FlashcardBatchWriter:
    return FlashcardBatchWriter(store)
