from __future__ import annotations

from typing import TYPE_CHECKING
from sqlalchemy import Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fastapi_users_db_sqlalchemy import SQLAlchemyBaseUserTable

from app.core.db.base import Base

if TYPE_CHECKING:
    from .flashcards import Flashcard, Generation, GenerationErrorLog


class User(SQLAlchemyBaseUserTable[int], Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    generations: Mapped[list["Generation"]] = relationship(
        "Generation", back_populates="user", cascade="all, delete-orphan"
    )
    flashcards: Mapped[list["Flashcard"]] = relationship(
        "Flashcard", back_populates="user", cascade="all, delete-orphan"
    )
    generation_error_logs: Mapped[list["GenerationErrorLog"]] = relationship(
        "GenerationErrorLog", back_populates="user", cascade="all, delete-orphan"
    )


__all__ = ["User"]
