from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional
from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
import enum

from app.core.db.base import Base

if TYPE_CHECKING:
    from .auth import User


FRONT_MAX_LENGTH = 200
BACK_MAX_LENGTH = 500
SOURCE_TEXT_MIN_LENGTH = 1000
SOURCE_TEXT_MAX_LENGTH = 10000


class FlashcardSource(str, enum.Enum):
    AI_FULL = "ai-full"
    AI_EDITED = "ai-edited"
    MANUAL = "manual"


_SOURCE_TEXT_LENGTH_CHECK = (
    f"source_text_length BETWEEN {SOURCE_TEXT_MIN_LENGTH} AND {SOURCE_TEXT_MAX_LENGTH}"
)


class Generation(Base):
    """Metadata of one successful AI generation run."""

    __tablename__ = "generations"
    __table_args__ = (
        CheckConstraint(
            _SOURCE_TEXT_LENGTH_CHECK, name="ck_generations_source_text_length"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    model: Mapped[str] = mapped_column(String, nullable=False)
    generated_count: Mapped[int] = mapped_column(Integer, nullable=False)
    accepted_unedited_count: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True
    )
    accepted_edited_count: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True
    )
    source_text_hash: Mapped[str] = mapped_column(String, nullable=False)
    source_text_length: Mapped[int] = mapped_column(Integer, nullable=False)
    # milliseconds
    generation_duration: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    user: Mapped["User"] = relationship("User", back_populates="generations")
    flashcards: Mapped[list["Flashcard"]] = relationship(
        "Flashcard", back_populates="generation", passive_deletes=True
    )


class Flashcard(Base):
    __tablename__ = "flashcards"
    __table_args__ = (
        CheckConstraint(
            "source IN ('ai-full', 'ai-edited', 'manual')",
            name="ck_flashcards_source",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    front: Mapped[str] = mapped_column(String(FRONT_MAX_LENGTH), nullable=False)
    back: Mapped[str] = mapped_column(String(BACK_MAX_LENGTH), nullable=False)
    source: Mapped[str] = mapped_column(String, nullable=False)
    generation_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("generations.id", ondelete="SET NULL"), nullable=True, index=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    user: Mapped["User"] = relationship("User", back_populates="flashcards")
    generation: Mapped[Optional["Generation"]] = relationship(
        "Generation", back_populates="flashcards"
    )


class GenerationErrorLog(Base):
    """Append-only record of a failed generation attempt."""

    __tablename__ = "generation_error_logs"
    __table_args__ = (
        CheckConstraint(
            _SOURCE_TEXT_LENGTH_CHECK,
            name="ck_generation_error_logs_source_text_length",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    model: Mapped[str] = mapped_column(String, nullable=False)
    source_text_hash: Mapped[str] = mapped_column(String, nullable=False)
    source_text_length: Mapped[int] = mapped_column(Integer, nullable=False)
    error_code: Mapped[str] = mapped_column(String(100), nullable=False)
    error_message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    user: Mapped["User"] = relationship(
        "User", back_populates="generation_error_logs"
    )


__all__ = [
    "FlashcardSource",
    "Generation",
    "Flashcard",
    "GenerationErrorLog",
    "FRONT_MAX_LENGTH",
    "BACK_MAX_LENGTH",
    "SOURCE_TEXT_MIN_LENGTH",
    "SOURCE_TEXT_MAX_LENGTH",
]
