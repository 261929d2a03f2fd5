"""
Shared pytest fixtures for the test suite.
Provides an in-memory SQLite database, seeded users, the record store and
a valid source text.
"""

import os

# Minimal env so that pydantic-settings can validate on import
os.environ.setdefault("POSTGRES_HOST", "localhost")
os.environ.setdefault("POSTGRES_DB_PORT", "5432")
os.environ.setdefault("POSTGRES_DB_NAME", "flashcards_test")
os.environ.setdefault("POSTGRES_DB_USER", "test")
os.environ.setdefault("POSTGRES_DB_PASSWORD", "test")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-unit-tests-only-32chars!")
os.environ.setdefault("OPENROUTER_API_KEY", "sk-or-test")


import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.db.base import Base
from app.core.db.schemas import User  # registers every table on Base.metadata
from app.core.db_services import FlashcardRecordStore


# ── Database ────────────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory SQLite database per test."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(test_engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def user(session):
    u = User(email="learner@example.com", hashed_password="not-a-real-hash")
    session.add(u)
    await session.commit()
    await session.refresh(u)
    return u


@pytest_asyncio.fixture
async def other_user(session):
    u = User(email="someone-else@example.com", hashed_password="not-a-real-hash")
    session.add(u)
    await session.commit()
    await session.refresh(u)
    return u


@pytest.fixture
def store(session):
    return FlashcardRecordStore(session)


# ── Source text ─────────────────────────────────────────────────────────────

@pytest.fixture
def source_text():
    sentence = "Photosynthesis converts light energy into chemical energy in plants. "
    text = sentence * 20
    assert 1000 <= len(text) <= 10000
    return text
