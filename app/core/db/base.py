"""Async engine, session factory and the request-scoped session dependency."""

from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from app.core.config import settings
from app.core.logging import get_logger


logger = get_logger(__name__)

Base = declarative_base()

connection_string = str(settings.postgres.connection_string)

engine = create_async_engine(
    connection_string,
    echo=not settings.app.is_production,
    pool_pre_ping=True,
)

# Rows stay readable after commit; handlers serialize them after the store commits
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_session() -> AsyncIterator[AsyncSession]:
    """One session per request.

    Record store writes commit themselves; the trailing commit only matters
    for work a handler leaves pending. Any error rolls back and propagates.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Session rolled back due to error: {e}")
            raise


async def dispose_engine() -> None:
    await engine.dispose()
    logger.info("Database engine disposed")
