"""Database configuration and session management for the Passwords share API."""

import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from .config import settings

logger = logging.getLogger(__name__)

# Create async engine
engine = create_async_engine(
    settings.DATABASE_URL,
    poolclass=NullPool,
    echo=settings.SQL_DEBUG,
)

# Create session factory
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)

# Base class for all models
Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function to get the request's database session.

    One session serves the whole request: authentication, the host services
    and the share controller all read and flush through it. Nothing is
    committed here; the share endpoints commit once the controller returns,
    and any exception discards the new revision, share and flag changes.

    Yields:
        AsyncSession: Database session for dependency injection
    """
    async with async_session_maker() as session:
        try:
            yield session
        except Exception as e:
            logger.debug(f"Rolling back request session after {type(e).__name__}")
            await session.rollback()
            raise
        finally:
            await session.close()


async def create_tables() -> None:
    """Create all database tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
