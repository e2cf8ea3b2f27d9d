"""
Database engine, session factory and declarative Base.
The engine is created lazily so importing models never opens a connection.
"""

import logging
from typing import Any, AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from src.core.config import settings

logger = logging.getLogger(__name__)

engine: Any = None
SessionFactory: Optional[async_sessionmaker] = None


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""


def _ensure_engine() -> None:
    """Create the engine and session factory on first use."""
    global engine, SessionFactory
    if SessionFactory is not None:
        return

    engine = create_async_engine(
        settings.database_url,
        echo=settings.db_echo,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        pool_recycle=3600,
    )
    SessionFactory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that yields a database session.
    The session is rolled back if the request handler raises.
    """
    _ensure_engine()
    async with SessionFactory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Verify the database is reachable."""
    _ensure_engine()
    async with engine.connect() as connection:
        await connection.execute(text("SELECT 1"))


async def close_db() -> None:
    """Dispose of the connection pool."""
    global engine, SessionFactory
    if engine is not None:
        await engine.dispose()
    engine = None
    SessionFactory = None
