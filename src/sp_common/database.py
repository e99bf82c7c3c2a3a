"""Async engine, session factory and health ping.

One Database instance is created per application and stored on
app.state; request handlers obtain sessions through get_db_session.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import Settings

logger = logging.getLogger(__name__)

HEALTH_CHECK_TIMEOUT = 1.0  # seconds


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""

    pass


def create_engine(settings: Settings) -> AsyncEngine:
    """Create a pooled engine sized from DB_MAX_OPEN / DB_MAX_IDLE / DB_MAX_LIFETIME.

    pool_size holds the idle connections; overflow makes up the rest of
    the open-connection limit. Callers beyond the limit wait for a free
    connection.
    """
    pool_size = min(settings.DB_MAX_IDLE, settings.DB_MAX_OPEN)
    return create_async_engine(
        settings.database_url,
        echo=settings.DEBUG,
        pool_size=pool_size,
        max_overflow=max(settings.DB_MAX_OPEN - pool_size, 0),
        pool_recycle=settings.DB_MAX_LIFETIME,
        pool_pre_ping=True,
    )


class Database:
    def __init__(self, settings: Settings, engine: AsyncEngine | None = None) -> None:
        self.settings = settings
        self.engine: AsyncEngine = engine or create_engine(settings)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def ping(self, timeout: float = HEALTH_CHECK_TIMEOUT) -> None:
        """Run SELECT 1; raises TimeoutError if it takes longer than `timeout`."""

        async def _select_one() -> None:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))

        await asyncio.wait_for(_select_one(), timeout=timeout)

    def pool_stats(self) -> dict[str, int]:
        pool = self.engine.pool
        return {
            "size": pool.size(),  # type: ignore[attr-defined]
            "checked_in": pool.checkedin(),  # type: ignore[attr-defined]
            "checked_out": pool.checkedout(),  # type: ignore[attr-defined]
            "overflow": pool.overflow(),  # type: ignore[attr-defined]
        }

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database engine disposed")


def get_database(request: Request) -> Database:
    return request.app.state.database  # type: ignore[no-any-return]


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yields an AsyncSession, auto-closes after request."""
    database = get_database(request)
    async with database.session_factory() as session:
        yield session
