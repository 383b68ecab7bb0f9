"""
Database connection management for the content datastore.

Owns the async SQLAlchemy engine and session maker. PostgreSQL is reached
through asyncpg; SQLite URLs (``sqlite+aiosqlite://``) are accepted for local
runs and tests.
"""

import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from src.core.config import DatabaseConfig
from src.core.exceptions import DataSourceError
from src.core.logging import get_logger

from .models import Base

logger = get_logger(__name__)


class DatabaseConnectionManager:
    """Creates, hands out and disposes async database sessions."""

    def __init__(self, config: DatabaseConfig) -> None:
        self.config = config
        self.async_engine: AsyncEngine | None = None
        self._async_session_maker: async_sessionmaker[AsyncSession] | None = None

    def _engine_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"echo": self.config.echo}

        # Use NullPool under pytest to avoid pooled connection GC warnings
        if self.config.is_sqlite or os.getenv("PYTEST_CURRENT_TEST"):
            kwargs["poolclass"] = NullPool
        else:
            kwargs.update(
                {
                    "pool_size": self.config.pool_size,
                    "pool_timeout": self.config.pool_timeout,
                    "pool_pre_ping": True,
                }
            )
        return kwargs

    async def initialize(self) -> None:
        """Create the engine and session maker; does not connect."""
        if self.async_engine is not None:
            return

        self.async_engine = create_async_engine(self.config.database_url, **self._engine_kwargs())
        self._async_session_maker = async_sessionmaker(
            bind=self.async_engine, class_=AsyncSession, expire_on_commit=False
        )
        logger.info("Database engine created", dialect=self.async_engine.dialect.name)

    async def create_tables(self) -> None:
        """Create the content tables if missing (local runs and tests)."""
        if self.async_engine is None:
            raise DataSourceError("Database not initialized", source_name="database")
        async with self.async_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def get_async_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get async database session with proper context management."""
        if self._async_session_maker is None:
            raise DataSourceError("Database not initialized", source_name="database")

        async with self._async_session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception as e:
                logger.error("Session error occurred", error=str(e))
                await session.rollback()
                raise

    async def ping(self) -> None:
        """Execute ``SELECT 1``."""
        async with self.get_async_session() as session:
            await session.execute(text("SELECT 1"))

    async def close(self) -> None:
        if self.async_engine is None:
            return
        try:
            await self.async_engine.dispose()
            logger.info("Database connections closed")
        except SQLAlchemyError as e:
            logger.error("Error closing database connections", error=str(e))
        finally:
            self.async_engine = None
            self._async_session_maker = None
