"""
AnaPro Platform - Database Connection

The engine is owned by a ``Database`` object that the application factory
builds and stores on ``app.state``; nothing connects at import time.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base
from loguru import logger

from anapro.config import Settings


# Base class for models
Base = declarative_base()


class Database:
    """Engine plus session factory for one database."""

    def __init__(self, url: str, echo: bool = False, **engine_kwargs):
        if url.startswith("postgresql"):
            engine_kwargs.setdefault("pool_pre_ping", True)
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, echo=echo, **engine_kwargs)
        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        url = settings.database_url
        engine_kwargs = {}
        if url.startswith("postgresql"):
            engine_kwargs.update(pool_size=settings.DB_POOL_SIZE, max_overflow=settings.DB_MAX_OVERFLOW)
        return cls(url, echo=settings.DEBUG and settings.APP_ENV == "development", **engine_kwargs)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Scoped session; rolls back anything left uncommitted."""
        async with self.session_maker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def ping(self) -> bool:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    async def create_all(self) -> None:
        """Create tables directly from metadata (development and tests only)."""
        # Import all models here to ensure they're registered
        from anapro.db import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created/verified")

    async def dispose(self) -> None:
        await self.engine.dispose()


