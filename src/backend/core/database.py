"""
Database configuration.
Builds the async engine and session factory from DatabaseSettings and
provides the request-scoped session dependency.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import PendingRollbackError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel

from .config import DatabaseSettings, settings

logger = logging.getLogger(__name__)


def build_engine(database: DatabaseSettings) -> AsyncEngine:
    """
    Create an async engine for the configured URL.

    Pool sizing only applies to server databases; SQLite uses the dialect's
    default pool.
    """
    if database.is_sqlite:
        return create_async_engine(database.url, echo=database.echo, future=True)

    return create_async_engine(
        database.url,
        echo=database.echo,
        future=True,
        pool_pre_ping=True,
        pool_size=database.pool_size,
        max_overflow=database.max_overflow,
        pool_timeout=database.pool_timeout,
        pool_recycle=database.pool_recycle,
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory shared by request handlers and background jobs."""
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,  # Prevent additional queries after commit
        autoflush=False,
    )


engine = build_engine(settings.database)
AsyncSessionLocal = build_session_factory(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting async database sessions.
    Commits anything left pending when the handler returns, rolls back on error.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            if session.in_transaction():
                try:
                    await session.commit()
                except PendingRollbackError:
                    await session.rollback()
                    raise
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def session_scope(
    session_factory: async_sessionmaker[AsyncSession] = None,
) -> AsyncGenerator[AsyncSession, None]:
    """
    Standalone session for work outside a request (scheduled jobs, scripts).

    Usage:
        async with session_scope() as db:
            await AccommodationService(...).expire_records(db)
    """
    factory = session_factory or AsyncSessionLocal
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Database error in background session: {e}")
            raise


async def check_database() -> bool:
    """Run a trivial query to verify connectivity."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Database health check failed: {e}")
        return False
    return True


async def init_db() -> None:
    """
    Create all tables that do not exist yet.
    Should be called on application startup.
    """
    # Register table metadata before create_all
    import db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def close_db() -> None:
    """
    Close database connections.
    Should be called on application shutdown.
    """
    await engine.dispose()
