# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database connection management using SQLAlchemy async.

Parse runs, staging items, courses, assignments and calendar events live
in one database so that a commit or a rollback is a single transaction.
PostgreSQL (asyncpg) in production; SQLite (aiosqlite) for local runs and
tests, with foreign keys switched on so cascades behave the same.

Example:
    await init_database(settings)

    async with get_session() as session:
        runs = (await session.execute(select(ParseRun))).scalars().all()
"""

import time
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncIterator, Optional

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

if TYPE_CHECKING:
    from src.core.config.settings import DatabaseSettings, Settings

_engine: Optional[AsyncEngine] = None
_sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None


class DatabaseError(Exception):
    """Raised when the database is unavailable or an operation fails.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying SQLAlchemy or driver error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """Turn on foreign key enforcement for every new SQLite connection."""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_engine_from_settings(database: "DatabaseSettings", echo: bool = False) -> AsyncEngine:
    """Create an async engine for the configured database.

    Args:
        database: Database settings.
        echo: Echo SQL in addition to database.echo.

    Returns:
        Configured engine. SQLite engines get foreign keys enabled and no
        pool sizing.
    """
    engine_kwargs: dict[str, Any] = {"echo": database.echo or echo}
    if not database.is_sqlite:
        engine_kwargs.update(
            pool_size=database.pool_size,
            max_overflow=database.max_overflow,
            pool_pre_ping=True,
            pool_recycle=1800,
        )

    engine = create_async_engine(database.url, **engine_kwargs)
    if database.is_sqlite:
        enable_sqlite_foreign_keys(engine)
    return engine


async def init_database(settings: "Settings") -> None:
    """Create the engine and sessionmaker. Called once at startup.

    Raises:
        DatabaseError: If the engine cannot be created.
    """
    global _engine, _sessionmaker

    try:
        _engine = create_engine_from_settings(settings.database, echo=settings.debug)
    except (SQLAlchemyError, ImportError) as e:
        raise DatabaseError("Failed to initialize database connection", e) from e

    _sessionmaker = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def close_database() -> None:
    """Dispose of the engine. Called at shutdown."""
    global _engine, _sessionmaker

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _sessionmaker = None


def get_engine() -> AsyncEngine:
    """Get the async engine.

    Raises:
        DatabaseError: If init_database() has not run.
    """
    if _engine is None:
        raise DatabaseError("Database not initialized. Call init_database() first.")
    return _engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Get the sessionmaker.

    Raises:
        DatabaseError: If init_database() has not run.
    """
    if _sessionmaker is None:
        raise DatabaseError("Database not initialized. Call init_database() first.")
    return _sessionmaker


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """Open a session for one unit of work.

    The session is committed when the block exits cleanly and rolled back
    on error. Commit and rollback services end their own transactions, in
    which case the trailing commit has nothing to do.

    Yields:
        AsyncSession.

    Raises:
        DatabaseError: If the database is not initialized or a database
            operation fails.
    """
    async with get_sessionmaker()() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            raise DatabaseError("Database operation failed", e) from e
        except Exception:
            await session.rollback()
            raise


async def ping_database() -> float:
    """Run a trivial query and measure the round trip.

    Returns:
        Latency in milliseconds.

    Raises:
        DatabaseError: If the database is not initialized or unreachable.
    """
    engine = get_engine()
    start = time.perf_counter()
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        raise DatabaseError("Database unreachable", e) from e
    return (time.perf_counter() - start) * 1000
