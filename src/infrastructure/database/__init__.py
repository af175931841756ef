# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure.

This package provides SQLAlchemy async database connections, the ORM
models and the Alembic migrations for the system-of-record database.

Example:
    from src.infrastructure.database import get_session

    async with get_session() as session:
        result = await session.execute(select(ParseRun))
"""

from src.infrastructure.database.connection import (
    DatabaseError,
    close_database,
    create_engine_from_settings,
    enable_sqlite_foreign_keys,
    get_engine,
    get_session,
    get_sessionmaker,
    init_database,
    ping_database,
)

__all__ = [
    "DatabaseError",
    "close_database",
    "create_engine_from_settings",
    "enable_sqlite_foreign_keys",
    "get_engine",
    "get_session",
    "get_sessionmaker",
    "init_database",
    "ping_database",
]
