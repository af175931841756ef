# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Alembic environment for the alembic CLI.

Targets the database named by DatabaseSettings (DATABASE_URL or the
DATABASE_* components), the same one the application connects to.
Application code applies migrations through runner.run_migrations instead.

Usage:
    alembic upgrade head
    alembic revision --autogenerate -m "add column"
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from src.core.config.settings import DatabaseSettings
from src.infrastructure.database.migrations.runner import context_options
from src.infrastructure.database.models import Base

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)


def run_offline(url: str) -> None:
    """Emit the migration SQL to stdout instead of executing it."""
    context.configure(
        url=url,
        target_metadata=Base.metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _run_on_connection(connection: Connection) -> None:
    context.configure(connection=connection, **context_options(connection))
    with context.begin_transaction():
        context.run_migrations()


async def run_online(url: str) -> None:
    """Run migrations over an async connection."""
    engine = create_async_engine(url, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_run_on_connection)
    finally:
        await engine.dispose()


database_url = DatabaseSettings().url

if context.is_offline_mode():
    run_offline(database_url)
else:
    asyncio.run(run_online(database_url))
