# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest fixtures for database integration tests.

Tests run against a throwaway SQLite database by default. Set
TEST_DATABASE_URL to run them against PostgreSQL instead.
"""

import os
from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.domains.syllabus.parse_runs import ParseRunTracker
from src.domains.syllabus.staging import StagingStore
from src.infrastructure.database.connection import enable_sqlite_foreign_keys
from src.infrastructure.database.models import ParseRun
from src.infrastructure.database.models.base import Base
from src.models.extraction import ExtractedSyllabus


@pytest.fixture
def db_url(tmp_path) -> str:
    """Get database URL for tests."""
    return os.environ.get(
        "TEST_DATABASE_URL",
        f"sqlite+aiosqlite:///{tmp_path / 'syllabus_test.db'}",
    )


@pytest_asyncio.fixture(scope="function")
async def db_engine(db_url: str):
    """Create async engine with a fresh schema."""
    engine = create_async_engine(db_url, echo=False)

    if db_url.startswith("sqlite"):
        enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    """Create a sessionmaker matching the application's settings."""
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create async session for database tests."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def staged_run(
    db_session: AsyncSession,
    sample_user_id: str,
    sample_extraction: dict[str, Any],
) -> ParseRun:
    """Create a succeeded parse run with the sample extraction staged."""
    tracker = ParseRunTracker(db_session)
    run = await tracker.create(sample_user_id, "uploads/bio101.pdf")
    items = ExtractedSyllabus.model_validate(sample_extraction).to_staging_items()
    await StagingStore(db_session).put(run.id, items)
    await tracker.mark_succeeded(run.id)
    await db_session.commit()
    await db_session.refresh(run)
    return run
