# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the syllabus rollback engine."""

from datetime import datetime, timezone

import pytest
from sqlalchemy import func, select

from src.domains.syllabus.commit import SyllabusCommitService
from src.domains.syllabus.errors import ParseRunAccessError, ParseRunNotFoundError
from src.domains.syllabus.parse_runs import ParseRunTracker
from src.domains.syllabus.rollback import SyllabusRollbackService
from src.domains.syllabus.staging import StagingStore
from src.infrastructure.database.models import (
    Assignment,
    CalendarEvent,
    CommitMarker,
    Course,
    StagingItem,
)
from src.models.syllabus import CommitRequest, StagingItemCreate

NOW = datetime(2025, 9, 1, 12, 0, tzinfo=timezone.utc)


async def count(session, model, *criteria) -> int:
    result = await session.execute(select(func.count()).select_from(model).where(*criteria))
    return result.scalar_one()


@pytest.fixture
def rollback_service(db_session) -> SyllabusRollbackService:
    """Create rollback service bound to the test session."""
    return SyllabusRollbackService(db=db_session)


class TestRollback:
    """Tests for SyllabusRollbackService."""

    @pytest.mark.asyncio
    async def test_rollback_deletes_run_records(
        self, db_session, rollback_service, staged_run, sample_user_id, sample_commit_payload
    ):
        """Test that a rollback removes what the commit created."""
        await SyllabusCommitService(db_session).commit(
            staged_run.id,
            sample_user_id,
            CommitRequest.model_validate(sample_commit_payload),
            now=NOW,
        )

        result = await rollback_service.rollback(staged_run.id, sample_user_id)

        assert result.deleted_assignments == 3
        assert result.deleted_events == 6
        assert result.deleted_staging_items == 0
        assert await count(db_session, Assignment) == 0
        assert await count(db_session, CalendarEvent) == 0
        assert await count(db_session, CommitMarker) == 0
        # Courses and staged items are kept
        assert await count(db_session, Course) == 1
        assert await count(db_session, StagingItem, StagingItem.parse_run_id == staged_run.id) == 7

    @pytest.mark.asyncio
    async def test_rollback_twice_deletes_nothing(
        self, db_session, rollback_service, staged_run, sample_user_id, sample_commit_payload
    ):
        """Test that rollback is idempotent."""
        await SyllabusCommitService(db_session).commit(
            staged_run.id,
            sample_user_id,
            CommitRequest.model_validate(sample_commit_payload),
            now=NOW,
        )
        await rollback_service.rollback(staged_run.id, sample_user_id)

        result = await rollback_service.rollback(staged_run.id, sample_user_id)

        assert result.deleted_assignments == 0
        assert result.deleted_events == 0

    @pytest.mark.asyncio
    async def test_rollback_uncommitted_run(self, rollback_service, staged_run, sample_user_id):
        """Test that rolling back a run that never committed is a no-op."""
        result = await rollback_service.rollback(staged_run.id, sample_user_id)

        assert (result.deleted_assignments, result.deleted_events) == (0, 0)

    @pytest.mark.asyncio
    async def test_rollback_leaves_other_runs_intact(
        self, db_session, rollback_service, staged_run, sample_user_id, sample_commit_payload
    ):
        """Test that only the target run's records are removed."""
        commit_service = SyllabusCommitService(db_session)
        await commit_service.commit(
            staged_run.id,
            sample_user_id,
            CommitRequest.model_validate(sample_commit_payload),
            now=NOW,
        )

        tracker = ParseRunTracker(db_session)
        other = await tracker.create(sample_user_id, "uploads/chem.pdf")
        await StagingStore(db_session).put(
            other.id, [StagingItemCreate(type="course", payload={"name": "CHEM 200"})]
        )
        await tracker.mark_succeeded(other.id)
        await db_session.commit()
        await commit_service.commit(
            other.id,
            sample_user_id,
            CommitRequest.model_validate(
                {
                    "timezone": "UTC",
                    "course": {"name": "CHEM 200"},
                    "schedule": [{"day": "Fri", "start": "10:00", "end": "11:00"}],
                    "assignments": [{"title": "Problem Set 1", "due_date": "2025-09-12"}],
                }
            ),
            now=NOW,
        )

        await rollback_service.rollback(staged_run.id, sample_user_id)

        assert await count(db_session, Assignment, Assignment.parse_run_id == other.id) == 1
        assert await count(db_session, CalendarEvent, CalendarEvent.parse_run_id == other.id) == 2
        assert await count(db_session, CommitMarker, CommitMarker.parse_run_id == other.id) == 1
        assert await count(db_session, Assignment) == 1

    @pytest.mark.asyncio
    async def test_purge_staging(self, db_session, rollback_service, staged_run, sample_user_id):
        """Test that staged items are deleted only on request."""
        result = await rollback_service.rollback(
            staged_run.id, sample_user_id, purge_staging=True
        )

        assert result.deleted_staging_items == 7
        assert await count(db_session, StagingItem) == 0

    @pytest.mark.asyncio
    async def test_ownership(self, rollback_service, staged_run, other_user_id, sample_user_id):
        """Test that only the owner can roll back."""
        with pytest.raises(ParseRunAccessError):
            await rollback_service.rollback(staged_run.id, other_user_id)
        with pytest.raises(ParseRunNotFoundError):
            await rollback_service.rollback("missing", sample_user_id)
