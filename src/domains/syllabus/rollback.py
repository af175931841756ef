# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Syllabus rollback engine.

Undoes a commit by deleting every assignment and calendar event tagged
with the parse run, then removing the commit marker so the run can be
committed again. Courses and recurrence definitions are kept. Rolling
back a run with nothing committed deletes nothing and is not an error.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.syllabus.parse_runs import ParseRunTracker
from src.domains.syllabus.staging import StagingStore
from src.infrastructure.database.models.course import Assignment, CalendarEvent
from src.infrastructure.database.models.syllabus import CommitMarker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RollbackResult:
    """Rows removed by a rollback."""

    deleted_assignments: int
    deleted_events: int
    deleted_staging_items: int = 0


class SyllabusRollbackService:
    """Rolls back the records a parse run committed.

    Attributes:
        db: Async database session.
        parse_runs: Parse run tracker on the same session.
        staging: Staging store on the same session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.parse_runs = ParseRunTracker(db)
        self.staging = StagingStore(db)

    async def rollback(
        self,
        parse_run_id: str,
        user_id: str,
        purge_staging: bool = False,
    ) -> RollbackResult:
        """Delete everything a parse run's commit created.

        Args:
            parse_run_id: Parse run to roll back.
            user_id: Requesting user; must own the run.
            purge_staging: Also delete the run's staged items.

        Returns:
            Counts of deleted rows.

        Raises:
            ParseRunNotFoundError: If the run does not exist.
            ParseRunAccessError: If the run belongs to another user.
        """
        await self.parse_runs.get_for_user(parse_run_id, user_id)

        try:
            assignments = await self.db.execute(
                delete(Assignment).where(Assignment.parse_run_id == parse_run_id)
            )
            events = await self.db.execute(
                delete(CalendarEvent).where(CalendarEvent.parse_run_id == parse_run_id)
            )
            await self.db.execute(
                delete(CommitMarker).where(CommitMarker.parse_run_id == parse_run_id)
            )

            purged = 0
            if purge_staging:
                purged = await self.staging.delete_by_run(parse_run_id)

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        result = RollbackResult(
            deleted_assignments=assignments.rowcount or 0,
            deleted_events=events.rowcount or 0,
            deleted_staging_items=purged,
        )
        logger.info(
            "Rolled back parse run: id=%s, assignments=%d, events=%d, staging_items=%d",
            parse_run_id,
            result.deleted_assignments,
            result.deleted_events,
            result.deleted_staging_items,
        )
        return result
