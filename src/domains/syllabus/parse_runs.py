# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Parse run lifecycle tracking.

A parse run moves from pending to either succeeded or failed:

- pending -> failed: any extraction or staging error. Repeated failures
  overwrite the message (last write wins).
- pending -> succeeded: items were staged. Conditional on the run still
  being pending, so a failed run is never resurrected.
- succeeded -> failed: a commit against the run failed (stage=commit).

Tracker methods flush but do not commit; the caller owns the transaction.
"""

import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.syllabus.errors import ParseRunAccessError, ParseRunNotFoundError
from src.infrastructure.database.models.syllabus import (
    FailureStage,
    ParseRun,
    ParseRunStatus,
)
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class ParseRunTracker:
    """Creates parse runs and records their terminal status.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create(self, user_id: str, source_file_ref: str) -> ParseRun:
        """Create a pending parse run.

        Args:
            user_id: Owner of the run.
            source_file_ref: Reference to the uploaded file.

        Returns:
            The new run, status pending.
        """
        run = ParseRun(
            user_id=user_id,
            source_file_ref=source_file_ref,
            status=ParseRunStatus.PENDING.value,
        )
        self.db.add(run)
        await self.db.flush()

        logger.info("Created parse run: id=%s, user=%s", run.id, user_id)
        return run

    async def get(self, parse_run_id: str) -> ParseRun | None:
        """Get a parse run by ID, or None."""
        result = await self.db.execute(select(ParseRun).where(ParseRun.id == parse_run_id))
        return result.scalar_one_or_none()

    async def get_for_user(self, parse_run_id: str, user_id: str) -> ParseRun:
        """Get a parse run owned by the given user.

        Args:
            parse_run_id: Parse run identifier.
            user_id: Requesting user.

        Returns:
            The parse run.

        Raises:
            ParseRunNotFoundError: If the run does not exist.
            ParseRunAccessError: If the run belongs to another user.
        """
        run = await self.get(parse_run_id)
        if run is None:
            raise ParseRunNotFoundError(f"Parse run {parse_run_id} not found")
        if run.user_id != user_id:
            raise ParseRunAccessError("Parse run does not belong to user")
        return run

    async def mark_failed(
        self,
        parse_run_id: str,
        message: str,
        stage: FailureStage | str = FailureStage.STAGING,
    ) -> None:
        """Mark a run failed, overwriting any previous failure.

        Args:
            parse_run_id: Parse run identifier.
            message: Failure reason shown to the user.
            stage: Stage that failed (staging or commit).

        Raises:
            ParseRunNotFoundError: If the run does not exist.
        """
        stage_value = stage.value if isinstance(stage, FailureStage) else stage
        result = await self.db.execute(
            update(ParseRun)
            .where(ParseRun.id == parse_run_id)
            .values(
                status=ParseRunStatus.FAILED.value,
                error=message,
                failure_stage=stage_value,
                completed_at=utc_now(),
            )
        )
        if result.rowcount == 0:
            raise ParseRunNotFoundError(f"Parse run {parse_run_id} not found")

        logger.warning(
            "Parse run failed: id=%s, stage=%s, error=%s",
            parse_run_id,
            stage_value,
            message,
        )

    async def mark_succeeded(self, parse_run_id: str) -> bool:
        """Mark a pending run succeeded.

        Args:
            parse_run_id: Parse run identifier.

        Returns:
            True if the run moved to succeeded, False if it was not pending.
        """
        result = await self.db.execute(
            update(ParseRun)
            .where(
                ParseRun.id == parse_run_id,
                ParseRun.status == ParseRunStatus.PENDING.value,
            )
            .values(
                status=ParseRunStatus.SUCCEEDED.value,
                completed_at=utc_now(),
            )
        )
        changed = result.rowcount == 1
        if changed:
            logger.info("Parse run succeeded: id=%s", parse_run_id)
        else:
            logger.info("Parse run not pending, left unchanged: id=%s", parse_run_id)
        return changed

    async def list_ready_for_review(self, user_id: str) -> list[ParseRun]:
        """List a user's succeeded runs, newest first.

        Runs still pending (for example orphaned by a crash) are excluded.
        """
        result = await self.db.execute(
            select(ParseRun)
            .where(
                ParseRun.user_id == user_id,
                ParseRun.status == ParseRunStatus.SUCCEEDED.value,
            )
            .order_by(ParseRun.created_at.desc())
        )
        return list(result.scalars().all())
