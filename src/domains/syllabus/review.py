# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Review view over a staged parse run."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.syllabus.errors import MissingCourseItemError, NothingToReviewError
from src.domains.syllabus.parse_runs import ParseRunTracker
from src.domains.syllabus.staging import StagingStore
from src.domains.syllabus.triage import TriagedItem, triage_items
from src.infrastructure.database.models.syllabus import (
    FailureStage,
    ParseRunStatus,
    StagingItemType,
)
from src.models.syllabus import (
    ParseRunResponse,
    ReviewResponse,
    StagingItemResponse,
    TriagedAssignment,
)

logger = logging.getLogger(__name__)


def _to_triaged(entry: TriagedItem) -> TriagedAssignment:
    return TriagedAssignment(
        item=StagingItemResponse.model_validate(entry.item),
        group=entry.decision.group.value,
        is_low_confidence=entry.decision.is_low_confidence,
    )


class SyllabusReviewService:
    """Builds the read-only review view of a parse run.

    Attributes:
        db: Async database session.
        parse_runs: Parse run tracker on the same session.
        staging: Staging store on the same session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.parse_runs = ParseRunTracker(db)
        self.staging = StagingStore(db)

    async def build_review(self, parse_run_id: str, user_id: str) -> ReviewResponse:
        """Build the review view for a succeeded run.

        Args:
            parse_run_id: Parse run to review.
            user_id: Requesting user; must own the run.

        Returns:
            Course, schedule, office hours and triaged assignments.

        Raises:
            ParseRunNotFoundError: If the run does not exist.
            ParseRunAccessError: If the run belongs to another user.
            NothingToReviewError: If the run did not succeed or has no
                course item. A succeeded run without a course item is
                marked failed.
        """
        run = await self.parse_runs.get_for_user(parse_run_id, user_id)
        if run.status != ParseRunStatus.SUCCEEDED.value:
            raise NothingToReviewError(
                run.error or f"Parse run is {run.status}; nothing to review"
            )

        try:
            course_item = await self.staging.require_course_item(parse_run_id)
        except MissingCourseItemError as e:
            await self.parse_runs.mark_failed(parse_run_id, e.message, FailureStage.STAGING)
            await self.db.commit()
            raise NothingToReviewError(e.message) from e

        items = await self.staging.list_by_run(parse_run_id)
        schedule = [i for i in items if i.type == StagingItemType.CLASS_SCHEDULE.value]
        office_hours = [i for i in items if i.type == StagingItemType.OFFICE_HOURS.value]
        report = triage_items(items)

        logger.debug(
            "Built review: parse_run=%s, assignments=%d, low_confidence=%d",
            parse_run_id,
            len(report.entries),
            len(report.low_confidence),
        )
        return ReviewResponse(
            parse_run=ParseRunResponse.model_validate(run),
            course_item_id=course_item.id,
            course=course_item.payload,
            schedule=[StagingItemResponse.model_validate(i) for i in schedule],
            office_hours=[StagingItemResponse.model_validate(i) for i in office_hours],
            high_stakes=[_to_triaged(e) for e in report.high_stakes],
            routine=[_to_triaged(e) for e in report.routine],
            low_confidence_count=len(report.low_confidence),
        )
