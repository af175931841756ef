# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Syllabus commit engine.

Turns a reviewed parse run into durable records in one transaction:

1. Claim the run by inserting its commit marker
2. Upsert the course by (user, name)
3. Replace the course's class-session and office-hour definitions
4. Materialize definitions into calendar events
5. Create assignments, skipping exact duplicates
6. Store the summary on the marker and commit

The payload is validated before the transaction starts; a validation
error leaves the run untouched. A failure inside the transaction rolls
everything back and marks the run failed with stage=commit.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone as dt_timezone
from zoneinfo import ZoneInfo

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.syllabus.errors import (
    AlreadyCommittedError,
    CommitFailedError,
    CommitValidationError,
)
from src.domains.syllabus.parse_runs import ParseRunTracker
from src.domains.syllabus.recurrence import (
    RecurrenceDefinition,
    RecurrenceMaterializer,
    RecurrenceParseError,
)
from src.domains.syllabus.staging import StagingStore
from src.infrastructure.database.models.course import (
    Assignment,
    AssignmentStatus,
    CalendarEvent,
    Course,
    CourseRecurrence,
    RecurrenceKind,
)
from src.infrastructure.database.models.syllabus import CommitMarker, FailureStage
from src.models.syllabus import CommitRequest, CommitSummary, RecurrenceEntry
from src.utils.datetime import InvalidTimezoneError, get_zone, local_to_utc, utc_now
from src.utils.logging import parse_run_context

logger = logging.getLogger(__name__)

DUE_DATE_LOCAL_TIME = time(23, 59)

_DATE_ONLY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_EVENT_TITLES = {
    RecurrenceKind.CLASS_SESSION: "Class: {course}",
    RecurrenceKind.OFFICE_HOUR: "Office Hours: {course}",
}


def calculate_priority_score(category: str | None) -> int:
    """Derive an assignment's priority from its category.

    Args:
        category: Free-form category.

    Returns:
        90 for exams and tests, 70 for projects, 40 for homework,
        25 for reading and 20 otherwise.
    """
    if not category:
        return 20
    normalized = category.lower()
    if any(keyword in normalized for keyword in ("exam", "test", "midterm", "final")):
        return 90
    if "project" in normalized:
        return 70
    if "homework" in normalized or "hw" in normalized:
        return 40
    if "reading" in normalized:
        return 25
    return 20


def parse_due_date(value: str | None, zone: ZoneInfo) -> datetime | None:
    """Parse a reviewed due date into a UTC instant.

    Args:
        value: ``YYYY-MM-DD`` (due 23:59 local), an ISO datetime with an
            offset, or a naive ISO datetime (local). Empty means no due date.
        zone: Commit timezone.

    Returns:
        UTC datetime, or None.

    Raises:
        ValueError: If the value is not a valid date or datetime.
    """
    if value is None or not value.strip():
        return None

    text = value.strip()
    if _DATE_ONLY_PATTERN.match(text):
        return local_to_utc(date.fromisoformat(text), DUE_DATE_LOCAL_TIME, zone)

    parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=zone)
    return parsed.astimezone(dt_timezone.utc)


@dataclass(frozen=True)
class ValidatedAssignment:
    """An included assignment after validation."""

    title: str
    due_at: datetime | None
    category: str | None
    effort_estimate_minutes: int | None
    total_pages: int | None
    staging_item_id: str | None


@dataclass
class ValidatedCommit:
    """A commit payload after validation."""

    timezone: str
    zone: ZoneInfo
    course_name: str
    professor: str | None
    credits: float | None
    grade_weights: dict[str, float]
    schedule: list[RecurrenceDefinition] = field(default_factory=list)
    office_hours: list[RecurrenceDefinition] = field(default_factory=list)
    assignments: list[ValidatedAssignment] = field(default_factory=list)


class SyllabusCommitService:
    """Commits reviewed syllabus data for a parse run.

    Attributes:
        db: Async database session.
        parse_runs: Parse run tracker on the same session.
        staging: Staging store on the same session.
        materializer: Recurrence materializer.
        default_timezone: Timezone used when neither the call nor the
            payload names one.
    """

    def __init__(
        self,
        db: AsyncSession,
        materializer: RecurrenceMaterializer | None = None,
        default_timezone: str = "UTC",
    ) -> None:
        self.db = db
        self.parse_runs = ParseRunTracker(db)
        self.staging = StagingStore(db)
        self.materializer = materializer or RecurrenceMaterializer()
        self.default_timezone = default_timezone

    async def commit(
        self,
        parse_run_id: str,
        user_id: str,
        payload: CommitRequest,
        timezone: str | None = None,
        now: datetime | None = None,
    ) -> CommitSummary:
        """Commit the reviewed subset of a parse run.

        Args:
            parse_run_id: Parse run to commit.
            user_id: Committing user; must own the run.
            payload: Reviewed course, schedule, office hours and assignments.
            timezone: IANA timezone; falls back to the payload, then the
                service default.
            now: Materialization horizon start; defaults to the current time.

        Returns:
            Counts of what was written.

        Raises:
            ParseRunNotFoundError: If the run does not exist.
            ParseRunAccessError: If the run belongs to another user.
            CommitValidationError: If the payload is invalid.
            AlreadyCommittedError: If the run was already committed.
            CommitFailedError: If the transaction failed.
        """
        await self.parse_runs.get_for_user(parse_run_id, user_id)
        with parse_run_context(parse_run_id):
            return await self._commit(parse_run_id, user_id, payload, timezone, now)

    async def _commit(
        self,
        parse_run_id: str,
        user_id: str,
        payload: CommitRequest,
        timezone: str | None,
        now: datetime | None,
    ) -> CommitSummary:
        validated = self._validate(payload, timezone or payload.timezone or self.default_timezone)
        await self._validate_staging_references(parse_run_id, validated.assignments)

        marker = CommitMarker(parse_run_id=parse_run_id, committed_by=user_id)
        try:
            self.db.add(marker)
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            logger.info("Commit rejected, already committed: parse_run=%s", parse_run_id)
            raise AlreadyCommittedError(parse_run_id) from e

        try:
            summary = await self._write(parse_run_id, user_id, validated, now)
            marker.summary = summary.model_dump()
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            # Driver messages carry the SQL statement and its parameters
            if isinstance(e, SQLAlchemyError):
                reason = e.__class__.__name__
            else:
                reason = str(e) or e.__class__.__name__
            await self._record_failure(parse_run_id, reason)
            raise CommitFailedError(f"Commit failed: {reason}") from e

        logger.info(
            "Committed parse run: id=%s, course=%s, assignments=%d, class_events=%d, "
            "office_hour_events=%d",
            parse_run_id,
            summary.course_id,
            summary.assignments_created,
            summary.class_events_created,
            summary.office_hour_events_created,
        )
        return summary

    def _validate(self, payload: CommitRequest, timezone_name: str) -> ValidatedCommit:
        try:
            zone = get_zone(timezone_name)
        except InvalidTimezoneError as e:
            raise CommitValidationError(str(e)) from e

        course_name = (payload.course.name or "").strip()
        if not course_name:
            raise CommitValidationError("Course name is required")

        for component, weight in payload.course.grade_weights.items():
            if not math.isfinite(weight) or weight < 0:
                raise CommitValidationError(
                    f"Grade weight for {component!r} must be a non-negative number"
                )

        validated = ValidatedCommit(
            timezone=zone.key,
            zone=zone,
            course_name=course_name,
            professor=payload.course.professor,
            credits=payload.course.credits,
            grade_weights=dict(payload.course.grade_weights),
            schedule=self._parse_entries("schedule", payload.schedule),
            office_hours=self._parse_entries("office_hours", payload.office_hours),
        )

        for index, entry in enumerate(payload.assignments):
            if not entry.include:
                continue
            title = (entry.title or "").strip()
            if not title:
                raise CommitValidationError(f"assignments[{index}]: title is required")
            try:
                due_at = parse_due_date(entry.due_date, zone)
            except ValueError as e:
                raise CommitValidationError(
                    f"assignments[{index}]: invalid due date {entry.due_date!r}"
                ) from e
            validated.assignments.append(
                ValidatedAssignment(
                    title=title,
                    due_at=due_at,
                    category=entry.category,
                    effort_estimate_minutes=entry.effort_estimate_minutes,
                    total_pages=entry.total_pages,
                    staging_item_id=entry.staging_item_id,
                )
            )

        return validated

    @staticmethod
    def _parse_entries(label: str, entries: list[RecurrenceEntry]) -> list[RecurrenceDefinition]:
        definitions = []
        for index, entry in enumerate(entries):
            if not entry.include:
                continue
            try:
                definitions.append(
                    RecurrenceDefinition.from_raw(entry.day, entry.start, entry.end, entry.location)
                )
            except RecurrenceParseError as e:
                raise CommitValidationError(f"{label}[{index}]: {e}") from e
        return definitions

    async def _validate_staging_references(
        self,
        parse_run_id: str,
        assignments: list[ValidatedAssignment],
    ) -> None:
        referenced = {a.staging_item_id for a in assignments if a.staging_item_id}
        if not referenced:
            return
        found = await self.staging.find_ids(parse_run_id, referenced)
        missing = referenced - found
        if missing:
            raise CommitValidationError(
                f"Staging items do not belong to this parse run: {', '.join(sorted(missing))}"
            )

    async def _write(
        self,
        parse_run_id: str,
        user_id: str,
        validated: ValidatedCommit,
        now: datetime | None,
    ) -> CommitSummary:
        # One horizon start for every definition in this commit
        now = now or utc_now()
        course = await self._upsert_course(user_id, validated)

        events_created: dict[RecurrenceKind, int] = {}
        for kind, definitions in (
            (RecurrenceKind.CLASS_SESSION, validated.schedule),
            (RecurrenceKind.OFFICE_HOUR, validated.office_hours),
        ):
            events_created[kind] = await self._replace_recurrences(
                parse_run_id, user_id, course, kind, definitions, validated, now
            )

        assignments_created = await self._create_assignments(
            parse_run_id, user_id, course.id, validated.assignments
        )

        return CommitSummary(
            course_id=course.id,
            course_name=course.name,
            timezone=validated.timezone,
            assignments_created=assignments_created,
            schedule_saved=len(validated.schedule),
            office_hours_saved=len(validated.office_hours),
            class_events_created=events_created[RecurrenceKind.CLASS_SESSION],
            office_hour_events_created=events_created[RecurrenceKind.OFFICE_HOUR],
        )

    async def _upsert_course(self, user_id: str, validated: ValidatedCommit) -> Course:
        result = await self.db.execute(
            select(Course).where(
                Course.user_id == user_id,
                Course.name == validated.course_name,
            )
        )
        course = result.scalar_one_or_none()

        if course is None:
            course = Course(user_id=user_id, name=validated.course_name)
            self.db.add(course)

        course.professor = validated.professor
        course.credits = validated.credits
        course.grade_weights = validated.grade_weights
        await self.db.flush()
        return course

    async def _replace_recurrences(
        self,
        parse_run_id: str,
        user_id: str,
        course: Course,
        kind: RecurrenceKind,
        definitions: list[RecurrenceDefinition],
        validated: ValidatedCommit,
        now: datetime,
    ) -> int:
        # Existing definitions of this kind stay unless new ones were submitted
        if not definitions:
            return 0

        await self.db.execute(
            delete(CourseRecurrence).where(
                CourseRecurrence.course_id == course.id,
                CourseRecurrence.kind == kind.value,
            )
        )

        title = _EVENT_TITLES[kind].format(course=course.name)
        created = 0
        for definition in definitions:
            recurrence = CourseRecurrence(
                course_id=course.id,
                user_id=user_id,
                kind=kind.value,
                day_of_week=definition.day_of_week,
                start_time_local=definition.start_time,
                end_time_local=definition.end_time,
                location=definition.location,
                timezone=validated.timezone,
                parse_run_id=parse_run_id,
            )
            self.db.add(recurrence)
            await self.db.flush()

            for occurrence in self.materializer.materialize_definition(
                definition, validated.zone, now
            ):
                self.db.add(
                    CalendarEvent(
                        user_id=user_id,
                        course_id=course.id,
                        recurrence_id=recurrence.id,
                        kind=kind.value,
                        title=title,
                        start_at=occurrence.start_at,
                        end_at=occurrence.end_at,
                        location=occurrence.location,
                        parse_run_id=parse_run_id,
                    )
                )
                created += 1

        await self.db.flush()
        return created

    async def _create_assignments(
        self,
        parse_run_id: str,
        user_id: str,
        course_id: str,
        assignments: list[ValidatedAssignment],
    ) -> int:
        created = 0
        seen: set[tuple[str, datetime | None]] = set()
        for item in assignments:
            key = (item.title, item.due_at)
            if key in seen or await self._assignment_exists(user_id, course_id, item):
                logger.debug("Skipping duplicate assignment: course=%s, title=%s", course_id, item.title)
                continue
            seen.add(key)

            self.db.add(
                Assignment(
                    user_id=user_id,
                    course_id=course_id,
                    title=item.title,
                    due_at=item.due_at,
                    category=item.category,
                    effort_estimate_minutes=item.effort_estimate_minutes,
                    total_pages=item.total_pages,
                    priority_score=calculate_priority_score(item.category),
                    status=AssignmentStatus.PENDING.value,
                    parse_run_id=parse_run_id,
                    staging_item_id=item.staging_item_id,
                )
            )
            created += 1

        await self.db.flush()
        return created

    async def _assignment_exists(
        self,
        user_id: str,
        course_id: str,
        item: ValidatedAssignment,
    ) -> bool:
        conditions = [
            Assignment.user_id == user_id,
            Assignment.course_id == course_id,
            Assignment.title == item.title,
        ]
        # Without a due date any same-titled assignment counts as a duplicate
        if item.due_at is not None:
            conditions.append(Assignment.due_at == item.due_at)

        result = await self.db.execute(select(Assignment.id).where(*conditions).limit(1))
        return result.first() is not None

    async def _record_failure(self, parse_run_id: str, reason: str) -> None:
        try:
            await self.parse_runs.mark_failed(
                parse_run_id,
                f"Commit failed: {reason}",
                FailureStage.COMMIT,
            )
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Could not record commit failure: parse_run=%s", parse_run_id)
