# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course models for the system of record.

This module defines the entities a syllabus commit writes:
- Course: A user's course, upserted by (user_id, name)
- CourseRecurrence: A durable weekly class-session or office-hour definition
- Assignment: A graded deliverable with a due date
- CalendarEvent: A concrete occurrence materialized from a recurrence

Rows created by a commit carry the parse_run_id they came from. Rollback
addresses them by that column only.
"""

from datetime import datetime, time
from enum import Enum
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    SmallInteger,
    String,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    utc_now,
)


class RecurrenceKind(str, Enum):
    """Kind of weekly recurrence."""

    CLASS_SESSION = "class_session"
    OFFICE_HOUR = "office_hour"


class AssignmentStatus(str, Enum):
    """Completion status of an assignment."""

    PENDING = "pending"
    COMPLETED = "completed"


class Course(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A user's course.

    Attributes:
        user_id: Owner of the course.
        name: Course name, unique per user.
        professor: Instructor name.
        credits: Credit hours.
        grade_weights: Map of grading component to weight.
    """

    __tablename__ = "courses"

    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    professor: Mapped[str | None] = mapped_column(Text, nullable=True)
    credits: Mapped[float | None] = mapped_column(Float, nullable=True)
    grade_weights: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    recurrences: Mapped[list["CourseRecurrence"]] = relationship(
        "CourseRecurrence",
        back_populates="course",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_courses_user_name"),
    )

    def __repr__(self) -> str:
        return f"<Course(id={self.id}, name={self.name})>"


class CourseRecurrence(Base, UUIDPrimaryKeyMixin):
    """A weekly recurrence definition under a course.

    Times are local wall-clock values in ``timezone``; they are only turned
    into absolute instants when materialized into calendar events.

    Attributes:
        course_id: Owning course.
        user_id: Owner of the course.
        kind: class_session or office_hour.
        day_of_week: ISO weekday, 1=Monday through 7=Sunday.
        start_time_local: Local start time.
        end_time_local: Local end time.
        location: Room or link.
        timezone: IANA timezone of the local times.
        parse_run_id: Parse run that last wrote the definition.
    """

    __tablename__ = "course_recurrences"

    course_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    day_of_week: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    start_time_local: Mapped[time] = mapped_column(Time, nullable=False)
    end_time_local: Mapped[time] = mapped_column(Time, nullable=False)
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False)
    parse_run_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )

    course: Mapped["Course"] = relationship("Course", back_populates="recurrences")

    __table_args__ = (
        CheckConstraint(
            "day_of_week BETWEEN 1 AND 7",
            name="ck_course_recurrences_day_of_week",
        ),
        CheckConstraint(
            "kind IN ('class_session', 'office_hour')",
            name="ck_course_recurrences_kind",
        ),
    )

    def __repr__(self) -> str:
        return f"<CourseRecurrence(id={self.id}, kind={self.kind}, day={self.day_of_week})>"


class Assignment(Base, UUIDPrimaryKeyMixin):
    """A graded deliverable.

    Attributes:
        user_id: Owner.
        course_id: Course the assignment belongs to.
        title: Assignment title.
        due_at: Due instant (UTC).
        category: Free-form category such as "exam" or "homework".
        effort_estimate_minutes: Estimated effort.
        total_pages: Pages to read, for reading assignments.
        priority_score: Category-derived priority, 20 to 90.
        status: pending or completed.
        parse_run_id: Parse run that created the row.
        staging_item_id: Staged item the row was committed from.
    """

    __tablename__ = "assignments"

    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    course_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    due_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    category: Mapped[str | None] = mapped_column(Text, nullable=True)
    effort_estimate_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_pages: Mapped[int | None] = mapped_column(Integer, nullable=True)
    priority_score: Mapped[int] = mapped_column(Integer, nullable=False, default=20)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=AssignmentStatus.PENDING.value,
    )
    parse_run_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("syllabus_parse_runs.id"),
        nullable=True,
        index=True,
    )
    staging_item_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )

    def __repr__(self) -> str:
        return f"<Assignment(id={self.id}, title={self.title})>"


class CalendarEvent(Base, UUIDPrimaryKeyMixin):
    """A concrete occurrence of a recurrence.

    Attributes:
        user_id: Owner.
        course_id: Course the event belongs to.
        recurrence_id: Definition the event was materialized from.
        kind: class_session or office_hour.
        title: Display title.
        start_at: Start instant (UTC).
        end_at: End instant (UTC).
        location: Room or link.
        parse_run_id: Parse run that created the row.
    """

    __tablename__ = "calendar_events"

    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    course_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
    )
    recurrence_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("course_recurrences.id", ondelete="SET NULL"),
        nullable=True,
    )
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    parse_run_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("syllabus_parse_runs.id"),
        nullable=True,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )

    __table_args__ = (
        UniqueConstraint("recurrence_id", "start_at", name="uq_calendar_events_recurrence_start"),
        CheckConstraint("end_at > start_at", name="ck_calendar_events_time_order"),
    )

    def __repr__(self) -> str:
        return f"<CalendarEvent(id={self.id}, kind={self.kind}, start_at={self.start_at})>"
