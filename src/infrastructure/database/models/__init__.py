# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy models for the syllabus import service.

Importing this package registers every table on Base.metadata.
"""

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.infrastructure.database.models.course import (
    Assignment,
    AssignmentStatus,
    CalendarEvent,
    Course,
    CourseRecurrence,
    RecurrenceKind,
)
from src.infrastructure.database.models.syllabus import (
    CommitMarker,
    FailureStage,
    ParseRun,
    ParseRunStatus,
    StagingItem,
    StagingItemType,
)

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    # Syllabus
    "ParseRun",
    "ParseRunStatus",
    "FailureStage",
    "StagingItem",
    "StagingItemType",
    "CommitMarker",
    # Course
    "Course",
    "CourseRecurrence",
    "RecurrenceKind",
    "Assignment",
    "AssignmentStatus",
    "CalendarEvent",
]
