# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for database models.

Tests model definitions, constraints, and helper methods.
"""

from sqlalchemy import Text

from src.infrastructure.database.models import (
    Assignment,
    Base,
    CalendarEvent,
    CommitMarker,
    Course,
    CourseRecurrence,
    ParseRun,
    ParseRunStatus,
    StagingItem,
    TimestampMixin,
)
from src.infrastructure.database.models.base import generate_uuid


class TestBase:
    """Test base model functionality."""

    def test_base_inherits_declarative_base(self):
        """Verify Base is a declarative base."""
        assert hasattr(Base, "metadata")
        assert hasattr(Base, "registry")

    def test_timestamp_mixin_has_created_at(self):
        """Verify TimestampMixin has created_at field."""
        assert hasattr(TimestampMixin, "created_at")
        assert hasattr(TimestampMixin, "updated_at")

    def test_generate_uuid(self):
        """Verify generated ids are unique 36 character strings."""
        first, second = generate_uuid(), generate_uuid()

        assert len(first) == 36
        assert first != second

    def test_all_tables_registered(self):
        """Verify every table is on the shared metadata."""
        assert set(Base.metadata.tables) == {
            "syllabus_parse_runs",
            "syllabus_staging_items",
            "syllabus_commits",
            "courses",
            "course_recurrences",
            "assignments",
            "calendar_events",
        }


class TestSyllabusModels:
    """Test parse run, staging and commit marker models."""

    def test_parse_run_is_terminal(self):
        """Test ParseRun.is_terminal property."""
        run = ParseRun(user_id="u1", source_file_ref="f", status=ParseRunStatus.PENDING.value)
        assert not run.is_terminal

        run.status = ParseRunStatus.SUCCEEDED.value
        assert run.is_terminal

        run.status = ParseRunStatus.FAILED.value
        assert run.is_terminal

    def test_staging_item_columns(self):
        """Verify StagingItem carries payload, confidence and dedupe key."""
        columns = StagingItem.__table__.columns

        assert columns["confidence_score"].nullable
        assert not columns["payload"].nullable
        assert columns["dedupe_key"].type.length == 16
        assert {fk.column.table.name for fk in columns["parse_run_id"].foreign_keys} == {
            "syllabus_parse_runs"
        }

    def test_commit_marker_is_unique_per_run(self):
        """Verify a run can carry at most one commit marker."""
        assert CommitMarker.__table__.columns["parse_run_id"].unique


class TestCourseModels:
    """Test course, recurrence, assignment and event models."""

    def test_course_unique_per_user_and_name(self):
        """Verify the course upsert key is enforced."""
        constraint_names = {c.name for c in Course.__table__.constraints}

        assert "uq_courses_user_name" in constraint_names

    def test_recurrence_day_check(self):
        """Verify recurrence day of week is constrained."""
        constraint_names = {c.name for c in CourseRecurrence.__table__.constraints}

        assert "ck_course_recurrences_day_of_week" in constraint_names

    def test_assignment_tracks_parse_run(self):
        """Verify assignments record the run that created them."""
        columns = Assignment.__table__.columns

        assert columns["parse_run_id"].index
        assert columns["due_at"].nullable
        assert columns["priority_score"].default.arg == 20

    def test_calendar_event_recurrence_link(self):
        """Verify events survive deletion of their recurrence."""
        fk = next(iter(CalendarEvent.__table__.columns["recurrence_id"].foreign_keys))

        assert fk.ondelete == "SET NULL"

    def test_free_form_columns_are_unbounded(self):
        """Verify user-edited text columns have no length limit."""
        unbounded = [
            Course.__table__.columns["name"],
            Course.__table__.columns["professor"],
            CourseRecurrence.__table__.columns["location"],
            Assignment.__table__.columns["title"],
            Assignment.__table__.columns["category"],
            CalendarEvent.__table__.columns["title"],
            CalendarEvent.__table__.columns["location"],
        ]

        for column in unbounded:
            assert isinstance(column.type, Text), column.name
