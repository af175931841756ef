# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial syllabus import schema.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2025-09-01
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create syllabus import tables."""
    # =========================================================================
    # STAGING TABLES
    # =========================================================================

    op.create_table(
        "syllabus_parse_runs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("source_file_ref", sa.String(1024), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("error", sa.Text, nullable=True),
        sa.Column("failure_stage", sa.String(20), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('pending', 'succeeded', 'failed')",
            name="ck_syllabus_parse_runs_status",
        ),
    )
    op.create_index("ix_syllabus_parse_runs_user_id", "syllabus_parse_runs", ["user_id"])
    op.create_index(
        "ix_syllabus_parse_runs_user_status",
        "syllabus_parse_runs",
        ["user_id", "status"],
    )

    op.create_table(
        "syllabus_staging_items",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "parse_run_id",
            sa.String(36),
            sa.ForeignKey("syllabus_parse_runs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("payload", sa.JSON, nullable=False),
        sa.Column("confidence_score", sa.Float, nullable=True),
        sa.Column("dedupe_key", sa.String(16), nullable=False),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.CheckConstraint(
            "confidence_score IS NULL OR (confidence_score >= 0 AND confidence_score <= 1)",
            name="ck_syllabus_staging_items_confidence",
        ),
        sa.CheckConstraint(
            "type IN ('course', 'class_schedule', 'office_hours', 'assignment')",
            name="ck_syllabus_staging_items_type",
        ),
    )
    op.create_index(
        "ix_syllabus_staging_items_run_type",
        "syllabus_staging_items",
        ["parse_run_id", "type"],
    )

    op.create_table(
        "syllabus_commits",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "parse_run_id",
            sa.String(36),
            sa.ForeignKey("syllabus_parse_runs.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("committed_by", sa.String(255), nullable=False),
        sa.Column(
            "committed_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column("summary", sa.JSON, nullable=True),
    )

    # =========================================================================
    # SYSTEM OF RECORD TABLES
    # =========================================================================

    op.create_table(
        "courses",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("professor", sa.Text, nullable=True),
        sa.Column("credits", sa.Float, nullable=True),
        sa.Column("grade_weights", sa.JSON, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.UniqueConstraint("user_id", "name", name="uq_courses_user_name"),
    )
    op.create_index("ix_courses_user_id", "courses", ["user_id"])

    op.create_table(
        "course_recurrences",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "course_id",
            sa.String(36),
            sa.ForeignKey("courses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("day_of_week", sa.SmallInteger, nullable=False),
        sa.Column("start_time_local", sa.Time, nullable=False),
        sa.Column("end_time_local", sa.Time, nullable=False),
        sa.Column("location", sa.Text, nullable=True),
        sa.Column("timezone", sa.String(64), nullable=False),
        sa.Column("parse_run_id", sa.String(36), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.CheckConstraint(
            "day_of_week BETWEEN 1 AND 7",
            name="ck_course_recurrences_day_of_week",
        ),
        sa.CheckConstraint(
            "kind IN ('class_session', 'office_hour')",
            name="ck_course_recurrences_kind",
        ),
    )
    op.create_index("ix_course_recurrences_course_id", "course_recurrences", ["course_id"])

    op.create_table(
        "assignments",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column(
            "course_id",
            sa.String(36),
            sa.ForeignKey("courses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("due_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("category", sa.Text, nullable=True),
        sa.Column("effort_estimate_minutes", sa.Integer, nullable=True),
        sa.Column("total_pages", sa.Integer, nullable=True),
        sa.Column("priority_score", sa.Integer, nullable=False, server_default="20"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column(
            "parse_run_id",
            sa.String(36),
            sa.ForeignKey("syllabus_parse_runs.id"),
            nullable=True,
        ),
        sa.Column("staging_item_id", sa.String(36), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    )
    op.create_index("ix_assignments_user_id", "assignments", ["user_id"])
    op.create_index("ix_assignments_course_id", "assignments", ["course_id"])
    op.create_index("ix_assignments_parse_run_id", "assignments", ["parse_run_id"])

    op.create_table(
        "calendar_events",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column(
            "course_id",
            sa.String(36),
            sa.ForeignKey("courses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "recurrence_id",
            sa.String(36),
            sa.ForeignKey("course_recurrences.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location", sa.Text, nullable=True),
        sa.Column(
            "parse_run_id",
            sa.String(36),
            sa.ForeignKey("syllabus_parse_runs.id"),
            nullable=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.UniqueConstraint(
            "recurrence_id",
            "start_at",
            name="uq_calendar_events_recurrence_start",
        ),
        sa.CheckConstraint("end_at > start_at", name="ck_calendar_events_time_order"),
    )
    op.create_index("ix_calendar_events_user_id", "calendar_events", ["user_id"])
    op.create_index("ix_calendar_events_parse_run_id", "calendar_events", ["parse_run_id"])


def downgrade() -> None:
    """Drop syllabus import tables."""
    op.drop_table("calendar_events")
    op.drop_table("assignments")
    op.drop_table("course_recurrences")
    op.drop_table("courses")
    op.drop_table("syllabus_commits")
    op.drop_table("syllabus_staging_items")
    op.drop_table("syllabus_parse_runs")
