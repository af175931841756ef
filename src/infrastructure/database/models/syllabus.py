# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Syllabus import models.

This module defines models for the provisional side of the import pipeline:
- ParseRun: One extraction attempt over an uploaded syllabus
- StagingItem: A typed, provisional record produced by a parse run
- CommitMarker: Claims a parse run once it has been committed
"""

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, UUIDPrimaryKeyMixin, utc_now


class ParseRunStatus(str, Enum):
    """Lifecycle status of a parse run."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FailureStage(str, Enum):
    """Pipeline stage that failed a parse run."""

    STAGING = "staging"
    COMMIT = "commit"


class StagingItemType(str, Enum):
    """Type of a staged record."""

    COURSE = "course"
    CLASS_SCHEDULE = "class_schedule"
    OFFICE_HOURS = "office_hours"
    ASSIGNMENT = "assignment"


class ParseRun(Base, UUIDPrimaryKeyMixin):
    """One extraction attempt over an uploaded syllabus.

    Terminal once succeeded or failed. A failed run keeps the last
    failure message written to it.

    Attributes:
        user_id: Owner of the run.
        source_file_ref: Opaque reference to the uploaded file.
        status: pending, succeeded or failed.
        error: Failure message, if failed.
        failure_stage: Stage that failed the run (staging or commit).
        created_at: When extraction was invoked.
        completed_at: When the run reached a terminal status.
    """

    __tablename__ = "syllabus_parse_runs"

    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    source_file_ref: Mapped[str] = mapped_column(String(1024), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ParseRunStatus.PENDING.value,
    )
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    failure_stage: Mapped[str | None] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    staging_items: Mapped[list["StagingItem"]] = relationship(
        "StagingItem",
        back_populates="parse_run",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'succeeded', 'failed')",
            name="ck_syllabus_parse_runs_status",
        ),
        Index("ix_syllabus_parse_runs_user_status", "user_id", "status"),
    )

    @property
    def is_terminal(self) -> bool:
        """Check if the run has reached succeeded or failed."""
        return self.status != ParseRunStatus.PENDING.value

    def __repr__(self) -> str:
        return f"<ParseRun(id={self.id}, status={self.status})>"


class StagingItem(Base, UUIDPrimaryKeyMixin):
    """A provisional record staged under a parse run.

    Immutable once written. Reviewer edits are applied at commit time and
    never written back here.

    Attributes:
        parse_run_id: Owning parse run.
        type: course, class_schedule, office_hours or assignment.
        payload: Type-specific fields from the extractor.
        confidence_score: Extractor confidence in [0, 1], or None if unscored.
        dedupe_key: Short hash of type and payload.
        position: Order within the batch the item was staged in.
        created_at: Insertion time.
    """

    __tablename__ = "syllabus_staging_items"

    parse_run_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("syllabus_parse_runs.id", ondelete="CASCADE"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    confidence_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    dedupe_key: Mapped[str] = mapped_column(String(16), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )

    parse_run: Mapped["ParseRun"] = relationship("ParseRun", back_populates="staging_items")

    __table_args__ = (
        CheckConstraint(
            "confidence_score IS NULL OR (confidence_score >= 0 AND confidence_score <= 1)",
            name="ck_syllabus_staging_items_confidence",
        ),
        CheckConstraint(
            "type IN ('course', 'class_schedule', 'office_hours', 'assignment')",
            name="ck_syllabus_staging_items_type",
        ),
        Index("ix_syllabus_staging_items_run_type", "parse_run_id", "type"),
    )

    def __repr__(self) -> str:
        return f"<StagingItem(id={self.id}, type={self.type})>"


class CommitMarker(Base, UUIDPrimaryKeyMixin):
    """Records the successful commit of a parse run.

    The unique parse_run_id is what makes a second commit fail. Rollback
    deletes the marker so the run can be committed again.

    Attributes:
        parse_run_id: Committed parse run.
        committed_by: User who committed.
        committed_at: Commit time.
        summary: Counts produced by the commit.
    """

    __tablename__ = "syllabus_commits"

    parse_run_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("syllabus_parse_runs.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    committed_by: Mapped[str] = mapped_column(String(255), nullable=False)
    committed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    summary: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<CommitMarker(parse_run_id={self.parse_run_id})>"
