# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Syllabus import request and response models.

Request models carry the reviewer's edited data as loose strings; dates,
times, days and timezones are validated by the commit service so that a
bad value is reported as a commit validation error.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.utils.datetime import ensure_utc

StagingItemTypeName = Literal["course", "class_schedule", "office_hours", "assignment"]


# ============================================================================
# Staging Models
# ============================================================================


class StagingItemCreate(BaseModel):
    """A typed item to stage under a parse run."""

    type: StagingItemTypeName = Field(description="Item type")
    payload: dict[str, Any] = Field(default_factory=dict, description="Type-specific fields")
    confidence_score: float | None = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Extractor confidence, None if unscored",
    )


class StagingItemResponse(BaseModel):
    """A staged item."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    parse_run_id: str
    type: str
    payload: dict[str, Any]
    confidence_score: float | None = None
    dedupe_key: str
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def validate_created_at(cls, v: datetime) -> datetime:
        """Read timestamps stored without an offset as UTC."""
        return ensure_utc(v)


class StagingItemListResponse(BaseModel):
    """Response for staged item listing."""

    items: list[StagingItemResponse]
    total: int


# ============================================================================
# Parse Run Models
# ============================================================================


class IngestRequest(BaseModel):
    """Request to parse an uploaded syllabus."""

    source_file_ref: str = Field(
        min_length=1,
        max_length=1024,
        description="Reference to the uploaded file in blob storage",
    )
    timezone: str | None = Field(
        default=None,
        description="IANA timezone used to interpret relative dates",
        examples=["America/New_York"],
    )


class ParseRunResponse(BaseModel):
    """Parse run status."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    source_file_ref: str
    status: str
    error: str | None = None
    failure_stage: str | None = None
    created_at: datetime
    completed_at: datetime | None = None

    @field_validator("created_at", "completed_at")
    @classmethod
    def validate_timestamps(cls, v: datetime | None) -> datetime | None:
        """Read timestamps stored without an offset as UTC."""
        return ensure_utc(v)


class ParseRunListResponse(BaseModel):
    """Response for parse run listing."""

    items: list[ParseRunResponse]
    total: int


# ============================================================================
# Review Models
# ============================================================================


class TriagedAssignment(BaseModel):
    """An assignment item annotated with its triage decision."""

    item: StagingItemResponse
    group: Literal["high_stakes", "routine"]
    is_low_confidence: bool


class ReviewResponse(BaseModel):
    """Review view of a succeeded parse run."""

    parse_run: ParseRunResponse
    course_item_id: str
    course: dict[str, Any]
    schedule: list[StagingItemResponse]
    office_hours: list[StagingItemResponse]
    high_stakes: list[TriagedAssignment]
    routine: list[TriagedAssignment]
    low_confidence_count: int


# ============================================================================
# Commit Models
# ============================================================================


class EditedCourse(BaseModel):
    """Reviewed course fields."""

    name: str = Field(description="Course name, the upsert key per user")
    professor: str | None = None
    credits: float | None = None
    grade_weights: dict[str, float] = Field(default_factory=dict)
    semester_start_date: str | None = None
    semester_end_date: str | None = None


class RecurrenceEntry(BaseModel):
    """A reviewed weekly class session or office hour."""

    day: str | int = Field(description="Day name, abbreviation or ISO weekday number")
    start: str = Field(description="Local start time, HH:MM", examples=["09:00"])
    end: str = Field(description="Local end time, HH:MM", examples=["10:15"])
    location: str | None = None
    include: bool = True


class EditedAssignment(BaseModel):
    """A reviewed assignment."""

    title: str
    due_date: str | None = Field(
        default=None,
        description="YYYY-MM-DD (due 23:59 local) or ISO datetime",
    )
    category: str | None = None
    effort_estimate_minutes: int | None = Field(default=None, ge=0)
    total_pages: int | None = Field(default=None, ge=0)
    staging_item_id: str | None = None
    include: bool = True


class CommitRequest(BaseModel):
    """The reviewed subset to commit."""

    timezone: str | None = Field(
        default=None,
        description="IANA timezone for schedule times and date-only due dates",
    )
    course: EditedCourse
    schedule: list[RecurrenceEntry] = Field(default_factory=list)
    office_hours: list[RecurrenceEntry] = Field(default_factory=list)
    assignments: list[EditedAssignment] = Field(default_factory=list)


class CommitSummary(BaseModel):
    """Counts produced by a successful commit."""

    course_id: str
    course_name: str
    timezone: str
    assignments_created: int = 0
    schedule_saved: int = 0
    office_hours_saved: int = 0
    class_events_created: int = 0
    office_hour_events_created: int = 0


class CommitErrorDetail(BaseModel):
    """Error body returned by a failed commit."""

    message: str
    error_class: Literal["validation", "already_committed", "internal"]


# ============================================================================
# Rollback Models
# ============================================================================


class RollbackRequest(BaseModel):
    """Rollback options."""

    purge_staging: bool = Field(
        default=False,
        description="Also delete the run's staged items",
    )


class RollbackDeleted(BaseModel):
    """Rows removed by a rollback."""

    assignments: int
    events: int


class RollbackResponse(BaseModel):
    """Response for a rollback."""

    deleted: RollbackDeleted
