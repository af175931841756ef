# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Extraction service output models.

Mirrors the JSON document the extraction service returns for a syllabus:
a document confidence, one course with its weekly schedule, office hours
and grade weights, and a list of assignments.
"""

from typing import Any

from pydantic import BaseModel, Field

from src.models.syllabus import StagingItemCreate


class ExtractedMeeting(BaseModel):
    """A weekly meeting as extracted (class session or office hour)."""

    day: str | int
    start: str
    end: str
    location: str | None = None
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)

    def to_payload(self) -> dict[str, Any]:
        return {
            "day": self.day,
            "start": self.start,
            "end": self.end,
            "location": self.location,
        }


class ExtractedCourse(BaseModel):
    """Course fields as extracted."""

    name: str | None = None
    professor: str | None = None
    credits: float | None = None
    schedule: list[ExtractedMeeting] = Field(default_factory=list)
    office_hours: list[ExtractedMeeting] = Field(default_factory=list)
    grade_weights: dict[str, float] = Field(default_factory=dict)
    semester_start_date: str | None = None
    semester_end_date: str | None = None
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)


class ExtractedAssignment(BaseModel):
    """An assignment as extracted."""

    title: str
    due_date: str | None = None
    category: str | None = None
    effort_estimate_minutes: int | None = None
    total_pages: int | None = None
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)


class ExtractedSyllabus(BaseModel):
    """Structured syllabus returned by the extraction service.

    Attributes:
        confidence: Document-level confidence, used for items that carry none.
        course: Extracted course, or None when the extractor found no course.
        assignments: Extracted assignments.
    """

    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    course: ExtractedCourse | None = None
    assignments: list[ExtractedAssignment] = Field(default_factory=list)

    def to_staging_items(self) -> list[StagingItemCreate]:
        """Split the document into typed staging items.

        Produces one course item (only when a course name was extracted),
        one item per schedule entry, per office-hour entry and per
        assignment. Items without their own confidence inherit the
        document confidence.

        Returns:
            Items in course, schedule, office hours, assignment order.
        """
        items: list[StagingItemCreate] = []
        course = self.course

        if course is not None and course.name and course.name.strip():
            items.append(
                StagingItemCreate(
                    type="course",
                    payload={
                        "name": course.name.strip(),
                        "professor": course.professor,
                        "credits": course.credits,
                        "grade_weights": dict(course.grade_weights),
                        "semester_start_date": course.semester_start_date,
                        "semester_end_date": course.semester_end_date,
                    },
                    confidence_score=self._score(course.confidence),
                )
            )

        if course is not None:
            for meeting in course.schedule:
                items.append(
                    StagingItemCreate(
                        type="class_schedule",
                        payload=meeting.to_payload(),
                        confidence_score=self._score(meeting.confidence),
                    )
                )
            for meeting in course.office_hours:
                items.append(
                    StagingItemCreate(
                        type="office_hours",
                        payload=meeting.to_payload(),
                        confidence_score=self._score(meeting.confidence),
                    )
                )

        for assignment in self.assignments:
            items.append(
                StagingItemCreate(
                    type="assignment",
                    payload=assignment.model_dump(exclude={"confidence"}),
                    confidence_score=self._score(assignment.confidence),
                )
            )

        return items

    def _score(self, item_confidence: float | None) -> float | None:
        return item_confidence if item_confidence is not None else self.confidence
