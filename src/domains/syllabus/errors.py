# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Syllabus import service errors.

Routers map these to HTTP status codes. Commit errors also carry an
``error_class`` that is returned to the client as-is.
"""


class SyllabusServiceError(Exception):
    """Base exception for syllabus import errors."""

    error_class: str = "internal"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ParseRunNotFoundError(SyllabusServiceError):
    """Raised when a parse run does not exist."""

    pass


class ParseRunAccessError(SyllabusServiceError):
    """Raised when a parse run belongs to another user."""

    pass


class StagingFailedError(SyllabusServiceError):
    """Raised when extraction or staging fails. The run is marked failed."""

    pass


class MissingCourseItemError(StagingFailedError):
    """Raised when a parse run has no course item."""

    def __init__(self, parse_run_id: str) -> None:
        super().__init__(
            "Parsing completed but no course data was extracted. "
            "Please check the uploaded file and try again."
        )
        self.parse_run_id = parse_run_id


class NothingToReviewError(SyllabusServiceError):
    """Raised when a run has nothing a reviewer could act on."""

    pass


class CommitValidationError(SyllabusServiceError):
    """Raised when the commit payload is invalid. The run is untouched."""

    error_class = "validation"


class AlreadyCommittedError(SyllabusServiceError):
    """Raised when the parse run already has a successful commit."""

    error_class = "already_committed"

    def __init__(self, parse_run_id: str) -> None:
        super().__init__("This parse run has already been committed")
        self.parse_run_id = parse_run_id


class CommitFailedError(SyllabusServiceError):
    """Raised when the commit transaction fails. The run is marked failed."""

    error_class = "internal"


class ExtractionError(SyllabusServiceError):
    """Raised when the extraction service fails or returns unusable output."""

    pass


class ExtractionTimeoutError(ExtractionError):
    """Raised when the extraction service does not answer in time."""

    pass
