# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Syllabus import domain.

Staging, triage, recurrence materialization, commit and rollback of
syllabus data extracted from uploaded documents.
"""

from src.domains.syllabus.commit import SyllabusCommitService, calculate_priority_score
from src.domains.syllabus.errors import (
    AlreadyCommittedError,
    CommitFailedError,
    CommitValidationError,
    ExtractionError,
    ExtractionTimeoutError,
    MissingCourseItemError,
    NothingToReviewError,
    ParseRunAccessError,
    ParseRunNotFoundError,
    StagingFailedError,
    SyllabusServiceError,
)
from src.domains.syllabus.extraction import ExtractionClient
from src.domains.syllabus.ingestion import SyllabusIngestionService
from src.domains.syllabus.parse_runs import ParseRunTracker
from src.domains.syllabus.recurrence import (
    MATERIALIZER_HORIZON,
    RecurrenceDefinition,
    RecurrenceMaterializer,
    RecurrenceParseError,
)
from src.domains.syllabus.review import SyllabusReviewService
from src.domains.syllabus.rollback import RollbackResult, SyllabusRollbackService
from src.domains.syllabus.staging import StagingStore
from src.domains.syllabus.triage import (
    LOW_CONFIDENCE_THRESHOLD,
    TriageDecision,
    TriageReport,
    classify_assignment,
    triage_items,
)

__all__ = [
    # Services
    "ParseRunTracker",
    "StagingStore",
    "SyllabusCommitService",
    "SyllabusRollbackService",
    "SyllabusIngestionService",
    "SyllabusReviewService",
    "ExtractionClient",
    "RollbackResult",
    "calculate_priority_score",
    # Triage
    "LOW_CONFIDENCE_THRESHOLD",
    "TriageDecision",
    "TriageReport",
    "classify_assignment",
    "triage_items",
    # Recurrence
    "MATERIALIZER_HORIZON",
    "RecurrenceDefinition",
    "RecurrenceMaterializer",
    "RecurrenceParseError",
    # Errors
    "SyllabusServiceError",
    "ParseRunNotFoundError",
    "ParseRunAccessError",
    "StagingFailedError",
    "MissingCourseItemError",
    "NothingToReviewError",
    "CommitValidationError",
    "AlreadyCommittedError",
    "CommitFailedError",
    "ExtractionError",
    "ExtractionTimeoutError",
]
