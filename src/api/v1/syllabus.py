# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Syllabus import API endpoints.

This module provides endpoints for the syllabus import workflow:
- POST /parse-runs - Parse an uploaded syllabus into staged items
- GET /parse-runs - List runs ready for review
- GET /parse-runs/{parse_run_id} - Get run status
- GET /parse-runs/{parse_run_id}/items - List staged items
- GET /parse-runs/{parse_run_id}/review - Triaged review view
- POST /parse-runs/{parse_run_id}/commit - Commit the reviewed subset
- POST /parse-runs/{parse_run_id}/rollback - Undo a commit

Example:
    POST /api/v1/syllabus/parse-runs
    {"source_file_ref": "uploads/u1/bio101.pdf", "timezone": "America/Chicago"}
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, get_extraction_client, require_auth
from src.api.middleware.auth import CurrentUser
from src.core.config import get_settings
from src.domains.syllabus import (
    ExtractionClient,
    NothingToReviewError,
    ParseRunAccessError,
    ParseRunNotFoundError,
    StagingFailedError,
    SyllabusCommitService,
    SyllabusIngestionService,
    SyllabusReviewService,
    SyllabusRollbackService,
    SyllabusServiceError,
)
from src.domains.syllabus.errors import (
    AlreadyCommittedError,
    CommitFailedError,
    CommitValidationError,
)
from src.domains.syllabus.parse_runs import ParseRunTracker
from src.domains.syllabus.staging import StagingStore
from src.models.syllabus import (
    CommitErrorDetail,
    CommitRequest,
    CommitSummary,
    IngestRequest,
    ParseRunListResponse,
    ParseRunResponse,
    ReviewResponse,
    RollbackDeleted,
    RollbackRequest,
    RollbackResponse,
    StagingItemListResponse,
    StagingItemResponse,
    StagingItemTypeName,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_commit_service(db: AsyncSession) -> SyllabusCommitService:
    """Get commit service instance.

    Args:
        db: Database session.

    Returns:
        Configured SyllabusCommitService instance.
    """
    return SyllabusCommitService(db=db, default_timezone=get_settings().default_timezone)


def _get_ingestion_service(
    db: AsyncSession,
    extractor: ExtractionClient,
) -> SyllabusIngestionService:
    """Get ingestion service instance."""
    return SyllabusIngestionService(db=db, extractor=extractor)


def _raise_for_access(e: SyllabusServiceError) -> None:
    """Map parse run lookup errors to HTTP errors.

    Args:
        e: Service error.

    Raises:
        HTTPException: 404 for unknown runs, 403 for runs of other users.
    """
    if isinstance(e, ParseRunNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
    if isinstance(e, ParseRunAccessError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message) from e


_COMMIT_ERROR_STATUS = {
    "validation": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "already_committed": status.HTTP_409_CONFLICT,
    "internal": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@router.post(
    "/parse-runs",
    response_model=ParseRunResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Parse syllabus",
    description="Extract an uploaded syllabus and stage the results for review.",
)
async def create_parse_run(
    data: IngestRequest,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
    extractor: ExtractionClient = Depends(get_extraction_client),
) -> ParseRunResponse:
    """Parse an uploaded syllabus.

    Args:
        data: File reference and timezone.
        current_user: Calling user.
        db: Database session.
        extractor: Extraction service client.

    Returns:
        The succeeded parse run.

    Raises:
        HTTPException: 502 if extraction or staging failed.
    """
    timezone = data.timezone or get_settings().default_timezone
    logger.info("Parse requested: user=%s, source=%s", current_user.id, data.source_file_ref)

    service = _get_ingestion_service(db, extractor)
    try:
        run = await service.ingest(current_user.id, data.source_file_ref, timezone)
    except StagingFailedError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message) from e

    return ParseRunResponse.model_validate(run)


@router.get(
    "/parse-runs",
    response_model=ParseRunListResponse,
    summary="List parse runs ready for review",
)
async def list_parse_runs(
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> ParseRunListResponse:
    """List the caller's succeeded parse runs, newest first."""
    runs = await ParseRunTracker(db).list_ready_for_review(current_user.id)
    items = [ParseRunResponse.model_validate(run) for run in runs]
    return ParseRunListResponse(items=items, total=len(items))


@router.get(
    "/parse-runs/{parse_run_id}",
    response_model=ParseRunResponse,
    summary="Get parse run",
)
async def get_parse_run(
    parse_run_id: str,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> ParseRunResponse:
    """Get a parse run's status and failure details."""
    try:
        run = await ParseRunTracker(db).get_for_user(parse_run_id, current_user.id)
    except SyllabusServiceError as e:
        _raise_for_access(e)
        raise

    return ParseRunResponse.model_validate(run)


@router.get(
    "/parse-runs/{parse_run_id}/items",
    response_model=StagingItemListResponse,
    summary="List staged items",
)
async def list_staging_items(
    parse_run_id: str,
    item_type: StagingItemTypeName | None = Query(None, alias="type"),
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> StagingItemListResponse:
    """List a run's staged items, optionally of one type.

    Args:
        parse_run_id: Parse run identifier.
        item_type: Optional item type filter.
        current_user: Calling user.
        db: Database session.

    Returns:
        Items in staging order.
    """
    try:
        await ParseRunTracker(db).get_for_user(parse_run_id, current_user.id)
    except SyllabusServiceError as e:
        _raise_for_access(e)
        raise

    staging = StagingStore(db)
    if item_type:
        rows = await staging.list_by_run_and_type(parse_run_id, item_type)
    else:
        rows = await staging.list_by_run(parse_run_id)

    items = [StagingItemResponse.model_validate(row) for row in rows]
    return StagingItemListResponse(items=items, total=len(items))


@router.get(
    "/parse-runs/{parse_run_id}/review",
    response_model=ReviewResponse,
    summary="Review parse run",
    description="Course, schedule and assignments split into high-stakes and routine groups.",
)
async def review_parse_run(
    parse_run_id: str,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> ReviewResponse:
    """Build the review view of a parse run.

    Raises:
        HTTPException: 404/403 for lookup errors, 409 if there is nothing
            to review.
    """
    try:
        return await SyllabusReviewService(db).build_review(parse_run_id, current_user.id)
    except NothingToReviewError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message) from e
    except SyllabusServiceError as e:
        _raise_for_access(e)
        raise


@router.post(
    "/parse-runs/{parse_run_id}/commit",
    response_model=CommitSummary,
    status_code=status.HTTP_201_CREATED,
    summary="Commit parse run",
    responses={
        409: {"model": CommitErrorDetail},
        422: {"model": CommitErrorDetail},
        500: {"model": CommitErrorDetail},
    },
)
async def commit_parse_run(
    parse_run_id: str,
    data: CommitRequest,
    timezone: str | None = Query(None, description="Overrides the payload timezone"),
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> CommitSummary:
    """Commit the reviewed subset of a parse run.

    Args:
        parse_run_id: Parse run identifier.
        data: Reviewed course, schedule, office hours and assignments.
        timezone: Optional timezone override.
        current_user: Calling user.
        db: Database session.

    Returns:
        Commit summary.

    Raises:
        HTTPException: With a detail of message and error_class on
            commit errors.
    """
    service = _get_commit_service(db)
    try:
        return await service.commit(parse_run_id, current_user.id, data, timezone=timezone)
    except (CommitValidationError, AlreadyCommittedError, CommitFailedError) as e:
        detail = CommitErrorDetail(message=e.message, error_class=e.error_class)
        raise HTTPException(
            status_code=_COMMIT_ERROR_STATUS[e.error_class],
            detail=detail.model_dump(),
        ) from e
    except SyllabusServiceError as e:
        _raise_for_access(e)
        raise


@router.post(
    "/parse-runs/{parse_run_id}/rollback",
    response_model=RollbackResponse,
    summary="Roll back a commit",
    description="Delete the assignments and events a parse run created.",
)
async def rollback_parse_run(
    parse_run_id: str,
    data: RollbackRequest | None = None,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> RollbackResponse:
    """Roll back everything a parse run committed."""
    options = data or RollbackRequest()
    try:
        result = await SyllabusRollbackService(db).rollback(
            parse_run_id,
            current_user.id,
            purge_staging=options.purge_staging,
        )
    except SyllabusServiceError as e:
        _raise_for_access(e)
        raise

    return RollbackResponse(
        deleted=RollbackDeleted(
            assignments=result.deleted_assignments,
            events=result.deleted_events,
        )
    )
