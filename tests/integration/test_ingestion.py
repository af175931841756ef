# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for syllabus ingestion."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from sqlalchemy import func, select

from src.core.config.settings import ExtractionSettings
from src.domains.syllabus.errors import (
    ExtractionTimeoutError,
    MissingCourseItemError,
    StagingFailedError,
)
from src.domains.syllabus.extraction import ExtractionClient
from src.domains.syllabus.ingestion import SyllabusIngestionService
from src.domains.syllabus.parse_runs import ParseRunTracker
from src.infrastructure.database.models import ParseRun, StagingItem
from src.models.extraction import ExtractedSyllabus


@pytest.fixture
def mock_extractor():
    """Create a mock extraction client."""
    return AsyncMock(spec=ExtractionClient)


@pytest.fixture
def ingestion_service(db_session, mock_extractor) -> SyllabusIngestionService:
    """Create ingestion service with a mock extractor."""
    return SyllabusIngestionService(db=db_session, extractor=mock_extractor)


async def only_run(session_factory) -> ParseRun:
    async with session_factory() as fresh:
        return (await fresh.execute(select(ParseRun))).scalar_one()


async def staged_count(session_factory) -> int:
    async with session_factory() as fresh:
        result = await fresh.execute(select(func.count()).select_from(StagingItem))
        return result.scalar_one()


class TestIngest:
    """Tests for SyllabusIngestionService.ingest."""

    @pytest.mark.asyncio
    async def test_ingest_stages_items(
        self, ingestion_service, mock_extractor, session_factory, sample_user_id, sample_extraction
    ):
        """Test the happy path from extraction to a succeeded run."""
        mock_extractor.extract.return_value = ExtractedSyllabus.model_validate(sample_extraction)

        run = await ingestion_service.ingest(sample_user_id, "uploads/bio101.pdf", "America/Chicago")

        mock_extractor.extract.assert_awaited_once_with("uploads/bio101.pdf", "America/Chicago")
        assert run.status == "succeeded"
        assert run.completed_at is not None
        assert run.user_id == sample_user_id
        assert await staged_count(session_factory) == 7

    @pytest.mark.asyncio
    async def test_extraction_failure_fails_run(
        self, ingestion_service, mock_extractor, session_factory, sample_user_id
    ):
        """Test that an extraction error is recorded on the run."""
        mock_extractor.extract.side_effect = ExtractionTimeoutError(
            "Extraction timed out after 60s"
        )

        with pytest.raises(StagingFailedError, match="timed out"):
            await ingestion_service.ingest(sample_user_id, "uploads/bio101.pdf", "UTC")

        run = await only_run(session_factory)
        assert run.status == "failed"
        assert run.failure_stage == "staging"
        assert run.error == "Extraction timed out after 60s"
        assert await staged_count(session_factory) == 0

    @pytest.mark.asyncio
    async def test_missing_course_fails_run(
        self, ingestion_service, mock_extractor, session_factory, sample_user_id
    ):
        """Test that output without a course fails the run and stages nothing."""
        mock_extractor.extract.return_value = ExtractedSyllabus.model_validate(
            {"confidence": 0.7, "assignments": [{"title": "Essay", "category": "homework"}]}
        )

        with pytest.raises(MissingCourseItemError):
            await ingestion_service.ingest(sample_user_id, "uploads/blank.pdf", "UTC")

        run = await only_run(session_factory)
        assert run.status == "failed"
        assert run.error.startswith("Parsing completed but no course data was extracted")
        assert await staged_count(session_factory) == 0

    @pytest.mark.asyncio
    async def test_error_response_with_list_body_fails_run(
        self, db_session, session_factory, sample_user_id
    ):
        """Test that an extractor error with a non-object body still fails the run."""
        client = ExtractionClient(
            ExtractionSettings(base_url="http://extraction.test"),
            transport=httpx.MockTransport(
                lambda request: httpx.Response(503, json=["upstream down"])
            ),
        )
        service = SyllabusIngestionService(db=db_session, extractor=client)

        with pytest.raises(StagingFailedError, match="503"):
            await service.ingest(sample_user_id, "uploads/bio101.pdf", "UTC")

        run = await only_run(session_factory)
        assert run.status == "failed"
        assert run.failure_stage == "staging"
        assert "upstream down" in run.error

    @pytest.mark.asyncio
    async def test_unexpected_extractor_error_fails_run(
        self, ingestion_service, mock_extractor, session_factory, sample_user_id
    ):
        """Test that an unexpected extractor exception is recorded on the run."""
        mock_extractor.extract.side_effect = KeyError("confidence")

        with pytest.raises(StagingFailedError, match="Extraction failed: KeyError"):
            await ingestion_service.ingest(sample_user_id, "uploads/bio101.pdf", "UTC")

        run = await only_run(session_factory)
        assert run.status == "failed"
        assert run.error == "Extraction failed: KeyError"

    @pytest.mark.asyncio
    async def test_unexpected_staging_error_fails_run(
        self, ingestion_service, mock_extractor, session_factory, sample_user_id
    ):
        """Test that an error while converting extractor output fails the run."""
        extracted = MagicMock(spec=ExtractedSyllabus)
        extracted.to_staging_items.side_effect = ValueError("bad confidence")
        mock_extractor.extract.return_value = extracted

        with pytest.raises(StagingFailedError, match="Staging failed: ValueError"):
            await ingestion_service.ingest(sample_user_id, "uploads/bio101.pdf", "UTC")

        run = await only_run(session_factory)
        assert run.status == "failed"
        assert run.failure_stage == "staging"
        assert await staged_count(session_factory) == 0


class TestStageExtracted:
    """Tests for SyllabusIngestionService.stage_extracted."""

    @pytest.mark.asyncio
    async def test_stage_pending_run(
        self, db_session, ingestion_service, sample_user_id, sample_extraction
    ):
        """Test staging output for a run created earlier."""
        run = await ParseRunTracker(db_session).create(sample_user_id, "uploads/bio101.pdf")
        await db_session.commit()

        staged = await ingestion_service.stage_extracted(
            run.id, sample_user_id, ExtractedSyllabus.model_validate(sample_extraction)
        )

        assert staged.status == "succeeded"

    @pytest.mark.asyncio
    async def test_terminal_run_is_rejected(
        self, ingestion_service, staged_run, sample_user_id, sample_extraction
    ):
        """Test that a finished run cannot be staged again."""
        with pytest.raises(StagingFailedError, match="already succeeded"):
            await ingestion_service.stage_extracted(
                staged_run.id, sample_user_id, ExtractedSyllabus.model_validate(sample_extraction)
            )
