# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Syllabus ingestion: extraction followed by staging.

The parse run is committed before extraction starts so that a failed or
abandoned extraction is still visible. Staging the items and marking the
run succeeded happen in one transaction.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.syllabus.errors import (
    ExtractionError,
    MissingCourseItemError,
    StagingFailedError,
)
from src.domains.syllabus.extraction import ExtractionClient
from src.domains.syllabus.parse_runs import ParseRunTracker
from src.domains.syllabus.staging import StagingStore
from src.infrastructure.database.models.syllabus import FailureStage, ParseRun
from src.models.extraction import ExtractedSyllabus
from src.utils.logging import parse_run_context

logger = logging.getLogger(__name__)


class SyllabusIngestionService:
    """Creates parse runs and stages extractor output.

    Attributes:
        db: Async database session.
        extractor: Extraction service client.
        parse_runs: Parse run tracker on the same session.
        staging: Staging store on the same session.
    """

    def __init__(self, db: AsyncSession, extractor: ExtractionClient | None = None) -> None:
        self.db = db
        self.extractor = extractor or ExtractionClient()
        self.parse_runs = ParseRunTracker(db)
        self.staging = StagingStore(db)

    async def ingest(self, user_id: str, source_file_ref: str, timezone: str) -> ParseRun:
        """Parse an uploaded syllabus into a staged parse run.

        Args:
            user_id: Uploading user.
            source_file_ref: Reference to the uploaded file.
            timezone: IANA timezone passed to the extractor.

        Returns:
            The succeeded parse run.

        Raises:
            StagingFailedError: If extraction or staging failed. The run is
                marked failed before this is raised.
        """
        run = await self.parse_runs.create(user_id, source_file_ref)
        parse_run_id = run.id
        await self.db.commit()

        with parse_run_context(parse_run_id):
            try:
                extracted = await self.extractor.extract(source_file_ref, timezone)
            except ExtractionError as e:
                await self._fail(parse_run_id, e.message)
                raise StagingFailedError(e.message) from e
            except Exception as e:
                logger.exception("Extraction failed: id=%s", parse_run_id)
                message = f"Extraction failed: {e.__class__.__name__}"
                await self._fail(parse_run_id, message)
                raise StagingFailedError(message) from e

            return await self._stage(parse_run_id, extracted)

    async def stage_extracted(
        self,
        parse_run_id: str,
        user_id: str,
        extracted: ExtractedSyllabus,
    ) -> ParseRun:
        """Stage extractor output delivered for an existing pending run.

        Args:
            parse_run_id: Pending parse run.
            user_id: Owner of the run.
            extracted: Extractor output.

        Returns:
            The parse run after staging.

        Raises:
            ParseRunNotFoundError: If the run does not exist.
            ParseRunAccessError: If the run belongs to another user.
            StagingFailedError: If staging failed or the run is not pending.
        """
        run = await self.parse_runs.get_for_user(parse_run_id, user_id)
        if run.is_terminal:
            raise StagingFailedError(f"Parse run {parse_run_id} is already {run.status}")
        return await self._stage(parse_run_id, extracted)

    async def _stage(self, parse_run_id: str, extracted: ExtractedSyllabus) -> ParseRun:
        try:
            items = extracted.to_staging_items()
            await self.staging.put(parse_run_id, items)
            await self.staging.require_course_item(parse_run_id)
            if not await self.parse_runs.mark_succeeded(parse_run_id):
                raise StagingFailedError(f"Parse run {parse_run_id} is no longer pending")
            await self.db.commit()
        except MissingCourseItemError as e:
            await self.db.rollback()
            await self._fail(parse_run_id, e.message)
            raise
        except StagingFailedError:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception("Staging failed: id=%s", parse_run_id)
            message = f"Staging failed: {e.__class__.__name__}"
            await self._fail(parse_run_id, message)
            raise StagingFailedError(message) from e

        logger.info("Parse run staged: id=%s, items=%d", parse_run_id, len(items))
        run = await self.parse_runs.get(parse_run_id)
        await self.db.refresh(run)
        return run

    async def _fail(self, parse_run_id: str, message: str) -> None:
        await self.parse_runs.mark_failed(parse_run_id, message, FailureStage.STAGING)
        await self.db.commit()
