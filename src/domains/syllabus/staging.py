# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Staging store for provisional syllabus items.

Staged items are append-only. The only bulk mutation is delete_by_run,
used when a rollback is asked to purge staging data.
"""

import hashlib
import json
import logging
from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from src.domains.syllabus.errors import MissingCourseItemError
from src.infrastructure.database.models.syllabus import StagingItem, StagingItemType
from src.models.syllabus import StagingItemCreate
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


def compute_dedupe_key(item_type: str, payload: dict[str, Any]) -> str:
    """Hash an item's type and payload into a short stable key.

    Args:
        item_type: Staging item type.
        payload: Item payload.

    Returns:
        First 16 hex characters of the SHA-256 of the canonical JSON.
    """
    canonical = json.dumps(
        {"type": item_type, "payload": payload},
        sort_keys=True,
        default=str,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


class StagingStore:
    """Reads and writes staged items for parse runs.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def put(
        self,
        parse_run_id: str,
        items: Sequence[StagingItemCreate],
    ) -> list[StagingItem]:
        """Bulk-insert items under a parse run.

        Args:
            parse_run_id: Owning parse run.
            items: Items to stage. Empty input is a no-op.

        Returns:
            The staged rows, in input order.
        """
        if not items:
            return []

        staged_at = utc_now()
        rows = [
            StagingItem(
                parse_run_id=parse_run_id,
                type=item.type,
                payload=item.payload,
                confidence_score=item.confidence_score,
                dedupe_key=compute_dedupe_key(item.type, item.payload),
                position=position,
                created_at=staged_at,
            )
            for position, item in enumerate(items)
        ]
        self.db.add_all(rows)
        await self.db.flush()

        logger.info("Staged items: parse_run=%s, count=%d", parse_run_id, len(rows))
        return rows

    async def list_by_run(self, parse_run_id: str) -> list[StagingItem]:
        """List all items of a run, insertion order then confidence."""
        query = select(StagingItem).where(StagingItem.parse_run_id == parse_run_id)
        result = await self.db.execute(self._ordered(query))
        return list(result.scalars().all())

    async def list_by_run_and_type(
        self,
        parse_run_id: str,
        item_type: StagingItemType | str,
    ) -> list[StagingItem]:
        """List a run's items of one type, insertion order then confidence."""
        type_value = item_type.value if isinstance(item_type, StagingItemType) else item_type
        query = select(StagingItem).where(
            StagingItem.parse_run_id == parse_run_id,
            StagingItem.type == type_value,
        )
        result = await self.db.execute(self._ordered(query))
        return list(result.scalars().all())

    async def require_course_item(self, parse_run_id: str) -> StagingItem:
        """Get the run's course item.

        Raises:
            MissingCourseItemError: If the run has no course item.
        """
        items = await self.list_by_run_and_type(parse_run_id, StagingItemType.COURSE)
        if not items:
            raise MissingCourseItemError(parse_run_id)
        return items[0]

    async def find_ids(self, parse_run_id: str, item_ids: Iterable[str]) -> set[str]:
        """Return the subset of item_ids that belong to the run."""
        wanted = set(item_ids)
        if not wanted:
            return set()
        result = await self.db.execute(
            select(StagingItem.id).where(
                StagingItem.parse_run_id == parse_run_id,
                StagingItem.id.in_(wanted),
            )
        )
        return set(result.scalars().all())

    async def delete_by_run(self, parse_run_id: str) -> int:
        """Delete every item of a run.

        Returns:
            Number of items deleted.
        """
        result = await self.db.execute(
            delete(StagingItem).where(StagingItem.parse_run_id == parse_run_id)
        )
        deleted = result.rowcount or 0
        logger.info("Purged staging items: parse_run=%s, count=%d", parse_run_id, deleted)
        return deleted

    @staticmethod
    def _ordered(query: Select) -> Select:
        return query.order_by(
            StagingItem.created_at.asc(),
            StagingItem.confidence_score.desc().nulls_last(),
            StagingItem.position.asc(),
        )
