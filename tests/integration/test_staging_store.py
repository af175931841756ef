# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the staging store."""

import pytest
import pytest_asyncio

from src.domains.syllabus.errors import MissingCourseItemError
from src.domains.syllabus.parse_runs import ParseRunTracker
from src.domains.syllabus.staging import StagingStore, compute_dedupe_key
from src.infrastructure.database.models import StagingItemType
from src.models.syllabus import StagingItemCreate


def assignment(title: str, confidence: float | None) -> StagingItemCreate:
    return StagingItemCreate(
        type="assignment",
        payload={"title": title, "category": "homework"},
        confidence_score=confidence,
    )


@pytest_asyncio.fixture
async def run_id(db_session, sample_user_id) -> str:
    run = await ParseRunTracker(db_session).create(sample_user_id, "uploads/a.pdf")
    await db_session.commit()
    return run.id


class TestComputeDedupeKey:
    """Tests for compute_dedupe_key."""

    def test_stable_across_key_order(self):
        """Test that payload key order does not change the key."""
        first = compute_dedupe_key("assignment", {"title": "HW 1", "due_date": "2025-09-10"})
        second = compute_dedupe_key("assignment", {"due_date": "2025-09-10", "title": "HW 1"})

        assert first == second
        assert len(first) == 16

    def test_type_is_part_of_key(self):
        """Test that the same payload under another type differs."""
        payload = {"day": "Mon", "start": "09:00", "end": "10:00"}

        assert compute_dedupe_key("class_schedule", payload) != compute_dedupe_key(
            "office_hours", payload
        )


class TestStagingStore:
    """Tests for StagingStore."""

    @pytest.mark.asyncio
    async def test_put_empty_is_noop(self, db_session, run_id):
        """Test that staging nothing writes nothing."""
        store = StagingStore(db_session)

        assert await store.put(run_id, []) == []
        assert await store.list_by_run(run_id) == []

    @pytest.mark.asyncio
    async def test_put_assigns_dedupe_keys(self, db_session, run_id):
        """Test that identical items share a dedupe key."""
        store = StagingStore(db_session)

        rows = await store.put(run_id, [assignment("HW 1", 0.9), assignment("HW 1", 0.5)])
        await db_session.commit()

        assert len(rows) == 2
        assert rows[0].dedupe_key == rows[1].dedupe_key
        assert rows[0].id != rows[1].id

    @pytest.mark.asyncio
    async def test_list_orders_by_batch_then_confidence(self, db_session, run_id):
        """Test ordering: staging batch, then confidence with unscored last."""
        store = StagingStore(db_session)
        await store.put(
            run_id,
            [assignment("low", 0.5), assignment("unscored", None), assignment("high", 0.9)],
        )
        await store.put(run_id, [assignment("later", 1.0)])
        await db_session.commit()

        items = await store.list_by_run(run_id)

        assert [i.payload["title"] for i in items] == ["high", "low", "unscored", "later"]

    @pytest.mark.asyncio
    async def test_equal_confidence_keeps_input_order(self, db_session, run_id):
        """Test that ties keep the order items were staged in."""
        store = StagingStore(db_session)
        await store.put(run_id, [assignment(f"HW {n}", 0.7) for n in range(5)])
        await db_session.commit()

        items = await store.list_by_run(run_id)

        assert [i.payload["title"] for i in items] == [f"HW {n}" for n in range(5)]

    @pytest.mark.asyncio
    async def test_list_by_type_and_course_item(self, db_session, run_id):
        """Test filtering by type and course item lookup."""
        store = StagingStore(db_session)
        await store.put(run_id, [assignment("HW 1", 0.9)])

        with pytest.raises(MissingCourseItemError):
            await store.require_course_item(run_id)

        await store.put(
            run_id,
            [StagingItemCreate(type="course", payload={"name": "BIO 101"}, confidence_score=0.8)],
        )
        await db_session.commit()

        course = await store.require_course_item(run_id)
        assert course.payload == {"name": "BIO 101"}
        assert len(await store.list_by_run_and_type(run_id, StagingItemType.ASSIGNMENT)) == 1
        assert len(await store.list_by_run_and_type(run_id, "course")) == 1
        assert await store.list_by_run_and_type(run_id, "office_hours") == []

    @pytest.mark.asyncio
    async def test_find_ids_and_delete_by_run(self, db_session, sample_user_id, run_id):
        """Test id lookup and purge scoped to one run."""
        store = StagingStore(db_session)
        other = await ParseRunTracker(db_session).create(sample_user_id, "uploads/b.pdf")
        mine = await store.put(run_id, [assignment("HW 1", 0.9), assignment("HW 2", 0.9)])
        theirs = await store.put(other.id, [assignment("HW 1", 0.9)])
        await db_session.commit()

        found = await store.find_ids(run_id, [mine[0].id, theirs[0].id, "missing"])
        assert found == {mine[0].id}

        assert await store.delete_by_run(run_id) == 2
        await db_session.commit()

        assert await store.list_by_run(run_id) == []
        assert len(await store.list_by_run(other.id)) == 1
