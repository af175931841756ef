# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for syllabus API routing and error mapping."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.dependencies import get_db, require_auth
from src.api.middleware.auth import CurrentUser
from src.api.v1 import router as v1_router
from src.domains.syllabus.errors import (
    CommitFailedError,
    NothingToReviewError,
    ParseRunNotFoundError,
)

BASE = "/api/v1/syllabus"

COMMIT_BODY = {"course": {"name": "BIO 101"}}


@pytest.fixture
def app():
    """Create test FastAPI app with identity and database overridden."""
    app = FastAPI()
    app.include_router(v1_router)
    app.dependency_overrides[require_auth] = lambda: CurrentUser("user-1")
    app.dependency_overrides[get_db] = lambda: AsyncMock()
    return app


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


class TestSyllabusAPIRouting:
    """Tests for syllabus API routing."""

    def test_routes_registered(self, app):
        """Test that syllabus routes are registered."""
        routes = [route.path for route in app.routes]

        assert f"{BASE}/parse-runs" in routes
        assert f"{BASE}/parse-runs/{{parse_run_id}}" in routes
        assert f"{BASE}/parse-runs/{{parse_run_id}}/items" in routes
        assert f"{BASE}/parse-runs/{{parse_run_id}}/review" in routes
        assert f"{BASE}/parse-runs/{{parse_run_id}}/commit" in routes
        assert f"{BASE}/parse-runs/{{parse_run_id}}/rollback" in routes


class TestSyllabusAPIErrors:
    """Tests for mapping service errors to HTTP responses."""

    @patch("src.api.v1.syllabus._get_commit_service")
    def test_commit_failure_is_internal(self, mock_get_service, client):
        """Test that a failed commit transaction is a 500 with error_class."""
        service = MagicMock()
        service.commit = AsyncMock(side_effect=CommitFailedError("Commit failed: disk full"))
        mock_get_service.return_value = service

        response = client.post(f"{BASE}/parse-runs/run-1/commit", json=COMMIT_BODY)

        assert response.status_code == 500
        assert response.json()["detail"] == {
            "message": "Commit failed: disk full",
            "error_class": "internal",
        }

    @patch("src.api.v1.syllabus._get_commit_service")
    def test_commit_passes_timezone_override(self, mock_get_service, client):
        """Test that the timezone query parameter reaches the service."""
        service = MagicMock()
        service.commit = AsyncMock(side_effect=ParseRunNotFoundError("Parse run not found: run-1"))
        mock_get_service.return_value = service

        response = client.post(
            f"{BASE}/parse-runs/run-1/commit",
            params={"timezone": "Asia/Tokyo"},
            json=COMMIT_BODY,
        )

        assert response.status_code == 404
        assert service.commit.await_args.kwargs["timezone"] == "Asia/Tokyo"

    @patch("src.api.v1.syllabus.SyllabusReviewService")
    def test_nothing_to_review_is_conflict(self, mock_service_cls, client):
        """Test that an empty run is a 409 on review."""
        mock_service_cls.return_value.build_review = AsyncMock(
            side_effect=NothingToReviewError("Nothing to review for parse run run-1")
        )

        response = client.get(f"{BASE}/parse-runs/run-1/review")

        assert response.status_code == 409
        assert response.json()["detail"] == "Nothing to review for parse run run-1"

    def test_commit_body_is_validated(self, client):
        """Test that a commit without course data is rejected by the schema."""
        response = client.post(f"{BASE}/parse-runs/run-1/commit", json={})

        assert response.status_code == 422
