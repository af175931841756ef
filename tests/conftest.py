# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests
"""

from typing import Any

import pytest

from src.core.config import clear_settings_cache


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def test_environment() -> dict[str, str]:
    """Provide test environment variables.

    Returns:
        Dictionary of environment variables for testing.
    """
    return {
        "ENVIRONMENT": "test",
        "DEBUG": "true",
        "LOG_LEVEL": "DEBUG",
        "DEFAULT_TIMEZONE": "America/New_York",
        "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
        "EXTRACTION_BASE_URL": "http://extraction.test",
    }


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Drop cached settings so environment patches take effect."""
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (uses a database)"
    )


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def sample_user_id() -> str:
    """Provide a sample user ID for testing."""
    return "550e8400-e29b-41d4-a716-446655440001"


@pytest.fixture
def other_user_id() -> str:
    """Provide a second user ID for ownership tests."""
    return "550e8400-e29b-41d4-a716-446655440002"


@pytest.fixture
def sample_extraction() -> dict[str, Any]:
    """Provide an extraction service response for testing."""
    return {
        "confidence": 0.8,
        "course": {
            "name": "BIO 101",
            "professor": "Dr. Rivera",
            "credits": 4,
            "grade_weights": {"exams": 50, "homework": 30, "project": 20},
            "schedule": [
                {"day": "Tue", "start": "09:00", "end": "10:15", "location": "Hall A"},
                {"day": "Thu", "start": "09:00", "end": "10:15", "location": "Hall A"},
            ],
            "office_hours": [
                {"day": "Wed", "start": "14:00", "end": "15:00", "location": "Room 210"},
            ],
        },
        "assignments": [
            {"title": "Midterm Exam", "due_date": "2025-10-15", "category": "exam", "confidence": 0.9},
            {"title": "Lab Report 1", "due_date": "2025-09-20", "category": "homework", "confidence": 0.4},
            {"title": "Chapter 1 Reading", "due_date": None, "category": "reading"},
        ],
    }


@pytest.fixture
def sample_commit_payload() -> dict[str, Any]:
    """Provide a reviewed commit payload for testing."""
    return {
        "timezone": "America/New_York",
        "course": {
            "name": "BIO 101",
            "professor": "Dr. Rivera",
            "credits": 4,
            "grade_weights": {"exams": 50, "homework": 30, "project": 20},
        },
        "schedule": [
            {"day": "Tue", "start": "09:00", "end": "10:15", "location": "Hall A"},
            {"day": "Thu", "start": "09:00", "end": "10:15", "location": "Hall A"},
        ],
        "office_hours": [
            {"day": "Wed", "start": "14:00", "end": "15:00", "location": "Room 210"},
        ],
        "assignments": [
            {"title": "Midterm Exam", "due_date": "2025-10-15", "category": "exam"},
            {"title": "Lab Report 1", "due_date": "2025-09-20", "category": "homework"},
            {"title": "Chapter 1 Reading", "category": "reading", "total_pages": 30},
        ],
    }
