# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for logging configuration."""

import logging

import structlog

from src.core.config.settings import Settings
from src.utils.logging import (
    SERVICE_NAME,
    add_service_name,
    bind_context,
    clear_context,
    get_logger,
    parse_run_context,
    redact_sensitive,
    setup_logging,
)


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_sets_root_level(self) -> None:
        """Test that the configured level is applied to the root logger."""
        setup_logging(Settings(_env_file=None, log_level="WARNING"))

        assert logging.getLogger().level == logging.WARNING

    def test_quiets_library_loggers(self) -> None:
        """Test that noisy library loggers stay at WARNING in debug mode."""
        setup_logging(Settings(_env_file=None, log_level="DEBUG"))

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("sqlalchemy").level == logging.WARNING
        assert logging.getLogger("alembic").level == logging.INFO

    def test_library_loggers_follow_stricter_level(self) -> None:
        """Test that a stricter application level also applies to libraries."""
        setup_logging(Settings(_env_file=None, log_level="ERROR"))

        assert logging.getLogger("alembic").level == logging.ERROR


class TestProcessors:
    """Tests for custom structlog processors."""

    def test_redacts_sensitive_keys(self) -> None:
        """Test that secrets are masked and other fields kept."""
        event = {"event": "calling extractor", "api_key": "sk-123", "Authorization": "Bearer x"}

        result = redact_sensitive(None, "info", event)

        assert result == {"event": "calling extractor", "api_key": "***", "Authorization": "***"}

    def test_adds_service_name(self) -> None:
        """Test that the service name is added without overriding."""
        assert add_service_name(None, "info", {"event": "x"})["service"] == SERVICE_NAME
        assert add_service_name(None, "info", {"service": "other"})["service"] == "other"


class TestContext:
    """Tests for request-scoped logging context."""

    def test_bind_and_clear(self) -> None:
        """Test binding and clearing context variables."""
        clear_context()
        bind_context(request_id="req-1", user_id="u1")

        assert structlog.contextvars.get_contextvars() == {"request_id": "req-1", "user_id": "u1"}

        clear_context()
        assert structlog.contextvars.get_contextvars() == {}

    def test_parse_run_context_is_scoped(self) -> None:
        """Test that parse_run_id is bound only inside the block."""
        clear_context()
        bind_context(request_id="req-1")

        with parse_run_context("run-1"):
            assert structlog.contextvars.get_contextvars()["parse_run_id"] == "run-1"

        assert structlog.contextvars.get_contextvars() == {"request_id": "req-1"}
        clear_context()

    def test_get_logger(self) -> None:
        """Test that a bound logger is returned."""
        assert get_logger(__name__) is not None
