# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for the syllabus import service.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations
"""

from src.utils.datetime import (
    InvalidTimezoneError,
    ensure_utc,
    get_zone,
    local_to_utc,
    utc_now,
)
from src.utils.logging import (
    bind_context,
    clear_context,
    get_logger,
    parse_run_context,
    setup_logging,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "parse_run_context",
    # Datetime
    "utc_now",
    "ensure_utc",
    "get_zone",
    "local_to_utc",
    "InvalidTimezoneError",
]
