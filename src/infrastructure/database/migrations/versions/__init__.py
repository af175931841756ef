# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Syllabus import database migrations.

Contains migrations for:
- syllabus_parse_runs / syllabus_staging_items: Provisional import data
- syllabus_commits: Per-run commit markers
- courses / course_recurrences: Committed course definitions
- assignments / calendar_events: Committed, rollback-addressable rows
"""
