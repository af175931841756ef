# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for the syllabus import service.

This package contains domain services that encapsulate business logic.

Domains:
    syllabus: Parse run tracking, staging, triage, commit and rollback.
"""
