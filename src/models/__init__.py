# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pydantic request and response models.

- syllabus: Parse run, staging, review, commit and rollback models
- extraction: Structured output of the extraction service
"""
