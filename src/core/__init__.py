# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Core package for the syllabus import service.

This package contains shared core modules:
- config: Application configuration and settings
"""
