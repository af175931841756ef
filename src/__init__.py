"""Syllabus Import Service Backend.

Stages syllabus extraction output for review, commits the approved subset
into courses, assignments and calendar events, and undoes commits on request.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
