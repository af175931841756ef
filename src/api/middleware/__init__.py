# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware components.

This package provides middleware for request processing:
- AuthMiddleware: Resolves the caller's identity from the X-User-ID header.

Exports:
    AuthMiddleware: Identity middleware.
    CurrentUser: Identity of the calling user.
"""

from src.api.middleware.auth import AuthMiddleware, CurrentUser

__all__ = [
    "AuthMiddleware",
    "CurrentUser",
]
