# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Caller identity middleware.

Identity is resolved upstream (API gateway or session layer) and arrives
as an opaque user id in the X-User-ID header. This middleware copies it
to request.state and binds it, with a request id, to the logging context.

Example:
    # Request with a resolved identity
    GET /api/v1/syllabus/parse-runs
    X-User-ID: 3f0c2a4e-8a43-4c57-b1b8-1d2a3f9e7c10
"""

import logging
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.utils.logging import bind_context, clear_context

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-ID"
REQUEST_ID_HEADER = "X-Request-ID"

# Paths that don't require an identity
PUBLIC_PATHS = frozenset({
    "/",
    "/health",
    "/health/ready",
    "/docs",
    "/redoc",
    "/openapi.json",
})

MAX_USER_ID_LENGTH = 255


class CurrentUser:
    """Identity of the calling user.

    Attributes:
        id: Opaque user identifier.
    """

    def __init__(self, user_id: str) -> None:
        """Initialize from a user id.

        Args:
            user_id: Identifier taken from the X-User-ID header.
        """
        self.id = user_id

    def __repr__(self) -> str:
        return f"<CurrentUser(id={self.id})>"


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that resolves the caller's identity.

    Populates request.state.user with CurrentUser when a usable X-User-ID
    header is present, otherwise leaves it None and lets endpoints decide
    whether identity is required.

    Example:
        >>> app.add_middleware(AuthMiddleware)
        >>> # After processing, request.state.user is set
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        """Resolve identity and bind request-scoped logging context.

        Args:
            request: Incoming HTTP request.
            call_next: Next middleware/handler.

        Returns:
            HTTP response with the request id echoed back.
        """
        request.state.user = None
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())

        clear_context()
        bind_context(request_id=request_id)

        if not self._is_public_path(request.url.path):
            user_id = self._extract_user_id(request)
            if user_id:
                request.state.user = CurrentUser(user_id)
                bind_context(user_id=user_id)
                logger.debug("Caller identified: %s", user_id)

        try:
            response = await call_next(request)
        finally:
            clear_context()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    def _is_public_path(self, path: str) -> bool:
        """Check if path is public (no identity required)."""
        return path in PUBLIC_PATHS

    def _extract_user_id(self, request: Request) -> str | None:
        """Extract the user id from the X-User-ID header.

        Args:
            request: HTTP request.

        Returns:
            The user id, or None if absent or unusable.
        """
        value = request.headers.get(USER_ID_HEADER, "").strip()
        if not value or len(value) > MAX_USER_ID_LENGTH:
            return None
        return value


def get_current_user(request: Request) -> CurrentUser | None:
    """Get current user from request state.

    Args:
        request: HTTP request with state.

    Returns:
        CurrentUser or None if no identity was supplied.
    """
    return getattr(request.state, "user", None)
