"""
CSRF Protection Middleware

Validates Origin header for state-changing requests to prevent CSRF attacks.
"""

import logging
from typing import Callable
from urllib.parse import urlparse

from fastapi import Request, status
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

# Allowed origins for development
DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:3000",  # Next.js site and admin
    "http://127.0.0.1:3000",
]

# State-changing HTTP methods that need CSRF protection
STATE_CHANGING_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


class CSRFProtectionMiddleware(BaseHTTPMiddleware):
    """
    Middleware to validate Origin header for state-changing requests.

    Requests without Origin or Referer (curl, server-side fetches) pass.
    """

    def __init__(self, app, allowed_origins: list[str] | None = None):
        super().__init__(app)
        self.allowed_origins = set(allowed_origins or DEFAULT_ALLOWED_ORIGINS)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Only check state-changing methods
        if request.method not in STATE_CHANGING_METHODS:
            return await call_next(request)

        origin = request.headers.get("Origin")
        if not origin:
            # Same-origin requests may omit Origin; fall back to Referer
            referer = request.headers.get("Referer")
            if referer:
                parsed = urlparse(referer)
                origin = f"{parsed.scheme}://{parsed.netloc}"

        if origin:
            origin = origin.rstrip("/")
            if origin not in self.allowed_origins:
                logger.warning(f"[CSRF] Rejected request from origin: {origin}")
                return JSONResponse(
                    status_code=status.HTTP_403_FORBIDDEN,
                    content={"detail": "Origin not allowed"},
                )

        return await call_next(request)
