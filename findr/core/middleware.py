"""
HTTP middleware: security headers, request logging and body size limit.
"""

import logging
import time
import uuid
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from findr.config import settings


logger = logging.getLogger("findr.requests")

QUIET_PATHS = {"/", "/health", "/docs", "/openapi.json"}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds a request id and standard security headers to every response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id

        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        # Profiles and matches are per-user data
        path = request.url.path
        if "/profiles" in path or "/matching" in path:
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, private"
            response.headers["Pragma"] = "no-cache"

        if settings.ENVIRONMENT == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One log line per API request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        response = await call_next(request)

        if request.url.path in QUIET_PATHS:
            return response

        duration_ms = round((time.time() - start_time) * 1000, 2)
        logger.info(
            "%s %s - %s (%sms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                "request_id": getattr(request.state, "request_id", "N/A"),
                "client_ip": self._get_client_ip(request),
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return response

    def _get_client_ip(self, request: Request) -> str:
        """Extract real client IP from request."""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip.strip()

        return request.client.host if request.client else "unknown"


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Rejects bodies larger than MAX_BODY_SIZE based on Content-Length."""

    MAX_BODY_SIZE = 1024 * 1024  # 1 MB

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("Content-Length")

        if content_length:
            try:
                if int(content_length) > self.MAX_BODY_SIZE:
                    return Response(
                        content='{"detail": "Request body too large. Maximum size is 1MB."}',
                        status_code=413,
                        media_type="application/json",
                    )
            except ValueError:
                pass

        return await call_next(request)
