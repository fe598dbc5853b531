"""Request-id and timing middleware.

Every request gets an ``X-Request-Id`` (the caller's own id is kept when it
sends one) and an ``X-Response-Time-Ms`` header, and produces one log line.
"""

import logging
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("accessnav.request")

# Paths that should not be logged
EXCLUDED_PATHS = {
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/favicon.ico",
}


def get_client_ip(request: Request) -> str:
    """Extract client IP from request, handling proxies."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        # First entry is the original client
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    if request.client:
        return request.client.host

    return "unknown"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Add a request ID and response time to every request/response."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.perf_counter()

        response: Response = await call_next(request)

        duration = round((time.perf_counter() - start_time) * 1000, 2)
        response.headers["X-Request-Id"] = request_id
        response.headers["X-Response-Time-Ms"] = str(duration)

        if request.url.path not in EXCLUDED_PATHS:
            logger.info(
                "%s %s %s %sms ip=%s request_id=%s",
                request.method,
                request.url.path,
                response.status_code,
                duration,
                get_client_ip(request),
                request_id,
            )
        return response
