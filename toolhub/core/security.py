from __future__ import annotations

import logging
import time
from collections import defaultdict

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.status import HTTP_429_TOO_MANY_REQUESTS

from toolhub.core.config import settings

logger = logging.getLogger(__name__)

# In-memory rate limiting store, per process
RATE_LIMIT_WINDOW_SECONDS = 60
rate_limit_store: dict[str, list[float]] = defaultdict(list)
_last_prune = 0.0


def prune_rate_limit_store(now: float) -> int:
    """Drop clients with no request inside the window. Returns how many."""
    stale = [
        client_ip
        for client_ip, timestamps in rate_limit_store.items()
        if not timestamps or now - timestamps[-1] >= RATE_LIMIT_WINDOW_SECONDS
    ]
    for client_ip in stale:
        del rate_limit_store[client_ip]
    return len(stale)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding one-minute request window per client IP"""

    async def dispatch(self, request: Request, call_next):
        global _last_prune
        client_ip = request.client.host if request.client else "unknown"

        current_time = time.time()
        if current_time - _last_prune >= RATE_LIMIT_WINDOW_SECONDS:
            prune_rate_limit_store(current_time)
            _last_prune = current_time

        rate_limit_store[client_ip] = [
            timestamp
            for timestamp in rate_limit_store[client_ip]
            if current_time - timestamp < RATE_LIMIT_WINDOW_SECONDS
        ]

        if len(rate_limit_store[client_ip]) >= settings.RATE_LIMIT_PER_MINUTE:
            logger.warning("Rate limit exceeded", extra={"client_ip": client_ip})
            return Response(
                content='{"success":false,"message":"Too many requests","error_code":"RATE_LIMITED"}',
                status_code=HTTP_429_TOO_MANY_REQUESTS,
                media_type="application/json",
            )

        rate_limit_store[client_ip].append(current_time)

        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(settings.RATE_LIMIT_PER_MINUTE)
        response.headers["X-RateLimit-Remaining"] = str(
            settings.RATE_LIMIT_PER_MINUTE - len(rate_limit_store[client_ip])
        )

        return response


async def add_security_headers(request: Request, call_next):
    """Add security headers to responses"""
    response = await call_next(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Strict-Transport-Security"] = (
        "max-age=31536000; includeSubDomains"
    )
    # API docs pull their assets from a CDN
    if not request.url.path.startswith(f"{settings.API_V1_STR}/docs"):
        response.headers["Content-Security-Policy"] = "default-src 'self'"

    return response
