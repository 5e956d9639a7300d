"""
Per-IP request limiting for the /api/ surface

Each client IP gets RATE_LIMIT_MAX_REQUESTS requests per sliding window of
RATE_LIMIT_WINDOW_SECONDS. State is in-memory, so every worker process
counts on its own.
"""
import time
from collections import deque
from typing import Deque, Dict, Tuple

from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from .config import settings


class RateLimiter:
    """Sliding window over the timestamps of accepted requests"""

    def __init__(self):
        self._hits: Dict[str, Deque[float]] = {}

    def is_allowed(self, identifier: str, max_requests: int, window_seconds: int) -> Tuple[bool, int, int]:
        """
        Record a request for identifier if it fits in the window.

        Returns:
            (allowed, remaining requests, seconds until a slot frees up)
        """
        now = time.time()
        hits = self._hits.setdefault(identifier, deque())

        while hits and hits[0] <= now - window_seconds:
            hits.popleft()

        if len(hits) >= max_requests:
            retry_after = int(hits[0] + window_seconds - now) + 1 if hits else 1
            return False, 0, retry_after

        hits.append(now)
        return True, max_requests - len(hits), 0

    def reset(self):
        self._hits.clear()


rate_limiter = RateLimiter()

RATE_LIMITED_PREFIX = "/api/"

EXEMPT_PATHS = {
    "/api/health",
}


def client_ip(request: Request) -> str:
    """First X-Forwarded-For hop when behind a proxy, else the socket peer"""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Limits /api/* per client IP (health check and CORS preflight exempt)

    Headers:
    - X-RateLimit-Limit / X-RateLimit-Remaining on every limited route
    - X-RateLimit-Reset and Retry-After on 429 responses
    """

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if (
            request.method == "OPTIONS"
            or not path.startswith(RATE_LIMITED_PREFIX)
            or path in EXEMPT_PATHS
        ):
            return await call_next(request)

        limit = settings.RATE_LIMIT_MAX_REQUESTS
        allowed, remaining, retry_after = rate_limiter.is_allowed(
            f"ip:{client_ip(request)}",
            max_requests=limit,
            window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS
        )

        if not allowed:
            # Returned rather than raised so the CORS middleware still decorates it
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"detail": "Too many requests from this IP, please try again later."},
                headers={
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(retry_after),
                    "Retry-After": str(retry_after),
                }
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response
