"""HTTP middleware for Intentforge.

This module provides:
- RequestLoggingMiddleware: request logging with correlation IDs
- RequestRateLimiter: fixed-window request budget per client
- RateLimitMiddleware: applies the limiter, answering 429 when exhausted

Example:
    >>> from fastapi import FastAPI
    >>> from intentforge.web.middleware import RequestLoggingMiddleware
    >>>
    >>> app = FastAPI()
    >>> app.add_middleware(RequestLoggingMiddleware)
"""

from __future__ import annotations

import math
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from intentforge.errors import RateLimitedError
from intentforge.logging import get_logger, set_correlation_id

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from starlette.requests import Request
    from starlette.responses import Response

logger = get_logger(__name__)

EXEMPT_PREFIXES = ("/health",)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware that logs HTTP requests with timing and correlation IDs.

    The correlation ID is taken from the X-Correlation-ID header when
    present, otherwise generated, and echoed back on the response.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        set_correlation_id(correlation_id)
        start_time = time.perf_counter()

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            query=str(request.url.query) if request.url.query else None,
        )

        try:
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                "request_completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
            )

            response.headers["X-Correlation-ID"] = correlation_id
            return response

        except Exception as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round(duration_ms, 2),
                error=str(exc),
                exc_info=True,
            )
            raise

        finally:
            set_correlation_id(None)


@dataclass
class _Window:
    started_at: float
    count: int


class RequestRateLimiter:
    """Fixed-window request counter keyed by client.

    Attributes:
        max_requests: Requests allowed per window
        window_seconds: Window length
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, _Window] = {}

    def hit(self, key: str) -> None:
        """Count one request for a client.

        Raises:
            RateLimitedError: If the client's budget for the window is spent
        """
        now = self._clock()
        window = self._windows.get(key)
        if window is None or now - window.started_at >= self.window_seconds:
            self._prune(now)
            window = self._windows[key] = _Window(started_at=now, count=0)

        if window.count >= self.max_requests:
            retry_after = math.ceil(window.started_at + self.window_seconds - now)
            raise RateLimitedError(
                "Too many requests, please try again later",
                {"retry_after_seconds": max(retry_after, 1)},
            )
        window.count += 1

    def remaining(self, key: str) -> int:
        window = self._windows.get(key)
        if window is None or self._clock() - window.started_at >= self.window_seconds:
            return self.max_requests
        return max(self.max_requests - window.count, 0)

    def _prune(self, now: float) -> None:
        expired = [k for k, w in self._windows.items() if now - w.started_at >= self.window_seconds]
        for key in expired:
            del self._windows[key]


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rejects clients over their request budget with 429.

    The limiter is read from ``app.state.rate_limiter``; health endpoints
    are exempt.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        limiter: RequestRateLimiter | None = getattr(request.app.state, "rate_limiter", None)
        if limiter is None or request.url.path.startswith(EXEMPT_PREFIXES):
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        try:
            limiter.hit(client)
        except RateLimitedError as exc:
            logger.warning("rate_limit_exceeded", client=client, path=request.url.path)
            return JSONResponse(
                status_code=exc.status_code,
                content={"error": exc.to_dict()},
                headers={"Retry-After": str(exc.details["retry_after_seconds"])},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limiter.max_requests)
        response.headers["X-RateLimit-Remaining"] = str(limiter.remaining(client))
        return response
