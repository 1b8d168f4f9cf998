"""Web layer for Intentforge: FastAPI application, middleware and routes."""

from __future__ import annotations

from intentforge.web.app import create_app
from intentforge.web.middleware import (
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    RequestRateLimiter,
)

__all__ = [
    "RateLimitMiddleware",
    "RequestLoggingMiddleware",
    "RequestRateLimiter",
    "create_app",
]
