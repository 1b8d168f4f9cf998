"""FastAPI application factory for Intentforge.

This module provides the application factory that creates and configures a
FastAPI application with:
- CORS middleware for cross-origin requests
- Request logging middleware with correlation IDs
- Fixed-window rate limiting per client
- The project lifecycle, event broadcaster and rate limiter on app.state
- Record store initialization and job draining in the lifespan

Example usage:
    >>> from intentforge.config import IntentForgeConfig
    >>> from intentforge.web.app import create_app
    >>>
    >>> config = IntentForgeConfig()
    >>> app = create_app(config)
    >>>
    >>> # Run with uvicorn
    >>> import uvicorn
    >>> uvicorn.run(app, host="0.0.0.0", port=8000)
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from intentforge import __version__
from intentforge.config import IntentForgeConfig
from intentforge.logging import get_logger
from intentforge.orchestrator.lifecycle import ProjectLifecycle, create_lifecycle
from intentforge.orchestrator.notifications import ProjectEventBroadcaster
from intentforge.web.errors import register_exception_handlers
from intentforge.web.middleware import (
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    RequestRateLimiter,
)
from intentforge.web.routes.conversations import create_conversations_router
from intentforge.web.routes.events import create_events_router
from intentforge.web.routes.health import create_health_router
from intentforge.web.routes.projects import create_projects_router

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle.

    On startup the record store is initialized (tables created for the SQL
    backend) and projects interrupted by a previous shutdown are failed. On
    shutdown event streams are closed, background jobs are cancelled and
    drained, and the store is closed.

    Args:
        app: FastAPI application instance

    Yields:
        None after startup, cleans up on context exit
    """
    config: IntentForgeConfig = app.state.config
    lifecycle: ProjectLifecycle = app.state.lifecycle
    broadcaster: ProjectEventBroadcaster = app.state.broadcaster

    logger.info("app_startup_begin", host=config.web.host, port=config.web.port)
    await lifecycle.store.initialize()
    logger.info("record_store_ready", backend=config.database.backend)
    await lifecycle.recover_interrupted()

    yield

    logger.info("app_shutdown_begin")
    broadcaster.shutdown()
    await lifecycle.shutdown()
    await lifecycle.store.close()
    logger.info("app_shutdown_complete")


def create_app(
    config: IntentForgeConfig | None = None,
    lifecycle: ProjectLifecycle | None = None,
    broadcaster: ProjectEventBroadcaster | None = None,
) -> FastAPI:
    """Create and configure a FastAPI application.

    Services are constructed here, once per application, and stored on
    app.state for dependency injection.

    Args:
        config: Optional IntentForgeConfig. If None, creates default config.
        lifecycle: Optional prebuilt lifecycle (tests inject one with a fake
            executor). Its notifier should be ``broadcaster``.
        broadcaster: Optional event broadcaster

    Returns:
        Configured FastAPI application instance.
    """
    if config is None:
        config = IntentForgeConfig()

    if broadcaster is None:
        broadcaster = ProjectEventBroadcaster()
    if lifecycle is None:
        lifecycle = create_lifecycle(config, notifier=broadcaster)

    app = FastAPI(
        title="Intentforge",
        version=__version__,
        description="Conversational web application generator",
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.broadcaster = broadcaster
    app.state.lifecycle = lifecycle
    app.state.rate_limiter = RequestRateLimiter(
        config.web.rate_limit_requests, config.web.rate_limit_window_seconds
    )

    # Last added runs first: logging, then rate limiting, then CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.web.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)

    app.include_router(create_health_router(__version__))
    app.include_router(create_projects_router())
    app.include_router(create_conversations_router())
    app.include_router(create_events_router())

    logger.info(
        "app_created",
        cors_origins=config.web.cors_origins,
        version=__version__,
        ai_provider=config.ai.provider,
        executor=config.build.executor,
    )

    return app
