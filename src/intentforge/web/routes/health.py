"""Health check endpoints for Intentforge.

This module provides health and readiness endpoints for:
- Liveness probes (/health/)
- Readiness probes (/health/ready)

The readiness endpoint verifies that the record store answers, so traffic
is only routed to instances that can persist projects.

Example:
    >>> from fastapi import FastAPI
    >>> from intentforge.web.routes.health import create_health_router
    >>>
    >>> app = FastAPI()
    >>> app.include_router(create_health_router())
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from intentforge.logging import get_logger
from intentforge.orchestrator.lifecycle import ProjectLifecycle
from intentforge.web.dependencies import get_lifecycle

logger = get_logger(__name__)


class HealthResponse(BaseModel):
    """Health check response model.

    Attributes:
        status: Current health status ("ok")
        version: Application version
    """

    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response model.

    Attributes:
        status: Current readiness status ("ok", "unhealthy")
        store: Record store status ("connected", "disconnected")
    """

    status: str
    store: str


def create_health_router(version: str) -> APIRouter:
    """Create health check router with endpoints.

    Args:
        version: Version string reported by the liveness endpoint

    Returns:
        Configured APIRouter with health endpoints.

    Routes:
        GET /health/ - Basic liveness check
        GET /health/ready - Readiness check with record store verification
    """
    router = APIRouter(prefix="/health", tags=["health"])

    @router.get("/", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        return HealthResponse(status="ok", version=version)

    @router.get("/ready", response_model=ReadinessResponse)
    async def readiness_check(
        lifecycle: ProjectLifecycle = Depends(get_lifecycle),
    ) -> ReadinessResponse | JSONResponse:
        """Readiness probe.

        Returns 200 when the record store answers, 503 otherwise.
        """
        try:
            await lifecycle.store.ping()
        except Exception as e:
            logger.error("readiness_check_failed", error=str(e), error_type=type(e).__name__)
            return JSONResponse(
                status_code=503,
                content=ReadinessResponse(status="unhealthy", store="disconnected").model_dump(),
            )
        return ReadinessResponse(status="ok", store="connected")

    return router
