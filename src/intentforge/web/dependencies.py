"""FastAPI dependencies resolving services from app.state."""

from __future__ import annotations

from fastapi import Request

from intentforge.orchestrator.lifecycle import ProjectLifecycle
from intentforge.orchestrator.notifications import ProjectEventBroadcaster


def get_lifecycle(request: Request) -> ProjectLifecycle:
    """Dependency that retrieves the project lifecycle from app state."""
    return request.app.state.lifecycle  # type: ignore[no-any-return]


def get_broadcaster(request: Request) -> ProjectEventBroadcaster:
    return request.app.state.broadcaster  # type: ignore[no-any-return]
