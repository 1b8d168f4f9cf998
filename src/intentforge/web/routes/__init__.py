"""API route factories for the Intentforge web application."""

from __future__ import annotations

from intentforge.web.routes.conversations import create_conversations_router
from intentforge.web.routes.events import create_events_router
from intentforge.web.routes.health import create_health_router
from intentforge.web.routes.projects import create_projects_router

__all__ = [
    "create_conversations_router",
    "create_events_router",
    "create_health_router",
    "create_projects_router",
]
