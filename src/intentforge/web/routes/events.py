"""Server-Sent Events endpoint for project progress.

Clients subscribe per project and receive status changes, generated files,
build progress and errors as they are published by the lifecycle. Delivery
is best effort: a subscriber that falls behind loses events rather than
slowing down the publisher.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Request
from sse_starlette.sse import EventSourceResponse

from intentforge.logging import get_logger
from intentforge.orchestrator.lifecycle import ProjectLifecycle
from intentforge.orchestrator.notifications import ProjectEventBroadcaster
from intentforge.web.dependencies import get_broadcaster, get_lifecycle

logger = get_logger(__name__)

PING_SECONDS = 15


def create_events_router() -> APIRouter:
    """Create the events router with the per-project SSE stream.

    Returns:
        FastAPI router configured with /events/{project_id}/stream.
    """
    router = APIRouter(prefix="/events", tags=["events"])

    @router.get("/{project_id}/stream")
    async def stream_events(
        project_id: str,
        request: Request,
        lifecycle: ProjectLifecycle = Depends(get_lifecycle),
        broadcaster: ProjectEventBroadcaster = Depends(get_broadcaster),
    ) -> EventSourceResponse:
        """Stream events for one project until the client disconnects.

        Raises:
            NotFoundError: Unknown project (404 before the stream opens)
        """
        project = await lifecycle.get_project(project_id)
        logger.info("event_stream_opened", project_id=project_id, status=project.status.value)

        async def event_generator() -> AsyncIterator[dict[str, str]]:
            async for message in broadcaster.subscribe(project_id):
                if await request.is_disconnected():
                    break
                yield message.to_sse()

        return EventSourceResponse(event_generator(), ping=PING_SECONDS)

    return router
