"""Project event notifications.

The lifecycle publishes progress through a NotificationSink. Delivery is
at-most-once and fire-and-forget: a sink never blocks the pipeline and never
raises into it. ProjectEventBroadcaster fans events out per project to
subscriber queues, which the SSE endpoint drains.
"""

from __future__ import annotations

import asyncio
import json
from collections import defaultdict
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Protocol

from intentforge.logging import get_logger
from intentforge.models.project import utcnow


class ProjectEvent(str, Enum):
    """Event names published for a project."""

    STATUS_CHANGED = "project:status:changed"
    FILE_GENERATED = "project:file:generated"
    BUILD_STARTED = "project:build:started"
    BUILD_PROGRESS = "project:build:progress"
    BUILD_COMPLETED = "project:build:completed"
    TEST_STARTED = "project:test:started"
    TEST_COMPLETED = "project:test:completed"
    ERROR = "error"


@dataclass
class EventMessage:
    """One published event."""

    project_id: str
    event: ProjectEvent
    payload: dict[str, Any]
    timestamp: datetime = field(default_factory=utcnow)

    def to_sse(self) -> dict[str, str]:
        """Format for sse-starlette."""
        data = {
            "project_id": self.project_id,
            "timestamp": self.timestamp.isoformat(),
            **self.payload,
        }
        return {"event": self.event.value, "data": json.dumps(data, default=str)}


class NotificationSink(Protocol):
    async def publish(self, project_id: str, event: ProjectEvent, payload: dict[str, Any]) -> None:
        ...


class NullNotificationSink:
    """Discards every event."""

    async def publish(self, project_id: str, event: ProjectEvent, payload: dict[str, Any]) -> None:
        return None


class ProjectEventBroadcaster:
    """Fans events out to per-project subscriber queues.

    Queues are bounded; when a subscriber falls behind, new events for it are
    dropped rather than blocking the publisher.
    """

    def __init__(self, max_queue_size: int = 256) -> None:
        self.max_queue_size = max_queue_size
        self._queues: dict[str, list[asyncio.Queue[EventMessage | None]]] = defaultdict(list)
        self.logger = get_logger(__name__)

    def open(self, project_id: str) -> asyncio.Queue[EventMessage | None]:
        """Register a subscriber queue for a project."""
        queue: asyncio.Queue[EventMessage | None] = asyncio.Queue(maxsize=self.max_queue_size)
        self._queues[project_id].append(queue)
        self.logger.info(
            "event_subscriber_connected",
            project_id=project_id,
            subscribers=len(self._queues[project_id]),
        )
        return queue

    def close(self, project_id: str, queue: asyncio.Queue[EventMessage | None]) -> None:
        queues = self._queues.get(project_id)
        if queues and queue in queues:
            queues.remove(queue)
            if not queues:
                del self._queues[project_id]
        self.logger.info("event_subscriber_disconnected", project_id=project_id)

    async def subscribe(self, project_id: str) -> AsyncIterator[EventMessage]:
        """Yield events for a project until the broadcaster shuts down.

        Yields:
            EventMessage objects in publish order.
        """
        queue = self.open(project_id)
        try:
            while True:
                message = await queue.get()
                if message is None:  # Shutdown signal
                    break
                yield message
        finally:
            self.close(project_id, queue)

    def subscriber_count(self, project_id: str) -> int:
        return len(self._queues.get(project_id, []))

    async def publish(self, project_id: str, event: ProjectEvent, payload: dict[str, Any]) -> None:
        message = EventMessage(project_id=project_id, event=event, payload=payload)
        delivered = 0
        for queue in list(self._queues.get(project_id, [])):
            try:
                queue.put_nowait(message)
                delivered += 1
            except asyncio.QueueFull:
                self.logger.warning(
                    "event_dropped", project_id=project_id, event_type=event.value
                )

        self.logger.debug(
            "event_published",
            project_id=project_id,
            event_type=event.value,
            subscribers=delivered,
        )

    def shutdown(self) -> None:
        """Signal every subscriber to stop."""
        for queues in self._queues.values():
            for queue in queues:
                try:
                    queue.put_nowait(None)
                except asyncio.QueueFull:
                    # Make room for the shutdown signal
                    queue.get_nowait()
                    queue.put_nowait(None)
