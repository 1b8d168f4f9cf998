"""Unit tests for project event broadcasting."""

from __future__ import annotations

import asyncio
import json

from intentforge.orchestrator.notifications import (
    EventMessage,
    NullNotificationSink,
    ProjectEvent,
    ProjectEventBroadcaster,
)


class TestEventMessage:
    def test_to_sse(self) -> None:
        message = EventMessage(
            project_id="p1", event=ProjectEvent.STATUS_CHANGED, payload={"status": "ready"}
        )

        sse = message.to_sse()

        assert sse["event"] == "project:status:changed"
        data = json.loads(sse["data"])
        assert data["project_id"] == "p1"
        assert data["status"] == "ready"
        assert "timestamp" in data


class TestProjectEventBroadcaster:
    """Test subscribe, publish, drop and shutdown."""

    async def test_publish_reaches_project_subscribers_in_order(self) -> None:
        broadcaster = ProjectEventBroadcaster()
        mine = broadcaster.open("p1")
        other = broadcaster.open("p2")

        await broadcaster.publish("p1", ProjectEvent.BUILD_STARTED, {})
        await broadcaster.publish("p1", ProjectEvent.BUILD_COMPLETED, {"success": True})

        first, second = mine.get_nowait(), mine.get_nowait()
        assert first is not None and first.event == ProjectEvent.BUILD_STARTED
        assert second is not None and second.payload == {"success": True}
        assert other.empty()

    async def test_publish_without_subscribers(self) -> None:
        broadcaster = ProjectEventBroadcaster()
        await broadcaster.publish("p1", ProjectEvent.ERROR, {"message": "x"})
        assert broadcaster.subscriber_count("p1") == 0

    async def test_full_queue_drops_events(self) -> None:
        broadcaster = ProjectEventBroadcaster(max_queue_size=1)
        queue = broadcaster.open("p1")

        await broadcaster.publish("p1", ProjectEvent.BUILD_PROGRESS, {"step": 1})
        await broadcaster.publish("p1", ProjectEvent.BUILD_PROGRESS, {"step": 2})

        assert queue.qsize() == 1
        message = queue.get_nowait()
        assert message is not None and message.payload == {"step": 1}

    async def test_close_unregisters(self) -> None:
        broadcaster = ProjectEventBroadcaster()
        queue = broadcaster.open("p1")
        assert broadcaster.subscriber_count("p1") == 1

        broadcaster.close("p1", queue)

        assert broadcaster.subscriber_count("p1") == 0

    async def test_subscribe_until_shutdown(self) -> None:
        broadcaster = ProjectEventBroadcaster()
        received: list[ProjectEvent] = []

        async def consume() -> None:
            async for message in broadcaster.subscribe("p1"):
                received.append(message.event)

        consumer = asyncio.create_task(consume())
        while broadcaster.subscriber_count("p1") == 0:
            await asyncio.sleep(0)

        await broadcaster.publish("p1", ProjectEvent.STATUS_CHANGED, {"status": "planning"})
        await broadcaster.publish("p1", ProjectEvent.FILE_GENERATED, {"path": "a.ts"})
        broadcaster.shutdown()
        await asyncio.wait_for(consumer, timeout=5)

        assert received == [ProjectEvent.STATUS_CHANGED, ProjectEvent.FILE_GENERATED]
        assert broadcaster.subscriber_count("p1") == 0

    async def test_shutdown_with_full_queue(self) -> None:
        broadcaster = ProjectEventBroadcaster(max_queue_size=1)
        queue = broadcaster.open("p1")
        await broadcaster.publish("p1", ProjectEvent.BUILD_STARTED, {})

        broadcaster.shutdown()

        assert queue.get_nowait() is None


class TestNullNotificationSink:
    async def test_publish_is_noop(self) -> None:
        assert await NullNotificationSink().publish("p1", ProjectEvent.ERROR, {}) is None
