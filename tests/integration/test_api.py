"""Integration tests for the HTTP API.

Requests go through the full middleware stack via httpx's ASGITransport;
background jobs run on the shared lifecycle fixture and are awaited with
``wait_for_idle``.
"""

from __future__ import annotations

import asyncio
import io
import zipfile

import pytest
from fastapi import FastAPI
from httpx import AsyncClient

from intentforge import __version__
from intentforge.config import IntentForgeConfig
from intentforge.orchestrator.lifecycle import ProjectLifecycle
from intentforge.web.middleware import RequestRateLimiter

TODO = {"name": "My Todo", "description": "A todo app with authentication and dark mode"}


async def _create(client: AsyncClient) -> str:
    response = await client.post("/projects/", json=TODO)
    assert response.status_code == 201
    return response.json()["project"]["id"]


async def _ready_project(client: AsyncClient, lifecycle: ProjectLifecycle) -> str:
    project_id = await _create(client)
    for text in (TODO["description"], "React is fine, keep it simple"):
        response = await client.post(
            "/conversations/message", json={"project_id": project_id, "message": text}
        )
        assert response.status_code == 200
    response = await client.post(f"/projects/{project_id}/generate", json={"confirmed": True})
    assert response.status_code == 202
    await lifecycle.wait_for_idle(project_id)
    return project_id


class TestHealth:
    async def test_liveness(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/health/")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "version": __version__}

    async def test_readiness(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/health/ready")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "store": "connected"}

    async def test_readiness_store_down(
        self,
        async_client: AsyncClient,
        lifecycle: ProjectLifecycle,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        async def broken_ping() -> None:
            raise ConnectionError("database unreachable")

        monkeypatch.setattr(lifecycle.store, "ping", broken_ping)

        response = await async_client.get("/health/ready")

        assert response.status_code == 503
        assert response.json() == {"status": "unhealthy", "store": "disconnected"}


class TestProjects:
    """Project CRUD endpoints and the error envelope."""

    async def test_create(self, async_client: AsyncClient) -> None:
        response = await async_client.post("/projects/", json=TODO)

        assert response.status_code == 201
        body = response.json()
        assert body["project"]["name"] == "My Todo"
        assert body["project"]["status"] == "initializing"
        assert body["project"]["type"] == "react-web-app"
        assert body["conversation"]["project_id"] == body["project"]["id"]
        assert "X-Correlation-ID" in response.headers

    async def test_create_validation_envelope(self, async_client: AsyncClient) -> None:
        response = await async_client.post("/projects/", json={"name": "x", "description": "short"})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert any(d["field"] == "body.description" for d in error["details"])

    async def test_create_rejects_unknown_provider(self, async_client: AsyncClient) -> None:
        response = await async_client.post(
            "/projects/", json={**TODO, "ai_config": {"provider": "gemini"}}
        )

        assert response.status_code == 400
        assert response.json()["error"]["details"] == {"field": "ai_config.provider"}

    async def test_list_and_get(self, async_client: AsyncClient) -> None:
        project_id = await _create(async_client)

        listing = await async_client.get("/projects/")
        assert listing.status_code == 200
        assert [p["id"] for p in listing.json()] == [project_id]
        assert listing.json()[0]["file_count"] == 0

        response = await async_client.get(f"/projects/{project_id}")
        assert response.status_code == 200
        assert response.json()["description"] == TODO["description"]

    async def test_get_unknown(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/projects/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {
            "error": {
                "code": "NOT_FOUND",
                "message": "Project does-not-exist not found",
                "details": {"resource": "Project", "id": "does-not-exist"},
            }
        }

    async def test_delete(self, async_client: AsyncClient) -> None:
        project_id = await _create(async_client)

        response = await async_client.delete(f"/projects/{project_id}")
        assert response.status_code == 204

        assert (await async_client.get(f"/projects/{project_id}")).status_code == 404


class TestConversationEndpoints:
    async def test_message_turns(self, async_client: AsyncClient) -> None:
        project_id = await _create(async_client)

        first = await async_client.post(
            "/conversations/message",
            json={"project_id": project_id, "message": "A React todo app"},
        )
        assert first.status_code == 200
        body = first.json()
        assert body["project_status"] == "gathering_requirements"
        assert body["requires_clarification"] is True
        assert body["message"]["role"] == "assistant"
        assert len(body["clarification_questions"]) == 3

        second = await async_client.post(
            "/conversations/message",
            json={"project_id": project_id, "message": "Keep it simple"},
        )
        assert second.json()["ready_to_generate"] is True

        conversation = await async_client.get(f"/conversations/{project_id}")
        assert conversation.status_code == 200
        assert len(conversation.json()["messages"]) == 4

    async def test_message_too_long(self, async_client: AsyncClient) -> None:
        project_id = await _create(async_client)
        response = await async_client.post(
            "/conversations/message", json={"project_id": project_id, "message": "x" * 5001}
        )
        assert response.status_code == 400

    async def test_unknown_project(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/conversations/missing")
        assert response.status_code == 404


class TestPipelineEndpoints:
    """Generate, build and download."""

    async def test_generate_accepted(
        self, async_client: AsyncClient, lifecycle: ProjectLifecycle
    ) -> None:
        project_id = await _create(async_client)
        await async_client.post(
            "/conversations/message", json={"project_id": project_id, "message": "Hello"}
        )

        response = await async_client.post(
            f"/projects/{project_id}/generate", json={"confirmed": True}
        )

        assert response.status_code == 202
        assert response.json() == {
            "project_id": project_id,
            "status": "planning",
            "message": "Generation started",
        }
        project = await lifecycle.wait_for_idle(project_id)
        assert project.status.value == "ready"

    async def test_generate_conflict(
        self, async_client: AsyncClient, lifecycle: ProjectLifecycle
    ) -> None:
        project_id = await _create(async_client)
        await async_client.post(
            "/conversations/message", json={"project_id": project_id, "message": "Hello"}
        )
        await async_client.post(f"/projects/{project_id}/generate", json={"confirmed": True})

        response = await async_client.post(
            f"/projects/{project_id}/generate", json={"confirmed": True}
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT"
        await lifecycle.wait_for_idle(project_id)

    async def test_generate_unconfirmed(self, async_client: AsyncClient) -> None:
        project_id = await _create(async_client)
        response = await async_client.post(f"/projects/{project_id}/generate", json={})
        assert response.status_code == 400
        assert response.json()["error"]["details"] == {"field": "confirmed"}

    async def test_build(self, async_client: AsyncClient, lifecycle: ProjectLifecycle) -> None:
        project_id = await _ready_project(async_client, lifecycle)

        response = await async_client.post(
            f"/projects/{project_id}/build", json={"run_tests": False}
        )

        assert response.status_code == 202
        assert response.json()["status"] == "building"
        project = await lifecycle.wait_for_idle(project_id)
        assert project.build_output is not None and project.build_output.success

    async def test_build_before_generation(self, async_client: AsyncClient) -> None:
        project_id = await _create(async_client)
        response = await async_client.post(f"/projects/{project_id}/build")
        assert response.status_code == 409

    async def test_download_zip(
        self, async_client: AsyncClient, lifecycle: ProjectLifecycle
    ) -> None:
        project_id = await _ready_project(async_client, lifecycle)
        project = await lifecycle.get_project(project_id)

        response = await async_client.get(f"/projects/{project_id}/download")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/zip"
        assert 'filename="my-todo.zip"' in response.headers["content-disposition"]
        with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
            assert archive.namelist() == [f.path for f in project.files]

    async def test_download_tar(
        self, async_client: AsyncClient, lifecycle: ProjectLifecycle
    ) -> None:
        project_id = await _ready_project(async_client, lifecycle)

        response = await async_client.get(f"/projects/{project_id}/download?format=tar")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/gzip"
        assert response.content[:2] == b"\x1f\x8b"

    async def test_concurrent_downloads(
        self, async_client: AsyncClient, lifecycle: ProjectLifecycle, config: IntentForgeConfig
    ) -> None:
        project_id = await _ready_project(async_client, lifecycle)
        url = f"/projects/{project_id}/download"

        responses = await asyncio.gather(*(async_client.get(url) for _ in range(3)))

        assert [r.status_code for r in responses] == [200, 200, 200]
        assert len({r.content for r in responses}) == 1
        assert int(responses[0].headers["content-length"]) == len(responses[0].content)
        assert not config.storage.archives_dir.exists()

    async def test_download_before_generation(self, async_client: AsyncClient) -> None:
        project_id = await _create(async_client)
        response = await async_client.get(f"/projects/{project_id}/download")
        assert response.status_code == 409

    async def test_download_bad_format(self, async_client: AsyncClient) -> None:
        project_id = await _create(async_client)
        response = await async_client.get(f"/projects/{project_id}/download?format=rar")
        assert response.status_code == 400


class TestEventsEndpoint:
    async def test_unknown_project(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/events/missing/stream")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"


class TestRateLimiting:
    async def test_over_budget_gets_429(self, app: FastAPI, async_client: AsyncClient) -> None:
        app.state.rate_limiter = RequestRateLimiter(max_requests=2, window_seconds=60)

        first = await async_client.get("/projects/")
        assert first.headers["X-RateLimit-Limit"] == "2"
        assert first.headers["X-RateLimit-Remaining"] == "1"
        await async_client.get("/projects/")

        response = await async_client.get("/projects/")

        assert response.status_code == 429
        assert response.json()["error"]["code"] == "RATE_LIMITED"
        assert int(response.headers["Retry-After"]) >= 1

    async def test_health_is_exempt(self, app: FastAPI, async_client: AsyncClient) -> None:
        app.state.rate_limiter = RequestRateLimiter(max_requests=1, window_seconds=60)

        for _ in range(3):
            assert (await async_client.get("/health/")).status_code == 200
