"""Pytest fixtures for integration tests.

Provides an HTTP client bound to the FastAPI application (wired to the
shared lifecycle fixture, so background jobs use the fake executor) and a
SQL record store backed by a temporary SQLite file.
"""

from __future__ import annotations

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from intentforge.config import DatabaseConfig, IntentForgeConfig
from intentforge.database.store import SqlRecordStore
from intentforge.orchestrator.lifecycle import ProjectLifecycle
from intentforge.orchestrator.notifications import ProjectEventBroadcaster
from intentforge.web.app import create_app


@pytest.fixture
def app(
    config: IntentForgeConfig,
    lifecycle: ProjectLifecycle,
    broadcaster: ProjectEventBroadcaster,
) -> FastAPI:
    return create_app(config, lifecycle=lifecycle, broadcaster=broadcaster)


@pytest_asyncio.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing the FastAPI app.

    The lifespan does not run under ASGITransport; the in-memory store
    needs no initialization.

    Yields:
        AsyncClient configured to test the application.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def sql_store(config: IntentForgeConfig) -> AsyncGenerator[SqlRecordStore, None]:
    """SqlRecordStore on a fresh SQLite file with tables created.

    Yields:
        Initialized store, closed after the test.
    """
    store = SqlRecordStore.from_config(DatabaseConfig(backend="sql", url=config.database.url))
    await store.initialize()
    yield store
    await store.close()
