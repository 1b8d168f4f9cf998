"""Shared fixtures for Intentforge tests.

Provides configuration rooted in a temporary directory, a scripted
executor standing in for npm, and a fully wired ProjectLifecycle that uses
the mock completion provider and the in-memory record store.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable, Sequence
from pathlib import Path

import pytest
import pytest_asyncio

from intentforge.config import (
    AIConfig,
    BuildConfig,
    DatabaseConfig,
    IntentForgeConfig,
    StorageConfig,
)
from intentforge.database.store import InMemoryRecordStore
from intentforge.orchestrator.lifecycle import ProjectLifecycle
from intentforge.orchestrator.notifications import ProjectEventBroadcaster
from intentforge.pipeline.build_runner import BuildRunner
from intentforge.pipeline.executor import CommandResult
from intentforge.pipeline.materializer import ProjectMaterializer

TODO_DESCRIPTION = "A todo app with authentication and dark mode"

VITEST_OUTPUT = """
 ✓ src/App.test.tsx (3 tests) 12ms
 ✓ src/components/ItemList.test.tsx (2 tests) 8ms

 Test Files  2 passed (2)
      Tests  5 passed (5)
"""


class FakeExecutor:
    """Executor returning scripted results keyed by the joined command line.

    Unscripted commands succeed with empty output.
    """

    def __init__(self, results: dict[str, CommandResult] | None = None) -> None:
        self.results = dict(results or {})
        self.calls: list[tuple[list[str], Path]] = []
        self.closed = False

    def script(self, command: Sequence[str], **fields: object) -> None:
        self.results[" ".join(command)] = CommandResult(command=list(command), **fields)

    async def run(self, command: Sequence[str], cwd: Path, timeout: float) -> CommandResult:
        self.calls.append((list(command), cwd))
        scripted = self.results.get(" ".join(command))
        if scripted is not None:
            return scripted
        return CommandResult(command=list(command), exit_code=0, duration_seconds=0.01)

    async def close(self) -> None:
        self.closed = True

    @property
    def commands(self) -> list[str]:
        return [" ".join(command) for command, _ in self.calls]


@pytest.fixture
def config(tmp_path: Path) -> IntentForgeConfig:
    """Configuration with storage under tmp_path and the mock provider."""
    return IntentForgeConfig(
        database=DatabaseConfig(url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"),
        storage=StorageConfig(
            projects_dir=tmp_path / "projects",
            archives_dir=tmp_path / "archives",
        ),
        build=BuildConfig(),
        ai=AIConfig(provider="mock"),
    )


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def broadcaster() -> ProjectEventBroadcaster:
    return ProjectEventBroadcaster()


@pytest.fixture
def materializer(config: IntentForgeConfig) -> ProjectMaterializer:
    return ProjectMaterializer(config.storage.projects_dir)


@pytest_asyncio.fixture
async def lifecycle(
    config: IntentForgeConfig,
    executor: FakeExecutor,
    broadcaster: ProjectEventBroadcaster,
    materializer: ProjectMaterializer,
) -> AsyncGenerator[ProjectLifecycle, None]:
    """Lifecycle wired to the fake executor; jobs are drained on teardown."""
    lifecycle = ProjectLifecycle(
        store=InMemoryRecordStore(),
        materializer=materializer,
        build_runner=BuildRunner(executor, materializer, config.build),
        ai_config=config.ai,
        archives_dir=config.storage.archives_dir,
        notifier=broadcaster,
    )
    yield lifecycle
    await lifecycle.shutdown()


@pytest.fixture
def converse(lifecycle: ProjectLifecycle) -> Callable[..., Awaitable[str]]:
    """Create a project and hold the two-turn mock conversation.

    The returned coroutine function yields the project id, with the project
    in gathering_requirements.
    """

    async def _converse(description: str = TODO_DESCRIPTION, name: str = "Todo") -> str:
        project, _ = await lifecycle.create_project(name, description)
        await lifecycle.record_message(project.id, description)
        await lifecycle.record_message(project.id, "React is fine, keep it simple")
        return project.id

    return _converse
