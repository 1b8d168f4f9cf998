"""Background job tracking and per-project locking.

JobRegistry owns every pipeline task: one named asyncio.Task per project at
most, cancellable by project id and drained on shutdown. KeyedLocks hands
out one asyncio.Lock per project so read-modify-write sequences on a
project's records never interleave.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from intentforge.errors import ConflictError
from intentforge.logging import get_logger


class KeyedLocks:
    """Lazily created asyncio.Lock per key."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def get(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        async with self.get(key):
            yield

    def discard(self, key: str) -> None:
        """Forget a key's lock once it is no longer held."""
        lock = self._locks.get(key)
        if lock is not None and not lock.locked():
            del self._locks[key]


class JobRegistry:
    """Tracks the single active background job of each project."""

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task[None]] = {}
        self._kinds: dict[str, str] = {}
        self.logger = get_logger(__name__)

    def is_active(self, project_id: str) -> bool:
        task = self._tasks.get(project_id)
        return task is not None and not task.done()

    def active_kind(self, project_id: str) -> str | None:
        """Kind ("generate", "build") of the running job, if any."""
        return self._kinds.get(project_id) if self.is_active(project_id) else None

    def start(
        self, project_id: str, kind: str, coro: Coroutine[Any, Any, None]
    ) -> asyncio.Task[None]:
        """Launch a job for a project.

        Args:
            project_id: Project the job belongs to.
            kind: Job kind, used in the task name and logs.
            coro: Job body.

        Returns:
            The created task.

        Raises:
            ConflictError: If the project already has an active job.
        """
        if self.is_active(project_id):
            coro.close()
            raise ConflictError(
                f"A {self._kinds.get(project_id)} job is already running for project {project_id}",
                {"project_id": project_id, "active_job": self._kinds.get(project_id)},
            )

        task = asyncio.create_task(coro, name=f"{kind}-{project_id}")
        self._tasks[project_id] = task
        self._kinds[project_id] = kind
        task.add_done_callback(lambda t: self._on_done(project_id, t))

        self.logger.info("job_started", project_id=project_id, job=kind)
        return task

    def _on_done(self, project_id: str, task: asyncio.Task[None]) -> None:
        if self._tasks.get(project_id) is task:
            del self._tasks[project_id]
            self._kinds.pop(project_id, None)

        if task.cancelled():
            self.logger.info("job_cancelled", task=task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            self.logger.error(
                "job_crashed",
                task=task.get_name(),
                error=str(exc),
                error_type=type(exc).__name__,
            )
        else:
            self.logger.info("job_finished", task=task.get_name())

    async def wait(self, project_id: str) -> None:
        """Wait until the project's current job (if any) has finished."""
        task = self._tasks.get(project_id)
        if task is not None:
            await asyncio.wait({task})

    async def cancel(self, project_id: str) -> bool:
        """Cancel a project's job and wait for it to unwind.

        Returns:
            True if a running job was cancelled.
        """
        task = self._tasks.get(project_id)
        if task is None or task.done():
            return False

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        return True

    async def shutdown(self) -> None:
        """Cancel and drain every job."""
        tasks = [t for t in self._tasks.values() if not t.done()]
        if not tasks:
            return

        self.logger.info("jobs_draining", count=len(tasks))
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self.logger.info("jobs_drained")
