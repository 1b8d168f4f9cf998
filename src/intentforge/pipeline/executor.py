"""Command executors for build and test steps.

An Executor runs one command in a project directory with a timeout and
reports the outcome as a CommandResult. Executors never raise for command
failures: a non-zero exit, a timeout or a missing binary are all results.

LocalProcessExecutor runs the command as a host subprocess.
DockerExecutor runs it in a throwaway container with the project directory
bind-mounted, so generated code never runs with host privileges.

Example usage:
    >>> executor = create_executor(config.build, config.docker)
    >>> result = await executor.run(["npm", "run", "build"], project_dir, timeout=300)
    >>> if not result.succeeded:
    ...     print(result.stderr)
"""

from __future__ import annotations

import asyncio
import os
import time
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

import docker
from docker.errors import DockerException, ImageNotFound
from docker.models.containers import Container
from pydantic import BaseModel, Field

from intentforge.config import BuildConfig, DockerConfig
from intentforge.errors import ExecutionError
from intentforge.logging import get_logger

WORKSPACE_MOUNT = "/workspace"


class CommandResult(BaseModel):
    """Outcome of a single command.

    Attributes:
        command: The argv that was run
        exit_code: Process exit status, None if it never started or was killed
        stdout: Captured standard output
        stderr: Captured standard error
        timed_out: Whether the command hit its timeout
        duration_seconds: Wall-clock duration
    """

    command: list[str]
    exit_code: int | None = None
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    duration_seconds: float = Field(default=0.0, ge=0.0)

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0 and not self.timed_out

    def output_lines(self) -> list[str]:
        """Non-empty stdout then stderr lines."""
        text = "\n".join(part for part in (self.stdout, self.stderr) if part)
        return [line for line in text.splitlines() if line.strip()]


class Executor(Protocol):
    """Runs a command in a directory."""

    async def run(self, command: Sequence[str], cwd: Path, timeout: float) -> CommandResult:
        ...

    async def close(self) -> None:
        """Release any client the executor holds."""
        ...


class LocalProcessExecutor:
    """Runs commands as host subprocesses.

    Generated code executes with the privileges of this process; use
    DockerExecutor where that is not acceptable.
    """

    def __init__(self, env: dict[str, str] | None = None) -> None:
        self.env = env
        self.logger = get_logger(__name__)

    async def run(self, command: Sequence[str], cwd: Path, timeout: float) -> CommandResult:
        argv = list(command)
        start = time.monotonic()

        self.logger.debug("running_command", command=" ".join(argv), cwd=str(cwd), timeout=timeout)

        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                cwd=str(cwd),
                env=self.env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            self.logger.error("command_not_found", command=argv[0])
            return CommandResult(
                command=argv,
                stderr=f"Command not found: {argv[0]}",
                duration_seconds=time.monotonic() - start,
            )
        except OSError as e:
            self.logger.error("command_start_failed", command=argv[0], error=str(e))
            return CommandResult(
                command=argv, stderr=str(e), duration_seconds=time.monotonic() - start
            )

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            self.logger.error("command_timeout", command=" ".join(argv), timeout=timeout)
            return CommandResult(
                command=argv,
                stderr=f"Command timed out after {timeout} seconds",
                timed_out=True,
                duration_seconds=time.monotonic() - start,
            )
        except asyncio.CancelledError:
            proc.kill()
            await proc.wait()
            raise

        result = CommandResult(
            command=argv,
            exit_code=proc.returncode,
            stdout=stdout_bytes.decode("utf-8", errors="replace"),
            stderr=stderr_bytes.decode("utf-8", errors="replace"),
            duration_seconds=time.monotonic() - start,
        )

        if result.succeeded:
            self.logger.debug("command_succeeded", command=" ".join(argv))
        else:
            self.logger.warning(
                "command_failed",
                command=" ".join(argv),
                returncode=proc.returncode,
                stderr=result.stderr[:500],
            )
        return result

    async def close(self) -> None:
        return None


class DockerExecutor:
    """Runs each command in a fresh container.

    The project directory is mounted at /workspace; no host environment is
    passed through. The container is removed after every command.
    """

    def __init__(self, config: DockerConfig) -> None:
        self.config = config
        self.logger = get_logger(__name__)
        self._client: docker.DockerClient | None = None

    def _get_client(self) -> docker.DockerClient:
        """Get or create the Docker client connection.

        Raises:
            DockerException: If unable to connect to Docker daemon
        """
        if self._client is None:
            docker_host = os.environ.get("DOCKER_HOST")
            if docker_host:
                self._client = docker.DockerClient(base_url=docker_host)
            elif self.config.rootless and hasattr(os, "getuid"):
                xdg_runtime = os.environ.get("XDG_RUNTIME_DIR", f"/run/user/{os.getuid()}")
                try:
                    self._client = docker.DockerClient(base_url=f"unix://{xdg_runtime}/docker.sock")
                except DockerException:
                    self._client = docker.DockerClient.from_env()
            else:
                self._client = docker.DockerClient.from_env()

            self.logger.info("docker_client_connected", rootless=self.config.rootless)
        return self._client

    async def _start(self, argv: list[str], cwd: Path) -> Container:
        """Start a detached container running argv.

        Raises:
            ExecutionError: If the daemon is unreachable or the image is missing
        """
        try:
            client = await asyncio.to_thread(self._get_client)
            return await asyncio.to_thread(
                client.containers.run,
                self.config.image,
                argv,
                working_dir=WORKSPACE_MOUNT,
                volumes={str(cwd.resolve()): {"bind": WORKSPACE_MOUNT, "mode": "rw"}},
                mem_limit=self.config.memory_limit,
                network_mode=self.config.network_mode,
                environment={},
                detach=True,
            )
        except ImageNotFound as e:
            self.logger.error("container_image_not_found", image=self.config.image)
            raise ExecutionError(f"Image not found: {self.config.image}") from e
        except DockerException as e:
            self.logger.error("container_start_failed", error=str(e), error_type=type(e).__name__)
            raise ExecutionError(f"Container could not be started: {e}") from e

    async def run(self, command: Sequence[str], cwd: Path, timeout: float) -> CommandResult:
        argv = list(command)
        start = time.monotonic()

        self.logger.debug(
            "running_container_command",
            command=" ".join(argv),
            image=self.config.image,
            network_mode=self.config.network_mode,
        )

        try:
            container = await self._start(argv, cwd)
        except ExecutionError as e:
            return CommandResult(
                command=argv, stderr=e.message, duration_seconds=time.monotonic() - start
            )

        try:
            try:
                status = await asyncio.wait_for(asyncio.to_thread(container.wait), timeout=timeout)
            except asyncio.TimeoutError:
                await asyncio.to_thread(container.kill)
                self.logger.error("container_command_timeout", command=" ".join(argv), timeout=timeout)
                return CommandResult(
                    command=argv,
                    stderr=f"Command timed out after {timeout} seconds",
                    timed_out=True,
                    duration_seconds=time.monotonic() - start,
                )

            stdout = await asyncio.to_thread(container.logs, stdout=True, stderr=False)
            stderr = await asyncio.to_thread(container.logs, stdout=False, stderr=True)
            return CommandResult(
                command=argv,
                exit_code=int(status.get("StatusCode", 1)),
                stdout=stdout.decode("utf-8", errors="replace"),
                stderr=stderr.decode("utf-8", errors="replace"),
                duration_seconds=time.monotonic() - start,
            )
        except DockerException as e:
            self.logger.error("container_command_error", error=str(e), error_type=type(e).__name__)
            return CommandResult(
                command=argv, stderr=str(e), duration_seconds=time.monotonic() - start
            )
        finally:
            try:
                await asyncio.to_thread(container.remove, force=True)
            except DockerException as e:
                self.logger.warning("container_remove_failed", error=str(e))

    async def close(self) -> None:
        """Close the daemon connection; the next run reconnects."""
        if self._client is not None:
            await asyncio.to_thread(self._client.close)
            self._client = None


def create_executor(build: BuildConfig, docker_config: DockerConfig) -> Executor:
    """Build the executor selected by configuration."""
    if build.executor == "docker":
        return DockerExecutor(docker_config)
    return LocalProcessExecutor()
