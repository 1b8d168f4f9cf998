"""Unit tests for command executors.

LocalProcessExecutor runs the current Python interpreter as a harmless
child process; DockerExecutor is exercised against a mocked docker client.
"""

from __future__ import annotations

import sys
import time
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from docker.errors import APIError, ImageNotFound

from intentforge.config import BuildConfig, DockerConfig
from intentforge.pipeline.executor import (
    CommandResult,
    DockerExecutor,
    LocalProcessExecutor,
    create_executor,
)


class TestCommandResult:
    def test_succeeded(self) -> None:
        assert CommandResult(command=["x"], exit_code=0).succeeded
        assert not CommandResult(command=["x"], exit_code=1).succeeded
        assert not CommandResult(command=["x"], exit_code=None).succeeded
        assert not CommandResult(command=["x"], exit_code=0, timed_out=True).succeeded

    def test_output_lines(self) -> None:
        result = CommandResult(command=["x"], stdout="a\n\nb\n", stderr="  \nc")
        assert result.output_lines() == ["a", "b", "c"]


class TestLocalProcessExecutor:
    async def test_captures_output_and_exit_code(self, tmp_path: Path) -> None:
        script = "import sys; print('hello'); print('oops', file=sys.stderr); sys.exit(3)"
        result = await LocalProcessExecutor().run([sys.executable, "-c", script], tmp_path, 30)

        assert result.exit_code == 3
        assert result.stdout.strip() == "hello"
        assert result.stderr.strip() == "oops"
        assert result.timed_out is False

    async def test_runs_in_cwd(self, tmp_path: Path) -> None:
        script = "import os; print(os.getcwd())"
        result = await LocalProcessExecutor().run([sys.executable, "-c", script], tmp_path, 30)
        assert Path(result.stdout.strip()).resolve() == tmp_path.resolve()

    async def test_timeout_kills_process(self, tmp_path: Path) -> None:
        start = time.monotonic()
        result = await LocalProcessExecutor().run(
            [sys.executable, "-c", "import time; time.sleep(30)"], tmp_path, 0.5
        )

        assert result.timed_out is True
        assert result.exit_code is None
        assert time.monotonic() - start < 10

    async def test_missing_binary(self, tmp_path: Path) -> None:
        result = await LocalProcessExecutor().run(["definitely-not-a-command-xyz"], tmp_path, 5)

        assert result.exit_code is None
        assert "Command not found" in result.stderr

    async def test_close_is_a_noop(self, tmp_path: Path) -> None:
        executor = LocalProcessExecutor()
        await executor.close()
        assert (await executor.run([sys.executable, "-c", "pass"], tmp_path, 10)).succeeded


class TestDockerExecutor:
    @pytest.fixture
    def container(self) -> MagicMock:
        container = MagicMock()
        container.wait.return_value = {"StatusCode": 0}
        container.logs.side_effect = lambda stdout, stderr: b"built\n" if stdout else b""
        return container

    @pytest.fixture
    def docker_executor(self, container: MagicMock) -> DockerExecutor:
        executor = DockerExecutor(DockerConfig(image="node:20-alpine", network_mode="none"))
        client = MagicMock()
        client.containers.run.return_value = container
        executor._client = client
        return executor

    async def test_runs_in_container(
        self, docker_executor: DockerExecutor, container: MagicMock, tmp_path: Path
    ) -> None:
        result = await docker_executor.run(["npm", "run", "build"], tmp_path, 60)

        assert result.succeeded
        assert result.stdout == "built\n"
        _, kwargs = docker_executor._client.containers.run.call_args  # type: ignore[union-attr]
        assert kwargs["working_dir"] == "/workspace"
        assert kwargs["volumes"] == {str(tmp_path.resolve()): {"bind": "/workspace", "mode": "rw"}}
        assert kwargs["network_mode"] == "none"
        assert kwargs["environment"] == {}
        container.remove.assert_called_once_with(force=True)

    async def test_nonzero_status(
        self, docker_executor: DockerExecutor, container: MagicMock, tmp_path: Path
    ) -> None:
        container.wait.return_value = {"StatusCode": 2}
        result = await docker_executor.run(["npm", "test"], tmp_path, 60)
        assert result.exit_code == 2
        container.remove.assert_called_once()

    async def test_missing_image_is_a_result(
        self, docker_executor: DockerExecutor, tmp_path: Path
    ) -> None:
        docker_executor._client.containers.run.side_effect = ImageNotFound("nope")  # type: ignore[union-attr]

        result = await docker_executor.run(["npm", "install"], tmp_path, 60)

        assert result.exit_code is None
        assert result.stderr == "Image not found: node:20-alpine"

    async def test_daemon_error_is_a_result(
        self, docker_executor: DockerExecutor, tmp_path: Path
    ) -> None:
        docker_executor._client.containers.run.side_effect = APIError("daemon down")  # type: ignore[union-attr]

        result = await docker_executor.run(["npm", "install"], tmp_path, 60)

        assert not result.succeeded
        assert result.stderr.startswith("Container could not be started")

    async def test_close_releases_client(self, docker_executor: DockerExecutor) -> None:
        client = docker_executor._client

        await docker_executor.close()
        await docker_executor.close()

        client.close.assert_called_once()  # type: ignore[union-attr]
        assert docker_executor._client is None


class TestCreateExecutor:
    def test_local(self) -> None:
        assert isinstance(create_executor(BuildConfig(), DockerConfig()), LocalProcessExecutor)

    def test_docker(self) -> None:
        executor = create_executor(BuildConfig(executor="docker"), DockerConfig())
        assert isinstance(executor, DockerExecutor)
