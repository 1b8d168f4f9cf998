"""Build and test runs for materialized projects.

BuildRunner drives the install, build and test commands through an
Executor and folds the command output into BuildOutcome / TestOutcome
values. It never raises for command failures; a failed step is simply an
outcome with ``success=False``.
"""

from __future__ import annotations

import re
import time
from collections.abc import Awaitable, Callable
from pathlib import Path

from intentforge.config import BuildConfig
from intentforge.logging import get_logger
from intentforge.models.project import (
    BuildOutcome,
    CoverageMetrics,
    TestOutcome,
    TestSuiteResult,
)
from intentforge.pipeline.executor import CommandResult, Executor
from intentforge.pipeline.materializer import ProjectMaterializer

ProgressCallback = Callable[[str, CommandResult | None], Awaitable[None]]

BUILD_ARTIFACTS = ["dist"]

_ANSI = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")

# vitest: "Tests  3 passed | 1 failed (4)"
_VITEST_TESTS = re.compile(r"^\s*Tests\s+(?P<body>.*?)\s*\((?P<total>\d+)\)\s*$", re.MULTILINE)
# jest: "Tests:       1 failed, 3 passed, 4 total"
_JEST_TESTS = re.compile(r"^\s*Tests:\s+(?P<body>.*?(?P<total>\d+) total)\s*$", re.MULTILINE)
_COUNT = re.compile(r"(\d+)\s+(passed|failed|skipped|todo)")
_SUITE = re.compile(r"^\s*(?P<mark>PASS|FAIL|✓|×|❯)\s+(?P<name>\S+\.(?:test|spec)\.[jt]sx?)")
# istanbul text summary: "All files |   85.5 |    70 |   90 |   85.5 |"
_COVERAGE = re.compile(
    r"^\s*All files\s*\|\s*([\d.]+)\s*\|\s*([\d.]+)\s*\|\s*([\d.]+)\s*\|\s*([\d.]+)",
    re.MULTILINE,
)


def strip_ansi(text: str) -> str:
    return _ANSI.sub("", text)


def parse_test_counts(output: str) -> tuple[int, int, int]:
    """Extract (total, passed, failed) from a vitest or jest summary.

    Returns zeros when no summary line is present.
    """
    text = strip_ansi(output)
    match = _VITEST_TESTS.search(text) or _JEST_TESTS.search(text)
    if match is None:
        return 0, 0, 0

    counts = {kind: int(n) for n, kind in _COUNT.findall(match.group("body"))}
    return int(match.group("total")), counts.get("passed", 0), counts.get("failed", 0)


def parse_test_suites(output: str) -> list[TestSuiteResult]:
    """Collect per-file suite lines; suites carry no individual cases."""
    suites: dict[str, TestSuiteResult] = {}
    for line in strip_ansi(output).splitlines():
        match = _SUITE.match(line)
        if match:
            suites.setdefault(match.group("name"), TestSuiteResult(name=match.group("name")))
    return list(suites.values())


def parse_coverage(output: str) -> CoverageMetrics | None:
    match = _COVERAGE.search(strip_ansi(output))
    if match is None:
        return None
    statements, branches, functions, lines = (min(float(v), 100.0) for v in match.groups())
    return CoverageMetrics(
        lines=lines, functions=functions, branches=branches, statements=statements
    )


class BuildRunner:
    """Runs install/build/test for a project directory.

    Attributes:
        executor: Where commands run
        materializer: Resolves project ids to directories
        config: Commands and timeout
    """

    def __init__(
        self,
        executor: Executor,
        materializer: ProjectMaterializer,
        config: BuildConfig,
    ) -> None:
        self.executor = executor
        self.materializer = materializer
        self.config = config
        self.logger = get_logger(__name__)

    async def build(
        self, project_id: str, on_progress: ProgressCallback | None = None
    ) -> BuildOutcome:
        """Install dependencies then build.

        Args:
            project_id: Project whose directory is built
            on_progress: Awaited before each step with (step, None) and after
                it with (step, result)

        Returns:
            BuildOutcome; success only if every step exited 0
        """
        start = time.monotonic()
        project_dir = self.materializer.project_dir(project_id)
        if not project_dir.is_dir():
            return BuildOutcome(
                success=False,
                errors=[f"Project directory not found: {project_dir}"],
            )

        logs: list[str] = []
        errors: list[str] = []
        warnings: list[str] = []

        steps = [("install", self.config.install_command), ("build", self.config.build_command)]
        success = True
        for step, command in steps:
            result = await self._run_step(step, command, project_dir, on_progress)
            lines = [strip_ansi(line) for line in result.output_lines()]
            logs.extend(lines)
            warnings.extend(line for line in lines if "warn" in line.lower())

            if not result.succeeded:
                success = False
                errors.extend(line for line in lines if "error" in line.lower())
                errors.append(self._failure_message(step, result))
                break

        outcome = BuildOutcome(
            success=success,
            logs=logs,
            errors=errors,
            warnings=warnings,
            artifacts=list(BUILD_ARTIFACTS) if success else [],
            duration_seconds=time.monotonic() - start,
        )

        self.logger.info(
            "build_finished",
            project_id=project_id,
            success=success,
            error_count=len(errors),
            warning_count=len(warnings),
            duration_seconds=round(outcome.duration_seconds, 2),
        )
        return outcome

    async def test(
        self, project_id: str, on_progress: ProgressCallback | None = None
    ) -> TestOutcome:
        """Run the test command and parse its summary."""
        project_dir = self.materializer.project_dir(project_id)
        if not project_dir.is_dir():
            return TestOutcome(
                success=False, logs=[f"Project directory not found: {project_dir}"]
            )

        result = await self._run_step("test", self.config.test_command, project_dir, on_progress)
        output = "\n".join(part for part in (result.stdout, result.stderr) if part)
        logs = [strip_ansi(line) for line in result.output_lines()]
        if not result.succeeded:
            logs.append(self._failure_message("test", result))

        total, passed, failed = parse_test_counts(output)
        suites = parse_test_suites(output)

        outcome = TestOutcome(
            success=result.succeeded,
            total_tests=total,
            passed_tests=passed,
            failed_tests=failed,
            test_suites=suites,
            coverage=parse_coverage(output),
            logs=logs,
        )

        self.logger.info(
            "tests_finished",
            project_id=project_id,
            success=outcome.success,
            total=total,
            passed=passed,
            failed=failed,
        )
        return outcome

    async def _run_step(
        self,
        step: str,
        command: list[str],
        project_dir: Path,
        on_progress: ProgressCallback | None,
    ) -> CommandResult:
        if on_progress is not None:
            await on_progress(step, None)

        self.logger.info("build_step_started", step=step, command=" ".join(command))
        result = await self.executor.run(command, project_dir, timeout=self.config.timeout_seconds)

        if on_progress is not None:
            await on_progress(step, result)
        return result

    def _failure_message(self, step: str, result: CommandResult) -> str:
        if result.timed_out:
            return f"{step} timed out after {self.config.timeout_seconds} seconds"
        if result.exit_code is None:
            return f"{step} could not be started: {result.stderr.strip()}"
        return f"{step} failed with exit code {result.exit_code}"
