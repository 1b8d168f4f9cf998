"""Unit tests for the project state machine.

Tests cover:
- The transition table
- Applying transitions to descriptors (error recording and clearing)
- Generate/build guards
"""

from __future__ import annotations

import pytest

from intentforge.errors import ConflictError
from intentforge.models.project import GeneratedFile, ProjectDescriptor, ProjectStatus
from intentforge.orchestrator.state_machine import (
    ACTIVE_STATUSES,
    VALID_TRANSITIONS,
    InvalidTransitionError,
    ProjectStateMachine,
    can_build,
    can_generate,
    validate_transition,
)


def _project(status: ProjectStatus, with_files: bool = False) -> ProjectDescriptor:
    files = [GeneratedFile(path="a.ts", content="", language="typescript", purpose="x")]
    return ProjectDescriptor(
        name="Todo",
        description="A todo list application",
        status=status,
        files=files if with_files else [],
    )


class TestValidTransitions:
    """Test the VALID_TRANSITIONS mapping and validation."""

    def test_every_status_has_an_entry(self) -> None:
        assert set(VALID_TRANSITIONS) == set(ProjectStatus)

    @pytest.mark.parametrize(
        "current,target,expected",
        [
            (ProjectStatus.INITIALIZING, ProjectStatus.GATHERING_REQUIREMENTS, True),
            (ProjectStatus.GATHERING_REQUIREMENTS, ProjectStatus.GATHERING_REQUIREMENTS, True),
            (ProjectStatus.GATHERING_REQUIREMENTS, ProjectStatus.PLANNING, True),
            (ProjectStatus.PLANNING, ProjectStatus.GENERATING, True),
            (ProjectStatus.GENERATING, ProjectStatus.READY, True),
            (ProjectStatus.GENERATING, ProjectStatus.FAILED, True),
            (ProjectStatus.READY, ProjectStatus.BUILDING, True),
            (ProjectStatus.BUILDING, ProjectStatus.TESTING, True),
            (ProjectStatus.BUILDING, ProjectStatus.READY, True),
            (ProjectStatus.TESTING, ProjectStatus.READY, True),
            (ProjectStatus.FAILED, ProjectStatus.PLANNING, True),
            (ProjectStatus.FAILED, ProjectStatus.BUILDING, True),
            # Invalid transitions
            (ProjectStatus.INITIALIZING, ProjectStatus.PLANNING, False),
            (ProjectStatus.GATHERING_REQUIREMENTS, ProjectStatus.READY, False),
            (ProjectStatus.READY, ProjectStatus.GENERATING, False),
            (ProjectStatus.READY, ProjectStatus.GATHERING_REQUIREMENTS, False),
            (ProjectStatus.TESTING, ProjectStatus.BUILDING, False),
            (ProjectStatus.FAILED, ProjectStatus.READY, False),
        ],
    )
    def test_validate_transition(
        self, current: ProjectStatus, target: ProjectStatus, expected: bool
    ) -> None:
        assert validate_transition(current, target) is expected

    def test_active_statuses(self) -> None:
        assert ProjectStatus.READY not in ACTIVE_STATUSES
        assert ProjectStatus.GENERATING in ACTIVE_STATUSES


class TestProjectStateMachine:
    """Test applying transitions to descriptors."""

    def test_transition_updates_status_and_timestamp(self) -> None:
        project = _project(ProjectStatus.READY)
        before = project.updated_at

        ProjectStateMachine().transition(project, ProjectStatus.BUILDING)

        assert project.status == ProjectStatus.BUILDING
        assert project.updated_at >= before

    def test_entering_failed_records_error(self) -> None:
        project = _project(ProjectStatus.GENERATING)
        ProjectStateMachine().transition(project, ProjectStatus.FAILED, error="disk full")
        assert project.error == "disk full"

    def test_failed_without_message(self) -> None:
        project = _project(ProjectStatus.GENERATING)
        ProjectStateMachine().transition(project, ProjectStatus.FAILED)
        assert project.error == "Unknown error"

    def test_leaving_failed_clears_error(self) -> None:
        project = _project(ProjectStatus.FAILED)
        project.error = "previous failure"

        ProjectStateMachine().transition(project, ProjectStatus.PLANNING)

        assert project.error is None

    def test_invalid_transition_raises_conflict(self) -> None:
        project = _project(ProjectStatus.READY)

        with pytest.raises(InvalidTransitionError) as exc_info:
            ProjectStateMachine().transition(project, ProjectStatus.GENERATING)

        assert isinstance(exc_info.value, ConflictError)
        assert exc_info.value.status_code == 409
        assert exc_info.value.details == {"current": "ready", "target": "generating"}
        assert project.status == ProjectStatus.READY


class TestGuards:
    @pytest.mark.parametrize(
        "status,expected",
        [
            (ProjectStatus.INITIALIZING, False),
            (ProjectStatus.GATHERING_REQUIREMENTS, True),
            (ProjectStatus.GENERATING, False),
            (ProjectStatus.READY, False),
            (ProjectStatus.FAILED, True),
        ],
    )
    def test_can_generate(self, status: ProjectStatus, expected: bool) -> None:
        assert can_generate(_project(status)) is expected

    def test_can_build(self) -> None:
        assert can_build(_project(ProjectStatus.READY))
        assert can_build(_project(ProjectStatus.FAILED, with_files=True))
        assert not can_build(_project(ProjectStatus.FAILED))
        assert not can_build(_project(ProjectStatus.BUILDING, with_files=True))
        assert not can_build(_project(ProjectStatus.GATHERING_REQUIREMENTS))
