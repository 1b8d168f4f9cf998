"""Project state machine for the intentforge orchestrator.

This module holds the authoritative table of project status transitions and
the helper that applies a transition to a ProjectDescriptor. Persisting the
descriptor and notifying subscribers is the caller's job (ProjectLifecycle).
"""

from __future__ import annotations

import structlog

from intentforge.errors import ConflictError
from intentforge.models.project import ProjectDescriptor, ProjectStatus

logger = structlog.get_logger(__name__)


class InvalidTransitionError(ConflictError):
    """Raised when an invalid status transition is attempted.

    Attributes:
        current: The current project status.
        target: The attempted target status.
        project_id: The ID of the project that failed to transition.
    """

    def __init__(
        self, current: ProjectStatus, target: ProjectStatus, project_id: str | None = None
    ) -> None:
        self.current = current
        self.target = target
        self.project_id = project_id
        msg = f"Invalid transition from {current.value} to {target.value}"
        if project_id:
            msg += f" for project {project_id}"
        super().__init__(msg, {"current": current.value, "target": target.value})


# Authoritative state machine definition
VALID_TRANSITIONS: dict[ProjectStatus, set[ProjectStatus]] = {
    ProjectStatus.INITIALIZING: {ProjectStatus.GATHERING_REQUIREMENTS},
    ProjectStatus.GATHERING_REQUIREMENTS: {
        ProjectStatus.GATHERING_REQUIREMENTS,
        ProjectStatus.PLANNING,
    },
    ProjectStatus.PLANNING: {ProjectStatus.GENERATING, ProjectStatus.FAILED},
    ProjectStatus.GENERATING: {ProjectStatus.READY, ProjectStatus.FAILED},
    ProjectStatus.READY: {ProjectStatus.BUILDING},
    ProjectStatus.BUILDING: {ProjectStatus.TESTING, ProjectStatus.READY, ProjectStatus.FAILED},
    ProjectStatus.TESTING: {ProjectStatus.READY, ProjectStatus.FAILED},
    ProjectStatus.FAILED: {ProjectStatus.PLANNING, ProjectStatus.BUILDING},  # Retry only
}

# Statuses during which a background job owns the project
ACTIVE_STATUSES: frozenset[ProjectStatus] = frozenset(
    {
        ProjectStatus.PLANNING,
        ProjectStatus.GENERATING,
        ProjectStatus.BUILDING,
        ProjectStatus.TESTING,
    }
)

CONVERSATION_STATUSES: frozenset[ProjectStatus] = frozenset(
    {ProjectStatus.INITIALIZING, ProjectStatus.GATHERING_REQUIREMENTS}
)


def validate_transition(current: ProjectStatus, target: ProjectStatus) -> bool:
    """Validate if a status transition is allowed.

    Args:
        current: Current project status.
        target: Target project status.

    Returns:
        True if the transition is valid according to VALID_TRANSITIONS.
    """
    return target in VALID_TRANSITIONS.get(current, set())


def can_generate(project: ProjectDescriptor) -> bool:
    """Generation may start after requirements gathering, or as a retry."""
    return project.status in (ProjectStatus.GATHERING_REQUIREMENTS, ProjectStatus.FAILED)


def can_build(project: ProjectDescriptor) -> bool:
    """Builds need generated files and an idle (ready or failed) project."""
    if project.status == ProjectStatus.READY:
        return True
    return project.status == ProjectStatus.FAILED and bool(project.files)


class ProjectStateMachine:
    """Applies validated status transitions to project descriptors."""

    def __init__(self) -> None:
        self.logger = logger.bind(component="ProjectStateMachine")

    def transition(
        self,
        project: ProjectDescriptor,
        target: ProjectStatus,
        error: str | None = None,
    ) -> ProjectDescriptor:
        """Move a project to a new status in place.

        Leaving ``failed`` clears the recorded error; entering it records
        ``error``.

        Args:
            project: Descriptor to mutate.
            target: Target status.
            error: Failure message, used when target is failed.

        Returns:
            The same descriptor, updated.

        Raises:
            InvalidTransitionError: If the transition is not valid.
        """
        current = project.status
        if not validate_transition(current, target):
            raise InvalidTransitionError(current, target, project.id)

        project.status = target
        if target == ProjectStatus.FAILED:
            project.error = error or "Unknown error"
        elif current == ProjectStatus.FAILED:
            project.error = None
        project.touch()

        self.logger.info(
            "project_transition",
            project_id=project.id,
            from_status=current.value,
            to_status=target.value,
            error=project.error,
        )
        return project
