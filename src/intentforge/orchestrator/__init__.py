"""Project orchestration: state machine, background jobs, events and lifecycle."""

from __future__ import annotations

from intentforge.orchestrator.jobs import JobRegistry, KeyedLocks
from intentforge.orchestrator.lifecycle import ProjectLifecycle, TurnResult, create_lifecycle
from intentforge.orchestrator.notifications import (
    EventMessage,
    NotificationSink,
    NullNotificationSink,
    ProjectEvent,
    ProjectEventBroadcaster,
)
from intentforge.orchestrator.state_machine import (
    VALID_TRANSITIONS,
    InvalidTransitionError,
    ProjectStateMachine,
    validate_transition,
)

__all__ = [
    "EventMessage",
    "InvalidTransitionError",
    "JobRegistry",
    "KeyedLocks",
    "NotificationSink",
    "NullNotificationSink",
    "ProjectEvent",
    "ProjectEventBroadcaster",
    "ProjectLifecycle",
    "ProjectStateMachine",
    "TurnResult",
    "VALID_TRANSITIONS",
    "create_lifecycle",
    "validate_transition",
]
