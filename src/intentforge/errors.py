"""Error taxonomy for Intentforge.

Every error raised across a component boundary derives from
IntentForgeError, which carries a stable machine-readable code and the HTTP
status the web layer maps it to. Build and test failures are not errors:
BuildRunner captures them into BuildOutcome/TestOutcome values.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Machine-readable error codes returned to callers."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    RATE_LIMITED = "RATE_LIMITED"
    AI_PROVIDER_ERROR = "AI_PROVIDER_ERROR"
    PATH_TRAVERSAL = "PATH_TRAVERSAL"
    EXECUTION_ERROR = "EXECUTION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class IntentForgeError(Exception):
    """Base class for all Intentforge errors.

    Attributes:
        message: Human-readable description
        code: Machine-readable error code
        status_code: HTTP status the error maps to
        details: Optional structured details (field errors, ids)
    """

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500

    def __init__(self, message: str, details: Any = None) -> None:
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON error envelope body."""
        body: dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(IntentForgeError):
    """Malformed or missing request fields. Always recoverable."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = 400

    def __init__(self, message: str, field: str | None = None, details: Any = None) -> None:
        self.field = field
        if details is None and field is not None:
            details = {"field": field}
        super().__init__(message, details)


class NotFoundError(IntentForgeError):
    """Unknown project or conversation id."""

    code = ErrorCode.NOT_FOUND
    status_code = 404

    def __init__(self, resource: str, resource_id: str) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(
            f"{resource} {resource_id} not found",
            {"resource": resource, "id": resource_id},
        )


class ConflictError(IntentForgeError):
    """Operation is not allowed in the project's current state."""

    code = ErrorCode.CONFLICT
    status_code = 409


class RateLimitedError(IntentForgeError):
    """Client exceeded the request budget for the current window."""

    code = ErrorCode.RATE_LIMITED
    status_code = 429


class AIProviderError(IntentForgeError):
    """Upstream completion failure, missing credentials, or unknown provider."""

    code = ErrorCode.AI_PROVIDER_ERROR
    status_code = 502

    def __init__(
        self, message: str, provider: str | None = None, status_code: int | None = None
    ) -> None:
        self.provider = provider
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message, {"provider": provider} if provider else None)


class PathSafetyError(IntentForgeError):
    """A generated file path would escape the project root."""

    code = ErrorCode.PATH_TRAVERSAL
    status_code = 400

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(
            f"Invalid file path ({reason}): {path}",
            {"path": path, "reason": reason},
        )


class ExecutionError(IntentForgeError):
    """An executor could not run a command at all (as opposed to a non-zero exit)."""

    code = ErrorCode.EXECUTION_ERROR
    status_code = 500


class InternalError(IntentForgeError):
    """Catch-all for unexpected failures; callers only see a generic message."""

    code = ErrorCode.INTERNAL_ERROR
    status_code = 500

    def __init__(self, message: str = "An unexpected error occurred") -> None:
        super().__init__(message)
