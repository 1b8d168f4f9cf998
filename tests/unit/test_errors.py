"""Unit tests for the error taxonomy."""

from __future__ import annotations

import pytest

from intentforge.errors import (
    AIProviderError,
    ConflictError,
    ExecutionError,
    IntentForgeError,
    InternalError,
    NotFoundError,
    PathSafetyError,
    RateLimitedError,
    ValidationError,
)


@pytest.mark.parametrize(
    "error,code,status",
    [
        (ValidationError("bad"), "VALIDATION_ERROR", 400),
        (NotFoundError("Project", "p1"), "NOT_FOUND", 404),
        (ConflictError("busy"), "CONFLICT", 409),
        (RateLimitedError("slow down"), "RATE_LIMITED", 429),
        (AIProviderError("down"), "AI_PROVIDER_ERROR", 502),
        (PathSafetyError("../x", "parent directory reference"), "PATH_TRAVERSAL", 400),
        (ExecutionError("no docker"), "EXECUTION_ERROR", 500),
        (InternalError(), "INTERNAL_ERROR", 500),
    ],
)
def test_codes_and_statuses(error: IntentForgeError, code: str, status: int) -> None:
    assert error.code.value == code
    assert error.status_code == status
    assert error.to_dict()["code"] == code


def test_to_dict_omits_missing_details() -> None:
    assert ConflictError("busy").to_dict() == {"code": "CONFLICT", "message": "busy"}


def test_validation_error_field() -> None:
    error = ValidationError("name is required", field="name")
    assert error.field == "name"
    assert error.to_dict()["details"] == {"field": "name"}


def test_not_found_message() -> None:
    error = NotFoundError("Conversation", "p9")
    assert error.message == "Conversation p9 not found"
    assert error.details == {"resource": "Conversation", "id": "p9"}


def test_path_safety_details() -> None:
    error = PathSafetyError("/etc/passwd", "absolute path")
    assert str(error) == "Invalid file path (absolute path): /etc/passwd"
    assert error.details == {"path": "/etc/passwd", "reason": "absolute path"}


def test_ai_provider_status_override() -> None:
    error = AIProviderError("key missing", provider="openai", status_code=400)
    assert error.status_code == 400
    assert AIProviderError("x").status_code == 502
    assert error.details == {"provider": "openai"}


def test_internal_error_is_generic() -> None:
    assert InternalError().message == "An unexpected error occurred"
