"""Unit tests for logging configuration."""

from __future__ import annotations

import json
import logging
import logging.handlers
from datetime import datetime
from io import StringIO
from pathlib import Path
from typing import Any

import pytest
import structlog

from intentforge.config import LoggingConfig
from intentforge.logging import (
    add_correlation_id,
    bind_project_context,
    get_correlation_id,
    get_logger,
    set_correlation_id,
    setup_logging,
)


@pytest.fixture(autouse=True)
def reset_logging() -> None:
    """Reset logging configuration before each test."""
    logging.getLogger().handlers.clear()
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    set_correlation_id(None)


@pytest.fixture
def capture_stream() -> StringIO:
    return StringIO()


@pytest.fixture
def json_config() -> LoggingConfig:
    return LoggingConfig(level="INFO", format="json", file=None)


def _capture(config: LoggingConfig, stream: StringIO) -> None:
    setup_logging(config)
    logging.getLogger().handlers[0].stream = stream  # type: ignore[attr-defined]


def _last_entry(stream: StringIO) -> dict[str, Any]:
    return json.loads(stream.getvalue().strip().splitlines()[-1])


def test_json_output_format(json_config: LoggingConfig, capture_stream: StringIO) -> None:
    """Test that JSON format produces valid JSON output."""
    _capture(json_config, capture_stream)

    get_logger("test.module").info("project_created", project_id="p1", files=19)

    entry = _last_entry(capture_stream)
    assert entry["event"] == "project_created"
    assert entry["project_id"] == "p1"
    assert entry["files"] == 19
    assert entry["level"] == "info"
    assert entry["logger"] == "test.module"
    datetime.fromisoformat(entry["timestamp"].replace("Z", "+00:00"))


def test_console_output_format(capture_stream: StringIO) -> None:
    _capture(LoggingConfig(level="DEBUG", format="console"), capture_stream)

    get_logger("test.module").debug("build_started", status="building")

    output = capture_stream.getvalue()
    assert "build_started" in output
    assert "building" in output
    with pytest.raises(json.JSONDecodeError):
        json.loads(output.strip())


def test_log_level_filtering(json_config: LoggingConfig, capture_stream: StringIO) -> None:
    _capture(json_config, capture_stream)
    logger = get_logger("test.module")

    logger.debug("debug_message")
    assert capture_stream.getvalue() == ""

    logger.warning("warning_message")
    assert "warning_message" in capture_stream.getvalue()


def test_correlation_id_binding(json_config: LoggingConfig, capture_stream: StringIO) -> None:
    """Test that correlation ID is added to log entries while set."""
    _capture(json_config, capture_stream)
    logger = get_logger("test.module")

    set_correlation_id("corr-12345")
    assert get_correlation_id() == "corr-12345"
    logger.info("with_correlation")
    assert _last_entry(capture_stream)["correlation_id"] == "corr-12345"

    set_correlation_id(None)
    logger.info("without_correlation")
    assert "correlation_id" not in _last_entry(capture_stream)


def test_correlation_id_processor() -> None:
    event_dict: dict[str, Any] = {"event": "test"}

    assert "correlation_id" not in add_correlation_id(None, "", event_dict.copy())

    set_correlation_id("test-id")
    assert add_correlation_id(None, "", event_dict.copy())["correlation_id"] == "test-id"


def test_project_context_binding(json_config: LoggingConfig, capture_stream: StringIO) -> None:
    """Project and job ids are attached to every subsequent event."""
    _capture(json_config, capture_stream)

    bind_project_context(project_id="p-42", job="generate")
    get_logger("module1").info("event1")
    first = _last_entry(capture_stream)
    get_logger("module2").info("event2")
    second = _last_entry(capture_stream)

    for entry in (first, second):
        assert entry["project_id"] == "p-42"
        assert entry["job"] == "generate"


def test_project_context_without_job(
    json_config: LoggingConfig, capture_stream: StringIO
) -> None:
    _capture(json_config, capture_stream)

    bind_project_context(project_id="p-7")
    get_logger("test.module").info("event")

    entry = _last_entry(capture_stream)
    assert entry["project_id"] == "p-7"
    assert "job" not in entry


def test_file_rotation_handler_configuration(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "nested" / "intentforge.log"
    setup_logging(
        LoggingConfig(level="INFO", format="json", file=log_file, rotation_size_mb=10, retention_count=3)
    )

    assert log_file.exists()
    root = logging.getLogger()
    assert len(root.handlers) == 1
    handler = root.handlers[0]
    assert isinstance(handler, logging.handlers.RotatingFileHandler)
    assert handler.maxBytes == 10 * 1024 * 1024
    assert handler.backupCount == 3

    get_logger("test.module").info("file_write", data="test")
    handler.flush()

    entry = json.loads(log_file.read_text().strip())
    assert entry["event"] == "file_write"
    assert entry["data"] == "test"


def test_exception_formatting(json_config: LoggingConfig, capture_stream: StringIO) -> None:
    _capture(json_config, capture_stream)

    try:
        raise ValueError("Test exception")
    except ValueError:
        get_logger("test.module").exception("error_occurred")

    entry = _last_entry(capture_stream)
    assert entry["level"] == "error"
    assert "ValueError: Test exception" in entry["exception"]
