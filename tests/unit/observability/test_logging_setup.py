"""Tests for logging configuration."""

import json
import logging
import logging.handlers

import pytest

from tilbot.observability.logging import (
    ContextLogger,
    SessionContextFilter,
    build_logging_config,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_logging():
    tilbot_logger = logging.getLogger("tilbot")
    handlers, level, propagate = tilbot_logger.handlers[:], tilbot_logger.level, tilbot_logger.propagate
    yield
    for handler in tilbot_logger.handlers:
        handler.close()
    tilbot_logger.handlers = handlers
    tilbot_logger.setLevel(level)
    tilbot_logger.propagate = propagate


def read_json_lines(path) -> list[dict]:
    for handler in logging.getLogger("tilbot").handlers:
        handler.flush()
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def test_sets_tilbot_level():
    setup_logging("debug")

    tilbot_logger = logging.getLogger("tilbot")
    assert tilbot_logger.level == logging.DEBUG
    assert tilbot_logger.propagate is False


def test_console_handler_only_by_default():
    config = build_logging_config("INFO")

    assert list(config["handlers"]) == ["console"]
    assert config["loggers"]["tilbot"]["handlers"] == ["console"]


def test_log_file_gets_json_records(tmp_path):
    # Arrange
    log_file = tmp_path / "tilbot.log"
    setup_logging("INFO", str(log_file))

    # Act
    logging.getLogger("tilbot.engine").info("Transition 1 -> 2")

    # Assert
    file_handlers = [
        h
        for h in logging.getLogger("tilbot").handlers
        if isinstance(h, logging.handlers.RotatingFileHandler)
    ]
    assert len(file_handlers) == 1
    record = read_json_lines(log_file)[0]
    assert record["message"] == "Transition 1 -> 2"
    assert record["levelname"] == "INFO"
    assert record["session_id"] == "-"


def test_context_logger_tags_records_with_session(tmp_path):
    log_file = tmp_path / "tilbot.log"
    setup_logging("INFO", str(log_file))

    ContextLogger("tilbot.engine.session").with_context(session_id="abc").info("Session started")

    assert read_json_lines(log_file)[0]["session_id"] == "abc"


def test_context_logger_adds_extra():
    adapter = ContextLogger("tilbot.test").with_context(session_id="abc")

    assert isinstance(adapter, logging.LoggerAdapter)
    assert adapter.extra == {"session_id": "abc"}
    assert adapter.logger.name == "tilbot.test"


def test_filter_keeps_existing_session_id():
    record = logging.LogRecord("tilbot", logging.INFO, __file__, 1, "hi", None, None)
    record.session_id = "xyz"

    assert SessionContextFilter().filter(record) is True
    assert record.session_id == "xyz"
