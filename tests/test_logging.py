"""Tests for JSON log output."""

import io
import json
import logging
import sys

from evicticloud.logging import JsonFormatter, log_with_context, setup_logging


def test_json_formatter_includes_context():
    stream = io.StringIO()
    logger = logging.getLogger("evicticloud.test.formatter")
    logger.propagate = False
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    try:
        log_with_context(logger, "warning", "Eviction failed", {"file": "/a", "returncode": 1})
    finally:
        logger.removeHandler(handler)

    record = json.loads(stream.getvalue())
    assert record["level"] == "WARNING"
    assert record["message"] == "Eviction failed"
    assert record["context"] == {"file": "/a", "returncode": 1}


def test_json_formatter_exception():
    formatter = JsonFormatter()
    try:
        raise RuntimeError("bad")
    except RuntimeError:
        record = logging.LogRecord("x", logging.ERROR, __file__, 1, "oops", None, sys.exc_info())

    payload = json.loads(formatter.format(record))
    assert payload["error_type"] == "RuntimeError"
    assert "bad" in payload["error"]
    assert "context" not in payload


def test_setup_logging_reuses_handler():
    first = io.StringIO()
    second = io.StringIO()

    logger = setup_logging("evicticloud.test.setup", "INFO", stream=first)
    logger = setup_logging("evicticloud.test.setup", "DEBUG", stream=second)

    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG

    logger.debug("hello")
    assert first.getvalue() == ""
    assert json.loads(second.getvalue())["message"] == "hello"


def test_setup_logging_leaves_foreign_handlers_alone(temp_dir):
    """A handler added by someone else keeps its own stream across repeated setup."""
    logger = setup_logging("evicticloud.test.foreign", "INFO", stream=io.StringIO())
    file_handler = logging.FileHandler(temp_dir / "app.log")
    logger.addHandler(file_handler)
    try:
        setup_logging("evicticloud.test.foreign", "INFO")

        assert file_handler in logger.handlers
        assert file_handler.stream.name == str(temp_dir / "app.log")
        assert len(logger.handlers) == 2
    finally:
        logger.removeHandler(file_handler)
        file_handler.close()


def test_default_handler_follows_current_stderr(monkeypatch):
    logger = setup_logging("evicticloud.test.stderr", "INFO")

    first = io.StringIO()
    monkeypatch.setattr(sys, "stderr", first)
    logger.info("one")

    second = io.StringIO()
    monkeypatch.setattr(sys, "stderr", second)
    logger.info("two")

    assert json.loads(first.getvalue())["message"] == "one"
    assert json.loads(second.getvalue())["message"] == "two"


def test_repeated_setup_survives_closed_stream():
    """A stream closed since the previous run doesn't break the next setup."""
    stale = io.StringIO()
    setup_logging("evicticloud.test.closed", "INFO", stream=stale)
    stale.close()

    fresh = io.StringIO()
    logger = setup_logging("evicticloud.test.closed", "INFO", stream=fresh)
    logger.info("after")

    assert json.loads(fresh.getvalue())["message"] == "after"
