"""Structured JSON logging for evict-icloud."""

import json
import logging
import sys
from typing import IO, Any, Dict, Optional


class JsonFormatter(logging.Formatter):
    """Render log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        """Format LogRecord into JSON string."""
        log_obj: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_obj["error"] = self.formatException(record.exc_info)
            log_obj["error_type"] = record.exc_info[0].__name__ if record.exc_info[0] else None

        # Context fields attached by log_with_context()
        context = getattr(record, "context", None)
        if context:
            log_obj["context"] = context

        return json.dumps(log_obj, default=str)


class StderrHandler(logging.StreamHandler):
    """StreamHandler bound to whatever sys.stderr is at emit time."""

    def __init__(self, level: int = logging.NOTSET):
        logging.Handler.__init__(self, level)

    @property
    def stream(self) -> IO[str]:
        return sys.stderr


def setup_logging(
    logger_name: str = "evicticloud", level: str = "INFO", stream: Optional[IO[str]] = None
) -> logging.Logger:
    """
    Configure JSON logging for the evictor.

    Logs go to stderr by default so that stdout stays free for the dry-run
    preview listing and the final summary.

    Args:
        logger_name: Name of the logger
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        stream: Stream to write to (defaults to sys.stderr)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(getattr(logging, level.upper()))
    logger.propagate = False

    # Replace only the handler installed by an earlier call; foreign handlers stay as they are
    for handler in list(logger.handlers):
        if isinstance(handler.formatter, JsonFormatter):
            logger.removeHandler(handler)
            handler.close()

    handler = logging.StreamHandler(stream) if stream is not None else StderrHandler()
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    return logger


def log_with_context(
    logger: logging.Logger, level: str, message: str, context: Optional[Dict[str, Any]] = None
) -> None:
    """
    Log message with additional context fields.

    Args:
        logger: Logger instance
        level: Log level name (debug, info, warning, error)
        message: Log message
        context: Extra fields rendered under the "context" key
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra={"context": context or {}})
