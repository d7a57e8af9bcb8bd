from __future__ import annotations

import logging
import sys
import uuid
from typing import Any

from loguru import logger as loguru_logger

_STANDARD_RECORD_FIELDS = frozenset(
    {
        "args",
        "msg",
        "name",
        "levelno",
        "levelname",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "getMessage",
        "message",
    }
)

_NOISY_LOGGERS = ("httpx", "httpcore", "apscheduler", "apscheduler.scheduler")

_TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan> - <level>{message}</level> {extra}"
)


class InterceptHandler(logging.Handler):
    """Forward stdlib log records, including ``extra`` fields, to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        level: int | str
        try:
            level = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if not key.startswith("_") and key not in _STANDARD_RECORD_FIELDS
        }
        loguru_logger.bind(logger_name=record.name, **extra).opt(
            depth=6, exception=record.exc_info
        ).log(level, record.getMessage())


def setup_logging(
    level: str = "INFO",
    *,
    json_output: bool = False,
    log_file: str | None = None,
    max_file_size: str = "20 MB",
    retention: str = "14 days",
) -> None:
    """Route all logging through loguru.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Emit serialized JSON lines instead of human-readable text
        log_file: Optional log file path for persistent logging
        max_file_size: Rotation size per log file (loguru format)
        retention: Log retention period (loguru format)
    """
    level = level.upper()
    loguru_logger.remove()
    loguru_logger.add(
        sys.stderr,
        level=level,
        format=_TEXT_FORMAT,
        serialize=json_output,
        backtrace=False,
        diagnose=False,
    )
    if log_file:
        loguru_logger.add(
            log_file,
            level=level,
            serialize=True,
            rotation=max_file_size,
            retention=retention,
            compression="gz",
            enqueue=True,
        )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(getattr(logging, level, logging.INFO))
    root.addHandler(InterceptHandler())

    # Reduce noise from verbose third-party loggers
    for noisy_logger in _NOISY_LOGGERS:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        "logging_initialized",
        extra={"level": level, "json_output": json_output, "log_file": log_file},
    )


def generate_correlation_id() -> str:
    """Generate a short correlation ID for tracing one sync pass across logs."""
    return uuid.uuid4().hex[:12]


def mask_secret(value: str | None, visible: int = 8) -> str:
    """Keep only the first ``visible`` characters of a secret for logging."""
    if not value:
        return "<empty>"
    if len(value) <= visible:
        return "***"
    return f"{value[:visible]}..."


def truncate_log_content(content: str | None, max_length: int = 500) -> str | None:
    """Truncate large content (HTML previews, markdown) for logging."""
    if not content or len(content) <= max_length:
        return content
    return content[:max_length] + "... [truncated]"


def log_extra(**fields: Any) -> dict[str, Any]:
    """Drop ``None`` values so log records only carry meaningful context."""
    return {key: value for key, value in fields.items() if value is not None}


__all__ = [
    "InterceptHandler",
    "generate_correlation_id",
    "log_extra",
    "mask_secret",
    "setup_logging",
    "truncate_log_content",
]
