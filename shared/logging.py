"""
Structured logging setup for all modules.

Provides JSON-structured logging with automatic job_id injection. A job is
one /create-video request; its id is carried in a context variable so every
log line emitted while the request is processed can be correlated.
"""

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterator, Optional
from uuid import UUID

from shared.config import settings

# Context variable for job_id
job_id_context: ContextVar[Optional[UUID]] = ContextVar("job_id", default=None)

# Standard LogRecord attributes, everything else on a record came from `extra`
_STANDARD_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName", "levelname",
    "levelno", "lineno", "module", "msecs", "message", "pathname", "process",
    "processName", "relativeCreated", "thread", "threadName", "exc_info",
    "exc_text", "stack_info", "taskName", "getMessage"
}


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "message": record.getMessage(),
        }

        job_id = job_id_context.get()
        if job_id:
            log_data["job_id"] = str(job_id)

        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS or key.startswith("_"):
                continue
            # Keep JSON scalars as-is, stringify the rest (paths, UUIDs, lists)
            if isinstance(value, (str, int, float, bool, type(None))):
                log_data[key] = value
            else:
                log_data[key] = str(value)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Logger name (e.g., "montage.normalizer")

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Don't add handlers if already configured
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(JSONFormatter())
    logger.addHandler(console_handler)

    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=100 * 1024 * 1024,  # 100MB
            backupCount=5
        )
        file_handler.setFormatter(JSONFormatter())
        logger.addHandler(file_handler)

    return logger


def set_job_id(job_id: Optional[UUID]) -> None:
    """
    Set job_id in context for automatic injection into logs.

    Args:
        job_id: Job ID to set in context
    """
    job_id_context.set(job_id)


def get_job_id() -> Optional[UUID]:
    """
    Get current job_id from context.

    Returns:
        Current job_id or None
    """
    return job_id_context.get()


@contextmanager
def job_context(job_id: UUID) -> Iterator[UUID]:
    """Bind job_id for the duration of a block, restoring the previous value."""
    token = job_id_context.set(job_id)
    try:
        yield job_id
    finally:
        job_id_context.reset(token)
