# src/logging/logger.py — v2
"""Logger factory with JSON and text formatters.

Records are stamped with the batch/target/attempt context by
``ContextFilter`` when they are emitted, inside the job's own task.
Formatters read that snapshot, so handlers never see another job's
context.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from auditbatch.logging.context import LogContext, get_context

ROOT_LOGGER = "auditbatch"


class ContextFilter(logging.Filter):
    """Attach the current ``LogContext`` to every record as ``record.ctx``."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "ctx"):
            record.ctx = get_context()
        return True


def _record_context(record: logging.LogRecord) -> LogContext:
    ctx = getattr(record, "ctx", None)
    return ctx if isinstance(ctx, LogContext) else get_context()


def _record_time(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


class JsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message, context."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": _record_time(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = _record_context(record).as_dict()
        if context:
            entry["context"] = context

        # extra={"data": {...}}
        data = getattr(record, "data", None)
        if data:
            entry["data"] = data

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Console format: ``time [LEVEL] logger [target] (attempt N) - message``."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = _record_context(record)
        line = (
            f"{_record_time(record):%Y-%m-%d %H:%M:%S} "
            f"[{record.levelname:8s}] {record.name}"
        )
        if ctx.target:
            line += f" [{ctx.target}]"
        if ctx.attempt:
            line += f" (attempt {ctx.attempt})"
        line += f" - {record.getMessage()}"
        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def get_logger(name: str) -> logging.Logger:
    """Get a named logger below the package root. Configure with setup_logging()."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    log_file: str | None = None,
    rotation: str = "10MB",
    retention: int = 5,
    compress: bool = False,
) -> logging.Logger:
    """Configure the package root logger. Safe to call more than once.

    Console output goes to stderr; stdout is reserved for the summary.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        log_format: "json" or "text".
        log_file: Optional log file, rotated by size.
        rotation: Max file size before rotation (e.g. "10MB").
        retention: Number of rotated files to keep.
        compress: Gzip rotated log files.

    Returns:
        The configured root logger.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter: logging.Formatter = (
        JsonFormatter() if log_format == "json" else TextFormatter()
    )
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        from auditbatch.logging.handlers import create_rotating_handler

        handlers.append(
            create_rotating_handler(
                log_file, rotation=rotation, retention=retention, compress=compress
            )
        )

    context_filter = ContextFilter()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        root.addHandler(handler)
    return root
