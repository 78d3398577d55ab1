# src/logging/context.py — v1
"""Contextual logging support: attach batch_id, target, job_key, attempt to log records.

Context variables are task-local, so concurrently running jobs each see
their own target and attempt.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_batch_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "batch_id", default=None
)
_target: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "target", default=None
)
_job_key: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "job_key", default=None
)
_attempt: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "attempt", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    batch_id: str | None = None
    target: str | None = None
    job_key: str | None = None
    attempt: int | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        batch_id=_batch_id.get(),
        target=_target.get(),
        job_key=_job_key.get(),
        attempt=_attempt.get(),
    )


def set_batch_context(batch_id: str) -> None:
    """Set batch-level context (called once per batch run)."""
    _batch_id.set(batch_id)


def set_target_context(target: str, job_key: str | None = None) -> None:
    """Set job-level context (called inside each job's task)."""
    _target.set(target)
    _job_key.set(job_key)
    _attempt.set(None)


def set_attempt_context(attempt: int) -> None:
    _attempt.set(attempt)


def clear_context() -> None:
    """Reset all context variables."""
    _batch_id.set(None)
    _target.set(None)
    _job_key.set(None)
    _attempt.set(None)
