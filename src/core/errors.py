# src/core/errors.py — v1
"""Error taxonomy for audit jobs and its classifier.

Every failure that crosses a job boundary is normalized into one of the
classes below. The ``retryable`` flag drives the retry executor:

    TransientAuditError      navigation timeout, network flake   retry + relax
    ResourceExhaustionError  browser failed to start/attach      retry, fresh browser
    ConfigurationError       malformed options                   fail immediately
    PermanentTargetError     unresolvable target                 fail immediately
    CacheIOError             backing store unavailable           degrade to miss
"""

from __future__ import annotations

import asyncio
from typing import ClassVar


class AuditBatchError(Exception):
    """Base class for all auditbatch errors."""

    kind: ClassVar[str] = "unknown"
    retryable: ClassVar[bool] = False


class AuditError(AuditBatchError):
    """Failure reported by the audit collaborator."""

    kind = "audit"
    retryable = True


class TransientAuditError(AuditError):
    """Navigation timeout, network flake or other recoverable audit failure."""

    kind = "transient"
    retryable = True


class CaptureError(TransientAuditError):
    """Screenshot collaborator failed to render the target."""

    kind = "capture"


class PermanentTargetError(AuditError):
    """Target cannot be audited at all (unresolvable host, invalid URL)."""

    kind = "permanent_target"
    retryable = False


class ResourceExhaustionError(AuditBatchError):
    """External resource (browser instance) failed to start or attach."""

    kind = "resource_exhaustion"
    retryable = True


class ConfigurationError(AuditBatchError):
    """Options or settings are malformed or internally inconsistent."""

    kind = "configuration"
    retryable = False


class CacheIOError(AuditBatchError):
    """Cache backing store could not be read or written."""

    kind = "cache_io"
    retryable = False


_PERMANENT_PATTERNS: tuple[str, ...] = (
    "err_name_not_resolved",
    "name or service not known",
    "nodename nor servname",
    "could not resolve host",
    "invalid url",
    "invalid_url",
    "protocol error (page.navigate): cannot navigate to invalid url",
    "err_invalid_url",
    "unsupported protocol",
)
_RESOURCE_PATTERNS: tuple[str, ...] = (
    "failed to launch",
    "failed to start",
    "unable to connect to chrome",
    "econnrefused",
    "browser has been closed",
    "browser closed",
    "target closed",
    "no usable sandbox",
    "cannot attach",
)


def classify_error(error: BaseException) -> AuditBatchError:
    """Map an arbitrary exception onto the error taxonomy.

    Taxonomy members are returned unchanged. Other exceptions are wrapped
    in the class matching their message signature, keeping the original
    as ``__cause__``. Unrecognized failures are treated as transient.
    """
    if isinstance(error, AuditBatchError):
        return error

    message = str(error) or type(error).__name__
    lowered = message.lower()
    name = type(error).__name__.lower()

    wrapped: AuditBatchError
    if isinstance(error, (TimeoutError, asyncio.TimeoutError)) or "timeout" in name:
        wrapped = TransientAuditError(message)
    elif any(p in lowered for p in _PERMANENT_PATTERNS):
        wrapped = PermanentTargetError(message)
    elif any(p in lowered for p in _RESOURCE_PATTERNS):
        wrapped = ResourceExhaustionError(message)
    else:
        wrapped = TransientAuditError(message)
    wrapped.__cause__ = error
    return wrapped
