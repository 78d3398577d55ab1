# src/cache/models.py — v2
"""Cache domain model: CacheEntry."""

from __future__ import annotations

from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict

from auditbatch.core.models import JobSuccess


class CacheEntry(BaseModel):
    """Persisted record linking a job key to its successful result.

    Metadata and payload travel in the same record, so a reader either sees
    a complete entry or none at all.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    target: str
    created_at: datetime
    result: JobSuccess

    def is_expired(self, now: datetime, duration: timedelta) -> bool:
        return now - self.created_at >= duration
