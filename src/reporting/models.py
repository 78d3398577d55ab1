# src/reporting/models.py — v1
"""Batch summary models: ScoreRow, TargetError, Summary."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from auditbatch.core.models import utcnow


class ScoreRow(BaseModel):
    """Per-target line of the summary table."""

    model_config = ConfigDict(frozen=True)

    target: str
    status: Literal["success", "failure"]
    scores: dict[str, float] = Field(default_factory=dict)
    attempts: int = 1
    from_cache: bool = False
    artifact_refs: tuple[str, ...] = ()
    error: str | None = None


class TargetError(BaseModel):
    """A failed target and why it failed."""

    model_config = ConfigDict(frozen=True)

    target: str
    error_kind: str
    message: str


class Summary(BaseModel):
    """Aggregate view of one batch run.

    ``average_scores`` maps every category to the mean over successful
    results reporting it, or None when no result reported it.
    """

    model_config = ConfigDict(frozen=True)

    total: int
    successful: int
    failed: int
    elapsed_seconds: float
    average_scores: dict[str, float | None] = Field(default_factory=dict)
    errors: tuple[TargetError, ...] = ()
    results: tuple[ScoreRow, ...] = ()
    generated_at: datetime = Field(default_factory=utcnow)

    @property
    def cached(self) -> int:
        return sum(1 for row in self.results if row.from_cache)
