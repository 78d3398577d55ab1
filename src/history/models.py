# src/history/models.py — v1
"""Run history models: HistoryRecord, ScoreDelta, MetricDelta, Comparison."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

ChangeStatus = Literal["improved", "degraded", "unchanged"]


class HistoryRecord(BaseModel):
    """Scores and key metrics of one successful audit, kept for comparison."""

    timestamp: datetime
    target: str
    scores: dict[str, float] = Field(default_factory=dict)
    metrics: dict[str, dict[str, Any]] = Field(default_factory=dict)


class ScoreDelta(BaseModel):
    """Change of one category score between two records."""

    current: float
    previous: float
    diff: float
    percent_change: float
    status: ChangeStatus


class MetricDelta(BaseModel):
    """Change of one key metric between two records."""

    name: str
    current: str | None = None
    previous: str | None = None
    diff: float
    percent_change: float
    status: ChangeStatus


class Comparison(BaseModel):
    """Result of comparing the latest record of a target with an earlier one."""

    target: str
    current_timestamp: datetime
    previous_timestamp: datetime
    scores: dict[str, ScoreDelta] = Field(default_factory=dict)
    metrics: dict[str, MetricDelta] = Field(default_factory=dict)

    def categories_with(self, status: ChangeStatus) -> list[str]:
        return [c for c, d in self.scores.items() if d.status == status]

    @property
    def improved(self) -> list[str]:
        return self.categories_with("improved")

    @property
    def degraded(self) -> list[str]:
        return self.categories_with("degraded")

    @property
    def unchanged(self) -> list[str]:
        return self.categories_with("unchanged")
