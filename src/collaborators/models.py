# src/collaborators/models.py — v1
"""Data exchanged with the external audit, screenshot and browser collaborators."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field


class MetricSnapshot(BaseModel):
    """One key performance metric as reported by the audit engine."""

    title: str
    display_value: str | None = None
    numeric_value: float | None = None
    score: float | None = None
    description: str | None = None


class AccessibilityIssue(BaseModel):
    """A failing accessibility audit."""

    audit_id: str
    title: str
    description: str | None = None
    impact: int = 0


class AuditReport(BaseModel):
    """What an audit collaborator returns for one target."""

    scores: dict[str, float]
    report_artifact: str | None = None
    summary_artifact: str | None = None
    metrics: dict[str, MetricSnapshot] = Field(default_factory=dict)
    accessibility_issues: list[AccessibilityIssue] = Field(default_factory=list)


@dataclass
class BrowserSession:
    """Handle to one launched browser instance."""

    port: int
    handle: Any = None
