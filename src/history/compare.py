# src/history/compare.py — v1
"""Compare two history records of the same target.

Category scores move by more than ``SCORE_THRESHOLD`` points to count as
improved or degraded. Timing metrics (names containing ``time``,
``paint``, ``speed-index``, ``interactive`` or ``fid``) and layout shift are
better when lower; all others when higher.
"""

from __future__ import annotations

import re
from typing import Any

from auditbatch.history.models import (
    ChangeStatus,
    Comparison,
    HistoryRecord,
    MetricDelta,
    ScoreDelta,
)

SCORE_THRESHOLD = 1.0
METRIC_EPSILON = 0.001

_LOWER_IS_BETTER = ("time", "paint", "speed-index", "interactive", "fid", "layout-shift")
_NUMBER = re.compile(r"([\d.]+)")


def _percent(diff: float, previous: float) -> float:
    return diff / previous * 100.0 if previous > 0 else 0.0


def metric_value(metric: dict[str, Any]) -> float | None:
    """Numeric value of a stored metric, parsed from its display value if needed."""
    value = metric.get("numeric_value")
    if value is not None:
        return float(value)
    match = _NUMBER.search(str(metric.get("display_value") or ""))
    if not match:
        return None
    try:
        return float(match.group(1))
    except ValueError:
        return None


def lower_is_better(metric_key: str) -> bool:
    return any(marker in metric_key for marker in _LOWER_IS_BETTER)


def compare_scores(current: float, previous: float) -> ScoreDelta:
    diff = current - previous
    status: ChangeStatus = "unchanged"
    if diff > SCORE_THRESHOLD:
        status = "improved"
    elif diff < -SCORE_THRESHOLD:
        status = "degraded"
    return ScoreDelta(
        current=current,
        previous=previous,
        diff=diff,
        percent_change=_percent(diff, previous),
        status=status,
    )


def compare_metric(key: str, current: dict[str, Any], previous: dict[str, Any]) -> MetricDelta | None:
    current_value = metric_value(current)
    previous_value = metric_value(previous)
    if current_value is None or previous_value is None:
        return None

    diff = current_value - previous_value
    status: ChangeStatus = "unchanged"
    if abs(diff) > METRIC_EPSILON:
        better = diff < 0 if lower_is_better(key) else diff > 0
        status = "improved" if better else "degraded"
    return MetricDelta(
        name=current.get("title") or key,
        current=current.get("display_value"),
        previous=previous.get("display_value"),
        diff=diff,
        percent_change=_percent(diff, previous_value),
        status=status,
    )


def compare_records(current: HistoryRecord, previous: HistoryRecord) -> Comparison:
    """Per-category score deltas and per-metric deltas of current against previous.

    A category missing from previous is compared against 0. Metrics
    missing from either record are left out.
    """
    scores = {
        category: compare_scores(score, previous.scores.get(category, 0.0))
        for category, score in current.scores.items()
    }
    metrics: dict[str, MetricDelta] = {}
    for key, metric in current.metrics.items():
        before = previous.metrics.get(key)
        if not metric or not before:
            continue
        delta = compare_metric(key, metric, before)
        if delta is not None:
            metrics[key] = delta

    return Comparison(
        target=current.target,
        current_timestamp=current.timestamp,
        previous_timestamp=previous.timestamp,
        scores=scores,
        metrics=metrics,
    )


def export_comparison_text(comparison: Comparison) -> str:
    """Human-readable comparison report."""
    lines: list[str] = [
        f"=== Comparison: {comparison.target} ===",
        f"Current  : {comparison.current_timestamp.isoformat()}",
        f"Previous : {comparison.previous_timestamp.isoformat()}",
        "",
        "--- Scores ---",
    ]
    for category, delta in comparison.scores.items():
        lines.append(
            f"  {category:16s} {delta.current:6.1f} <- {delta.previous:6.1f} "
            f"({delta.diff:+.1f}, {delta.percent_change:+.1f}%) {delta.status}"
        )
    if comparison.metrics:
        lines.append("\n--- Key Metrics ---")
        for delta in comparison.metrics.values():
            lines.append(
                f"  {delta.name:28s} {delta.current or 'N/A'} <- {delta.previous or 'N/A'} "
                f"{delta.status}"
            )
    return "\n".join(lines)
