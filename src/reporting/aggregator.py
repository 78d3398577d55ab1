# src/reporting/aggregator.py — v1
"""Build a ``Summary`` from a ``BatchOutcome``. Pure: no I/O, no clock reads."""

from __future__ import annotations

from typing import Iterable

from auditbatch.core.models import BatchOutcome, JobFailure, JobSuccess
from auditbatch.reporting.models import ScoreRow, Summary, TargetError


def _category_order(outcome: BatchOutcome, categories: Iterable[str] | None) -> list[str]:
    ordered: list[str] = list(categories or ())
    for result in outcome.successes:
        for category in result.scores:
            if category not in ordered:
                ordered.append(category)
    return ordered


def average_scores(
    outcome: BatchOutcome,
    categories: Iterable[str] | None = None,
) -> dict[str, float | None]:
    """Per-category mean over successful results.

    A result without a given category does not contribute to that
    category's mean. Categories nobody reported map to None.
    """
    totals: dict[str, float] = {}
    counts: dict[str, int] = {}
    for result in outcome.successes:
        for category, score in result.scores.items():
            totals[category] = totals.get(category, 0.0) + score
            counts[category] = counts.get(category, 0) + 1

    averages: dict[str, float | None] = {}
    for category in _category_order(outcome, categories):
        count = counts.get(category, 0)
        averages[category] = totals[category] / count if count else None
    return averages


def _row(target: str, result: JobSuccess | JobFailure) -> ScoreRow:
    if isinstance(result, JobSuccess):
        return ScoreRow(
            target=target,
            status="success",
            scores=dict(result.scores),
            attempts=result.attempts,
            from_cache=result.from_cache,
            artifact_refs=result.artifact_refs,
        )
    return ScoreRow(
        target=target,
        status="failure",
        attempts=result.attempts,
        error=result.message,
    )


def summarize(outcome: BatchOutcome, categories: Iterable[str] | None = None) -> Summary:
    """Aggregate a batch outcome.

    Args:
        outcome: Ordered per-target results.
        categories: Categories that must appear in ``average_scores`` even
            when no successful result reported them.
    """
    errors = tuple(
        TargetError(target=o.target, error_kind=o.result.error_kind, message=o.result.message)
        for o in outcome.outcomes
        if isinstance(o.result, JobFailure)
    )
    return Summary(
        total=len(outcome),
        successful=len(outcome.successes),
        failed=len(errors),
        elapsed_seconds=outcome.elapsed_seconds,
        average_scores=average_scores(outcome, categories),
        errors=errors,
        results=tuple(_row(o.target, o.result) for o in outcome.outcomes),
        generated_at=outcome.finished_at,
    )
