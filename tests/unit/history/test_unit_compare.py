# tests/unit/history/test_unit_compare.py — v1
"""Tests for history/compare.py — score thresholds and metric direction."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from auditbatch.history.compare import (
    compare_metric,
    compare_records,
    compare_scores,
    export_comparison_text,
    lower_is_better,
    metric_value,
)
from auditbatch.history.models import HistoryRecord


def _record(hour: int, scores: dict, metrics: dict | None = None) -> HistoryRecord:
    return HistoryRecord(
        timestamp=datetime(2026, 3, 1, hour, tzinfo=timezone.utc),
        target="https://example.com",
        scores=scores,
        metrics=metrics or {},
    )


class TestCompareScores:
    @pytest.mark.parametrize("current,previous,status", [
        (92.0, 90.0, "improved"),
        (88.0, 90.0, "degraded"),
        (91.0, 90.0, "unchanged"),
        (89.5, 90.0, "unchanged"),
    ])
    def test_threshold(self, current, previous, status):
        assert compare_scores(current, previous).status == status

    def test_percent_change(self):
        delta = compare_scores(60.0, 50.0)
        assert delta.diff == pytest.approx(10.0)
        assert delta.percent_change == pytest.approx(20.0)

    def test_zero_previous(self):
        assert compare_scores(50.0, 0.0).percent_change == 0.0


class TestMetrics:
    def test_value_from_display(self):
        assert metric_value({"display_value": "2.5 s"}) == 2.5
        assert metric_value({"display_value": "n/a"}) is None
        assert metric_value({"numeric_value": 3, "display_value": "9 s"}) == 3.0

    @pytest.mark.parametrize("key,expected", [
        ("first-contentful-paint", True),
        ("speed-index", True),
        ("total-blocking-time", True),
        ("interactive", True),
        ("cumulative-layout-shift", True),
        ("uses-http2", False),
    ])
    def test_direction(self, key, expected):
        assert lower_is_better(key) is expected

    def test_faster_paint_improves(self):
        delta = compare_metric(
            "first-contentful-paint",
            {"title": "FCP", "numeric_value": 900.0, "display_value": "0.9 s"},
            {"title": "FCP", "numeric_value": 1200.0, "display_value": "1.2 s"},
        )
        assert delta is not None
        assert delta.status == "improved"
        assert delta.name == "FCP"

    def test_higher_layout_shift_degrades(self):
        delta = compare_metric(
            "cumulative-layout-shift",
            {"title": "CLS", "numeric_value": 0.25},
            {"title": "CLS", "numeric_value": 0.1},
        )
        assert delta.status == "degraded"

    def test_within_epsilon_unchanged(self):
        delta = compare_metric("speed-index", {"numeric_value": 1.0005}, {"numeric_value": 1.0})
        assert delta.status == "unchanged"

    def test_unparseable_skipped(self):
        assert compare_metric("speed-index", {"display_value": "?"}, {"numeric_value": 1.0}) is None


class TestCompareRecords:
    def test_scores_and_metrics(self):
        fcp = {"title": "First Contentful Paint", "numeric_value": 1000.0, "display_value": "1.0 s"}
        current = _record(10, {"performance": 95.0, "seo": 80.0}, {"first-contentful-paint": fcp})
        previous = _record(9, {"performance": 90.0, "seo": 80.5}, {
            "first-contentful-paint": {**fcp, "numeric_value": 1500.0, "display_value": "1.5 s"},
        })
        comparison = compare_records(current, previous)
        assert comparison.improved == ["performance"]
        assert comparison.unchanged == ["seo"]
        assert comparison.metrics["first-contentful-paint"].status == "improved"

    def test_missing_previous_category_compared_to_zero(self):
        comparison = compare_records(_record(10, {"pwa": 40.0}), _record(9, {}))
        assert comparison.scores["pwa"].previous == 0.0
        assert comparison.improved == ["pwa"]

    def test_text(self):
        comparison = compare_records(_record(10, {"seo": 70.0}), _record(9, {"seo": 80.0}))
        text = export_comparison_text(comparison)
        assert "Comparison: https://example.com" in text
        assert "degraded" in text
