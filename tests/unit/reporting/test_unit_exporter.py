# tests/unit/reporting/test_unit_exporter.py — v1
"""Tests for reporting/exporter.py — JSON, HTML and text renderings."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from auditbatch.reporting.exporter import (
    export_summary_json,
    export_summary_text,
    render_summary_html,
    score_class,
    write_summary_reports,
)
from auditbatch.reporting.models import ScoreRow, Summary, TargetError


@pytest.fixture
def summary() -> Summary:
    return Summary(
        total=2,
        successful=1,
        failed=1,
        elapsed_seconds=42.0,
        average_scores={"performance": 95.0, "seo": None},
        errors=(TargetError(target="https://b.com", error_kind="transient", message="<timeout>"),),
        results=(
            ScoreRow(target="https://a.com", status="success", scores={"performance": 95.0}),
            ScoreRow(target="https://b.com", status="failure", error="<timeout>"),
        ),
        generated_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
    )


class TestScoreClass:
    @pytest.mark.parametrize("score,expected", [
        (100, "score-good"), (90, "score-good"), (89.9, "score-average"),
        (50, "score-average"), (49.9, "score-poor"), (0, "score-poor"),
    ])
    def test_thresholds(self, score, expected):
        assert score_class(score) == expected


class TestHtml:
    def test_escapes_and_marks(self, summary):
        page = render_summary_html(summary)
        assert "&lt;timeout&gt;" in page
        assert "<timeout>" not in page
        assert 'class="score-good">95.0' in page
        assert "<td>N/A</td>" in page
        assert "average-row" in page


class TestJsonAndText:
    def test_json_round_trip(self, summary, tmp_path):
        path = tmp_path / "out" / "summary.json"
        export_summary_json(summary, path)
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["total"] == 2
        assert data["average_scores"]["seo"] is None

    def test_text(self, summary):
        text = export_summary_text(summary)
        assert "Failed     : 1" in text
        assert "no data" in text
        assert "https://b.com [transient]: <timeout>" in text


class TestWriteSummaryReports:
    def test_writes_both_files(self, summary, tmp_path):
        out = write_summary_reports(
            summary, tmp_path, now=datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)
        )
        assert out.parent == tmp_path
        assert out.name.startswith("batch-summary-2026-03-01T08-00-00")
        assert (out / "batch-summary.json").exists()
        assert (out / "batch-summary.html").exists()
