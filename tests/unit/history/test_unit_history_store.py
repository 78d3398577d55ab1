# tests/unit/history/test_unit_history_store.py — v1
"""Tests for history/store.py — record layout, ordering, unreadable files."""

from __future__ import annotations

from datetime import datetime, timezone

from auditbatch.core.models import JobSuccess
from auditbatch.history.store import history_dir_for, recent_history, save_to_history


def _result(performance: float) -> JobSuccess:
    return JobSuccess(
        target="https://www.example.com/page",
        scores={"performance": performance},
        metrics={"metrics": {"first-contentful-paint": {
            "title": "First Contentful Paint",
            "display_value": "1.2 s",
            "numeric_value": 1200.0,
        }}},
    )


def _at(hour: int) -> datetime:
    return datetime(2026, 3, 1, hour, 0, 0, tzinfo=timezone.utc)


class TestHistoryDir:
    def test_host_without_www(self, tmp_path):
        assert history_dir_for("https://www.example.com/x", tmp_path) == (
            tmp_path / "example.com" / "history"
        )

    def test_invalid_target(self, tmp_path):
        assert history_dir_for("not a url", tmp_path) == tmp_path / "unknown" / "history"


class TestSaveAndRecent:
    def test_save_writes_record(self, tmp_path):
        path = save_to_history(_result(80.0), tmp_path / "h", now=_at(9))
        assert path.name == "history-2026-03-01T09-00-00+00-00.json"
        [record] = recent_history(tmp_path / "h")
        assert record.scores == {"performance": 80.0}
        assert record.metrics["first-contentful-paint"]["numeric_value"] == 1200.0
        assert record.timestamp == _at(9)

    def test_newest_first(self, tmp_path):
        history = tmp_path / "h"
        save_to_history(_result(70.0), history, now=_at(8))
        save_to_history(_result(90.0), history, now=_at(10))
        save_to_history(_result(80.0), history, now=_at(9))
        records = recent_history(history, count=2)
        assert [r.scores["performance"] for r in records] == [90.0, 80.0]

    def test_missing_dir(self, tmp_path):
        assert recent_history(tmp_path / "absent", count=2) == []

    def test_unreadable_record_skipped(self, tmp_path):
        history = tmp_path / "h"
        save_to_history(_result(70.0), history, now=_at(8))
        (history / "history-2026-03-01T23-00-00.json").write_text("{broken", encoding="utf-8")
        records = recent_history(history, count=2)
        assert [r.scores["performance"] for r in records] == [70.0]
