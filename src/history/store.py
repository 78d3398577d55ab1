# src/history/store.py — v1
"""File-based run history, one ``history-<timestamp>.json`` per audit.

Records live under ``<reports_root>/<host>/history``. File names embed an
ISO timestamp, so lexical order is chronological order.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from auditbatch.collaborators.lighthouse import file_timestamp
from auditbatch.core.models import JobSuccess, utcnow
from auditbatch.execution.job import target_dirname
from auditbatch.history.models import HistoryRecord

logger = logging.getLogger(__name__)

HISTORY_PREFIX = "history-"


def history_dir_for(target: str, reports_root: Path) -> Path:
    """History directory of target below reports_root."""
    return reports_root / (target_dirname(target) or "unknown") / "history"


def save_to_history(
    result: JobSuccess,
    history_dir: Path,
    now: datetime | None = None,
) -> Path:
    """Persist the scores and key metrics of result.

    Returns:
        Path of the written record.
    """
    timestamp = now or utcnow()
    record = HistoryRecord(
        timestamp=timestamp,
        target=result.target,
        scores=dict(result.scores),
        metrics=dict(result.metrics.get("metrics") or {}),
    )
    history_dir.mkdir(parents=True, exist_ok=True)
    path = history_dir / f"{HISTORY_PREFIX}{file_timestamp(timestamp)}.json"
    path.write_text(record.model_dump_json(indent=2), encoding="utf-8")
    logger.info("History record saved to %s", path)
    return path


def recent_history(history_dir: Path, count: int = 1) -> list[HistoryRecord]:
    """Return up to count records, newest first. Unreadable records are skipped."""
    if not history_dir.is_dir():
        logger.info("No history for %s yet", history_dir)
        return []

    files = sorted(
        (p for p in history_dir.glob(f"{HISTORY_PREFIX}*.json") if p.is_file()),
        key=lambda p: p.name,
        reverse=True,
    )
    records: list[HistoryRecord] = []
    for path in files:
        if len(records) >= count:
            break
        try:
            records.append(HistoryRecord.model_validate_json(path.read_bytes()))
        except (OSError, ValidationError) as e:
            logger.warning("Skipping unreadable history record %s: %s", path, e)
    return records
