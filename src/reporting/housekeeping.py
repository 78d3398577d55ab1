# src/reporting/housekeeping.py — v1
"""Report housekeeping: gzip compression and removal of old batch summaries.

Both operations are best effort. Failures are logged and never abort a run.
"""

from __future__ import annotations

import gzip
import logging
import shutil
import time
from pathlib import Path

from auditbatch.reporting.exporter import SUMMARY_DIR_PREFIX

logger = logging.getLogger(__name__)


def compress_file(path: Path) -> Path | None:
    """Write a gzip copy of path to ``<path>.gz``.

    Returns:
        The compressed file, or None if compression failed.
    """
    target = path.with_name(path.name + ".gz")
    try:
        with path.open("rb") as src, gzip.open(target, "wb") as dst:
            shutil.copyfileobj(src, dst)
    except OSError as e:
        logger.warning("Failed to compress %s: %s", path, e)
        return None
    logger.info("Compressed %s", target)
    return target


def cleanup_old_reports(
    reports_root: Path,
    max_age_days: float = 30,
    now: float | None = None,
) -> int:
    """Remove ``batch-summary-*`` directories last modified before the cutoff.

    Args:
        reports_root: Directory holding the batch summary directories.
        max_age_days: Age in days after which a summary is removed.
        now: Reference epoch time (defaults to the current time).

    Returns:
        Number of directories removed.
    """
    if not reports_root.is_dir():
        return 0

    cutoff = (now if now is not None else time.time()) - max_age_days * 86400
    removed = 0
    for entry in sorted(reports_root.iterdir()):
        if not entry.is_dir() or not entry.name.startswith(SUMMARY_DIR_PREFIX):
            continue
        try:
            if entry.stat().st_mtime >= cutoff:
                continue
            shutil.rmtree(entry)
        except OSError as e:
            logger.warning("Failed to remove old report %s: %s", entry, e)
            continue
        removed += 1

    if removed:
        logger.info("Removed %d old report directories", removed)
    return removed
