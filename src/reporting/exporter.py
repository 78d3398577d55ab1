# src/reporting/exporter.py — v1
"""Batch summary export to JSON, HTML and console text."""

from __future__ import annotations

import html
import logging
from datetime import datetime
from pathlib import Path

from auditbatch.collaborators.lighthouse import file_timestamp
from auditbatch.core.models import DEFAULT_CATEGORIES
from auditbatch.reporting.models import Summary

logger = logging.getLogger(__name__)

SUMMARY_DIR_PREFIX = "batch-summary-"

_CATEGORY_LABELS: dict[str, str] = {
    "performance": "Performance",
    "accessibility": "Accessibility",
    "best-practices": "Best Practices",
    "seo": "SEO",
    "pwa": "PWA",
}

_STYLE = """
body { font-family: Arial, sans-serif; line-height: 1.6; color: #333;
       max-width: 1200px; margin: 0 auto; padding: 20px; }
h1, h2 { color: #2c3e50; }
.summary-box { background-color: #f8f9fa; border-radius: 5px; padding: 15px;
               margin-bottom: 20px; }
.summary-label { font-weight: bold; display: inline-block; width: 180px; }
table { width: 100%; border-collapse: collapse; margin: 20px 0; }
th, td { padding: 12px 15px; border: 1px solid #ddd; text-align: left; }
th { background-color: #4CAF50; color: white; }
.error-row { background-color: #ffebee; }
.error-message { color: #d32f2f; }
.score-good { background-color: #c8e6c9; color: #2e7d32; font-weight: bold; }
.score-average { background-color: #fff9c4; color: #f57f17; font-weight: bold; }
.score-poor { background-color: #ffcdd2; color: #c62828; font-weight: bold; }
.average-row { background-color: #e8eaf6; font-weight: bold; }
"""


def score_class(score: float) -> str:
    """CSS class for a 0-100 score."""
    if score >= 90:
        return "score-good"
    if score >= 50:
        return "score-average"
    return "score-poor"


def _columns(summary: Summary) -> list[str]:
    return list(summary.average_scores) or list(DEFAULT_CATEGORIES)


def _score_cell(score: float | None) -> str:
    if score is None:
        return "<td>N/A</td>"
    return f'<td class="{score_class(score)}">{score:.1f}</td>'


def export_summary_json(summary: Summary, path: Path) -> None:
    """Export the summary as formatted JSON.

    Args:
        summary: Batch summary to export.
        path: Output file path.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(summary.model_dump_json(indent=2), encoding="utf-8")


def render_summary_html(summary: Summary) -> str:
    """Render the summary as a standalone HTML page."""
    columns = _columns(summary)
    esc = html.escape

    rows: list[str] = []
    for number, row in enumerate(summary.results, start=1):
        if row.status == "failure":
            rows.append(
                f'<tr class="error-row"><td>{number}</td><td>{esc(row.target)}</td>'
                f'<td colspan="{len(columns)}" class="error-message">'
                f"Audit failed: {esc(row.error or '')}</td></tr>"
            )
            continue
        cells = "".join(_score_cell(row.scores.get(c)) for c in columns)
        rows.append(f"<tr><td>{number}</td><td>{esc(row.target)}</td>{cells}</tr>")

    if summary.successful:
        cells = "".join(_score_cell(summary.average_scores.get(c)) for c in columns)
        rows.append(f'<tr class="average-row"><td colspan="2">Average</td>{cells}</tr>')

    headers = "".join(f"<th>{esc(_CATEGORY_LABELS.get(c, c))}</th>" for c in columns)
    body = "\n".join(rows)
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<title>Batch Audit Summary</title>
<style>{_STYLE}</style>
</head>
<body>
<h1>Batch Audit Summary</h1>
<div class="summary-box">
<div><span class="summary-label">Generated:</span> {summary.generated_at.isoformat()}</div>
<div><span class="summary-label">Total targets:</span> {summary.total}</div>
<div><span class="summary-label">Successful:</span> {summary.successful}</div>
<div><span class="summary-label">Failed:</span> {summary.failed}</div>
<div><span class="summary-label">Elapsed:</span> {summary.elapsed_seconds:.1f}s</div>
</div>
<h2>Results</h2>
<table>
<thead><tr><th>#</th><th>Target</th>{headers}</tr></thead>
<tbody>
{body}
</tbody>
</table>
</body>
</html>
"""


def export_summary_html(summary: Summary, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_summary_html(summary), encoding="utf-8")


def export_summary_text(summary: Summary) -> str:
    """Generate the human-readable console summary.

    Args:
        summary: Batch summary.

    Returns:
        Formatted summary string.
    """
    lines: list[str] = [
        "=== Batch Audit Summary ===",
        f"Targets    : {summary.total}",
        f"Successful : {summary.successful} ({summary.cached} from cache)",
        f"Failed     : {summary.failed}",
        f"Elapsed    : {summary.elapsed_seconds:.1f}s",
        "",
        "--- Average Scores ---",
    ]
    for category, score in summary.average_scores.items():
        value = f"{score:.1f}" if score is not None else "no data"
        lines.append(f"  {_CATEGORY_LABELS.get(category, category):16s}: {value}")

    if summary.errors:
        lines.append("\n--- Failed Targets ---")
        for error in summary.errors:
            lines.append(f"  {error.target} [{error.error_kind}]: {error.message}")

    return "\n".join(lines)


def write_summary_reports(
    summary: Summary,
    reports_root: Path,
    now: datetime | None = None,
) -> Path:
    """Write batch-summary.json and batch-summary.html into a fresh directory.

    Returns:
        The ``batch-summary-<timestamp>`` directory.
    """
    out_dir = reports_root / f"{SUMMARY_DIR_PREFIX}{file_timestamp(now)}"
    export_summary_json(summary, out_dir / "batch-summary.json")
    export_summary_html(summary, out_dir / "batch-summary.html")
    logger.info("Summary reports written to %s", out_dir)
    return out_dir
