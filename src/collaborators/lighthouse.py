# src/collaborators/lighthouse.py — v1
"""Audit engine driving the Lighthouse CLI against a launched Chrome.

The CLI writes the JSON result (and the HTML report when requested) next
to each other; the JSON is parsed into category scores (0-100), the key
performance metrics and the failing accessibility audits. A compact
``summary-<timestamp>.json`` is written beside the report.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from auditbatch.collaborators.base import BaseAuditEngine
from auditbatch.collaborators.models import (
    AccessibilityIssue,
    AuditReport,
    BrowserSession,
    MetricSnapshot,
)
from auditbatch.core.errors import (
    AuditError,
    ConfigurationError,
    PermanentTargetError,
    TransientAuditError,
)
from auditbatch.core.models import JobOptions

logger = logging.getLogger(__name__)

KEY_METRICS: tuple[str, ...] = (
    "first-contentful-paint",
    "largest-contentful-paint",
    "speed-index",
    "total-blocking-time",
    "cumulative-layout-shift",
    "interactive",
    "server-response-time",
    "max-potential-fid",
)

_PERMANENT_CODES: tuple[str, ...] = (
    "DNS_FAILURE",
    "INVALID_URL",
    "ERR_NAME_NOT_RESOLVED",
    "INSECURE_DOCUMENT_REQUEST",
)
_TRANSIENT_CODES: tuple[str, ...] = (
    "lh:driver:navigate",
    "NO_FCP",
    "PAGE_HUNG",
    "NO_NAVSTART",
    "FAILED_DOCUMENT_REQUEST",
    "ERRORED_DOCUMENT_REQUEST",
    "PROTOCOL_TIMEOUT",
    "CRI_TIMEOUT",
)


def file_timestamp(now: datetime | None = None) -> str:
    """ISO timestamp safe for file names (``:`` and ``.`` replaced)."""
    now = now or datetime.now(timezone.utc)
    return now.isoformat().replace(":", "-").replace(".", "-")


def parse_lighthouse_report(lhr: dict[str, Any]) -> AuditReport:
    """Extract scores, key metrics and accessibility issues from a Lighthouse result.

    Categories whose score is null (not computed) are left out.
    """
    scores: dict[str, float] = {}
    for key, category in (lhr.get("categories") or {}).items():
        score = category.get("score")
        if score is None:
            continue
        scores[key] = round(float(score) * 100.0, 2)

    audits: dict[str, Any] = lhr.get("audits") or {}
    metrics: dict[str, MetricSnapshot] = {}
    for metric in KEY_METRICS:
        audit = audits.get(metric)
        if not audit:
            continue
        metrics[metric] = MetricSnapshot(
            title=audit.get("title", metric),
            display_value=audit.get("displayValue"),
            numeric_value=audit.get("numericValue"),
            score=audit.get("score"),
            description=audit.get("description"),
        )

    issues: list[AccessibilityIssue] = []
    a11y = (lhr.get("categories") or {}).get("accessibility") or {}
    for ref in a11y.get("auditRefs", []):
        audit = audits.get(ref.get("id", ""))
        if not audit or audit.get("score") in (None, 1, 1.0):
            continue
        items = (audit.get("details") or {}).get("items") or []
        issues.append(AccessibilityIssue(
            audit_id=ref["id"],
            title=audit.get("title", ref["id"]),
            description=audit.get("description"),
            impact=len(items),
        ))

    return AuditReport(scores=scores, metrics=metrics, accessibility_issues=issues)


def error_from_output(message: str) -> AuditError:
    """Turn a Lighthouse failure message into a taxonomy error."""
    if any(code in message for code in _PERMANENT_CODES):
        return PermanentTargetError(message)
    if any(code in message for code in _TRANSIENT_CODES):
        return TransientAuditError(message)
    return AuditError(message)


class LighthouseCliEngine(BaseAuditEngine):
    """Run ``lighthouse`` as a subprocess for each audit."""

    def __init__(self, binary: str = "lighthouse", extra_args: Sequence[str] = ()) -> None:
        self._binary = binary
        self._extra_args = tuple(extra_args)

    def build_command(
        self,
        target: str,
        categories: Sequence[str],
        options: JobOptions,
        port: int,
        output_base: Path,
    ) -> list[str]:
        cmd = [self._binary, target, f"--port={port}", "--output=json"]
        if options.output_format == "html":
            cmd += ["--output=html", f"--output-path={output_base}"]
        else:
            cmd.append(f"--output-path={output_base}.report.json")
        cmd += [
            f"--only-categories={','.join(categories)}",
            f"--max-wait-for-load={int(options.screenshot.timeout_s * 1000)}",
            "--disable-storage-reset",
            "--throttling-method=simulate",
            "--quiet",
        ]
        if options.skip_audits:
            cmd.append(f"--skip-audits={','.join(options.skip_audits)}")
        cmd += list(self._extra_args)
        return cmd

    async def run_audit(
        self,
        target: str,
        categories: Sequence[str],
        options: JobOptions,
        browser: BrowserSession,
        output_dir: Path,
    ) -> AuditReport:
        """Audit target and return its parsed report."""
        output_dir.mkdir(parents=True, exist_ok=True)
        stamp = file_timestamp()
        output_base = output_dir / f"lighthouse-{stamp}"
        cmd = self.build_command(target, categories, options, browser.port, output_base)

        logger.info("Running Lighthouse audit for %s on port %d", target, browser.port)
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise ConfigurationError(f"Lighthouse binary not found: {self._binary}") from e

        try:
            _, stderr = await process.communicate()
        finally:
            if process.returncode is None:
                process.kill()
                await process.wait()

        if process.returncode != 0:
            message = stderr.decode("utf-8", "replace").strip() or (
                f"lighthouse exited with code {process.returncode}"
            )
            raise error_from_output(message[-2000:])

        json_path = Path(f"{output_base}.report.json")
        try:
            lhr = json.loads(json_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise TransientAuditError(f"Lighthouse produced no readable report: {e}") from e

        runtime_error = lhr.get("runtimeError")
        if runtime_error and runtime_error.get("code") not in (None, "NO_ERROR"):
            raise error_from_output(
                f"{runtime_error.get('code')}: {runtime_error.get('message', '')}"
            )

        report = parse_lighthouse_report(lhr)
        if not report.scores:
            raise TransientAuditError("Lighthouse returned no category scores")

        report_path = (
            Path(f"{output_base}.report.html") if options.output_format == "html" else json_path
        )
        summary_path = output_dir / f"summary-{stamp}.json"
        summary_path.write_text(json.dumps({
            "url": target,
            "timestamp": stamp,
            "scores": report.scores,
            "metrics": {k: m.model_dump() for k, m in report.metrics.items()},
            "accessibilityIssues": [i.model_dump() for i in report.accessibility_issues],
        }, indent=2), encoding="utf-8")

        for key, score in report.scores.items():
            logger.info("%s score for %s: %.1f", key, target, score)

        return report.model_copy(update={
            "report_artifact": str(report_path),
            "summary_artifact": str(summary_path),
        })
