# src/execution/job.py — v1
"""One audit attempt: output directory, optional screenshot, audit run.

An attempt is stateless. The retry executor calls ``run_attempt`` with a
fresh browser session and the job's current (possibly relaxed) options.
"""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import urlparse

from auditbatch.collaborators.base import BaseAuditEngine, BaseScreenshotEngine
from auditbatch.collaborators.lighthouse import file_timestamp
from auditbatch.collaborators.models import BrowserSession
from auditbatch.core.models import JobOptions, JobSuccess

logger = logging.getLogger(__name__)


def target_dirname(target: str) -> str | None:
    """Hostname of target with a leading ``www.`` stripped, or None if unparsable."""
    try:
        host = urlparse(target).hostname
    except ValueError:
        return None
    if not host:
        return None
    return host[4:] if host.startswith("www.") else host


def resolve_output_dir(target: str, options: JobOptions) -> Path:
    """Directory receiving this target's artifacts."""
    base = Path(options.output_dir)
    if not options.create_target_subdir:
        return base
    name = target_dirname(target)
    if name is None:
        logger.warning("Invalid URL %r, writing artifacts to %s", target, base)
        return base
    return base / name


class AuditJob:
    """Runs a single attempt against the audit and screenshot collaborators."""

    def __init__(
        self,
        audit_engine: BaseAuditEngine,
        screenshot_engine: BaseScreenshotEngine | None = None,
    ) -> None:
        self._audit_engine = audit_engine
        self._screenshot_engine = screenshot_engine

    async def run_attempt(
        self,
        target: str,
        options: JobOptions,
        browser: BrowserSession,
    ) -> JobSuccess:
        """Audit target once inside browser.

        Raises:
            AuditError: From the audit engine.
            CaptureError: From the screenshot engine.
        """
        output_dir = resolve_output_dir(target, options)
        artifacts: list[str] = []

        if options.capture_screenshot and self._screenshot_engine is not None:
            shot = output_dir / f"screenshot-{file_timestamp()}.png"
            path = await self._screenshot_engine.capture(
                target, shot, options.screenshot, browser
            )
            artifacts.append(str(path))

        report = await self._audit_engine.run_audit(
            target, options.categories, options, browser, output_dir
        )
        refs = [r for r in (report.report_artifact, report.summary_artifact) if r]

        return JobSuccess(
            target=target,
            scores=report.scores,
            artifact_refs=tuple(refs + artifacts),
            metrics={
                "metrics": {k: m.model_dump() for k, m in report.metrics.items()},
                "accessibility_issues": [
                    i.model_dump() for i in report.accessibility_issues
                ],
            },
        )
