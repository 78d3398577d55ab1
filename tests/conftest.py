# tests/conftest.py — v1
"""Shared test fixtures for all unit and integration tests.

Provides in-memory fakes for the audit, screenshot and browser
collaborators, fast job options and temp directories. No browser or
network access: all external I/O is faked.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import AsyncIterator, Sequence

import pytest

from auditbatch.collaborators.base import (
    BaseAuditEngine,
    BaseBrowserLauncher,
    BaseScreenshotEngine,
)
from auditbatch.collaborators.models import AuditReport, BrowserSession, MetricSnapshot
from auditbatch.core.models import JobOptions, JobSuccess, RetryPolicy, ScreenshotOptions
from auditbatch.logging.context import clear_context


# === Fakes: collaborators ===


class FakeAuditEngine(BaseAuditEngine):
    """Scripted audit engine.

    ``failures[target]`` is a list of exceptions raised by successive calls
    for that target before it starts succeeding. ``latency`` (seconds) may
    be a float or a per-target mapping.
    """

    def __init__(
        self,
        scores: dict[str, dict[str, float]] | None = None,
        failures: dict[str, list[BaseException]] | None = None,
        latency: float | dict[str, float] = 0.0,
        default_scores: dict[str, float] | None = None,
    ) -> None:
        self.scores = scores or {}
        self.failures = {k: list(v) for k, v in (failures or {}).items()}
        self.latency = latency
        self.default_scores = default_scores or {
            "performance": 90.0,
            "accessibility": 80.0,
            "best-practices": 70.0,
            "seo": 60.0,
        }
        self.calls: list[tuple[str, JobOptions]] = []
        self.active = 0
        self.max_active = 0

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def calls_for(self, target: str) -> list[JobOptions]:
        return [options for t, options in self.calls if t == target]

    async def run_audit(
        self,
        target: str,
        categories: Sequence[str],
        options: JobOptions,
        browser: BrowserSession,
        output_dir: Path,
    ) -> AuditReport:
        self.calls.append((target, options))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            delay = (
                self.latency.get(target, 0.0)
                if isinstance(self.latency, dict)
                else self.latency
            )
            if delay:
                await asyncio.sleep(delay)
            pending = self.failures.get(target)
            if pending:
                raise pending.pop(0)
            scores = self.scores.get(target, self.default_scores)
            return AuditReport(
                scores={c: s for c, s in scores.items() if c in categories},
                report_artifact=str(output_dir / "report.html"),
                summary_artifact=str(output_dir / "summary.json"),
                metrics={
                    "first-contentful-paint": MetricSnapshot(
                        title="First Contentful Paint",
                        display_value="1.2 s",
                        numeric_value=1200.0,
                        score=0.9,
                    ),
                },
            )
        finally:
            self.active -= 1


class FakeScreenshotEngine(BaseScreenshotEngine):
    def __init__(self, error: BaseException | None = None) -> None:
        self.error = error
        self.captured: list[tuple[str, Path, ScreenshotOptions]] = []

    async def capture(
        self,
        target: str,
        output_path: Path,
        options: ScreenshotOptions,
        browser: BrowserSession,
    ) -> Path:
        self.captured.append((target, output_path, options))
        if self.error is not None:
            raise self.error
        return output_path


class FakeLauncher(BaseBrowserLauncher):
    """Hands out fake sessions and records how many are open at once."""

    def __init__(self, launch_failures: int = 0) -> None:
        self.launch_failures = launch_failures
        self.opened = 0
        self.closed = 0
        self.active = 0
        self.max_active = 0

    @asynccontextmanager
    async def session(self) -> AsyncIterator[BrowserSession]:
        if self.launch_failures > 0:
            from auditbatch.core.errors import ResourceExhaustionError

            self.launch_failures -= 1
            raise ResourceExhaustionError("Failed to launch Chrome: fake")
        self.opened += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            yield BrowserSession(port=9222 + self.opened)
        finally:
            self.active -= 1
            self.closed += 1


class ManualClock:
    """Injectable clock advanced by hand."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


async def no_sleep(delay: float) -> None:
    """Sleep replacement that records nothing and yields once."""
    await asyncio.sleep(0)


# === FIXTURES: Options & results ===


@pytest.fixture
def fast_options(tmp_path: Path) -> JobOptions:
    """Job options with zero backoff, no warm-up and output under tmp_path."""
    return JobOptions(
        output_dir=str(tmp_path / "reports"),
        capture_screenshot=False,
        retry=RetryPolicy(
            max_retries=2,
            base_delay_s=0.0,
            attempt_timeout_s=5.0,
            timeout_step_s=0.0,
            warmup_enabled=False,
        ),
    )


@pytest.fixture
def sample_success() -> JobSuccess:
    """Minimal valid JobSuccess."""
    return JobSuccess(
        target="https://example.com",
        scores={"performance": 91.0, "seo": 88.5},
        artifact_refs=("reports/example.com/report.html",),
        metrics={"metrics": {}},
        timestamp=datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def audit_engine() -> FakeAuditEngine:
    return FakeAuditEngine()


@pytest.fixture
def launcher() -> FakeLauncher:
    return FakeLauncher()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


# === FIXTURES: Temp dirs ===


@pytest.fixture
def tmp_output_dir(tmp_path: Path) -> Path:
    """Temporary output directory."""
    out = tmp_path / "output"
    out.mkdir()
    return out


@pytest.fixture
def tmp_cache_dir(tmp_path: Path) -> Path:
    """Temporary cache directory."""
    cache = tmp_path / "cache"
    cache.mkdir()
    return cache


@pytest.fixture(autouse=True)
def _reset_log_context():
    clear_context()
    yield
    clear_context()
