# src/collaborators/base.py — v1
"""Abstract collaborator interfaces consumed by the job runner.

Implementations raise members of ``auditbatch.core.errors``:
``AuditError`` subclasses from the audit engine, ``CaptureError`` from the
screenshot engine and ``ResourceExhaustionError`` from the browser launcher.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import AsyncContextManager, Sequence

from auditbatch.collaborators.models import AuditReport, BrowserSession
from auditbatch.core.models import JobOptions, ScreenshotOptions


class BaseAuditEngine(ABC):
    """Produces category scores and a report for one target."""

    @abstractmethod
    async def run_audit(
        self,
        target: str,
        categories: Sequence[str],
        options: JobOptions,
        browser: BrowserSession,
        output_dir: Path,
    ) -> AuditReport:
        """Audit target inside the given browser session."""


class BaseScreenshotEngine(ABC):
    """Renders a target to an image file."""

    @abstractmethod
    async def capture(
        self,
        target: str,
        output_path: Path,
        options: ScreenshotOptions,
        browser: BrowserSession,
    ) -> Path:
        """Capture target to output_path and return the written path."""


class BaseBrowserLauncher(ABC):
    """Hands out browser sessions; each session is one external resource."""

    @abstractmethod
    def session(self) -> AsyncContextManager[BrowserSession]:
        """Launch a browser, yield it and shut it down on exit."""
