# src/collaborators/playwright_screenshot.py — v1
"""Screenshot engine using Playwright over the session's debugging port.

Requires 'playwright' package: pip install playwright.
"""

from __future__ import annotations

import logging
from pathlib import Path

from auditbatch.collaborators.base import BaseScreenshotEngine
from auditbatch.collaborators.models import BrowserSession
from auditbatch.core.errors import CaptureError
from auditbatch.core.models import ScreenshotOptions

logger = logging.getLogger(__name__)


class PlaywrightScreenshotEngine(BaseScreenshotEngine):
    """Capture full-page screenshots by attaching to the launched Chrome."""

    def __init__(self, host: str = "127.0.0.1") -> None:
        try:
            from playwright.async_api import async_playwright
        except ImportError as e:
            raise ImportError(
                "playwright package required: pip install playwright"
            ) from e

        self._async_playwright = async_playwright
        self._host = host

    async def capture(
        self,
        target: str,
        output_path: Path,
        options: ScreenshotOptions,
        browser: BrowserSession,
    ) -> Path:
        """Navigate to target and write a PNG to output_path."""
        from playwright.async_api import Error as PlaywrightError

        output_path.parent.mkdir(parents=True, exist_ok=True)
        timeout_ms = options.timeout_s * 1000
        logger.info("Capturing screenshot of %s (wait_until=%s)", target, options.wait_until)

        try:
            async with self._async_playwright() as pw:
                remote = await pw.chromium.connect_over_cdp(
                    f"http://{self._host}:{browser.port}"
                )
                context = await remote.new_context(
                    device_scale_factor=options.device_scale_factor
                )
                try:
                    page = await context.new_page()
                    page.set_default_timeout(timeout_ms)
                    await page.goto(
                        target, wait_until=options.wait_until, timeout=timeout_ms
                    )
                    await page.screenshot(path=str(output_path), full_page=options.full_page)
                finally:
                    await context.close()
        except PlaywrightError as e:
            raise CaptureError(f"Screenshot of {target} failed: {e}") from e

        logger.info("Screenshot saved to %s", output_path)
        return output_path
