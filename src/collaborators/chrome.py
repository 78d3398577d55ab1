# src/collaborators/chrome.py — v1
"""Headless Chrome launcher with a remote debugging port.

Each ``session()`` spawns its own Chrome process and kills it on exit,
including when the enclosing attempt fails or is cancelled.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from contextlib import asynccontextmanager
from typing import AsyncIterator, Sequence

from auditbatch.collaborators.base import BaseBrowserLauncher
from auditbatch.collaborators.models import BrowserSession
from auditbatch.core.errors import ResourceExhaustionError

logger = logging.getLogger(__name__)

DEFAULT_FLAGS: tuple[str, ...] = (
    "--headless",
    "--disable-gpu",
    "--no-sandbox",
    "--disable-dev-shm-usage",
)


def _free_port() -> int:
    """Ask the OS for an unused TCP port."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class ChromeLauncher(BaseBrowserLauncher):
    """Launch Chrome processes for audit attempts."""

    def __init__(
        self,
        chrome_path: str = "google-chrome",
        flags: Sequence[str] = DEFAULT_FLAGS,
        port: int = 0,
        startup_delay_s: float = 2.0,
        shutdown_timeout_s: float = 5.0,
    ) -> None:
        self._chrome_path = chrome_path
        self._flags = tuple(flags)
        self._port = port
        self._startup_delay_s = startup_delay_s
        self._shutdown_timeout_s = shutdown_timeout_s

    def build_command(self, port: int) -> list[str]:
        return [
            self._chrome_path,
            *self._flags,
            f"--remote-debugging-port={port}",
            "about:blank",
        ]

    @asynccontextmanager
    async def session(self) -> AsyncIterator[BrowserSession]:
        """Start Chrome, wait for it to settle and yield the session."""
        # A fixed port only works with one browser at a time.
        port = self._port or _free_port()
        try:
            process = await asyncio.create_subprocess_exec(
                *self.build_command(port),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            raise ResourceExhaustionError(
                f"Failed to launch Chrome ({self._chrome_path}): {e}"
            ) from e

        try:
            await asyncio.sleep(self._startup_delay_s)
            if process.returncode is not None:
                raise ResourceExhaustionError(
                    f"Chrome exited during startup (code {process.returncode})"
                )
            logger.debug("Chrome started on debugging port %d (pid %s)", port, process.pid)
            yield BrowserSession(port=port, handle=process)
        finally:
            await self._shutdown(process)

    async def _shutdown(self, process: asyncio.subprocess.Process) -> None:
        if process.returncode is not None:
            return
        process.terminate()
        try:
            await asyncio.wait_for(process.wait(), timeout=self._shutdown_timeout_s)
        except asyncio.TimeoutError:
            logger.warning("Chrome (pid %s) did not exit, killing it", process.pid)
            process.kill()
            await process.wait()
        logger.debug("Chrome (pid %s) closed", process.pid)
