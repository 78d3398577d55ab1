# tests/unit/collaborators/test_unit_chrome.py — v1
"""Tests for collaborators/chrome.py — command line and launch failures."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from auditbatch.collaborators.chrome import DEFAULT_FLAGS, ChromeLauncher
from auditbatch.core.errors import ResourceExhaustionError


class TestBuildCommand:
    def test_flags_and_port(self):
        cmd = ChromeLauncher("chromium").build_command(9333)
        assert cmd[0] == "chromium"
        assert all(flag in cmd for flag in DEFAULT_FLAGS)
        assert "--remote-debugging-port=9333" in cmd


class TestSession:
    @pytest.mark.asyncio
    async def test_launch_failure_is_resource_exhaustion(self):
        launcher = ChromeLauncher("/missing/chrome", port=9222, startup_delay_s=0)
        with patch(
            "auditbatch.collaborators.chrome.asyncio.create_subprocess_exec",
            AsyncMock(side_effect=FileNotFoundError("/missing/chrome")),
        ):
            with pytest.raises(ResourceExhaustionError):
                async with launcher.session():
                    pass

    @pytest.mark.asyncio
    async def test_early_exit_is_resource_exhaustion(self):
        process = MagicMock(returncode=1, pid=42)
        launcher = ChromeLauncher(port=9222, startup_delay_s=0)
        with patch(
            "auditbatch.collaborators.chrome.asyncio.create_subprocess_exec",
            AsyncMock(return_value=process),
        ):
            with pytest.raises(ResourceExhaustionError, match="exited"):
                async with launcher.session():
                    pass

    @pytest.mark.asyncio
    async def test_process_terminated_on_exit(self):
        process = MagicMock(returncode=None, pid=42)

        def _terminate():
            process.returncode = -15

        process.terminate.side_effect = _terminate
        process.wait = AsyncMock(return_value=-15)
        launcher = ChromeLauncher(port=9250, startup_delay_s=0)
        with patch(
            "auditbatch.collaborators.chrome.asyncio.create_subprocess_exec",
            AsyncMock(return_value=process),
        ):
            with pytest.raises(RuntimeError):
                async with launcher.session() as session:
                    assert session.port == 9250
                    raise RuntimeError("audit blew up")
        process.terminate.assert_called_once()
        process.kill.assert_not_called()
