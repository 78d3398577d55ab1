# tests/integration/logging/test_int_logging_subsystem.py — v2
"""Integration tests for logging during a concurrent batch.

Every record emitted from inside a job carries that job's own target,
even while several jobs interleave on the event loop.
"""

from __future__ import annotations

import json
import logging

import pytest

from auditbatch.batch.orchestrator import execute_batch
from auditbatch.core.models import BatchLimits
from auditbatch.logging.logger import setup_logging
from tests.conftest import FakeAuditEngine, FakeLauncher


@pytest.fixture
def json_log_file(tmp_path):
    log_file = tmp_path / "logs" / "batch.log"
    setup_logging(level="DEBUG", log_format="json", log_file=str(log_file))
    yield log_file
    root = logging.getLogger("auditbatch")
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()


class TestBatchLogging:

    @pytest.mark.asyncio
    async def test_records_carry_their_own_target(self, fast_options, json_log_file):
        targets = [f"https://site{i}.example" for i in range(4)]
        engine = FakeAuditEngine(latency={t: 0.01 * (4 - i) for i, t in enumerate(targets)})
        await execute_batch(
            targets, fast_options, BatchLimits(max_concurrent=4),
            audit_engine=engine, launcher=FakeLauncher(),
        )
        for handler in logging.getLogger("auditbatch").handlers:
            handler.flush()

        entries = [json.loads(line) for line in json_log_file.read_text(encoding="utf-8").splitlines()]
        done = [e for e in entries if e["message"].endswith(" done")]
        assert len(done) == 4
        batch_ids = {e["context"]["batch_id"] for e in done}
        assert len(batch_ids) == 1
        for entry in done:
            assert entry["context"]["target"] in targets
            assert entry["context"]["target"] in entry["message"]
            assert "job_key" in entry["context"]
