# tests/integration/conftest.py — v8
"""Shared fixtures for integration tests.

Batch scenarios run the real orchestrator, limiter, retry executor and
cache stores against the in-memory collaborator fakes from
``tests/conftest.py``. The Redis backend is exercised only when
``AUDITBATCH_TEST_REDIS_URL`` points at a reachable server.
"""

from __future__ import annotations

import os

import pytest


# ── Pytest markers ──────────────────────────────────────────────

def pytest_configure(config):
    config.addinivalue_line("markers", "redis: marks tests requiring a Redis server")


# ── Redis ───────────────────────────────────────────────────────

REDIS_URL = os.environ.get("AUDITBATCH_TEST_REDIS_URL", "")

skip_no_redis = pytest.mark.skipif(
    not REDIS_URL, reason="AUDITBATCH_TEST_REDIS_URL not set",
)


@pytest.fixture
def redis_url() -> str:
    return REDIS_URL
