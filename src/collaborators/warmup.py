# src/collaborators/warmup.py — v1
"""Connection warm-up issued before a retry.

A plain GET primes DNS, TLS and server-side caches so the next audit
attempt starts against a warm origin. Warm-up failures are logged and
otherwise ignored: the retry proceeds either way.
"""

from __future__ import annotations

import asyncio
import http.client
import logging
import urllib.request

logger = logging.getLogger(__name__)


def _fetch(target: str, timeout_s: float) -> int:
    request = urllib.request.Request(target, headers={"User-Agent": "auditbatch-warmup"})
    with urllib.request.urlopen(request, timeout=timeout_s) as response:  # noqa: S310
        while response.read(64 * 1024):
            pass
        return response.status


async def warm_up(target: str, timeout_s: float = 10.0) -> None:
    """Fetch target once, ignoring any failure."""
    logger.info("Warming up connection to %s", target)
    try:
        status = await asyncio.to_thread(_fetch, target, timeout_s)
    except (OSError, ValueError, http.client.HTTPException) as e:
        logger.info("Warm-up request to %s failed, continuing: %s", target, e)
        return
    logger.debug("Warm-up request to %s returned %d", target, status)
