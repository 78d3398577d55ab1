# src/scheduling/limiter.py — v1
"""Concurrency limiter: counting semaphore with a FIFO wait queue.

Bounds the number of jobs holding an external resource (browser instance)
at the same time. All state lives on the event loop thread, so the counter
is only ever mutated by one task at a time.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from contextlib import asynccontextmanager
from typing import AsyncIterator

from auditbatch.core.errors import ConfigurationError

logger = logging.getLogger(__name__)


class ConcurrencyLimiter:
    """Limit in-flight jobs to ``capacity``, serving waiters in arrival order.

    ``release()`` hands the slot directly to the oldest waiter instead of
    decrementing the counter, so a late arrival can never overtake a queued
    task and ``in_use <= capacity`` holds at all times.
    """

    def __init__(self, capacity: int = 3) -> None:
        if capacity < 1:
            raise ConfigurationError(f"Limiter capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._in_use = 0
        self._peak = 0
        self._waiters: deque[asyncio.Future[None]] = deque()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def in_use(self) -> int:
        return self._in_use

    @property
    def waiting(self) -> int:
        return sum(1 for w in self._waiters if not w.done())

    @property
    def peak_in_use(self) -> int:
        """Highest number of simultaneously held slots observed."""
        return self._peak

    async def acquire(self) -> None:
        """Wait until a slot is free, then take it."""
        if self._in_use < self._capacity and not self._waiters:
            self._in_use += 1
            self._peak = max(self._peak, self._in_use)
            return

        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        logger.debug(
            "Waiting for slot (%d/%d in use, %d queued)",
            self._in_use, self._capacity, len(self._waiters),
        )
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # Slot was handed over just before cancellation: pass it on.
                self.release()
            else:
                try:
                    self._waiters.remove(waiter)
                except ValueError:
                    pass
            raise

    def release(self) -> None:
        """Return a slot, waking the next live waiter if there is one."""
        if self._in_use <= 0:
            raise RuntimeError("release() called without a held slot")
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return
        self._in_use -= 1

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        """Hold one slot for the duration of the block."""
        await self.acquire()
        try:
            yield
        finally:
            self.release()
