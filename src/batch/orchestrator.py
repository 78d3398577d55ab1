# src/batch/orchestrator.py — v2
"""Batch orchestrator: fan out one job per target, fan in ordered outcomes.

Workflow per target:
    0. Join an in-flight job with the same key, if any.
    1. Cache lookup; a fresh hit short-circuits.
    2. Acquire a limiter slot, run the retry executor, store a success.
    3. Release the slot; record the outcome at the target's input index.

All targets are dispatched at once. The limiter is the only point where
jobs wait for each other, and no target's failure affects its siblings.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import Any, Sequence

from auditbatch.cache.base_cache_store import BaseCacheStore
from auditbatch.cache.result_cache import ResultCache
from auditbatch.collaborators.base import (
    BaseAuditEngine,
    BaseBrowserLauncher,
    BaseScreenshotEngine,
)
from auditbatch.core.models import (
    BatchLimits,
    BatchOutcome,
    JobFailure,
    JobKey,
    JobOptions,
    JobResult,
    JobSuccess,
    TargetOutcome,
    utcnow,
)
from auditbatch.execution.job import AuditJob
from auditbatch.execution.policy import DEFAULT_FLAKY_AUDITS
from auditbatch.execution.retry import RetryExecutor
from auditbatch.logging.context import set_batch_context, set_target_context
from auditbatch.reporting.aggregator import summarize
from auditbatch.reporting.models import Summary
from auditbatch.scheduling.limiter import ConcurrencyLimiter

logger = logging.getLogger(__name__)


class BatchOrchestrator:
    """Run a batch of audit jobs under a shared limiter and cache."""

    def __init__(
        self,
        executor: RetryExecutor,
        limiter: ConcurrencyLimiter,
        cache: ResultCache | None = None,
        sweep_on_start: bool = False,
    ) -> None:
        self._executor = executor
        self._limiter = limiter
        self._cache = cache
        self._sweep_on_start = sweep_on_start
        self._completed = 0
        self._inflight: dict[str, asyncio.Future[JobResult]] = {}

    @property
    def limiter(self) -> ConcurrencyLimiter:
        return self._limiter

    async def run(self, targets: Sequence[str], options: JobOptions) -> BatchOutcome:
        """Audit every target and return outcomes in input order."""
        started_at = utcnow()
        t0 = time.monotonic()
        set_batch_context(uuid.uuid4().hex[:12])
        self._completed = 0

        if self._cache is not None and self._sweep_on_start:
            await self._cache.sweep()

        logger.info(
            "Starting batch of %d targets (max %d concurrent)",
            len(targets), self._limiter.capacity,
        )
        outcomes = await asyncio.gather(*(
            self._run_target(index, target, options, len(targets))
            for index, target in enumerate(targets)
        ))
        elapsed = time.monotonic() - t0

        outcome = BatchOutcome(
            outcomes=tuple(sorted(outcomes, key=lambda o: o.index)),
            started_at=started_at,
            finished_at=utcnow(),
            elapsed_seconds=elapsed,
        )
        logger.info(
            "Batch finished in %.1fs: %d succeeded, %d failed",
            elapsed, len(outcome.successes), len(outcome.failures),
        )
        return outcome

    async def _run_target(
        self, index: int, target: str, options: JobOptions, total: int
    ) -> TargetOutcome:
        set_target_context(target, JobKey.derive(target, options).digest[:12])
        try:
            result = await self._execute(target, options)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("Unexpected error while processing %s", target)
            result = JobFailure(
                target=target,
                error_kind="internal",
                message=f"{type(e).__name__}: {e}",
            )

        self._completed += 1
        if isinstance(result, JobSuccess):
            source = " (cached)" if result.from_cache else ""
            logger.info("[%d/%d] %s done%s", self._completed, total, target, source)
        else:
            logger.info(
                "[%d/%d] %s failed: %s", self._completed, total, target, result.message
            )
        return TargetOutcome(index=index, target=target, result=result)

    async def _execute(self, target: str, options: JobOptions) -> JobResult:
        """Run the job at most once per key: later duplicates share the first result."""
        key = JobKey.derive(target, options).digest
        pending = self._inflight.get(key)
        if pending is not None:
            logger.debug("Joining in-flight job for %s", target)
            return await asyncio.shield(pending)

        future: asyncio.Future[JobResult] = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            result = await self._execute_fresh(target, options)
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Mark retrieved; followers, if any, still receive it.
            future.exception()
            raise
        else:
            future.set_result(result)
            return result
        finally:
            self._inflight.pop(key, None)

    async def _execute_fresh(self, target: str, options: JobOptions) -> JobResult:
        if self._cache is not None:
            cached = await self._cache.lookup(target, options)
            if cached is not None:
                return cached

        async with self._limiter.slot():
            result = await self._executor.run(target, options)
            if self._cache is not None and isinstance(result, JobSuccess):
                await self._cache.store(target, options, result)
        return result


async def execute_batch(
    targets: Sequence[str],
    options: JobOptions,
    limits: BatchLimits,
    *,
    audit_engine: BaseAuditEngine,
    launcher: BaseBrowserLauncher,
    screenshot_engine: BaseScreenshotEngine | None = None,
    cache_store: BaseCacheStore | None = None,
    sweep_on_start: bool = True,
    flaky_audits: Sequence[str] = DEFAULT_FLAKY_AUDITS,
) -> BatchOutcome:
    """Wire limiter, cache and executor from limits and run the batch.

    ``limits.max_retries`` overrides the retry budget carried in options.
    """
    options = options.model_copy(update={
        "retry": options.retry.model_copy(update={"max_retries": limits.max_retries}),
    })
    cache = (
        ResultCache(cache_store, cache_duration=limits.cache_duration_s)
        if cache_store is not None
        else None
    )
    executor = RetryExecutor(
        AuditJob(audit_engine, screenshot_engine),
        launcher,
        flaky_audits=flaky_audits,
    )
    orchestrator = BatchOrchestrator(
        executor,
        ConcurrencyLimiter(limits.max_concurrent),
        cache=cache,
        sweep_on_start=sweep_on_start,
    )
    return await orchestrator.run(targets, options)


async def run_batch(
    targets: Sequence[str],
    options: JobOptions,
    limits: BatchLimits,
    **collaborators: Any,
) -> Summary:
    """Run a batch and return its aggregated summary.

    Keyword arguments are passed to ``execute_batch``.
    """
    outcome = await execute_batch(targets, options, limits, **collaborators)
    return summarize(outcome, options.categories)
