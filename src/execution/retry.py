# src/execution/retry.py — v1
"""Bounded retry around single audit attempts.

Each attempt opens its own browser session and runs under a deadline
that grows with the retry number. Failures are classified into the error
taxonomy: non-retryable kinds fail the job at once, retryable kinds are
retried after a backoff delay with a relaxed attempt policy until the
budget is spent. ``RetryExecutor.run`` always returns a result; only
cancellation propagates.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterable

from auditbatch.collaborators.base import BaseBrowserLauncher
from auditbatch.collaborators.warmup import warm_up
from auditbatch.core.errors import TransientAuditError, classify_error
from auditbatch.core.models import JobFailure, JobOptions, JobResult, JobSuccess, RetryPolicy
from auditbatch.execution.job import AuditJob
from auditbatch.execution.policy import (
    DEFAULT_FLAKY_AUDITS,
    AttemptPolicy,
    JobPhase,
    JobState,
    next_policy,
)
from auditbatch.logging.context import set_attempt_context

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]
WarmUp = Callable[[str], Awaitable[None]]


def compute_backoff(retry: RetryPolicy, retry_number: int) -> float:
    """Delay before retry ``retry_number`` (1-indexed)."""
    if retry_number < 1:
        return 0.0
    if retry.backoff == "exponential":
        return retry.base_delay_s * (2 ** (retry_number - 1))
    return retry.base_delay_s * retry_number


def attempt_deadline(retry: RetryPolicy, retry_number: int) -> float:
    """Wall-clock budget for the attempt following ``retry_number`` retries."""
    return retry.attempt_timeout_s + retry_number * retry.timeout_step_s


class RetryExecutor:
    """Run one job to a terminal ``JobSuccess`` or ``JobFailure``."""

    def __init__(
        self,
        job: AuditJob,
        launcher: BaseBrowserLauncher,
        flaky_audits: Iterable[str] = DEFAULT_FLAKY_AUDITS,
        sleep: Sleep = asyncio.sleep,
        warmup: WarmUp | None = warm_up,
    ) -> None:
        self._job = job
        self._launcher = launcher
        self._flaky_audits = tuple(flaky_audits)
        self._sleep = sleep
        self._warmup = warmup

    async def _attempt(self, target: str, options: JobOptions) -> JobSuccess:
        async with self._launcher.session() as browser:
            return await self._job.run_attempt(target, options, browser)

    async def run(self, target: str, options: JobOptions) -> JobResult:
        retry = options.retry
        state = JobState(target=target)
        policy = AttemptPolicy.initial(options)
        initial_timeout_s = policy.navigation_timeout_s
        current = options

        while True:
            state.transition(JobPhase.RUNNING)
            set_attempt_context(state.attempts)
            retries_done = state.attempts - 1
            deadline = attempt_deadline(retry, retries_done)
            logger.info(
                "Auditing %s (attempt %d/%d, wait_until=%s, deadline %.0fs)",
                target, state.attempts, retry.max_retries + 1,
                policy.wait_until, deadline,
            )

            try:
                result = await asyncio.wait_for(
                    self._attempt(target, current), timeout=deadline
                )
            except asyncio.TimeoutError as e:
                error = TransientAuditError(
                    f"Attempt {state.attempts} exceeded its {deadline:g}s deadline"
                )
                error.__cause__ = e
            except Exception as e:
                error = classify_error(e)
            else:
                state.transition(JobPhase.SUCCESS)
                logger.info("Audit of %s succeeded after %d attempt(s)", target, state.attempts)
                return result.model_copy(update={"attempts": state.attempts})

            state.last_error = error
            if not error.retryable or retries_done >= retry.max_retries:
                state.transition(JobPhase.FAILED)
                logger.error(
                    "Audit of %s failed after %d attempt(s) (%s): %s",
                    target, state.attempts, error.kind, error,
                )
                return JobFailure(
                    target=target,
                    error_kind=error.kind,
                    message=str(error) or type(error).__name__,
                    attempts=state.attempts,
                )

            state.transition(JobPhase.RETRYING)
            retry_number = retries_done + 1
            policy = next_policy(
                policy, error, retry_number, initial_timeout_s, retry, self._flaky_audits
            )
            current = policy.apply(options)
            delay = compute_backoff(retry, retry_number)
            logger.warning(
                "Audit of %s - %s (attempt %d/%d), retrying in %.1fs: %s",
                target, error.kind, state.attempts, retry.max_retries + 1, delay, error,
            )
            await self._sleep(delay)

            if retry.warmup_enabled and self._warmup is not None:
                await self._warmup(target)
                await self._sleep(retry.warmup_pause_s)
