# src/execution/policy.py — v1
"""Per-job execution state: lifecycle phase and the relaxing attempt policy.

``AttemptPolicy`` is carried by a single job across its attempts. It only
ever moves towards looser settings (later wait condition, longer timeout,
more skipped audits) and is applied to the job's own copy of the options.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable

from auditbatch.core.errors import AuditBatchError
from auditbatch.core.models import JobOptions, RetryPolicy, WaitCondition

# Strictest first.
WAIT_CONDITIONS: tuple[WaitCondition, ...] = ("networkidle", "load", "domcontentloaded")

DEFAULT_FLAKY_AUDITS: tuple[str, ...] = (
    "screenshot-thumbnails",
    "final-screenshot",
    "full-page-screenshot",
)

NAVIGATION_PATTERNS: tuple[str, ...] = (
    "lh:driver:navigate",
    "navigation timeout",
    "navigation timed out",
    "page.goto",
    "waiting until",
    "networkidle",
    "no_fcp",
    "page_hung",
    "ms exceeded",
)


def is_navigation_failure(error: BaseException) -> bool:
    """True when the error signature points at a page-readiness timeout."""
    message = str(error).lower()
    return any(p in message for p in NAVIGATION_PATTERNS)


class JobPhase(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    RETRYING = "retrying"
    SUCCESS = "success"
    FAILED = "failed"


_ALLOWED: dict[JobPhase, frozenset[JobPhase]] = {
    JobPhase.PENDING: frozenset({JobPhase.RUNNING}),
    JobPhase.RUNNING: frozenset({JobPhase.SUCCESS, JobPhase.RETRYING, JobPhase.FAILED}),
    JobPhase.RETRYING: frozenset({JobPhase.RUNNING}),
    JobPhase.SUCCESS: frozenset(),
    JobPhase.FAILED: frozenset(),
}


@dataclass
class JobState:
    """Lifecycle of one job inside the retry executor."""

    target: str
    phase: JobPhase = JobPhase.PENDING
    attempts: int = 0
    history: list[JobPhase] = field(default_factory=lambda: [JobPhase.PENDING])
    last_error: AuditBatchError | None = None

    def transition(self, phase: JobPhase) -> None:
        if phase not in _ALLOWED[self.phase]:
            raise RuntimeError(f"Illegal job transition {self.phase.value} -> {phase.value}")
        self.phase = phase
        self.history.append(phase)
        if phase is JobPhase.RUNNING:
            self.attempts += 1

    @property
    def terminal(self) -> bool:
        return self.phase in (JobPhase.SUCCESS, JobPhase.FAILED)


@dataclass(frozen=True)
class AttemptPolicy:
    """Execution settings for the next attempt of one job."""

    wait_until: WaitCondition
    navigation_timeout_s: float
    skip_audits: tuple[str, ...] = ()

    @classmethod
    def initial(cls, options: JobOptions) -> AttemptPolicy:
        return cls(
            wait_until=options.screenshot.wait_until,
            navigation_timeout_s=options.screenshot.timeout_s,
            skip_audits=tuple(options.skip_audits),
        )

    def relax_wait(self) -> AttemptPolicy:
        """Step one wait condition looser (no-op at the loosest)."""
        index = WAIT_CONDITIONS.index(self.wait_until)
        return replace(self, wait_until=WAIT_CONDITIONS[min(index + 1, len(WAIT_CONDITIONS) - 1)])

    def at_least(self, condition: WaitCondition) -> AttemptPolicy:
        """Ensure the wait condition is no stricter than condition."""
        if WAIT_CONDITIONS.index(self.wait_until) >= WAIT_CONDITIONS.index(condition):
            return self
        return replace(self, wait_until=condition)

    def with_timeout(self, timeout_s: float) -> AttemptPolicy:
        return replace(self, navigation_timeout_s=max(self.navigation_timeout_s, timeout_s))

    def with_skipped(self, audits: Iterable[str]) -> AttemptPolicy:
        merged = list(self.skip_audits)
        merged.extend(a for a in audits if a not in merged)
        return replace(self, skip_audits=tuple(merged))

    def apply(self, options: JobOptions) -> JobOptions:
        """Return a copy of options with this policy applied."""
        screenshot = options.screenshot.model_copy(update={
            "wait_until": self.wait_until,
            "timeout_s": self.navigation_timeout_s,
        })
        return options.model_copy(update={
            "screenshot": screenshot,
            "skip_audits": self.skip_audits,
        })


def next_policy(
    policy: AttemptPolicy,
    error: BaseException,
    retry_number: int,
    initial_timeout_s: float,
    retry: RetryPolicy,
    flaky_audits: Iterable[str] = DEFAULT_FLAKY_AUDITS,
) -> AttemptPolicy:
    """Derive the policy for retry ``retry_number`` (1-indexed) after error."""
    updated = policy.with_timeout(initial_timeout_s + retry_number * retry.timeout_step_s)
    if is_navigation_failure(error):
        updated = updated.relax_wait().with_skipped(flaky_audits)
    if retry_number >= 2:
        updated = updated.at_least("load")
    return updated
