# src/core/models.py — v1
"""Core value objects: job options, job keys, job results and batch outcomes.

All models are immutable once built. Options are passed by value into every
job; per-job adjustments are made on copies (``model_copy``).
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from auditbatch.core.errors import ConfigurationError

DEFAULT_CATEGORIES: tuple[str, ...] = (
    "performance",
    "accessibility",
    "best-practices",
    "seo",
)

WaitCondition = Literal["networkidle", "load", "domcontentloaded"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _Frozen(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class ScreenshotOptions(_Frozen):
    """Parameters handed to the screenshot collaborator."""

    full_page: bool = True
    timeout_s: float = Field(default=30.0, gt=0)
    wait_until: WaitCondition = "networkidle"
    device_scale_factor: float = Field(default=1.0, gt=0)


class RetryPolicy(_Frozen):
    """Retry and backoff bounds for a single job."""

    max_retries: int = Field(default=2, ge=0)
    base_delay_s: float = Field(default=5.0, ge=0)
    backoff: Literal["linear", "exponential"] = "linear"
    attempt_timeout_s: float = Field(default=120.0, gt=0)
    timeout_step_s: float = Field(default=30.0, ge=0)
    warmup_enabled: bool = False
    warmup_pause_s: float = Field(default=2.0, ge=0)


class JobOptions(_Frozen):
    """Immutable configuration bundle for one audit job."""

    categories: tuple[str, ...] = DEFAULT_CATEGORIES
    output_format: Literal["html", "json"] = "html"
    output_dir: str = "./reports"
    create_target_subdir: bool = True
    capture_screenshot: bool = True
    screenshot: ScreenshotOptions = Field(default_factory=ScreenshotOptions)
    skip_audits: tuple[str, ...] = ()
    retry: RetryPolicy = Field(default_factory=RetryPolicy)

    @field_validator("categories")
    @classmethod
    def validate_categories(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        if not v:
            raise ValueError("at least one audit category is required")
        return v

    @classmethod
    def from_mapping(cls, data: dict[str, Any] | None) -> JobOptions:
        """Build options from a user-supplied mapping (camelCase or snake_case).

        Raises:
            ConfigurationError: If the mapping does not describe valid options.
        """
        try:
            return cls.model_validate(data or {})
        except ValidationError as e:
            raise ConfigurationError(f"Invalid job options: {e}") from e

    def cache_identity(self) -> dict[str, Any]:
        """Fields that determine the produced result (retry bounds excluded)."""
        return self.model_dump(mode="json", exclude={"retry"})


class BatchLimits(_Frozen):
    """Batch-wide execution limits."""

    max_concurrent: int = Field(default=3, ge=1)
    max_retries: int = Field(default=2, ge=0)
    cache_duration_s: float = Field(default=3600.0, gt=0)


class JobKey(BaseModel):
    """Deterministic identity of a job: SHA-256 over (target, options)."""

    model_config = ConfigDict(frozen=True)

    digest: str
    target: str

    @classmethod
    def derive(cls, target: str, options: JobOptions) -> JobKey:
        payload = json.dumps(
            {"target": target, "options": options.cache_identity()},
            sort_keys=True,
            separators=(",", ":"),
        )
        digest = hashlib.sha256(payload.encode("utf-8")).hexdigest()
        return cls(digest=digest, target=target)

    def __str__(self) -> str:
        return self.digest


class JobSuccess(BaseModel):
    """Successful audit of one target."""

    model_config = ConfigDict(frozen=True)

    status: Literal["success"] = "success"
    target: str
    scores: dict[str, float]
    artifact_refs: tuple[str, ...] = ()
    metrics: dict[str, Any] = Field(default_factory=dict)
    attempts: int = 1
    from_cache: bool = False
    timestamp: datetime = Field(default_factory=utcnow)

    @field_validator("scores")
    @classmethod
    def validate_scores(cls, v: dict[str, float]) -> dict[str, float]:
        for category, score in v.items():
            if not 0.0 <= score <= 100.0:
                raise ValueError(f"score for {category!r} out of range: {score}")
        return v


class JobFailure(BaseModel):
    """Terminal failure of one target after the retry budget was spent."""

    model_config = ConfigDict(frozen=True)

    status: Literal["failure"] = "failure"
    target: str
    error_kind: str
    message: str
    attempts: int = 1
    timestamp: datetime = Field(default_factory=utcnow)


JobResult = Annotated[Union[JobSuccess, JobFailure], Field(discriminator="status")]


class TargetOutcome(BaseModel):
    """A job result tagged with the originating target and its input position."""

    model_config = ConfigDict(frozen=True)

    index: int
    target: str
    result: JobResult

    @property
    def succeeded(self) -> bool:
        return isinstance(self.result, JobSuccess)


class BatchOutcome(BaseModel):
    """Per-target results of one batch, in input order."""

    model_config = ConfigDict(frozen=True)

    outcomes: tuple[TargetOutcome, ...] = ()
    started_at: datetime = Field(default_factory=utcnow)
    finished_at: datetime = Field(default_factory=utcnow)
    elapsed_seconds: float = 0.0

    def __len__(self) -> int:
        return len(self.outcomes)

    @property
    def targets(self) -> list[str]:
        return [o.target for o in self.outcomes]

    @property
    def successes(self) -> list[JobSuccess]:
        return [o.result for o in self.outcomes if isinstance(o.result, JobSuccess)]

    @property
    def failures(self) -> list[JobFailure]:
        return [o.result for o in self.outcomes if isinstance(o.result, JobFailure)]
