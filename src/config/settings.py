# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for deployment-specific settings: concurrency and
retry bounds, cache backend, output locations, browser and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from auditbatch.core.errors import ConfigurationError
from auditbatch.core.models import (
    DEFAULT_CATEGORIES,
    BatchLimits,
    JobOptions,
    RetryPolicy,
    ScreenshotOptions,
)

__all__ = ["ConfigurationError", "Settings", "load_settings"]


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Concurrency & retry ===
    max_concurrent: int = 3
    max_retries: int = 2
    base_delay_s: float = 5.0
    backoff: Literal["linear", "exponential"] = "linear"
    attempt_timeout_s: float = 120.0
    timeout_step_s: float = 30.0
    warmup_enabled: bool = True
    warmup_pause_s: float = 2.0
    flaky_audits: str = "screenshot-thumbnails,final-screenshot,full-page-screenshot"

    # === Audit ===
    audit_categories: str = ",".join(DEFAULT_CATEGORIES)
    output_format: Literal["html", "json"] = "html"
    capture_screenshot: bool = True
    screenshot_full_page: bool = True
    screenshot_timeout_s: float = 30.0
    screenshot_wait_until: Literal["networkidle", "load", "domcontentloaded"] = "networkidle"
    lighthouse_path: str = "lighthouse"

    # === Cache ===
    cache_enabled: bool = True
    cache_backend: Literal["json", "sqlite", "redis"] = "json"
    cache_root: Path = Path("./cache")
    cache_redis_url: str = ""
    cache_duration_s: float = 3600.0
    sweep_on_start: bool = True

    # === Output ===
    output_dir: Path = Path("./reports")
    create_target_subdir: bool = True
    compress_reports: bool = True
    cleanup_old_reports: bool = True
    max_report_age_days: int = 30
    history_enabled: bool = True

    # === Browser ===
    chrome_path: str = "google-chrome"
    chrome_port: int = 0
    chrome_flags: str = "--headless,--disable-gpu,--no-sandbox,--disable-dev-shm-usage"
    chrome_startup_delay_s: float = 2.0

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("max_concurrent")
    @classmethod
    def validate_max_concurrent(cls, v: int) -> int:
        if v < 1:
            raise ConfigurationError("max_concurrent must be >= 1")
        return v

    @field_validator("max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        if v < 0:
            raise ConfigurationError("max_retries must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.cache_duration_s <= 0:
            errors.append("CACHE_DURATION_S must be > 0")
        if self.base_delay_s < 0:
            errors.append("BASE_DELAY_S must be >= 0")
        if self.attempt_timeout_s <= 0:
            errors.append("ATTEMPT_TIMEOUT_S must be > 0")
        if self.cache_enabled and self.cache_backend == "redis" and not self.cache_redis_url:
            errors.append("CACHE_BACKEND=redis requires CACHE_REDIS_URL")
        if not self.audit_categories_list:
            errors.append("AUDIT_CATEGORIES must name at least one category")
        if self.max_report_age_days < 1:
            errors.append("MAX_REPORT_AGE_DAYS must be >= 1")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def audit_categories_list(self) -> list[str]:
        """Parse comma-separated audit categories."""
        return [c.strip() for c in self.audit_categories.split(",") if c.strip()]

    @property
    def flaky_audits_list(self) -> list[str]:
        """Parse comma-separated audits disabled on degraded retries."""
        return [a.strip() for a in self.flaky_audits.split(",") if a.strip()]

    @property
    def chrome_flags_list(self) -> list[str]:
        """Parse comma-separated Chrome command-line flags."""
        return [f.strip() for f in self.chrome_flags.split(",") if f.strip()]

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.max_retries,
            base_delay_s=self.base_delay_s,
            backoff=self.backoff,
            attempt_timeout_s=self.attempt_timeout_s,
            timeout_step_s=self.timeout_step_s,
            warmup_enabled=self.warmup_enabled,
            warmup_pause_s=self.warmup_pause_s,
        )

    def job_options(self) -> JobOptions:
        """Default job options derived from settings."""
        return JobOptions(
            categories=tuple(self.audit_categories_list),
            output_format=self.output_format,
            output_dir=str(self.output_dir),
            create_target_subdir=self.create_target_subdir,
            capture_screenshot=self.capture_screenshot,
            screenshot=ScreenshotOptions(
                full_page=self.screenshot_full_page,
                timeout_s=self.screenshot_timeout_s,
                wait_until=self.screenshot_wait_until,
            ),
            retry=self.retry_policy(),
        )

    def batch_limits(self) -> BatchLimits:
        return BatchLimits(
            max_concurrent=self.max_concurrent,
            max_retries=self.max_retries,
            cache_duration_s=self.cache_duration_s,
        )


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (CLI flags, tests).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
