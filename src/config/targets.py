# src/config/targets.py — v2
"""Targets file loading (``websites.json``).

Expected shape::

    {
      "websites": ["https://example.com", ...],
      "testOptions": {"outputFormat": "html", "categories": ["performance"]}
    }

``testOptions`` keys may be camelCase or snake_case. They override the
defaults derived from settings; nested mappings are merged key by key.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from auditbatch.core.errors import ConfigurationError
from auditbatch.core.models import JobOptions

logger = logging.getLogger(__name__)


class TargetsFile(BaseModel):
    """Parsed targets file."""

    websites: list[str] = Field(default_factory=list)
    test_options: dict[str, Any] = Field(default_factory=dict)


def _merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        key = to_camel(key) if "_" in key else key
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def merge_options(defaults: JobOptions, overrides: dict[str, Any] | None) -> JobOptions:
    """Apply a user mapping on top of defaults.

    Raises:
        ConfigurationError: If the merged mapping is not valid job options.
    """
    if not overrides:
        return defaults
    base = defaults.model_dump(mode="json", by_alias=True)
    return JobOptions.from_mapping(_merge(base, overrides))


def load_targets_file(path: Path) -> TargetsFile:
    """Read and validate a targets file.

    Raises:
        ConfigurationError: If the file is missing, unreadable, malformed or
            lists no targets.
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigurationError(f"Targets file not found: {path}") from e
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read targets file {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Targets file {path} must contain a JSON object")

    websites = raw.get("websites")
    if not isinstance(websites, list) or not all(isinstance(w, str) for w in websites):
        raise ConfigurationError(f"'websites' in {path} must be a list of URLs")
    if not websites:
        raise ConfigurationError(f"No websites listed in {path}")

    test_options = raw.get("testOptions", raw.get("test_options"))
    if test_options is None:
        test_options = {}
    if not isinstance(test_options, dict):
        raise ConfigurationError(f"'testOptions' in {path} must be an object")

    logger.info("Loaded %d targets from %s", len(websites), path)
    return TargetsFile(websites=websites, test_options=test_options)
