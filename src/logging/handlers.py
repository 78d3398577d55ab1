# src/logging/handlers.py — v2
"""Size-based rotating file handler for the optional log file.

Rotated files can be gzip-compressed (``auditbatch.log.1.gz`` ...), the
same way batch summaries are compressed after a run.
"""

from __future__ import annotations

import gzip
import os
import re
import shutil
from logging.handlers import RotatingFileHandler
from pathlib import Path

_SIZE = re.compile(r"^(\d+)\s*(B|KB|MB|GB)$", re.IGNORECASE)
_UNITS = {"B": 1, "KB": 1024, "MB": 1024**2, "GB": 1024**3}


def _parse_size(size_str: str) -> int:
    """Parse a size such as '10MB' or '512kb' into bytes."""
    match = _SIZE.match(size_str.strip())
    if not match:
        raise ValueError(f"Invalid size format: {size_str!r}. Use e.g. '10MB'.")
    return int(match.group(1)) * _UNITS[match.group(2).upper()]


def _gzip_namer(default_name: str) -> str:
    return default_name + ".gz"


def _gzip_rotator(source: str, dest: str) -> None:
    with open(source, "rb") as src, gzip.open(dest, "wb") as dst:
        shutil.copyfileobj(src, dst)
    os.remove(source)


def create_rotating_handler(
    log_file: str,
    rotation: str = "10MB",
    retention: int = 5,
    compress: bool = False,
) -> RotatingFileHandler:
    """Create a rotating file handler.

    Args:
        log_file: Path to log file. Parent directories are created.
        rotation: Max file size before rotation (e.g. "10MB").
        retention: Number of rotated files to keep.
        compress: Gzip each file as it is rotated out.

    Returns:
        Configured RotatingFileHandler.
    """
    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=_parse_size(rotation),
        backupCount=retention,
        encoding="utf-8",
    )
    if compress:
        handler.namer = _gzip_namer
        handler.rotator = _gzip_rotator
    return handler
