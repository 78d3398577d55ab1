# src/__init__.py — v1
"""auditbatch: bounded-concurrency batch runner for site audits."""

from auditbatch.version import __version__

__all__ = ["__version__"]
