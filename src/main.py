# src/main.py — v2
"""CLI entry point: run, sweep and compare commands.

Usage:
    auditbatch run <websites.json> [options]
    auditbatch sweep
    auditbatch compare <target>
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

from auditbatch.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="auditbatch",
        description=f"auditbatch v{__version__} - batch website audits",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- run ---
    p_run = subparsers.add_parser(
        "run", help="Audit every website listed in a targets file",
    )
    p_run.add_argument(
        "targets", type=Path, nargs="?", default=Path("./websites.json"),
        help="Targets file (default: ./websites.json)",
    )
    p_run.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Reports directory (default: OUTPUT_DIR setting)",
    )
    p_run.add_argument(
        "--max-concurrent", type=int, default=None,
        help="Maximum audits running at once",
    )
    p_run.add_argument(
        "--max-retries", type=int, default=None,
        help="Retries per target after the first attempt",
    )
    p_run.add_argument(
        "--cache-duration", type=float, default=None,
        help="Seconds a cached result stays valid",
    )
    p_run.add_argument(
        "--no-cache", action="store_true",
        help="Ignore and do not update the result cache",
    )
    p_run.set_defaults(func=_cmd_run)

    # --- sweep ---
    p_sweep = subparsers.add_parser(
        "sweep", help="Evict expired entries from the result cache",
    )
    p_sweep.set_defaults(func=_cmd_sweep)

    # --- compare ---
    p_compare = subparsers.add_parser(
        "compare", help="Compare the two latest audits of a target",
    )
    p_compare.add_argument("target", help="Target URL")
    p_compare.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Reports directory (default: OUTPUT_DIR setting)",
    )
    p_compare.set_defaults(func=_cmd_compare)

    return parser


def _settings_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Map CLI flags onto settings fields; unset flags are left out."""
    mapping = {
        "output": "output_dir",
        "max_concurrent": "max_concurrent",
        "max_retries": "max_retries",
        "cache_duration": "cache_duration_s",
    }
    overrides = {
        field: getattr(args, flag)
        for flag, field in mapping.items()
        if getattr(args, flag, None) is not None
    }
    if getattr(args, "no_cache", False):
        overrides["cache_enabled"] = False
    if args.verbose:
        overrides["log_level"] = "DEBUG"
    return overrides


def _load_settings(args: argparse.Namespace) -> Any:
    from auditbatch.config.settings import load_settings
    from auditbatch.logging.logger import setup_logging

    settings = load_settings(**_settings_overrides(args))
    setup_logging(
        level=settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
        compress=settings.compress_reports,
    )
    return settings


async def _cmd_run(args: argparse.Namespace) -> int:
    """Execute a batch audit."""
    from auditbatch.batch.orchestrator import execute_batch
    from auditbatch.cache.cache_factory import create_cache_store
    from auditbatch.collaborators.chrome import ChromeLauncher
    from auditbatch.collaborators.lighthouse import LighthouseCliEngine
    from auditbatch.config.targets import load_targets_file, merge_options
    from auditbatch.reporting.aggregator import summarize
    from auditbatch.reporting.exporter import export_summary_text, write_summary_reports
    from auditbatch.reporting.housekeeping import cleanup_old_reports, compress_file

    settings = _load_settings(args)
    targets_file = load_targets_file(args.targets)
    options = merge_options(settings.job_options(), targets_file.test_options)
    reports_root = Path(options.output_dir)

    if settings.cleanup_old_reports:
        cleanup_old_reports(reports_root, settings.max_report_age_days)

    screenshot_engine = None
    if options.capture_screenshot:
        from auditbatch.collaborators.playwright_screenshot import PlaywrightScreenshotEngine

        try:
            screenshot_engine = PlaywrightScreenshotEngine()
        except ImportError as e:
            logger.warning("Screenshots disabled: %s", e)

    cache_store = create_cache_store(settings) if settings.cache_enabled else None
    try:
        outcome = await execute_batch(
            targets_file.websites,
            options,
            settings.batch_limits(),
            audit_engine=LighthouseCliEngine(settings.lighthouse_path),
            launcher=ChromeLauncher(
                chrome_path=settings.chrome_path,
                flags=settings.chrome_flags_list,
                port=settings.chrome_port,
                startup_delay_s=settings.chrome_startup_delay_s,
            ),
            screenshot_engine=screenshot_engine,
            cache_store=cache_store,
            sweep_on_start=settings.sweep_on_start,
            flaky_audits=settings.flaky_audits_list,
        )
    finally:
        if cache_store is not None:
            cache_store.close()

    summary = summarize(outcome, options.categories)
    summary_dir = write_summary_reports(summary, reports_root)
    if settings.compress_reports:
        compress_file(summary_dir / "batch-summary.json")
        _compress_artifacts(outcome)

    if settings.history_enabled:
        _record_history(outcome, reports_root)

    print(export_summary_text(summary))
    print(f"\nSummary reports: {summary_dir}")
    return 0


def _compress_artifacts(outcome: Any) -> int:
    """Gzip the report files of every freshly audited target. Screenshots are skipped."""
    from auditbatch.reporting.housekeeping import compress_file

    seen: set[str] = set()
    compressed = 0
    for result in outcome.successes:
        if result.from_cache:
            continue
        for ref in result.artifact_refs:
            if ref in seen or ref.endswith(".png"):
                continue
            seen.add(ref)
            if compress_file(Path(ref)) is not None:
                compressed += 1
    return compressed


def _record_history(outcome: Any, reports_root: Path) -> None:
    """Save a history record for every freshly audited target."""
    from auditbatch.history.store import history_dir_for, save_to_history

    for result in outcome.successes:
        if result.from_cache:
            continue
        try:
            save_to_history(result, history_dir_for(result.target, reports_root))
        except OSError as e:
            logger.warning("Failed to save history for %s: %s", result.target, e)


async def _cmd_sweep(args: argparse.Namespace) -> int:
    """Evict expired cache entries."""
    from auditbatch.cache.cache_factory import create_cache_store
    from auditbatch.cache.result_cache import ResultCache

    settings = _load_settings(args)
    store = create_cache_store(settings)
    try:
        cache = ResultCache(store, cache_duration=settings.cache_duration_s)
        evicted = await cache.sweep()
    finally:
        store.close()

    print(f"Evicted {evicted} expired cache entries ({len(cache)} remaining)")
    return 0


async def _cmd_compare(args: argparse.Namespace) -> int:
    """Compare the latest two history records of a target."""
    from auditbatch.history.compare import compare_records, export_comparison_text
    from auditbatch.history.store import history_dir_for, recent_history

    settings = _load_settings(args)
    records = recent_history(history_dir_for(args.target, settings.output_dir), count=2)
    if len(records) < 2:
        print(f"Not enough history for {args.target} to compare ({len(records)} record(s))")
        return 1

    print(export_comparison_text(compare_records(records[0], records[1])))
    return 0


if __name__ == "__main__":
    sys.exit(main())
