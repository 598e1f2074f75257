"""
Sync Harvest time entries to Forecast assignments.

Usage:
    # Current month (default)
    python sync_harvest_to_forecast.py

    # From a date until today
    python sync_harvest_to_forecast.py 2026-01-01

    # Explicit range, showing what would happen without changing Forecast
    python sync_harvest_to_forecast.py 2026-01-01 2026-03-31 --dry-run
"""

import argparse
import logging
from datetime import date

from clients import ApiError, DryRunForecastClient, ForecastClient, HarvestClient
from models import DateRange, SyncReport
from patterns import Patterns
from sync_service import SyncService
from utils import CONFIG_FILE, load_config_safe, parse_date, sync_config_from, this_month


def resolve_range(start: str | None, end: str | None, today: date | None = None) -> DateRange:
    """Turn optional CLI dates into a range.

    Raises:
        ValueError: If only the end date is given, a date is malformed,
            or start is after end.
    """
    today = today or date.today()

    if not start and not end:
        return this_month(today)
    if not start:
        raise ValueError("Start date is required")

    for value in (start, end):
        if value and not Patterns.DATE_FORMAT.match(value):
            raise ValueError(f"Invalid date format '{value}'. Expected YYYY-MM-DD")

    return DateRange(parse_date(start), parse_date(end) if end else today)


def print_report(report: SyncReport) -> None:
    print()
    print("[*] Sync complete!")
    print(
        f"    Created: {report.created}, Updated: {report.updated}, Deleted: {report.deleted}"
    )
    print(f"    Users synced: {report.users_synced}, skipped: {report.users_skipped}")

    if report.warnings:
        print()
        print("=" * 75)
        print("Warnings reported during sync")
        print("-" * 75)
        for warning in report.warnings:
            print(f" - {warning}")
        print("=" * 75)
        print("May need to import users or projects into Forecast and re-run.")


def sync(date_range: DateRange, config_path: str, dry_run: bool) -> int:
    """Main sync function."""
    mode = "DRY-RUN" if dry_run else "EXECUTE"

    print()
    print("=" * 70)
    print(f"SYNC HARVEST -> FORECAST | {date_range.start} to {date_range.end} | Mode: {mode}")
    print("=" * 70)
    print()

    config = load_config_safe(config_path)
    if config is None:
        return 1
    sync_config = sync_config_from(config)

    harvest = HarvestClient(config, timeout=sync_config.timeout_s)
    forecast = ForecastClient(config, timeout=sync_config.timeout_s)
    if dry_run:
        forecast = DryRunForecastClient(forecast)

    print(f"[*] Syncing harvest data into forecast from {date_range.start} to {date_range.end}")
    try:
        report = SyncService(harvest, forecast, sync_config).sync(date_range)
    except ApiError as e:
        print(f"[!] ERROR: {e}")
        print("    Forecast may be partially updated. Re-running the sync is safe.")
        return 1

    print_report(report)
    if dry_run:
        print()
        print("Run without --dry-run to apply changes.")
    return 0


# ============================================================================
# CLI
# ============================================================================


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Sync Harvest time entries to Forecast assignments",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Current month (default)
    python sync_harvest_to_forecast.py

    # From a date until today
    python sync_harvest_to_forecast.py 2026-01-01

    # Explicit range, dry-run
    python sync_harvest_to_forecast.py 2026-01-01 2026-03-31 --dry-run
        """,
    )

    parser.add_argument("start_date", nargs="?", default=None, help="Start date (YYYY-MM-DD)")
    parser.add_argument(
        "end_date", nargs="?", default=None, help="End date (YYYY-MM-DD), default: today"
    )
    parser.add_argument(
        "--config", default=CONFIG_FILE, help=f"Path to config file (default: {CONFIG_FILE})"
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="Show changes without writing to Forecast"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="    %(message)s",
    )

    if not args.start_date and not args.end_date:
        print("Defaulting date range to current month.")

    try:
        date_range = resolve_range(args.start_date, args.end_date)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    return sync(date_range, args.config, args.dry_run)


if __name__ == "__main__":
    exit(main())
