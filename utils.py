"""Utility functions for Harvest to Forecast sync."""

import calendar
import json
import os
from datetime import date, datetime, timedelta
from typing import Iterator

from models import DateRange, SyncConfig

# File paths
CONFIG_FILE = "config.json"

# Forecast is configured to deny weekends (Saturday=5, Sunday=6).
WEEKEND_DAYS = (5, 6)


def load_config(path: str = CONFIG_FILE) -> dict:
    """Load config.json with Harvest and Forecast credentials."""
    with open(path) as f:
        return json.load(f)


def validate_config(config: dict) -> list[str]:
    """Validate config structure and return list of error messages.

    Returns:
        Empty list if valid, otherwise list of error messages.
    """
    errors = []

    # Check required sections
    for section in ["harvest", "forecast"]:
        if section not in config:
            errors.append(f"Missing section '{section}' in config.json")
            continue
        for key in ["account_id", "api_token"]:
            if not config[section].get(key):
                errors.append(f"Missing {section}.{key}")

    # Optional tuning
    sync = config.get("sync", {})
    if not isinstance(sync, dict):
        errors.append("Section 'sync' must be an object")
    else:
        for key in ["timeout_s", "query_window_days", "rounding_fraction"]:
            if key in sync and (not isinstance(sync[key], int) or sync[key] <= 0):
                errors.append(f"sync.{key} must be a positive integer")

    return errors


def load_config_safe(path: str = CONFIG_FILE) -> dict | None:
    """Load config with user-friendly error messages.

    Returns:
        Config dict if valid, None if errors occurred.
    """
    if not os.path.exists(path):
        print(f"[!] ERROR: {path} not found!")
        print()
        print("    Create config.json based on config.example.json:")
        print("    $ cp config.example.json config.json")
        print("    $ nano config.json  # Fill in your credentials")
        print()
        return None

    try:
        config = load_config(path)
    except json.JSONDecodeError as e:
        print(f"[!] ERROR: {path} is not valid JSON!")
        print(f"    Line {e.lineno}, column {e.colno}: {e.msg}")
        print()
        print("    Check for missing commas, quotes, or brackets.")
        return None

    errors = validate_config(config)
    if errors:
        print(f"[!] ERROR: {path} is incomplete:")
        for err in errors:
            print(f"    - {err}")
        print()
        print("    See config.example.json for the required structure.")
        return None

    return config


def sync_config_from(config: dict) -> SyncConfig:
    """Build SyncConfig from the optional "sync" section."""
    sync = config.get("sync", {})
    defaults = SyncConfig()
    return SyncConfig(
        timeout_s=sync.get("timeout_s", defaults.timeout_s),
        query_window_days=sync.get("query_window_days", defaults.query_window_days),
        rounding_fraction=sync.get("rounding_fraction", defaults.rounding_fraction),
    )


# ============================================================================
# Dates
# ============================================================================


def parse_date(value: str) -> date:
    """Parse YYYY-MM-DD (a trailing time part is ignored)."""
    return datetime.strptime(value[:10], "%Y-%m-%d").date()


def this_month(today: date | None = None) -> DateRange:
    """Range covering the whole current calendar month."""
    today = today or date.today()
    last_day = calendar.monthrange(today.year, today.month)[1]
    return DateRange(today.replace(day=1), today.replace(day=last_day))


def is_weekend(day: date) -> bool:
    return day.weekday() in WEEKEND_DAYS


def shift_working_day(day: date, step: int) -> date:
    """Move one day forward (step=1) or back (step=-1), skipping weekends."""
    day = day + timedelta(days=step)
    while is_weekend(day):
        day = day + timedelta(days=step)
    return day


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Yield every calendar date from start to end, inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
