"""Grouping of Harvest time entries and conversion to daily allocations."""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from models import TimeEntry

SECONDS_PER_HOUR = 3600
MAX_ALLOCATION_HOURS = 24


class InvalidAllocationError(ValueError):
    """A day's allocation is outside the range Forecast accepts."""

    def __init__(self, seconds: int):
        self.hours = seconds / SECONDS_PER_HOUR
        super().__init__(
            f"Allocation must be between 0 and {MAX_ALLOCATION_HOURS} hours, "
            f"but was: {self.hours:g}"
        )


def group_entries_by_project_and_date(
    entries: list[TimeEntry],
) -> dict[int, dict[date, list[TimeEntry]]]:
    """Group entries as {project_id: {date: [entries]}}, keeping first-seen order."""
    data: dict[int, dict[date, list[TimeEntry]]] = {}
    for entry in entries:
        data.setdefault(entry.project_id, {}).setdefault(entry.date, []).append(entry)
    return data


def round_to_nearest_fraction(hours: float, fraction: int = 2) -> float:
    """Round hours to the nearest 1/fraction (half-up, 2 -> half hours)."""
    scaled = (Decimal(str(hours)) * fraction).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return float(scaled / fraction)


def calculate_allocation(entries: list[TimeEntry], rounding_fraction: int = 2) -> int:
    """Daily allocation in seconds for one day's entries.

    Logged time never rounds down to nothing: a non-empty day is at least
    one rounding unit.
    """
    if not entries:
        return 0

    total_hours = sum(entry.hours for entry in entries)
    rounded = round_to_nearest_fraction(total_hours, rounding_fraction)
    if rounded == 0:
        rounded = 1 / rounding_fraction

    # Forecast requires seconds instead of hours.
    return int(rounded * SECONDS_PER_HOUR)


def validate_allocation(seconds: int) -> int:
    if seconds < 0 or seconds > MAX_ALLOCATION_HOURS * SECONDS_PER_HOUR:
        raise InvalidAllocationError(seconds)
    return seconds
