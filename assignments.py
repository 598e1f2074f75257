"""Loading and indexing of Forecast assignments."""

import logging
from datetime import date, timedelta

from models import Allocation, DateRange

logger = logging.getLogger(__name__)

# Forecast rejects assignment queries spanning more than 180 days.
QUERY_WINDOW_DAYS = 180


class AssignmentStateError(RuntimeError):
    """Programming error: an assignment operation that must never happen."""


def fetch_assignments(
    forecast, date_range: DateRange, window_days: int = QUERY_WINDOW_DAYS
) -> list[Allocation]:
    """Fetch all assignments overlapping a range, one query per window."""
    if date_range.days <= window_days:
        return forecast.list_assignments(date_range.start, date_range.end)

    assignments = []
    seen: set[int] = set()
    cursor = date_range.start
    while cursor <= date_range.end:
        window_end = min(cursor + timedelta(days=window_days - 1), date_range.end)
        logger.debug("Fetching assignments %s to %s", cursor, window_end)
        for allocation in forecast.list_assignments(cursor, window_end):
            # Assignments overlapping a window boundary come back twice.
            if allocation.id in seen:
                continue
            seen.add(allocation.id)
            assignments.append(allocation)
        cursor += timedelta(days=window_days)

    return assignments


class AssignmentIndex:
    """Forecast assignments grouped by person, then by assignment id."""

    def __init__(self, allocations: list[Allocation] = ()):
        self._by_person: dict[int, dict[int, Allocation]] = {}
        for allocation in allocations:
            self.add(allocation)

    def __len__(self) -> int:
        return sum(len(items) for items in self._by_person.values())

    def add(self, allocation: Allocation) -> None:
        """Insert or replace an assignment."""
        if allocation.id is None:
            raise AssignmentStateError("ID missing from assignment object")
        self._by_person.setdefault(allocation.person_id, {})[allocation.id] = allocation

    def remove(self, allocation_id: int) -> bool:
        for items in self._by_person.values():
            if allocation_id in items:
                del items[allocation_id]
                return True
        return False

    def for_person(self, person_id: int) -> list[Allocation]:
        return list(self._by_person.get(person_id, {}).values())

    def find(self, person_id: int, project_id: int, day: date) -> Allocation | None:
        """The assignment of a person on a project covering the given day."""
        for allocation in self._by_person.get(person_id, {}).values():
            if allocation.project_id == project_id and allocation.covers(day):
                return allocation
        return None
