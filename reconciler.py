"""Day-by-day reconciliation of Harvest hours into Forecast assignments.

For one (person, project) pair the reconciler walks the dates of the sync
range in ascending order and keeps Forecast's assignments in step with the
hours logged in Harvest. Consecutive days with the same allocation are kept
as a single assignment: a day that matches the previously touched assignment
extends it instead of creating a new record.

Each day is decided by ``plan_day``, a pure function returning the mutations
to apply. ``AssignmentReconciler`` applies them through the Forecast client
and keeps the ``AssignmentIndex`` in sync, so the ids Forecast hands out on
create remain reachable from later days.
"""

import logging
from dataclasses import dataclass
from datetime import date

from aggregation import InvalidAllocationError, calculate_allocation, validate_allocation
from assignments import AssignmentIndex, AssignmentStateError
from models import Allocation, DateRange, SyncReport, TimeEntry
from utils import is_weekend, iter_dates, shift_working_day

logger = logging.getLogger(__name__)

# How the previously touched assignment carries over to the next day.
CARRY_KEEP = "keep"
CARRY_RESET = "reset"
CARRY_EXISTING = "existing"
CARRY_RESULT = "result"

ACTION_MESSAGES = {
    "weekend": "Skipping weekend.",
    "nothing": "Nothing logged, nothing scheduled.",
    "invalid": "Skipping invalid allocation.",
    "extend": "Extending the last assignment date.",
    "create": "Creating new assignment.",
    "delete": "Deleting single-day assignment.",
    "split": "Splitting assignment to remove from this day.",
    "merge": "Extending the last assignment date and replacing this one.",
    "keep": "Assignment already up to date.",
    "overwrite": "Updated allocation on assignment.",
    "split_create": "Splitting assignment and creating new one for today.",
}


@dataclass(frozen=True)
class Create:
    allocation: Allocation


@dataclass(frozen=True)
class Update:
    allocation: Allocation


@dataclass(frozen=True)
class Delete:
    allocation: Allocation


@dataclass(frozen=True)
class DayPlan:
    """Mutations for one day and how the last touched assignment carries over.

    With ``CARRY_RESULT`` the record returned by the final mutation becomes
    the last touched assignment.
    """

    action: str
    mutations: tuple = ()
    carry: str = CARRY_RESET
    warning: str | None = None


def _resized(allocation: Allocation):
    if allocation.start_date > allocation.end_date:
        return Delete(allocation)
    return Update(allocation)


def plan_split(allocation: Allocation, split_on: date) -> list:
    """Mutations removing one day from a multi-day assignment."""
    if allocation.is_single_day:
        raise AssignmentStateError("Cannot split assignment that has same start and end dates.")
    if not allocation.covers(split_on):
        raise AssignmentStateError(f"Cannot split assignment {allocation.id} on {split_on}: outside its span.")

    start, end = allocation.start_date, allocation.end_date

    if split_on == start:
        # Starts on this day, so we can just adjust start date.
        return [_resized(allocation.with_start(shift_working_day(start, 1)))]
    if split_on == end:
        return [_resized(allocation.with_end(shift_working_day(end, -1)))]

    # Existing record keeps the part before, a new one takes the part after.
    mutations = [_resized(allocation.with_end(shift_working_day(split_on, -1)))]
    after = Allocation(
        id=None,
        person_id=allocation.person_id,
        project_id=allocation.project_id,
        start_date=shift_working_day(split_on, 1),
        end_date=end,
        allocation_seconds=allocation.allocation_seconds,
    )
    if after.start_date <= after.end_date:
        mutations.append(Create(after))
    return mutations


def _can_extend(last: Allocation | None, seconds: int) -> bool:
    return last is not None and last.allocation_seconds == seconds


def plan_day(
    day: date,
    entries: list[TimeEntry],
    existing: Allocation | None,
    last: Allocation | None,
    person_id: int,
    project_id: int,
    rounding_fraction: int = 2,
) -> DayPlan:
    """Decide what to do with Forecast on one day."""
    # Forecast configured to deny weekends.
    if is_weekend(day):
        return DayPlan("weekend", carry=CARRY_KEEP)

    if not entries and existing is None:
        return DayPlan("nothing", carry=CARRY_RESET)

    seconds = calculate_allocation(entries, rounding_fraction)
    try:
        validate_allocation(seconds)
    except InvalidAllocationError as e:
        return DayPlan("invalid", carry=CARRY_KEEP, warning=str(e))

    if existing is None:
        if _can_extend(last, seconds):
            return DayPlan("extend", (Update(last.with_end(day)),), CARRY_RESULT)
        today = Allocation(None, person_id, project_id, day, day, seconds)
        return DayPlan("create", (Create(today),), CARRY_RESULT)

    if not entries:
        if existing.is_single_day:
            return DayPlan("delete", (Delete(existing),), CARRY_RESET)
        return DayPlan("split", tuple(plan_split(existing, day)), CARRY_RESET)

    if existing.allocation_seconds == seconds:
        if _can_extend(last, seconds) and last.id != existing.id:
            return DayPlan(
                "merge",
                (Delete(existing), Update(last.with_end(existing.end_date))),
                CARRY_RESULT,
            )
        return DayPlan("keep", carry=CARRY_EXISTING)

    if existing.is_single_day:
        if _can_extend(last, seconds):
            return DayPlan(
                "merge",
                (Delete(existing), Update(last.with_end(existing.end_date))),
                CARRY_RESULT,
            )
        return DayPlan("overwrite", (Update(existing.with_seconds(seconds)),), CARRY_RESULT)

    today = Allocation(None, person_id, project_id, day, day, seconds)
    return DayPlan("split_create", (*plan_split(existing, day), Create(today)), CARRY_RESULT)


class AssignmentReconciler:
    """Applies day plans to Forecast for one run."""

    def __init__(
        self,
        forecast,
        index: AssignmentIndex,
        report: SyncReport,
        rounding_fraction: int = 2,
    ):
        self.forecast = forecast
        self.index = index
        self.report = report
        self.rounding_fraction = rounding_fraction

    def reconcile(
        self,
        person_id: int,
        project_id: int,
        date_entries: dict[date, list[TimeEntry]],
        date_range: DateRange,
        label: str = "",
    ) -> None:
        """Walk from range start through the last logged day of this project."""
        if not date_entries:
            return

        last_entry_date = max(date_entries)
        last: Allocation | None = None

        for day in iter_dates(date_range.start, last_entry_date):
            existing = self.index.find(person_id, project_id, day)
            plan = plan_day(
                day,
                date_entries.get(day, []),
                existing,
                last,
                person_id,
                project_id,
                self.rounding_fraction,
            )

            prefix = f"[{person_id}][{project_id}][{day}]"
            if plan.warning:
                logger.warning("%s %s", prefix, plan.warning)
                self.report.add_warning(f"{prefix}[{label}] {plan.warning}")
            elif plan.mutations:
                logger.info("%s %s", prefix, ACTION_MESSAGES[plan.action])
            else:
                logger.debug("%s %s", prefix, ACTION_MESSAGES[plan.action])

            last = self._apply(plan, existing, last)

    def _apply(self, plan: DayPlan, existing: Allocation | None, last: Allocation | None):
        result = None
        for mutation in plan.mutations:
            result = self._execute(mutation)

        if plan.carry == CARRY_KEEP:
            return last
        if plan.carry == CARRY_EXISTING:
            return existing
        if plan.carry == CARRY_RESULT:
            return result
        return None

    def _execute(self, mutation) -> Allocation | None:
        allocation = mutation.allocation

        if isinstance(mutation, Create):
            created = self.forecast.create_assignment(
                allocation.person_id,
                allocation.project_id,
                allocation.start_date,
                allocation.end_date,
                allocation.allocation_seconds,
            )
            self.index.add(created)
            self.report.created += 1
            return created

        if allocation.id is None:
            raise AssignmentStateError("ID missing from assignment object")

        if isinstance(mutation, Update):
            updated = self.forecast.update_assignment(allocation)
            self.index.add(updated)
            self.report.updated += 1
            return updated

        self.forecast.delete_assignment(allocation.id)
        self.index.remove(allocation.id)
        self.report.deleted += 1
        return None
