"""Data models for Harvest to Forecast sync."""

from dataclasses import dataclass, field, replace
from datetime import date


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar dates."""

    start: date
    end: date

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"Range start {self.start} is after end {self.end}")

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1


@dataclass(frozen=True)
class SourceProject:
    """A project in Harvest."""

    id: int
    name: str


@dataclass(frozen=True)
class DestinationProject:
    """A project in Forecast."""

    id: int
    name: str
    archived: bool = False
    linked_source_id: int | None = None  # Forecast "harvest_id"


@dataclass(frozen=True)
class SourceUser:
    """A user in Harvest."""

    id: int
    first_name: str
    last_name: str
    email: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class DestinationPerson:
    """A person in Forecast."""

    id: int
    first_name: str
    last_name: str
    email: str | None
    archived: bool = False
    linked_source_user_id: int | None = None  # Forecast "harvest_user_id"


@dataclass(frozen=True)
class TimeEntry:
    """A time entry logged in Harvest."""

    project_id: int
    date: date
    hours: float


@dataclass(frozen=True)
class Allocation:
    """A Forecast assignment: constant daily allocation over a date span.

    ``id`` is None until the record exists in Forecast.
    """

    id: int | None
    person_id: int
    project_id: int
    start_date: date
    end_date: date
    allocation_seconds: int

    @property
    def is_single_day(self) -> bool:
        return self.start_date == self.end_date

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def with_start(self, start_date: date) -> "Allocation":
        return replace(self, start_date=start_date)

    def with_end(self, end_date: date) -> "Allocation":
        return replace(self, end_date=end_date)

    def with_seconds(self, allocation_seconds: int) -> "Allocation":
        return replace(self, allocation_seconds=allocation_seconds)


@dataclass(frozen=True)
class LinkResult:
    """Outcome of linking one Harvest entity to Forecast.

    ``method`` is "explicit", "email", "name" or None when unlinked.
    """

    source_id: int
    destination_id: int | None = None
    method: str | None = None

    @property
    def linked(self) -> bool:
        return self.destination_id is not None


@dataclass
class SyncConfig:
    """Configuration for sync behavior."""

    timeout_s: int = 30
    query_window_days: int = 180
    rounding_fraction: int = 2


@dataclass
class SyncReport:
    """Warnings and mutation counters collected during a sync run."""

    warnings: list[str] = field(default_factory=list)
    created: int = 0
    updated: int = 0
    deleted: int = 0
    users_synced: int = 0
    users_skipped: int = 0

    def add_warning(self, message: str) -> None:
        if message not in self.warnings:
            self.warnings.append(message)

    @property
    def mutations(self) -> int:
        return self.created + self.updated + self.deleted
