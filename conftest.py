"""In-memory stand-ins for the Harvest and Forecast clients."""

import itertools

import pytest

from models import Allocation


class FakeHarvestClient:
    def __init__(self, projects=(), users=(), entries=None):
        self.projects = list(projects)
        self.users = list(users)
        self.entries = dict(entries or {})  # user_id -> [TimeEntry]
        self.entry_requests = []

    def list_projects(self):
        return list(self.projects)

    def list_users(self):
        return list(self.users)

    def list_user_entries(self, user_id, date_range):
        self.entry_requests.append(user_id)
        return [
            e
            for e in self.entries.get(user_id, [])
            if date_range.start <= e.date <= date_range.end
        ]


class FakeForecastClient:
    def __init__(self, projects=(), people=(), assignments=()):
        self.projects = list(projects)
        self.people = list(people)
        self.assignments = {a.id: a for a in assignments}
        self.calls = []
        self.queries = []
        self._ids = itertools.count(1000)

    def seed(self, *allocations):
        for allocation in allocations:
            self.assignments[allocation.id] = allocation

    def list_projects(self):
        return list(self.projects)

    def list_people(self):
        return list(self.people)

    def list_assignments(self, start, end):
        self.queries.append((start, end))
        return [
            a
            for a in self.assignments.values()
            if a.start_date <= end and a.end_date >= start
        ]

    def create_assignment(self, person_id, project_id, start_date, end_date, allocation_seconds):
        allocation = Allocation(
            next(self._ids), person_id, project_id, start_date, end_date, allocation_seconds
        )
        self.assignments[allocation.id] = allocation
        self.calls.append(("create", allocation))
        return allocation

    def update_assignment(self, allocation):
        assert allocation.id in self.assignments, f"unknown assignment {allocation.id}"
        self.assignments[allocation.id] = allocation
        self.calls.append(("update", allocation))
        return allocation

    def delete_assignment(self, assignment_id):
        assert assignment_id in self.assignments, f"unknown assignment {assignment_id}"
        del self.assignments[assignment_id]
        self.calls.append(("delete", assignment_id))

    def stored(self, person_id, project_id):
        """Assignments of one person on one project, ordered by start."""
        return sorted(
            (
                a
                for a in self.assignments.values()
                if a.person_id == person_id and a.project_id == project_id
            ),
            key=lambda a: a.start_date,
        )

    def spans(self, person_id, project_id):
        return [
            (a.start_date, a.end_date, a.allocation_seconds)
            for a in self.stored(person_id, project_id)
        ]


@pytest.fixture
def forecast():
    return FakeForecastClient()


@pytest.fixture
def harvest():
    return FakeHarvestClient()
