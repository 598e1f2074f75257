"""Orchestration of a Harvest to Forecast sync run."""

import logging
from dataclasses import dataclass, field

from aggregation import group_entries_by_project_and_date
from assignments import AssignmentIndex, fetch_assignments
from linking import link_projects, link_users
from models import (
    DateRange,
    LinkResult,
    SourceProject,
    SourceUser,
    SyncConfig,
    SyncReport,
)
from reconciler import AssignmentReconciler

logger = logging.getLogger(__name__)


@dataclass
class SyncRun:
    """Everything loaded for, and produced by, one sync run."""

    date_range: DateRange
    source_projects: dict[int, SourceProject] = field(default_factory=dict)
    source_users: list[SourceUser] = field(default_factory=list)
    project_links: dict[int, LinkResult] = field(default_factory=dict)
    user_links: dict[int, LinkResult] = field(default_factory=dict)
    index: AssignmentIndex = field(default_factory=AssignmentIndex)
    report: SyncReport = field(default_factory=SyncReport)


class SyncService:
    """Reconciles Harvest time entries into Forecast assignments."""

    def __init__(self, harvest, forecast, config: SyncConfig | None = None):
        self.harvest = harvest
        self.forecast = forecast
        self.config = config or SyncConfig()

    def sync(self, date_range: DateRange) -> SyncReport:
        run = SyncRun(date_range)

        # Load all projects and the links between them.
        for project in self.harvest.list_projects():
            run.source_projects.setdefault(project.id, project)
        destination_projects = self._active(self.forecast.list_projects(), "project")
        run.project_links = link_projects(list(run.source_projects.values()), destination_projects)

        # Get all users.
        users: dict[int, SourceUser] = {}
        for user in self.harvest.list_users():
            users.setdefault(user.id, user)
        run.source_users = list(users.values())
        people = self._active(self.forecast.list_people(), "person")
        run.user_links = link_users(run.source_users, people)

        logger.info(
            "Linked %d/%d projects and %d/%d users",
            sum(link.linked for link in run.project_links.values()),
            len(run.project_links),
            sum(link.linked for link in run.user_links.values()),
            len(run.user_links),
        )

        allocations = fetch_assignments(self.forecast, date_range, self.config.query_window_days)
        run.index = AssignmentIndex(allocations)
        logger.info("Loaded %d Forecast assignments", len(run.index))

        reconciler = AssignmentReconciler(
            self.forecast, run.index, run.report, self.config.rounding_fraction
        )
        for user in run.source_users:
            self._sync_user(run, reconciler, user)

        return run.report

    def _active(self, records: list, kind: str) -> list:
        active = []
        for record in records:
            if record.archived:
                logger.debug("Ignoring Forecast %s %s because it is archived.", kind, record.id)
                continue
            active.append(record)
        return active

    def _sync_user(self, run: SyncRun, reconciler: AssignmentReconciler, user: SourceUser) -> None:
        link = run.user_links.get(user.id)
        if link is None or not link.linked:
            run.report.add_warning(
                f"Harvest user {user.full_name} ({user.id}) does not exist in Forecast."
            )
            run.report.users_skipped += 1
            return

        entries = self.harvest.list_user_entries(user.id, run.date_range)
        logger.info(
            "Harvest user %s has %d entries in this date range.", user.full_name, len(entries)
        )

        for project_id, date_entries in group_entries_by_project_and_date(entries).items():
            project_link = run.project_links.get(project_id)
            if project_link is None or not project_link.linked:
                project = run.source_projects.get(project_id)
                name = project.name if project else "?"
                run.report.add_warning(
                    f"Harvest project {name} ({project_id}) not found in Forecast projects."
                )
                continue

            reconciler.reconcile(
                link.destination_id,
                project_link.destination_id,
                date_entries,
                run.date_range,
                label=user.last_name,
            )

        run.report.users_synced += 1
