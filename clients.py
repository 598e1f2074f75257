"""API clients for Harvest and Forecast."""

import itertools
import logging

import requests

from models import (
    Allocation,
    DateRange,
    DestinationPerson,
    DestinationProject,
    SourceProject,
    SourceUser,
    TimeEntry,
)
from patterns import Patterns
from utils import parse_date

logger = logging.getLogger(__name__)

HARVEST_URL = "https://api.harvestapp.com/v2"
FORECAST_URL = "https://api.forecastapp.com"
USER_AGENT = "harvest-forecast-sync"


class ApiError(Exception):
    """User-friendly API error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def _handle_api_error(response: requests.Response, service: str) -> str:
    """Convert HTTP errors to user-friendly messages."""
    status = response.status_code

    messages = {
        401: f"{service}: Authentication failed. Check your API token!",
        403: f"{service}: Access denied. Check your permissions or account ID!",
        404: f"{service}: Resource not found. Check the account ID in config.json!",
        422: f"{service}: Request rejected as invalid. {response.text[:200]}",
        429: f"{service}: Too many requests. Wait a moment and try again.",
        500: f"{service}: Server error. The service may be temporarily unavailable.",
        502: f"{service}: Bad gateway. The service may be temporarily unavailable.",
        503: f"{service}: Service unavailable. Try again later.",
    }

    return messages.get(status, f"{service}: HTTP {status} - {response.reason}")


class _RestClient:
    """Shared request handling for both services."""

    service = "API"

    def __init__(self, base_url: str, headers: dict, timeout: int = 30):
        self.base_url = base_url
        self.headers = headers
        self.timeout = timeout

    def _request(self, method: str, path_or_url: str, **kwargs) -> dict | None:
        url = path_or_url if path_or_url.startswith("http") else f"{self.base_url}{path_or_url}"
        logger.debug("%s %s %s", self.service, method, url)
        try:
            r = requests.request(
                method, url, headers=self.headers, timeout=self.timeout, **kwargs
            )
        except requests.exceptions.ConnectionError:
            raise ApiError(f"{self.service}: Cannot connect to {self.base_url}. Check your network!")
        except requests.exceptions.Timeout:
            raise ApiError(f"{self.service}: Connection timed out. The server may be slow.")

        if not r.ok:
            raise ApiError(_handle_api_error(r, self.service), r.status_code)
        if r.status_code == 204 or not r.content:
            return None
        return r.json()


class HarvestClient(_RestClient):
    """Client for the Harvest v2 REST API (read-only)."""

    service = "Harvest"

    def __init__(self, config: dict, timeout: int = 30):
        super().__init__(
            HARVEST_URL,
            {
                "Authorization": f"Bearer {config['harvest']['api_token']}",
                "Harvest-Account-Id": str(config["harvest"]["account_id"]),
                "User-Agent": USER_AGENT,
                "Accept": "application/json",
            },
            timeout,
        )

    def _paginate(self, path: str, key: str, params: dict | None = None) -> list[dict]:
        """Collect all pages of a list endpoint."""
        items = []
        url = path
        params = dict(params or {}, per_page=2000)

        while url:
            data = self._request("GET", url, params=params)
            items.extend(data.get(key, []))

            # Handle pagination
            url = (data.get("links") or {}).get("next")
            params = None  # Next URL carries the query
            if url:
                m = Patterns.NEXT_PAGE.search(url)
                logger.debug("Harvest %s: fetching page %s", key, m.group(1) if m else "?")

        return items

    def list_projects(self) -> list[SourceProject]:
        return [
            SourceProject(id=p["id"], name=p.get("name") or "")
            for p in self._paginate("/projects", "projects")
        ]

    def list_users(self) -> list[SourceUser]:
        return [
            SourceUser(
                id=u["id"],
                first_name=u.get("first_name") or "",
                last_name=u.get("last_name") or "",
                email=u.get("email") or "",
            )
            for u in self._paginate("/users", "users")
        ]

    def list_user_entries(self, user_id: int, date_range: DateRange) -> list[TimeEntry]:
        """Fetch a user's time entries within a date range."""
        raw = self._paginate(
            "/time_entries",
            "time_entries",
            {
                "user_id": user_id,
                "from": date_range.start.isoformat(),
                "to": date_range.end.isoformat(),
            },
        )
        return [
            TimeEntry(
                project_id=e["project"]["id"],
                date=parse_date(e["spent_date"]),
                hours=float(e.get("hours") or 0),
            )
            for e in raw
        ]


def _allocation_from(data: dict) -> Allocation:
    return Allocation(
        id=data["id"],
        person_id=data["person_id"],
        project_id=data["project_id"],
        start_date=parse_date(data["start_date"]),
        end_date=parse_date(data["end_date"]),
        allocation_seconds=int(data.get("allocation") or 0),
    )


class ForecastClient(_RestClient):
    """Client for the Forecast REST API."""

    service = "Forecast"

    def __init__(self, config: dict, timeout: int = 30):
        super().__init__(
            FORECAST_URL,
            {
                "Authorization": f"Bearer {config['forecast']['api_token']}",
                "Forecast-Account-ID": str(config["forecast"]["account_id"]),
                "User-Agent": USER_AGENT,
                "Accept": "application/json",
            },
            timeout,
        )

    def list_projects(self) -> list[DestinationProject]:
        data = self._request("GET", "/projects")
        return [
            DestinationProject(
                id=p["id"],
                name=p.get("name") or "",
                archived=p.get("archived") in (True, "true"),
                linked_source_id=p.get("harvest_id") or None,
            )
            for p in data.get("projects", [])
        ]

    def list_people(self) -> list[DestinationPerson]:
        data = self._request("GET", "/people")
        return [
            DestinationPerson(
                id=p["id"],
                first_name=p.get("first_name") or "",
                last_name=p.get("last_name") or "",
                email=p.get("email"),
                archived=p.get("archived") in (True, "true"),
                linked_source_user_id=p.get("harvest_user_id") or None,
            )
            for p in data.get("people", [])
        ]

    def list_assignments(self, start, end) -> list[Allocation]:
        """Fetch assignments overlapping [start, end]; at most 180 days per call."""
        data = self._request(
            "GET",
            "/assignments",
            params={"start_date": start.isoformat(), "end_date": end.isoformat()},
        )
        return [_allocation_from(a) for a in data.get("assignments", [])]

    def create_assignment(
        self, person_id: int, project_id: int, start_date, end_date, allocation_seconds: int
    ) -> Allocation:
        payload = {
            "assignment": {
                "allocation": allocation_seconds,
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
                "person_id": person_id,
                "project_id": project_id,
                "repeated_assignment_set_id": None,
            }
        }
        data = self._request("POST", "/assignments", json=payload)
        return _allocation_from(data["assignment"])

    def update_assignment(self, allocation: Allocation) -> Allocation:
        if allocation.id is None:
            raise ValueError("ID missing from assignment object")
        payload = {
            "assignment": {
                "allocation": allocation.allocation_seconds,
                "start_date": allocation.start_date.isoformat(),
                "end_date": allocation.end_date.isoformat(),
                "person_id": allocation.person_id,
                "project_id": allocation.project_id,
            }
        }
        data = self._request("PUT", f"/assignments/{allocation.id}", json=payload)
        return _allocation_from(data["assignment"])

    def delete_assignment(self, assignment_id: int) -> None:
        self._request("DELETE", f"/assignments/{assignment_id}")


class DryRunForecastClient:
    """Forecast client that reads for real and only logs writes.

    Creates are answered with negative ids so later days can still find and
    modify the would-be record.
    """

    def __init__(self, forecast: ForecastClient):
        self.forecast = forecast
        self._ids = itertools.count(-1, -1)

    def list_projects(self) -> list[DestinationProject]:
        return self.forecast.list_projects()

    def list_people(self) -> list[DestinationPerson]:
        return self.forecast.list_people()

    def list_assignments(self, start, end) -> list[Allocation]:
        return self.forecast.list_assignments(start, end)

    def create_assignment(
        self, person_id: int, project_id: int, start_date, end_date, allocation_seconds: int
    ) -> Allocation:
        allocation = Allocation(
            id=next(self._ids),
            person_id=person_id,
            project_id=project_id,
            start_date=start_date,
            end_date=end_date,
            allocation_seconds=allocation_seconds,
        )
        logger.info("[DRY-RUN] Would create %s", allocation)
        return allocation

    def update_assignment(self, allocation: Allocation) -> Allocation:
        if allocation.id is None:
            raise ValueError("ID missing from assignment object")
        logger.info("[DRY-RUN] Would update %s", allocation)
        return allocation

    def delete_assignment(self, assignment_id: int) -> None:
        logger.info("[DRY-RUN] Would delete assignment %s", assignment_id)
