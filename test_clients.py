"""Tests for the Harvest and Forecast API clients (HTTP is mocked)."""

from datetime import date
from unittest import mock

import pytest
import requests

from clients import (
    ApiError,
    DryRunForecastClient,
    ForecastClient,
    HarvestClient,
    _handle_api_error,
)
from models import Allocation, DateRange

CONFIG = {
    "harvest": {"account_id": "111", "api_token": "h-token"},
    "forecast": {"account_id": "222", "api_token": "f-token"},
}


def response(status=200, payload=None, reason="OK"):
    r = mock.Mock(spec=requests.Response)
    r.status_code = status
    r.ok = status < 400
    r.reason = reason
    r.text = "" if payload is None else str(payload)
    r.content = b"" if payload is None else b"{}"
    r.json.return_value = payload
    return r


@pytest.fixture
def http():
    with mock.patch("clients.requests.request") as request:
        yield request


# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------


class TestErrors:

    @pytest.mark.parametrize(
        "status, fragment",
        [
            (401, "Authentication failed"),
            (403, "Access denied"),
            (404, "Resource not found"),
            (429, "Too many requests"),
            (503, "Service unavailable"),
        ],
    )
    def test_known_status_messages(self, status, fragment):
        message = _handle_api_error(response(status, reason="x"), "Forecast")

        assert message.startswith("Forecast:")
        assert fragment in message

    def test_unknown_status_message(self):
        assert _handle_api_error(response(418, reason="I'm a teapot"), "Harvest") == (
            "Harvest: HTTP 418 - I'm a teapot"
        )

    def test_http_error_raises_api_error(self, http):
        http.return_value = response(401)

        with pytest.raises(ApiError) as exc:
            ForecastClient(CONFIG).list_people()

        assert exc.value.status_code == 401

    def test_connection_error(self, http):
        http.side_effect = requests.exceptions.ConnectionError()

        with pytest.raises(ApiError, match="Cannot connect"):
            HarvestClient(CONFIG).list_users()

    def test_timeout(self, http):
        http.side_effect = requests.exceptions.Timeout()

        with pytest.raises(ApiError, match="timed out"):
            HarvestClient(CONFIG).list_users()


# ---------------------------------------------------------------------------
# Harvest
# ---------------------------------------------------------------------------


class TestHarvestClient:

    def test_headers(self, http):
        http.return_value = response(payload={"users": [], "links": {"next": None}})

        HarvestClient(CONFIG, timeout=5).list_users()

        kwargs = http.call_args.kwargs
        assert kwargs["headers"]["Authorization"] == "Bearer h-token"
        assert kwargs["headers"]["Harvest-Account-Id"] == "111"
        assert kwargs["timeout"] == 5

    def test_follows_pagination(self, http):
        http.side_effect = [
            response(payload={
                "projects": [{"id": 1, "name": "Website"}],
                "links": {"next": "https://api.harvestapp.com/v2/projects?page=2&per_page=2000"},
            }),
            response(payload={"projects": [{"id": 2, "name": "Internal"}], "links": {"next": None}}),
        ]

        projects = HarvestClient(CONFIG).list_projects()

        assert [p.name for p in projects] == ["Website", "Internal"]
        second_call = http.call_args_list[1]
        assert second_call.args == ("GET", "https://api.harvestapp.com/v2/projects?page=2&per_page=2000")
        assert second_call.kwargs["params"] is None

    def test_user_entries(self, http):
        http.return_value = response(payload={
            "time_entries": [
                {"spent_date": "2026-10-05", "hours": 2.5, "project": {"id": 1, "name": "Website"}},
            ],
            "links": {"next": None},
        })

        entries = HarvestClient(CONFIG).list_user_entries(
            11, DateRange(date(2026, 10, 1), date(2026, 10, 31))
        )

        assert entries[0].project_id == 1
        assert entries[0].date == date(2026, 10, 5)
        assert entries[0].hours == 2.5
        params = http.call_args.kwargs["params"]
        assert params["user_id"] == 11
        assert params["from"] == "2026-10-01"
        assert params["to"] == "2026-10-31"


# ---------------------------------------------------------------------------
# Forecast
# ---------------------------------------------------------------------------

ASSIGNMENT = {
    "id": 9,
    "person_id": 201,
    "project_id": 101,
    "start_date": "2026-10-05",
    "end_date": "2026-10-09",
    "allocation": 28800,
    "repeated_assignment_set_id": None,
}


class TestForecastClient:

    def test_projects(self, http):
        http.return_value = response(payload={"projects": [
            {"id": 101, "name": "Website", "archived": False, "harvest_id": 1},
            {"id": 102, "name": "Old", "archived": True, "harvest_id": None},
        ]})

        projects = ForecastClient(CONFIG).list_projects()

        assert projects[0].linked_source_id == 1
        assert projects[1].archived is True
        assert projects[1].linked_source_id is None

    def test_people(self, http):
        http.return_value = response(payload={"people": [
            {"id": 201, "first_name": "Ada", "last_name": "Lovelace",
             "email": "ada@example.com", "archived": False, "harvest_user_id": 11},
        ]})

        person = ForecastClient(CONFIG).list_people()[0]

        assert person.linked_source_user_id == 11
        assert person.email == "ada@example.com"

    def test_list_assignments(self, http):
        http.return_value = response(payload={"assignments": [ASSIGNMENT]})

        result = ForecastClient(CONFIG).list_assignments(date(2026, 10, 1), date(2026, 10, 31))

        assert result == [Allocation(9, 201, 101, date(2026, 10, 5), date(2026, 10, 9), 28800)]
        assert http.call_args.kwargs["params"] == {"start_date": "2026-10-01", "end_date": "2026-10-31"}
        assert http.call_args.kwargs["headers"]["Forecast-Account-ID"] == "222"

    def test_create_assignment(self, http):
        http.return_value = response(payload={"assignment": ASSIGNMENT})

        created = ForecastClient(CONFIG).create_assignment(
            201, 101, date(2026, 10, 5), date(2026, 10, 9), 28800
        )

        assert created.id == 9
        method, url = http.call_args.args
        assert (method, url) == ("POST", "https://api.forecastapp.com/assignments")
        body = http.call_args.kwargs["json"]["assignment"]
        assert body["allocation"] == 28800
        assert body["start_date"] == "2026-10-05"

    def test_update_assignment(self, http):
        http.return_value = response(payload={"assignment": ASSIGNMENT})
        allocation = Allocation(9, 201, 101, date(2026, 10, 5), date(2026, 10, 9), 28800)

        ForecastClient(CONFIG).update_assignment(allocation)

        assert http.call_args.args == ("PUT", "https://api.forecastapp.com/assignments/9")

    def test_update_requires_id(self, http):
        allocation = Allocation(None, 201, 101, date(2026, 10, 5), date(2026, 10, 9), 28800)

        with pytest.raises(ValueError):
            ForecastClient(CONFIG).update_assignment(allocation)
        http.assert_not_called()

    def test_delete_assignment(self, http):
        http.return_value = response(204)

        assert ForecastClient(CONFIG).delete_assignment(9) is None
        assert http.call_args.args == ("DELETE", "https://api.forecastapp.com/assignments/9")


class TestDryRunForecastClient:

    def test_reads_pass_through(self):
        real = mock.Mock()
        real.list_people.return_value = ["people"]

        assert DryRunForecastClient(real).list_people() == ["people"]

    def test_writes_not_sent(self):
        real = mock.Mock()
        client = DryRunForecastClient(real)

        first = client.create_assignment(201, 101, date(2026, 10, 5), date(2026, 10, 5), 3600)
        second = client.create_assignment(201, 101, date(2026, 10, 6), date(2026, 10, 6), 3600)
        client.update_assignment(first.with_end(date(2026, 10, 7)))
        client.delete_assignment(second.id)

        assert (first.id, second.id) == (-1, -2)
        real.create_assignment.assert_not_called()
        real.update_assignment.assert_not_called()
        real.delete_assignment.assert_not_called()
