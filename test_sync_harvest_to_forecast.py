"""Tests for the command line entry point."""

import json
from datetime import date
from unittest import mock

import pytest

import sync_harvest_to_forecast as cli
from clients import ApiError
from models import DateRange, SyncReport

TODAY = date(2026, 10, 19)


class TestResolveRange:

    def test_defaults_to_current_month(self):
        assert cli.resolve_range(None, None, TODAY) == DateRange(date(2026, 10, 1), date(2026, 10, 31))

    def test_end_defaults_to_today(self):
        assert cli.resolve_range("2026-09-01", None, TODAY) == DateRange(date(2026, 9, 1), TODAY)

    def test_explicit_range(self):
        assert cli.resolve_range("2026-01-01", "2026-03-31", TODAY) == DateRange(
            date(2026, 1, 1), date(2026, 3, 31)
        )

    def test_end_without_start_rejected(self):
        with pytest.raises(ValueError, match="Start date is required"):
            cli.resolve_range(None, "2026-10-09", TODAY)

    @pytest.mark.parametrize("value", ["2026/10/01", "20261001", "yesterday", "2026-13-01"])
    def test_bad_dates_rejected(self, value):
        with pytest.raises(ValueError):
            cli.resolve_range(value, None, TODAY)

    def test_start_after_end_rejected(self):
        with pytest.raises(ValueError):
            cli.resolve_range("2026-10-10", "2026-10-01", TODAY)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "harvest": {"account_id": "1", "api_token": "h"},
        "forecast": {"account_id": "2", "api_token": "f"},
    }))
    return str(path)


class TestMain:

    def test_end_without_start_exits_1(self, capsys):
        assert cli.main(["", "2026-10-09"]) == 1
        assert "Start date is required" in capsys.readouterr().out

    def test_missing_config_exits_1(self, tmp_path, capsys):
        assert cli.main(["2026-10-01", "2026-10-09", "--config", str(tmp_path / "nope.json")]) == 1
        assert "not found" in capsys.readouterr().out

    def test_prints_warnings(self, config_file, capsys):
        report = SyncReport(warnings=["Harvest user Bob Unknown (12) does not exist in Forecast."])
        with mock.patch.object(cli, "SyncService") as service:
            service.return_value.sync.return_value = report

            assert cli.main(["2026-10-01", "2026-10-09", "--config", config_file]) == 0

        service.return_value.sync.assert_called_once_with(
            DateRange(date(2026, 10, 1), date(2026, 10, 9))
        )
        out = capsys.readouterr().out
        assert "Warnings reported during sync" in out
        assert " - Harvest user Bob Unknown (12) does not exist in Forecast." in out

    def test_dry_run_wraps_forecast(self, config_file):
        with mock.patch.object(cli, "SyncService") as service:
            service.return_value.sync.return_value = SyncReport()

            cli.main(["2026-10-01", "2026-10-09", "--dry-run", "--config", config_file])

        forecast = service.call_args.args[1]
        assert isinstance(forecast, cli.DryRunForecastClient)

    def test_api_error_exits_1(self, config_file, capsys):
        with mock.patch.object(cli, "SyncService") as service:
            service.return_value.sync.side_effect = ApiError("Forecast: Service unavailable. Try again later.", 503)

            assert cli.main(["2026-10-01", "2026-10-09", "--config", config_file]) == 1

        assert "Service unavailable" in capsys.readouterr().out
