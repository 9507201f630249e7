"""
Tests for the command-line interface.
"""

import pytest
from typer.testing import CliRunner

from slotengine import __version__
from slotengine.cli.app import app

runner = CliRunner()

DATA_YAML = """
businesses:
  - id: "biz-1"
    name: "Salon"
    timezone: "Europe/Zurich"
    businessHours:
      monday: {isOpen: true, open: "09:00", close: "11:00"}
      sunday: {isOpen: false}
services:
  - {id: "svc-cut", businessId: "biz-1", name: "Haarschnitt", duration: 30}
employees:
  - {id: "emp-a", businessId: "biz-1", name: "Anna", serviceIds: ["svc-cut"]}
  - {id: "emp-b", businessId: "biz-1", name: "Ben", serviceIds: ["svc-cut"]}
scheduleExceptions:
  - {id: "exc-1", employeeId: "emp-a", date: "2099-12-24", type: "unavailable", reason: "Ferien"}
  - {id: "exc-2", employeeId: "emp-a", date: "2099-12-25", type: "unavailable", reason: "Ferien"}
appointments: []
"""


@pytest.fixture
def config_file(tmp_path):
    (tmp_path / "data.yaml").write_text(DATA_YAML, encoding="utf-8")
    config = tmp_path / "config.yaml"
    config.write_text(
        "data_file: \"data.yaml\"\n"
        "booking:\n"
        "  slot_interval: 30\n"
        "  max_advance_booking_days: 36500\n",
        encoding="utf-8",
    )
    return config


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_slots_lists_times_and_employees(config_file):
    # 2098-12-29 is a Monday
    result = runner.invoke(
        app, ["slots", "biz-1", "svc-cut", "--date", "2098-12-29", "-c", str(config_file)]
    )

    assert result.exit_code == 0, result.stdout
    assert "09:00" in result.stdout
    assert "10:30" in result.stdout
    assert "Anna, Ben" in result.stdout


def test_slots_on_closed_day(config_file):
    result = runner.invoke(
        app, ["slots", "biz-1", "svc-cut", "--date", "2098-12-28", "-c", str(config_file)]
    )

    assert result.exit_code == 0
    assert "Keine freien Termine" in result.stdout


def test_unknown_business_exits_with_error(config_file):
    result = runner.invoke(
        app, ["slots", "biz-x", "svc-cut", "--date", "2098-12-29", "-c", str(config_file)]
    )

    assert result.exit_code == 1
    assert "Business biz-x not found" in result.stdout


def test_missing_config(tmp_path):
    result = runner.invoke(app, ["slots", "biz-1", "svc-cut", "-c", str(tmp_path / "none.yaml")])

    assert result.exit_code == 1
    assert "Config file not found" in result.stdout


def test_exceptions_as_ranges(config_file):
    result = runner.invoke(app, [
        "exceptions", "biz-1", "--from", "2099-12-01", "--to", "2099-12-31", "--ranges",
        "-c", str(config_file),
    ])

    assert result.exit_code == 0, result.stdout
    assert "24.12.2099" in result.stdout
    assert "25.12.2099" in result.stdout
    assert "Ferien" in result.stdout


def test_book_auto_assigns(config_file):
    result = runner.invoke(app, [
        "book", "biz-1", "svc-cut", "--date", "2098-12-29", "--time", "09:00",
        "-c", str(config_file),
    ])

    assert result.exit_code == 0, result.stdout
    assert "emp-a" in result.stdout
    assert "automatisch zugewiesen" in result.stdout


def test_book_unavailable_slot(config_file):
    result = runner.invoke(app, [
        "book", "biz-1", "svc-cut", "--date", "2098-12-29", "--time", "10:45",
        "-c", str(config_file),
    ])

    assert result.exit_code == 1
    assert "Fehler" in result.stdout
