"""
Tests for the command line interface.
"""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from tutorbook import __version__
from tutorbook.adapters.memory_repository import JsonFileRepository
from tutorbook.cli.app import app
from tutorbook.domain.enums import SessionStatus

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text("timezone: Australia/Sydney\ncurrency: AUD\n", encoding="utf-8")
    return path


@pytest.fixture
def persistent_config(tmp_path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text("data_file: marketplace.json\n", encoding="utf-8")
    return path


def _invoke(*args):
    return runner.invoke(app, [str(arg) for arg in args])


def test_subjects_lists_catalog():
    result = _invoke("subjects")

    assert result.exit_code == 0
    assert "Mathematics Advanced" in result.output
    assert "Japanese" in result.output


def test_quote_shows_fee_split(config_file):
    result = _invoke("quote", "40", "-d", "60", "-c", config_file)

    assert result.exit_code == 0
    assert "$40.00" in result.output
    assert "$1.60" in result.output
    assert "$38.40" in result.output


def test_quote_rejects_unknown_duration(config_file):
    result = _invoke("quote", "40", "-d", "45", "-c", config_file)

    assert result.exit_code == 1
    assert "Duration must be one of" in result.output


def test_search_by_subject(config_file):
    result = _invoke("search", "--subject", "physics", "-c", config_file)

    assert result.exit_code == 0
    assert "tutor1" in result.output
    assert "tutor2" not in result.output


def test_search_without_matches(config_file):
    result = _invoke("search", "--max-rate", "10", "-c", config_file)

    assert result.exit_code == 0
    assert "No tutors match" in result.output


def test_availability(config_file):
    result = _invoke("availability", "tutor3", "-c", config_file)

    assert result.exit_code == 0
    assert "Friday" in result.output
    assert "15:30-18:30" in result.output


def test_book_and_pay(config_file):
    result = _invoke(
        "book", "tutor1",
        "-s", "math-advanced",
        "--date", "2026-11-09",
        "--time", "15:00",
        "--pay",
        "-c", config_file,
    )

    assert result.exit_code == 0, result.output
    assert "confirmed" in result.output
    assert "$45.00" in result.output


def test_book_outside_availability(config_file):
    result = _invoke(
        "book", "tutor1",
        "-s", "math-advanced",
        "--date", "2026-11-09",
        "--time", "20:00",
        "-c", config_file,
    )

    assert result.exit_code == 1
    assert "Error" in result.output
    assert "not available" in result.output


def test_booking_is_persisted_to_data_file(persistent_config):
    result = _invoke(
        "book", "tutor1",
        "-s", "physics",
        "--date", "2026-11-09",
        "--time", "17:00",
        "--pay",
        "-c", persistent_config,
    )
    assert result.exit_code == 0, result.output

    repository = JsonFileRepository(persistent_config.parent / "marketplace.json")
    sessions = repository.get_sessions_for_student("student-demo")
    assert len(sessions) == 2
    assert all(session.status is SessionStatus.CONFIRMED for session in sessions)


def test_add_slot_as_tutor(persistent_config):
    result = _invoke(
        "add-slot", "tutor1", "sun", "09:00", "10:00",
        "--user-id", "user-tutor1",
        "-c", persistent_config,
    )

    assert result.exit_code == 0, result.output
    assert "Added Sunday 09:00-10:00" in result.output


def test_add_slot_as_student_is_denied(config_file):
    result = _invoke("add-slot", "tutor1", "sun", "09:00", "10:00", "-c", config_file)

    assert result.exit_code == 1
    assert "Only tutor tutor1" in result.output


def test_earnings(config_file):
    result = _invoke("earnings", "tutor1", "-c", config_file)

    assert result.exit_code == 0
    assert "$43.20" in result.output


def test_earnings_for_a_period_lists_recent_payments(config_file):
    result = _invoke("earnings", "tutor1", "--period", "thisYear", "-c", config_file)

    assert result.exit_code == 0
    assert "This Year" in result.output
    assert "Recent payments" in result.output
    assert "session-demo-1" in result.output
    assert "1 Oct 2026" in result.output


def test_earnings_rejects_unknown_period(config_file):
    result = _invoke("earnings", "tutor1", "--period", "fortnight", "-c", config_file)
    assert result.exit_code != 0


def test_messages_show_seeded_thread(config_file):
    result = _invoke("messages", "user-tutor1", "-c", config_file)

    assert result.exit_code == 0
    assert "calculus" in result.output


def test_missing_config_file(tmp_path):
    result = _invoke("subjects")
    assert result.exit_code == 0

    result = _invoke("quote", "40", "-c", tmp_path / "missing.yaml")
    assert result.exit_code == 1
    assert "Config file not found" in result.output


def test_version():
    result = _invoke("version")

    assert result.exit_code == 0
    assert __version__ in result.output
