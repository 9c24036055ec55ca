"""Date helpers, settings and logging setup."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

import pytest

from cadence.core.config import Settings, get_settings
from cadence.core.exceptions import GoalGraphError, InvalidDateError, ValidationFailedError
from cadence.core.logging import configure_logging
from cadence.utils.dates import first_monday_after, parse_date, to_timestamp_ms, week_start, weekly_mondays


def test_week_start_is_monday():
    assert week_start(date(2024, 2, 12)) == date(2024, 2, 12)
    assert week_start(date(2024, 2, 18)) == date(2024, 2, 12)
    assert week_start(datetime(2024, 2, 14, 23, 0, tzinfo=timezone.utc)) == date(2024, 2, 12)
    assert week_start().weekday() == 0


def test_first_monday_strictly_after():
    assert first_monday_after(date(2024, 1, 1)) == date(2024, 1, 8)
    assert first_monday_after(date(2024, 1, 3)) == date(2024, 1, 8)
    assert first_monday_after(date(2024, 1, 7)) == date(2024, 1, 8)


def test_weekly_mondays_inclusive():
    assert weekly_mondays(date(2024, 1, 8), date(2024, 1, 22)) == [
        date(2024, 1, 8),
        date(2024, 1, 15),
        date(2024, 1, 22),
    ]
    assert weekly_mondays(date(2024, 1, 22), date(2024, 1, 8)) == []


def test_parse_date():
    assert parse_date("2024-03-31") == date(2024, 3, 31)
    assert parse_date(" ") is None
    assert parse_date(None) is None
    assert parse_date(datetime(2024, 3, 31, 12)) == date(2024, 3, 31)
    with pytest.raises(InvalidDateError) as exc_info:
        parse_date("03/31/2024")
    assert exc_info.value.message.startswith("Invalid date format")
    assert isinstance(exc_info.value, ValidationFailedError)


def test_timestamp_ms_is_utc_midnight():
    assert to_timestamp_ms(date(1970, 1, 2)) == 86_400_000


def test_errors_aggregate_messages():
    error = GoalGraphError(["first", "", "second"])
    assert error.messages == ["first", "second"]
    assert error.message == "first; second"


def test_settings_defaults_and_database_url():
    settings = Settings(APP_ENV="development", DATABASE_URL_OVERRIDE=None, TEST_DATABASE_URL=None)
    assert settings.CHECK_IN_MOMENT_DELTA == 20
    assert settings.REASON_ONLY_DEFAULT_CONFIDENCE == 5
    assert settings.DEFAULT_CHILD_TARGET_DAYS == 90
    assert settings.DATABASE_URL.startswith("postgresql+asyncpg://")
    assert settings.DATABASE_URL_SYNC.startswith("postgresql://")

    sqlite_settings = Settings(DATABASE_URL_OVERRIDE="sqlite+aiosqlite:///./cadence.db", APP_ENV="development")
    assert sqlite_settings.DATABASE_URL_SYNC == "sqlite:///./cadence.db"

    assert Settings(LOG_LEVEL=" debug ").LOG_LEVEL == "DEBUG"
    assert get_settings() is get_settings()


def test_configure_logging_sets_level():
    root = logging.getLogger()
    previous = root.level
    try:
        configure_logging("warning")
        assert root.level == logging.WARNING
    finally:
        root.setLevel(previous)
