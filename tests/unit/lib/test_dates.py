from datetime import date, datetime, timedelta, timezone

import pytest

from habitlog.lib.dates import (
    contribution_dates,
    date_key,
    days_in_month,
    month_days,
    month_grid,
    parse_day,
    parse_key,
    shift_months,
    week_start,
)


def test_date_key_from_date():
    assert date_key(date(2024, 1, 5)) == "2024-01-05"


def test_date_key_ignores_time_of_day():
    assert date_key(datetime(2024, 3, 1, 0, 1)) == date_key(datetime(2024, 3, 1, 23, 59))


def test_date_key_aware_datetime_uses_local_day():
    moment = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
    assert date_key(moment) == moment.astimezone().date().isoformat()


def test_date_key_canonicalises_strings():
    assert date_key("2024-06-01") == "2024-06-01"
    assert date_key(" 2024-06-01T10:00:00 ") == "2024-06-01"


def test_date_key_offset_string_matches_aware_datetime():
    moment = datetime(2024, 6, 1, 23, 30, tzinfo=timezone(timedelta(hours=5)))
    assert date_key("2024-06-01T23:30:00+05:00") == date_key(moment)


def test_date_key_rejects_garbage():
    with pytest.raises(ValueError):
        date_key("june")


def test_date_key_defaults_to_today(frozen_clock):
    assert date_key() == "2024-06-15"


def test_parse_key():
    assert parse_key("2024-02-29") == date(2024, 2, 29)


def test_parse_day_keywords(frozen_clock):
    assert parse_day("today") == date(2024, 6, 15)
    assert parse_day("Yesterday") == date(2024, 6, 14)
    assert parse_day("tomorrow") == date(2024, 6, 16)


def test_parse_day_iso_and_free_form(frozen_clock):
    assert parse_day("2023-12-31") == date(2023, 12, 31)
    assert parse_day("June 3 2024") == date(2024, 6, 3)


def test_parse_day_invalid(frozen_clock):
    assert parse_day("not a date") is None


def test_days_in_month():
    assert days_in_month(2024, 2) == 29
    assert days_in_month(2023, 2) == 28
    assert days_in_month(2024, 12) == 31


def test_month_days():
    days = month_days(2024, 4)
    assert len(days) == 30
    assert days[0] == date(2024, 4, 1)
    assert days[-1] == date(2024, 4, 30)


def test_shift_months_clamps_day():
    assert shift_months(date(2024, 3, 31), -1) == date(2024, 2, 29)
    assert shift_months(date(2024, 1, 31), 1) == date(2024, 2, 29)


def test_shift_months_crosses_years():
    assert shift_months(date(2024, 1, 15), -1) == date(2023, 12, 15)
    assert shift_months(date(2023, 12, 15), 13) == date(2025, 1, 15)


def test_week_start_is_sunday():
    assert week_start(date(2024, 6, 5)) == date(2024, 6, 2)
    assert week_start(date(2024, 6, 2)) == date(2024, 6, 2)
    assert week_start(date(2024, 6, 8)) == date(2024, 6, 2)


def test_month_grid_six_weeks_from_sunday():
    grid = month_grid(2024, 6)
    assert len(grid) == 42
    assert grid[0] == date(2024, 5, 26)
    assert grid[0].weekday() == 6
    assert date(2024, 6, 30) in grid


def test_contribution_dates_span():
    days = contribution_dates(date(2024, 6, 15))
    assert days[0] == date(2023, 7, 9)
    assert days[-1] == date(2024, 6, 15)
    assert all(b - a == timedelta(days=1) for a, b in zip(days, days[1:]))
