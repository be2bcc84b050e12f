import calendar
from datetime import date, datetime, timedelta

from dateutil import parser as dateutil_parser
from dateutil.parser import ParserError

from . import clock

__all__ = [
    "contribution_dates",
    "date_key",
    "days_in_month",
    "month_days",
    "month_grid",
    "parse_day",
    "parse_key",
    "shift_months",
    "week_start",
]

GRID_DAYS = 42
CONTRIBUTION_MONTHS = 11


def date_key(value: date | datetime | str | None = None) -> str:
    """Canonical YYYY-MM-DD key for a calendar day.

    Aware datetimes are converted to local time first, so every instant that
    falls on the same local day yields the same key. None means today.
    """
    if value is None:
        return clock.today().isoformat()
    if isinstance(value, str):
        value = _parse_iso(value)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date().isoformat()
    return value.isoformat()


def _parse_iso(text: str) -> date | datetime:
    text = text.strip()
    if "T" in text or " " in text:
        return datetime.fromisoformat(text)
    return parse_key(text)


def parse_key(key: str) -> date:
    """Parse a plain YYYY-MM-DD key. Raises ValueError on anything else."""
    return date.fromisoformat(key.strip())


def parse_day(text: str) -> date | None:
    """Parse 'today', 'yesterday', 'tomorrow', an ISO date, or free-form text."""
    lowered = text.strip().lower()
    today = clock.today()

    if lowered == "today":
        return today
    if lowered == "yesterday":
        return today - timedelta(days=1)
    if lowered == "tomorrow":
        return today + timedelta(days=1)
    try:
        return parse_key(lowered)
    except ValueError:
        pass
    try:
        return dateutil_parser.parse(
            text, default=datetime(today.year, today.month, today.day)
        ).date()
    except (ParserError, ValueError, OverflowError):
        return None


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_days(year: int, month: int) -> list[date]:
    return [date(year, month, d) for d in range(1, days_in_month(year, month) + 1)]


def shift_months(day: date, months: int) -> date:
    """Move by whole months, clamping the day to the target month's length."""
    index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    return date(year, month, min(day.day, days_in_month(year, month)))


def week_start(day: date) -> date:
    """Sunday on or before the given day."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def month_grid(year: int, month: int) -> list[date]:
    start = week_start(date(year, month, 1))
    return [start + timedelta(days=i) for i in range(GRID_DAYS)]


def contribution_dates(today: date | None = None) -> list[date]:
    """Every day from the Sunday before (today - 11 months) through today."""
    today = today or clock.today()
    start = week_start(shift_months(today, -CONTRIBUTION_MONTHS))
    return [start + timedelta(days=i) for i in range((today - start).days + 1)]
