import dataclasses
import math
from datetime import date

from .lib import clock
from .lib.dates import contribution_dates, month_days, month_grid, shift_months
from .store import HabitStore

__all__ = [
    "MAX_LEVEL",
    "DayCell",
    "month_calendar",
    "month_contribution",
    "month_labels",
    "month_summary",
    "year_contribution",
]

MAX_LEVEL = 4


@dataclasses.dataclass(frozen=True)
class DayCell:
    day: date
    count: int
    total: int
    in_month: bool = True
    is_today: bool = False

    @property
    def key(self) -> str:
        return self.day.isoformat()

    @property
    def intensity(self) -> float:
        if self.total == 0:
            return 0.0
        return min(1.0, self.count / self.total)

    @property
    def level(self) -> int:
        """0 for no completions, otherwise 1..MAX_LEVEL by share of habits done."""
        if self.count == 0 or self.total == 0:
            return 0
        return max(1, min(MAX_LEVEL, math.ceil(self.intensity * MAX_LEVEL)))


def _cells(store: HabitStore, days: list[date], month: int | None = None) -> list[DayCell]:
    today = clock.today()
    total = store.habit_count
    return [
        DayCell(
            day=d,
            count=store.completion_count(d),
            total=total,
            in_month=month is None or d.month == month,
            is_today=d == today,
        )
        for d in days
    ]


def month_calendar(store: HabitStore, year: int, month: int) -> list[DayCell]:
    return _cells(store, month_days(year, month))


def month_contribution(store: HabitStore, year: int, month: int) -> list[DayCell]:
    return _cells(store, month_grid(year, month), month=month)


def year_contribution(store: HabitStore, today: date | None = None) -> list[DayCell]:
    return _cells(store, contribution_dates(today or clock.today()))


def month_labels(today: date | None = None) -> list[str]:
    start = shift_months(today or clock.today(), -11)
    return [shift_months(start, i).strftime("%b") for i in range(12)]


def month_summary(store: HabitStore, year: int, month: int) -> tuple[int, int]:
    """(days with at least one completion, days in month)."""
    cells = month_calendar(store, year, month)
    return sum(1 for c in cells if c.count > 0), len(cells)
