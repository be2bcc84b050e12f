from datetime import date

from habitlog.grid import (
    DayCell,
    month_calendar,
    month_contribution,
    month_labels,
    month_summary,
    year_contribution,
)
from habitlog.lib.dates import contribution_dates


def test_cell_level_and_intensity():
    assert DayCell(day=date(2024, 1, 1), count=0, total=4).level == 0
    assert DayCell(day=date(2024, 1, 1), count=1, total=4).level == 1
    assert DayCell(day=date(2024, 1, 1), count=2, total=4).level == 2
    assert DayCell(day=date(2024, 1, 1), count=4, total=4).level == 4
    assert DayCell(day=date(2024, 1, 1), count=1, total=10).level == 1
    assert DayCell(day=date(2024, 1, 1), count=3, total=4).intensity == 0.75


def test_cell_without_habits():
    cell = DayCell(day=date(2024, 1, 1), count=0, total=0)
    assert cell.intensity == 0
    assert cell.level == 0
    assert cell.key == "2024-01-01"


def test_month_calendar_counts_active_completions(store, frozen_clock):
    a = store.add_habit("a")
    b = store.add_habit("b")
    store.toggle_completion(a.id, "2024-02-29")
    store.toggle_completion(b.id, "2024-02-29")
    store.toggle_completion(a.id, "2024-02-01")
    store.delete_habits([1])

    cells = month_calendar(store, 2024, 2)

    assert len(cells) == 29
    by_key = {c.key: c for c in cells}
    assert by_key["2024-02-29"].count == 1
    assert by_key["2024-02-29"].total == 1
    assert by_key["2024-02-01"].count == 1
    assert by_key["2024-02-02"].count == 0


def test_month_contribution_marks_out_of_month_days(store, frozen_clock):
    cells = month_contribution(store, 2024, 6)
    assert len(cells) == 42
    assert cells[0].day == date(2024, 5, 26)
    assert not cells[0].in_month
    assert all(c.in_month for c in cells if c.day.month == 6)
    assert [c.day for c in cells if c.is_today] == [date(2024, 6, 15)]


def test_year_contribution(store, frozen_clock):
    habit = store.add_habit("read")
    store.toggle_completion(habit.id, "2024-06-15")
    cells = year_contribution(store)
    assert [c.day for c in cells] == contribution_dates(date(2024, 6, 15))
    assert cells[-1].count == 1
    assert cells[-1].level == 4


def test_month_labels():
    assert month_labels(date(2024, 6, 15)) == [
        "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
        "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    ]  # fmt: skip


def test_month_summary(store):
    habit = store.add_habit("read")
    store.toggle_completion(habit.id, "2024-04-01")
    store.toggle_completion(habit.id, "2024-04-30")
    assert month_summary(store, 2024, 4) == (2, 30)
