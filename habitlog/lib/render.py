from datetime import date, timedelta

from habitlog.grid import DayCell
from habitlog.store import HabitStore

from . import ansi, clock

__all__ = [
    "render_archive",
    "render_day",
    "render_habit_matrix",
    "render_month",
    "render_stats",
    "render_year",
]

_WEEKDAYS = ["S", "M", "T", "W", "T", "F", "S"]


def _pct(rate: float) -> str:
    return f"{rate * 100:.0f}%"


def render_habit_matrix(store: HabitStore) -> str:
    habits = store.habits
    if not habits:
        return "No habits found."

    lines = ["HABIT TRACKER (last 7 days)\n"]
    today = clock.today()
    dates = [today - timedelta(days=i) for i in range(6, -1, -1)]
    day_names = [d.strftime("%a").lower() for d in dates]

    header = "habit           " + " ".join(day_names) + "   streak  key"
    lines.append(header)
    lines.append("-" * len(header))

    for habit in sorted(habits, key=lambda h: h.name.lower()):
        cells = []
        for d in dates:
            mark = "✓" if store.is_completed(habit.id, d) else "□"
            cells.append(f"{mark:<3}")
        streak = store.streak_count(habit.id)
        streak_str = ansi.orange(f"{streak:>6}") if streak else ansi.dim(f"{streak:>6}")
        lines.append(
            f"{habit.name.lower()[:15]:<15} "
            + " ".join(cells)
            + f"  {streak_str}  {ansi.gray('[' + habit.id[:8] + ']')}"
        )

    done, total = store.today_progress()
    lines.append("")
    lines.append(f"today: {done}/{total}")
    return "\n".join(lines)


def _grid_rows(cells: list[DayCell]) -> list[str]:
    rows = []
    for start in range(0, len(cells), 7):
        week = cells[start : start + 7]
        parts = []
        for cell in week:
            label = f"{cell.day.day:>2}"
            if not cell.in_month:
                parts.append(ansi.dim(label))
            elif cell.count:
                parts.append(ansi.level(label, cell.level))
            else:
                parts.append(label)
            if cell.is_today:
                parts[-1] = ansi.bold(parts[-1])
        rows.append(" ".join(parts))
    return rows


def render_month(cells: list[DayCell], year: int, month: int) -> str:
    title = date(year, month, 1).strftime("%B %Y")
    done_days = sum(1 for c in cells if c.in_month and c.count > 0)
    in_month = sum(1 for c in cells if c.in_month)
    lines = [ansi.bold(title), " ".join(f"{d:>2}" for d in _WEEKDAYS)]
    lines.extend(_grid_rows(cells))
    lines.append(f"{done_days}/{in_month} days with completions")
    return "\n".join(lines)


def render_year(cells: list[DayCell], labels: list[str]) -> str:
    """GitHub-style grid: one column per week, one row per weekday."""
    weeks = [cells[i : i + 7] for i in range(0, len(cells), 7)]
    lines = ["   " + " ".join(labels)]
    for weekday in range(7):
        row = []
        for week in weeks:
            if weekday < len(week):
                cell = week[weekday]
                row.append(ansi.level("■", cell.level))
            else:
                row.append(" ")
        lines.append(f"{_WEEKDAYS[weekday]}  " + "".join(row))
    lines.append("less " + "".join(ansi.level("■", lvl) for lvl in range(5)) + " more")
    return "\n".join(lines)


def render_archive(store: HabitStore) -> str:
    archived = store.get_deleted_habits_with_history()
    if not archived:
        return "no deleted habits"
    lines = []
    for habit in archived:
        deleted = habit.deleted_at.strftime("%Y-%m-%d") if habit.deleted_at else "?"
        count = len(habit.completion_history)
        lines.append(f"{ansi.dim(habit.name)}  deleted {deleted}  {count} completions")
        recent = store.completion_history_for_deleted(habit)[:5]
        if recent:
            lines.append(f"  {ansi.gray(', '.join(recent))}")
    return "\n".join(lines)


def render_day(store: HabitStore, day: date) -> str:
    groups = store.get_all_habits_for_date(day)
    completed, total = store.progress_counts_for_date(day)
    lines = [ansi.bold(day.strftime("%A, %d %b %Y")), f"{completed} of {total} habits completed"]
    for habit in groups.active:
        mark = "✓" if store.is_completed_in_history(habit, day) else "□"
        lines.append(f"  {mark} {habit.name}")
    if groups.archived:
        lines.append(ansi.dim("archived"))
        lines.extend(f"  ✓ {ansi.dim(habit.name)}" for habit in groups.archived)
    return "\n".join(lines)


def render_stats(store: HabitStore) -> str:
    done, total = store.today_progress()
    lines = [
        f"today: {done}/{total} ({_pct(store.completion_rate())})",
        f"average: {_pct(store.average_completion_rate())}",
        f"days tracked: {store.total_completed_days()}",
    ]
    for habit in sorted(store.habits, key=lambda h: h.name.lower()):
        lines.append(f"  {habit.name}: {store.streak_count(habit.id)} day streak")
    return "\n".join(lines)
