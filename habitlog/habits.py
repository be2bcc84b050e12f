from datetime import date

from fncli import UsageError, cli

from . import config
from .core.errors import NotFoundError, ValidationError
from .core.models import Habit
from .db import SqliteStore
from .grid import month_contribution, month_labels, year_contribution
from .lib import clock
from .lib.dates import parse_day
from .lib.errors import echo
from .lib.fuzzy import find_in_pool, find_in_pool_exact
from .store import HabitStore

__all__ = [
    "find_habit",
    "find_habit_exact",
    "get_store",
    "resolve_day",
    "resolve_habit",
]


# ── domain ───────────────────────────────────────────────────────────────────


def get_store() -> HabitStore:
    return HabitStore(SqliteStore(config.STORE_PATH))


def find_habit(store: HabitStore, ref: str) -> Habit | None:
    return find_in_pool(ref, store.habits)


def find_habit_exact(store: HabitStore, ref: str) -> Habit | None:
    return find_in_pool_exact(ref, store.habits)


def resolve_habit(store: HabitStore, ref: str, exact: bool = False) -> Habit:
    habit = find_habit_exact(store, ref) if exact else find_habit(store, ref)
    if not habit:
        raise NotFoundError(f"No habit found: '{ref}'")
    return habit


def resolve_day(text: str | None) -> date:
    if text is None:
        return clock.today()
    day = parse_day(text)
    if day is None:
        raise ValidationError(f"Invalid date '{text}'")
    return day


# ── cli ──────────────────────────────────────────────────────────────────────


@cli("habitlog", name="add")
def add(name: str) -> None:
    """Add a habit"""
    store = get_store()
    habit = store.add_habit(name)
    if habit is None:
        if store.habit_count >= store.max_habits:
            raise ValidationError(f"habit limit reached ({store.max_habits})")
        raise ValidationError("habit name cannot be empty")
    echo(f"added {habit.name}  [{habit.id[:8]}]")


@cli("habitlog", name="rename")
def rename(ref: str, name: str) -> None:
    """Rename a habit"""
    new_name = name.strip()
    if not new_name:
        raise ValidationError("habit name cannot be empty")
    store = get_store()
    habit = resolve_habit(store, ref)
    if habit.name == new_name:
        raise ValidationError(f"cannot rename '{habit.name}' to itself")
    store.edit_habit(habit.id, new_name[: store.name_max_length])
    echo(f"→ {new_name[: store.name_max_length]}")


@cli("habitlog", name="check")
def check(ref: str, on: str | None = None) -> None:
    """Toggle a habit's completion (today, or --on DAY)"""
    store = get_store()
    habit = resolve_habit(store, ref)
    day = resolve_day(on)
    store.toggle_completion(habit.id, day)
    if store.is_completed(habit.id, day):
        echo(f"✓ {habit.name}  {day.isoformat()}")
    else:
        echo(f"□ {habit.name}  {day.isoformat()}")


@cli("habitlog", name="rm")
def rm(ref: str) -> None:
    """Delete a habit (its history is kept in the archive)"""
    store = get_store()
    habit = resolve_habit(store, ref, exact=True)
    store.delete_habit(habit.id)
    echo(f"deleted {habit.name}")


@cli("habitlog", name="habits")
def habits() -> None:
    """Show habits matrix"""
    from .lib.render import render_habit_matrix

    echo(render_habit_matrix(get_store()))


@cli("habitlog", name="archive")
def archive() -> None:
    """List deleted habits and their history"""
    from .lib.render import render_archive

    echo(render_archive(get_store()))


@cli("habitlog", name="day")
def day(when: str | None = None) -> None:
    """Show every habit relevant to a date"""
    from .lib.render import render_day

    echo(render_day(get_store(), resolve_day(when)))


@cli("habitlog", name="stats")
def stats() -> None:
    """Show progress, averages and streaks"""
    from .lib.render import render_stats

    echo(render_stats(get_store()))


@cli("habitlog", name="month")
def month_cmd(year: int | None = None, month: int | None = None) -> None:
    """Show a month calendar of completions"""
    from .lib.render import render_month

    today = clock.today()
    year = year or today.year
    month = month or today.month
    if not 1 <= month <= 12:
        raise UsageError("month must be 1-12")
    echo(render_month(month_contribution(get_store(), year, month), year, month))


@cli("habitlog", name="grid")
def grid_cmd() -> None:
    """Show the last twelve months as a contribution grid"""
    from .lib.render import render_year

    today = clock.today()
    echo(render_year(year_contribution(get_store(), today), month_labels(today)))


@cli("habitlog", name="health")
def health() -> None:
    """Check that the daily index agrees with habit histories"""
    problems = get_store().check_consistency()
    if not problems:
        echo("history: ✓ consistent")
        return
    echo(f"history: ✗ {len(problems)} issue(s)")
    for problem in problems:
        echo(f"  {problem}")
    raise SystemExit(1)


@cli("habitlog", name="clear")
def clear(yes: bool = False) -> None:
    """Delete every habit, archived habit and completion"""
    if not yes:
        raise UsageError("Usage: habitlog clear --yes")
    get_store().clear_all_data()
    echo("all data cleared")


@cli("habitlog", name="limit")
def limit(count: int | None = None) -> None:
    """Show or set the maximum number of active habits"""
    if count is None:
        echo(f"max habits: {config.get_max_habits()}")
        return
    if count < 1:
        raise ValidationError("limit must be at least 1")
    config.set_max_habits(count)
    echo(f"max habits: {count}")
