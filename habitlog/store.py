"""The habit store: active habits, the deleted-habit archive, and the daily
completion index, kept consistent and persisted after every mutation.

A completion fact lives in two places: each habit's ``completion_history``
and the ``history`` index (date-key -> habit ids). ``toggle_completion`` is the
only writer of completion facts and updates both before saving.
"""

import dataclasses
import logging
from collections.abc import Callable, Iterable
from datetime import date, datetime, time, timedelta

from . import config
from .core.models import DayHabits, Habit, new_habit_id
from .db import DELETED_HABITS_KEY, HABITS_KEY, HISTORY_KEY, KeyValueStore
from .lib import clock
from .lib.converters import decode_habits, decode_history, encode_habits, encode_history
from .lib.dates import date_key

__all__ = ["MAX_STREAK_DAYS", "HabitStore"]

logger = logging.getLogger(__name__)

MAX_STREAK_DAYS = 100 * 366

Day = date | datetime | str | None
Observer = Callable[["HabitStore"], None]


def _cutoff(day: date | datetime | str) -> datetime:
    """Instant a deletion must come after for a habit to count as alive on `day`."""
    if isinstance(day, datetime):
        if day.tzinfo is not None:
            return day.astimezone().replace(tzinfo=None)
        return day
    if isinstance(day, str):
        day = date.fromisoformat(date_key(day))
    return datetime.combine(day, time.min)


def _naive_local(dt: datetime) -> datetime:
    return dt.astimezone().replace(tzinfo=None) if dt.tzinfo is not None else dt


class HabitStore:
    def __init__(
        self,
        kv: KeyValueStore,
        max_habits: int | None = None,
        name_max_length: int | None = None,
    ):
        self.kv = kv
        self.max_habits = max_habits if max_habits is not None else config.get_max_habits()
        self.name_max_length = (
            name_max_length if name_max_length is not None else config.get_name_max_length()
        )
        self._habits: list[Habit] = []
        self._deleted: list[Habit] = []
        self._history: dict[str, set[str]] = {}
        self._observers: list[Observer] = []
        self._load()
        self.cleanup_orphaned_history()

    # ── state views ──────────────────────────────────────────────────────────

    @property
    def habits(self) -> list[Habit]:
        return list(self._habits)

    @property
    def deleted_habits(self) -> list[Habit]:
        return list(self._deleted)

    @property
    def history(self) -> dict[str, set[str]]:
        return {key: set(ids) for key, ids in self._history.items()}

    @property
    def habit_count(self) -> int:
        return len(self._habits)

    def get_habit(self, habit_id: str) -> Habit | None:
        return next((h for h in self._habits if h.id == habit_id), None)

    def subscribe(self, callback: Observer) -> Callable[[], None]:
        """Call `callback(store)` after every persisted mutation."""
        self._observers.append(callback)

        def unsubscribe() -> None:
            if callback in self._observers:
                self._observers.remove(callback)

        return unsubscribe

    # ── mutations ────────────────────────────────────────────────────────────

    def _index_of(self, habit_id: str) -> int | None:
        return next((i for i, h in enumerate(self._habits) if h.id == habit_id), None)

    def add_habit(self, name: str) -> Habit | None:
        if len(self._habits) >= self.max_habits:
            logger.info("habit cap %d reached, ignoring add", self.max_habits)
            return None
        trimmed = name.strip()[: self.name_max_length].rstrip()
        if not trimmed:
            return None
        habit = Habit(id=new_habit_id(), name=trimmed)
        self._habits.append(habit)
        self._commit()
        logger.debug("added habit %s", habit.id)
        return habit

    def edit_habit(self, habit_id: str, new_name: str) -> Habit | None:
        idx = self._index_of(habit_id)
        if idx is None:
            return None
        self._habits[idx] = dataclasses.replace(self._habits[idx], name=new_name)
        self._commit()
        return self._habits[idx]

    def update_habit(self, habit: Habit) -> Habit | None:
        idx = self._index_of(habit.id)
        if idx is None:
            return None
        self._habits[idx] = habit
        self._commit()
        return habit

    def toggle_completion(self, habit_id: str, day: Day = None) -> Habit | None:
        idx = self._index_of(habit_id)
        if idx is None:
            return None
        key = date_key(day)
        completed = self._history.setdefault(key, set())
        habit = self._habits[idx]

        if habit_id in completed:
            completed.discard(habit_id)
            if not completed:
                del self._history[key]
            history = [k for k in habit.completion_history if k != key]
        else:
            completed.add(habit_id)
            history = list(habit.completion_history)
            if key not in history:
                history.append(key)

        self._habits[idx] = dataclasses.replace(habit, completion_history=history)
        self._commit()
        return self._habits[idx]

    def _archive(self, habit: Habit) -> Habit:
        archived = dataclasses.replace(
            habit,
            deleted_at=clock.now(),
            completion_history=list(habit.completion_history),
        )
        self._deleted.append(archived)
        return archived

    def delete_habit(self, habit_id: str) -> Habit | None:
        """Archive a habit and strip it from the daily index.

        The archived copy keeps its embedded history, which remains the record
        of what it completed.
        """
        habit = self.get_habit(habit_id)
        archived = self._archive(habit) if habit else None
        self._habits = [h for h in self._habits if h.id != habit_id]

        for key in list(self._history):
            self._history[key].discard(habit_id)
            if not self._history[key]:
                del self._history[key]
        self._commit()
        return archived

    def delete_habits(self, positions: Iterable[int]) -> list[Habit]:
        """Archive the active habits at the given list positions.

        Unlike `delete_habit` this leaves the daily index alone; the
        startup cleanup pass drops the stale ids.
        """
        targets = sorted({p for p in positions if 0 <= p < len(self._habits)})
        archived = [self._archive(self._habits[p]) for p in targets]
        drop = set(targets)
        self._habits = [h for i, h in enumerate(self._habits) if i not in drop]
        self._commit()
        return archived

    def cleanup_orphaned_history(self) -> int:
        """Keep only active habit ids in the index. Returns ids removed."""
        active_ids = {h.id for h in self._habits}
        cleaned: dict[str, set[str]] = {}
        removed = 0
        for key, ids in self._history.items():
            valid = ids & active_ids
            removed += len(ids) - len(valid)
            if valid:
                cleaned[key] = valid
        self._history = cleaned
        if removed:
            logger.info("purged %d orphaned history entries", removed)
        self._commit()
        return removed

    def clear_all_data(self) -> None:
        self._habits = []
        self._deleted = []
        self._history = {}
        self._commit()

    # ── queries ──────────────────────────────────────────────────────────────

    def is_completed(self, habit_id: str, day: Day = None) -> bool:
        return habit_id in self._history.get(date_key(day), ())

    @staticmethod
    def is_completed_in_history(habit: Habit, day: Day = None) -> bool:
        return date_key(day) in habit.completion_history

    def completion_rate(self, day: Day = None) -> float:
        total = len(self._habits)
        if total == 0:
            return 0.0
        return len(self._history.get(date_key(day), ())) / total

    def completion_count(self, day: Day = None) -> int:
        """Completions on `day` by habits that are still active."""
        active_ids = {h.id for h in self._habits}
        return len(self._history.get(date_key(day), set()) & active_ids)

    def streak_count(self, habit_id: str) -> int:
        current = clock.today()
        streak = 0
        while streak < MAX_STREAK_DAYS and self.is_completed(habit_id, current):
            streak += 1
            current -= timedelta(days=1)
        return streak

    def total_completed_days(self) -> int:
        return len(self._history)

    def average_completion_rate(self) -> float:
        # Every historical day is divided by today's active count.
        if not self._history:
            return 0.0
        total = len(self._habits)
        rates = [len(ids) / total if total else 0.0 for ids in self._history.values()]
        return sum(rates) / len(rates)

    def today_progress(self) -> tuple[int, int]:
        return self.completion_count(clock.today()), len(self._habits)

    def get_deleted_habits_with_history(self) -> list[Habit]:
        return sorted(
            self._deleted,
            key=lambda h: (h.deleted_at is not None, _naive_local(h.deleted_at or datetime.min)),
            reverse=True,
        )

    @staticmethod
    def completion_history_for_deleted(habit: Habit) -> list[str]:
        return sorted(habit.completion_history, reverse=True)

    def get_all_habits_for_date(self, day: date | datetime | str) -> DayHabits:
        cutoff = _cutoff(day)
        key = date_key(day)
        archived = [
            h
            for h in self._deleted
            if h.deleted_at is not None
            and _naive_local(h.deleted_at) > cutoff
            and key in h.completion_history
        ]
        return DayHabits(
            active=sorted(self._habits, key=lambda h: h.name),
            archived=sorted(archived, key=lambda h: h.name),
        )

    def progress_counts_for_date(self, day: date | datetime | str) -> tuple[int, int]:
        relevant = self.get_all_habits_for_date(day).all
        completed = sum(1 for h in relevant if self.is_completed_in_history(h, day))
        return completed, len(relevant)

    def progress_for_date(self, day: date | datetime | str) -> float:
        completed, total = self.progress_counts_for_date(day)
        return completed / total if total else 0.0

    def check_consistency(self) -> list[str]:
        """Describe every disagreement between the index and active habits."""
        problems: list[str] = []
        by_id = {h.id: h for h in self._habits}
        for key, ids in sorted(self._history.items()):
            for habit_id in sorted(ids):
                habit = by_id.get(habit_id)
                if habit is None:
                    problems.append(f"{key}: orphaned id {habit_id[:8]}")
                elif key not in habit.completion_history:
                    problems.append(f"{key}: {habit.name} indexed but not in its history")
        for habit in self._habits:
            problems.extend(
                f"{key}: {habit.name} in its history but not indexed"
                for key in sorted(set(habit.completion_history))
                if habit.id not in self._history.get(key, ())
            )
        return problems

    # ── persistence ──────────────────────────────────────────────────────────

    def _commit(self) -> None:
        self._save()
        for callback in list(self._observers):
            callback(self)

    def _save(self) -> None:
        blobs = (
            (HABITS_KEY, lambda: encode_habits(self._habits)),
            (DELETED_HABITS_KEY, lambda: encode_habits(self._deleted)),
            (HISTORY_KEY, lambda: encode_history(self._history)),
        )
        for key, encode in blobs:
            try:
                self.kv.set(key, encode())
            except Exception:
                logger.exception("failed to save %s", key)
        logger.debug(
            "saved %d habits, %d deleted, %d days",
            len(self._habits),
            len(self._deleted),
            len(self._history),
        )

    def _load_blob(self, key: str, decode, empty):
        try:
            data = self.kv.get(key)
        except Exception:
            logger.exception("failed to read %s", key)
            return empty
        if data is None:
            logger.info("no %s data found", key)
            return empty
        try:
            return decode(data)
        except (ValueError, RecursionError):
            logger.warning("failed to decode %s, resetting", key, exc_info=True)
            return empty

    def _normalize(self) -> None:
        """Move stamped entries out of the active list and drop repeated ids.

        Active entries win over archived ones with the same id.
        """
        active: list[Habit] = []
        deleted: list[Habit] = []
        seen: set[str] = set()
        for habit in self._habits:
            if habit.id in seen:
                logger.warning("dropping duplicate habit %s", habit.id)
                continue
            seen.add(habit.id)
            if habit.deleted_at is not None:
                logger.warning("habit %s has deletedAt, moving to archive", habit.id)
                deleted.append(habit)
            else:
                active.append(habit)
        for habit in self._deleted:
            if habit.id in seen:
                logger.warning("dropping duplicate archived habit %s", habit.id)
                continue
            seen.add(habit.id)
            deleted.append(habit)
        self._habits = active
        self._deleted = deleted

    def _load(self) -> None:
        self._habits = self._load_blob(HABITS_KEY, decode_habits, [])
        self._deleted = self._load_blob(DELETED_HABITS_KEY, decode_habits, [])
        self._history = self._load_blob(HISTORY_KEY, decode_history, {})
        self._normalize()
        logger.debug(
            "loaded %d habits, %d deleted, %d days",
            len(self._habits),
            len(self._deleted),
            len(self._history),
        )
