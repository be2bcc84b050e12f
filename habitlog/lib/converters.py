import json
from datetime import date, datetime
from typing import Any, cast

from habitlog.core.models import Habit

__all__ = [
    "decode_habits",
    "decode_history",
    "encode_habits",
    "encode_history",
    "habit_to_dict",
    "row_to_habit",
]

History = dict[str, list[str]]


def _parse_datetime_optional(val) -> datetime | None:
    """Parse an optional datetime value that may be str or numeric timestamp."""
    if isinstance(val, str) and val:
        try:
            return datetime.fromisoformat(val)
        except ValueError:
            return datetime.combine(date.fromisoformat(val), datetime.min.time())
    elif isinstance(val, (int, float)) and not isinstance(val, bool):
        try:
            return datetime.fromtimestamp(val)
        except (OverflowError, OSError) as e:
            raise ValueError(f"timestamp out of range: {val!r}") from e
    return None


def habit_to_dict(habit: Habit) -> dict[str, Any]:
    return {
        "id": habit.id,
        "name": habit.name,
        "deletedAt": habit.deleted_at.isoformat() if habit.deleted_at else None,
        "completionHistory": list(habit.completion_history),
    }


def row_to_habit(row: dict[str, Any]) -> Habit:
    """
    Converts one decoded JSON object into a Habit.
    Expected keys: id, name, optional deletedAt, optional completionHistory.
    """
    if not isinstance(row, dict):
        raise ValueError(f"habit entry must be an object, got {type(row).__name__}")
    habit_id = row.get("id")
    name = row.get("name")
    if not isinstance(habit_id, str) or not habit_id:
        raise ValueError("habit entry missing 'id'")
    if not isinstance(name, str):
        raise ValueError(f"habit {habit_id} missing 'name'")
    history = row.get("completionHistory") or []
    if not isinstance(history, list) or not all(isinstance(k, str) for k in history):
        raise ValueError(f"habit {habit_id} has malformed 'completionHistory'")
    return Habit(
        id=habit_id,
        name=name,
        deleted_at=_parse_datetime_optional(row.get("deletedAt")),
        completion_history=cast(list[str], list(history)),
    )


def encode_habits(habits: list[Habit]) -> bytes:
    return json.dumps([habit_to_dict(h) for h in habits], indent=2).encode()


def decode_habits(data: bytes) -> list[Habit]:
    rows = json.loads(data)
    if not isinstance(rows, list):
        raise ValueError("habits payload must be a list")
    return [row_to_habit(row) for row in rows]


def encode_history(history: dict[str, set[str]] | History) -> bytes:
    return json.dumps({key: sorted(ids) for key, ids in sorted(history.items())}, indent=2).encode()


def decode_history(data: bytes) -> dict[str, set[str]]:
    raw = json.loads(data)
    if not isinstance(raw, dict):
        raise ValueError("history payload must be an object")
    history: dict[str, set[str]] = {}
    for key, ids in raw.items():
        if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
            raise ValueError(f"history entry {key!r} must be a list of ids")
        history[key] = set(ids)
    return history
