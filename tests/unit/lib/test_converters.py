import json
from datetime import datetime

import pytest

from habitlog.core.models import Habit
from habitlog.lib.converters import (
    decode_habits,
    decode_history,
    encode_habits,
    encode_history,
    habit_to_dict,
    row_to_habit,
)


def test_habit_to_dict_field_names():
    habit = Habit(id="h1", name="read", completion_history=["2024-01-01"])
    assert habit_to_dict(habit) == {
        "id": "h1",
        "name": "read",
        "deletedAt": None,
        "completionHistory": ["2024-01-01"],
    }


def test_archived_habit_keeps_timestamp():
    deleted = datetime(2024, 6, 5, 12, 30)
    habit = Habit(id="h1", name="read", deleted_at=deleted, completion_history=["2024-06-01"])
    [decoded] = decode_habits(encode_habits([habit]))
    assert decoded == habit
    assert decoded.archived


def test_row_to_habit_defaults():
    habit = row_to_habit({"id": "h1", "name": "read"})
    assert habit.deleted_at is None
    assert habit.completion_history == []


def test_row_to_habit_accepts_date_only_timestamp():
    habit = row_to_habit({"id": "h1", "name": "read", "deletedAt": "2024-06-05"})
    assert habit.deleted_at == datetime(2024, 6, 5)


@pytest.mark.parametrize(
    "payload",
    [
        b"not json",
        b'{"id": "h1"}',
        b'[{"name": "no id"}]',
        b'[{"id": "h1", "name": "x", "completionHistory": "2024-01-01"}]',
        b'[42]',
    ],
)
def test_decode_habits_rejects_malformed(payload):
    with pytest.raises(ValueError):
        decode_habits(payload)


def test_history_encoding_is_sorted_lists():
    data = encode_history({"2024-01-02": {"b", "a"}, "2024-01-01": {"c"}})
    assert json.loads(data) == {"2024-01-01": ["c"], "2024-01-02": ["a", "b"]}
    assert list(json.loads(data)) == ["2024-01-01", "2024-01-02"]


def test_decode_history():
    assert decode_history(b'{"2024-01-01": ["a", "a", "b"]}') == {"2024-01-01": {"a", "b"}}


@pytest.mark.parametrize("payload", [b"[]", b'{"2024-01-01": "a"}', b'{"2024-01-01": [1]}'])
def test_decode_history_rejects_malformed(payload):
    with pytest.raises(ValueError):
        decode_history(payload)


def test_out_of_range_timestamp_is_value_error():
    with pytest.raises(ValueError):
        row_to_habit({"id": "h1", "name": "read", "deletedAt": 1e20})
