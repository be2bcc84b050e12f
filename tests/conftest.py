from datetime import datetime

import pytest

from habitlog import config
from habitlog.db import MemoryStore
from habitlog.lib import clock
from habitlog.store import HabitStore

FIXED_NOW = datetime(2024, 6, 15, 9, 30)


@pytest.fixture(autouse=True)
def tmp_habitlog_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "HABITLOG_DIR", tmp_path)
    monkeypatch.setattr(config, "STORE_PATH", tmp_path / "store.db")
    monkeypatch.setattr(config, "CONFIG_PATH", tmp_path / "config.yaml")
    monkeypatch.setattr(config.Config, "_instance", None)
    return tmp_path


@pytest.fixture
def set_now(monkeypatch):
    """Pin the clock; call again to move it."""

    def _set(value: datetime) -> datetime:
        monkeypatch.setattr(clock, "now", lambda: value)
        return value

    return _set


@pytest.fixture
def frozen_clock(set_now):
    return set_now(FIXED_NOW)


@pytest.fixture
def kv():
    return MemoryStore()


@pytest.fixture
def store(kv):
    return HabitStore(kv, max_habits=10, name_max_length=30)
