import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Protocol

from . import config

__all__ = [
    "DELETED_HABITS_KEY",
    "HABITS_KEY",
    "HISTORY_KEY",
    "KeyValueStore",
    "MemoryStore",
    "SqliteStore",
    "get_db",
    "init",
]

logger = logging.getLogger(__name__)

HABITS_KEY = "habits"
DELETED_HABITS_KEY = "deletedHabits"
HISTORY_KEY = "habitHistory"

KV_TABLE = "kv"


class KeyValueStore(Protocol):
    def get(self, key: str) -> bytes | None: ...

    def set(self, key: str, value: bytes) -> None: ...


@contextmanager
def get_db(db_path: Path | None = None):
    db_path = db_path if db_path else config.STORE_PATH
    conn = sqlite3.connect(db_path)
    conn.execute("PRAGMA journal_mode=WAL")
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init(db_path: Path | None = None) -> None:
    db_path = db_path if db_path else config.STORE_PATH
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with get_db(db_path) as conn:
        conn.execute(
            f"CREATE TABLE IF NOT EXISTS {KV_TABLE} (key TEXT PRIMARY KEY, value BLOB NOT NULL)"
        )


class SqliteStore:
    """Durable byte blobs keyed by name, one row per key."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path if db_path else config.STORE_PATH
        init(self.db_path)

    def get(self, key: str) -> bytes | None:
        with get_db(self.db_path) as conn:
            row = conn.execute(
                f"SELECT value FROM {KV_TABLE} WHERE key = ?",  # noqa: S608
                (key,),
            ).fetchone()
        if row is None:
            return None
        value = row[0]
        return value.encode() if isinstance(value, str) else bytes(value)

    def set(self, key: str, value: bytes) -> None:
        with get_db(self.db_path) as conn:
            conn.execute(
                f"INSERT OR REPLACE INTO {KV_TABLE} (key, value) VALUES (?, ?)",  # noqa: S608
                (key, sqlite3.Binary(value)),
            )
        logger.debug("wrote %d bytes to %s", len(value), key)


class MemoryStore:
    def __init__(self, initial: dict[str, bytes] | None = None):
        self.data: dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> bytes | None:
        return self.data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self.data[key] = value
