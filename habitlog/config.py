from pathlib import Path

import yaml

HABITLOG_DIR = Path.home() / ".habitlog"
STORE_PATH = HABITLOG_DIR / "store.db"
CONFIG_PATH = HABITLOG_DIR / "config.yaml"

DEFAULT_MAX_HABITS = 10
DEFAULT_NAME_MAX_LENGTH = 30


class Config:
    """Single-instance config manager. Load once, cache in memory."""

    _instance: "Config | None" = None
    _data: dict[str, object]

    def __new__(cls) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._data = {}
            cls._instance._load()
        return cls._instance

    def _load(self) -> None:
        """Load config from disk."""
        if not CONFIG_PATH.exists():
            self._data = {}
            return
        try:
            with CONFIG_PATH.open() as f:
                loaded = yaml.safe_load(f)
        except (OSError, yaml.YAMLError):
            loaded = None
        self._data = loaded if isinstance(loaded, dict) else {}

    def _save(self) -> None:
        """Persist config to disk."""
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        with CONFIG_PATH.open("w") as f:
            yaml.dump(self._data, f, default_flow_style=False, allow_unicode=True)

    def reload(self) -> None:
        self._load()

    def get(self, key: str, default: object = None) -> object:
        """Get config value."""
        return self._data.get(key, default)

    def set(self, key: str, value: object) -> None:
        """Set config value and persist."""
        self._data[key] = value
        self._save()


def _positive_int(key: str, default: int) -> int:
    val = Config().get(key)
    if isinstance(val, bool) or not isinstance(val, int) or val <= 0:
        return default
    return val


def get_max_habits() -> int:
    """Cap on active habits. Adds beyond it are ignored."""
    return _positive_int("max_habits", DEFAULT_MAX_HABITS)


def get_name_max_length() -> int:
    """Habit names are truncated to this many characters on add."""
    return _positive_int("name_max_length", DEFAULT_NAME_MAX_LENGTH)


def set_max_habits(value: int) -> None:
    Config().set("max_habits", value)
