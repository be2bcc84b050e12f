import re
from collections.abc import Callable
from dataclasses import dataclass

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


@dataclass(frozen=True)
class Theme:
    red: str = "\033[38;5;203m"
    green: str = "\033[38;5;114m"
    yellow: str = "\033[38;5;221m"
    cyan: str = "\033[38;5;117m"
    gray: str = "\033[38;5;245m"
    orange: str = "\033[38;5;208m"
    muted: str = "\033[90m"  # dim gray for secondary text
    bold: str = "\033[1m"
    dim: str = "\033[2m"
    reset: str = "\033[0m"


DEFAULT = Theme()
PLAIN = Theme(**{name: "" for name in Theme.__dataclass_fields__})
_active: Theme = DEFAULT


def use(theme: Theme) -> None:
    global _active
    _active = theme


_COLORS = {"red", "green", "yellow", "cyan", "gray", "orange", "muted"}

# Contribution shades, empty through fully done.
LEVELS: list[str] = [
    "\033[38;5;238m",
    "\033[38;5;22m",
    "\033[38;5;28m",
    "\033[38;5;34m",
    "\033[38;5;46m",
]


def __getattr__(name: str) -> Callable[[str], str]:
    if name in _COLORS:

        def _wrap(text: str) -> str:
            return f"{getattr(_active, name)}{text}{_active.reset}"

        _wrap.__name__ = name
        return _wrap
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def bold(text: str) -> str:
    return f"{_active.bold}{text}{_active.reset}"


def dim(text: str) -> str:
    return f"{_active.dim}{text}{_active.reset}"


def level(text: str, lvl: int) -> str:
    if not _active.reset:
        return text
    return f"{LEVELS[max(0, min(lvl, len(LEVELS) - 1))]}{text}{_active.reset}"


def strip(text: str) -> str:
    return _ANSI_RE.sub("", text)
