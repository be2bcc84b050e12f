import dataclasses
import uuid
from datetime import datetime


def new_habit_id() -> str:
    return str(uuid.uuid4())


@dataclasses.dataclass(frozen=True)
class Habit:
    id: str
    name: str
    deleted_at: datetime | None = None
    completion_history: list[str] = dataclasses.field(default_factory=list, hash=False)

    @property
    def archived(self) -> bool:
        return self.deleted_at is not None


@dataclasses.dataclass(frozen=True)
class DayHabits:
    """Habits relevant to one calendar day: every active habit, plus archived
    habits deleted after that day which were completed on it."""

    active: list[Habit] = dataclasses.field(default_factory=list)
    archived: list[Habit] = dataclasses.field(default_factory=list)

    @property
    def all(self) -> list[Habit]:
        return self.active + self.archived
