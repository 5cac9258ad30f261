"""Test doubles for engine collaborators."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from src.core.clock import Clock
from src.domain.task import Difficulty, Task, TaskCategory, TaskType
from src.domain.user import NotificationKind
from src.models.service_models import QuestResult, QuestUserContext


class FrozenClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, now: datetime, tz: ZoneInfo | None = None) -> None:
        super().__init__(tz or ZoneInfo("UTC"))
        self._now = self.localize(now)

    def now(self) -> datetime:
        return self._now

    def set(self, now: datetime) -> None:
        self._now = self.localize(now)

    def advance(self, **kwargs: float) -> None:
        self._now += timedelta(**kwargs)


class RecordingNotifier:
    """Collects notifications for assertions."""

    def __init__(self) -> None:
        self.sent: list[tuple[NotificationKind, str, str]] = []

    def notify(self, kind: NotificationKind, title: str, message: str) -> None:
        self.sent.append((kind, title, message))

    def kinds(self) -> list[NotificationKind]:
        return [kind for kind, _, _ in self.sent]


class FailingNotifier:
    """Notifier whose delivery always fails."""

    def notify(self, kind: NotificationKind, title: str, message: str) -> None:
        raise RuntimeError("toast service down")


class FakeQuestGenerator:
    """Quest generator returning a fixed quest or raising a fixed error."""

    def __init__(self, quest: QuestResult | None = None, error: Exception | None = None) -> None:
        self.quest = quest
        self.error = error
        self.calls: list[tuple[str, Difficulty, QuestUserContext]] = []

    async def generate_quest(
        self,
        theme: str,
        difficulty: Difficulty,
        user_context: QuestUserContext,
    ) -> QuestResult | None:
        self.calls.append((theme, difficulty, user_context))
        if self.error is not None:
            raise self.error
        return self.quest


def make_task(
    task_id: str = "t1",
    *,
    difficulty: Difficulty = Difficulty.EASY,
    category: TaskCategory = TaskCategory.HOBBIES,
    task_type: TaskType = TaskType.ONE_TIME,
    **overrides,
) -> Task:
    """Build a task with rewards matching its difficulty."""
    defaults = {
        "xp": {Difficulty.EASY: 20, Difficulty.MEDIUM: 40, Difficulty.HARD: 60}.get(difficulty, 0),
        "coins": 5,
    }
    return Task(
        id=task_id,
        title=f"Task {task_id}",
        difficulty=difficulty,
        category=category,
        type=task_type,
        **{**defaults, **overrides},
    )
