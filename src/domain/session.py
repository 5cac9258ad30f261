"""Session aggregate owning all per-account state."""

from pydantic import BaseModel, Field

from src.domain.boss import Boss
from src.domain.dungeon import DungeonCrawl
from src.domain.journal import JournalEntry, WeeklyReview
from src.domain.task import Task
from src.domain.user import User


class GameSession(BaseModel):
    """All mutable state for one account. Passed explicitly to every engine operation."""

    account_id: str
    user: User
    tasks: list[Task] = Field(default_factory=list)
    boss: Boss | None = None
    dungeons: list[DungeonCrawl] = Field(default_factory=list)
    journal_entries: list[JournalEntry] = Field(default_factory=list)
    weekly_reviews: list[WeeklyReview] = Field(default_factory=list)

    def find_task(self, task_id: str) -> Task | None:
        return next((task for task in self.tasks if task.id == task_id), None)

    def find_dungeon(self, dungeon_id: str) -> DungeonCrawl | None:
        return next((dungeon for dungeon in self.dungeons if dungeon.id == dungeon_id), None)
