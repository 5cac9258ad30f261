"""Task (quest) domain models and enums."""

from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class TaskCategory(StrEnum):
    """Life-domain tag used for boss resistances and quest themes."""

    HEALTH = "Health"
    FITNESS = "Fitness"
    LEARNING = "Learning"
    PRODUCTIVITY = "Productivity"
    FINANCE = "Finance"
    SOCIAL = "Social"
    WELLNESS = "Wellness"
    CREATIVITY = "Creativity"
    CHORES = "Chores"
    HOBBIES = "Hobbies"


class Difficulty(StrEnum):
    """Task difficulty."""

    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"
    NOT_APPLICABLE = "N/A"


class TaskType(StrEnum):
    """How often a task recurs."""

    ONE_TIME = "One-time"
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"


RECURRING_TYPES = frozenset({TaskType.DAILY, TaskType.WEEKLY, TaskType.MONTHLY})


class Task(BaseModel):
    """Task data transfer object."""

    id: str = Field(..., description="Unique task ID")
    title: str = Field(..., description="Task title")
    description: str = Field(default="", description="Detailed task description")
    category: TaskCategory = Field(default=TaskCategory.HOBBIES, description="Life-domain tag")
    difficulty: Difficulty = Field(default=Difficulty.EASY, description="Task difficulty")
    type: TaskType = Field(default=TaskType.ONE_TIME, description="Recurrence type")
    completed: bool = Field(default=False, description="Whether the task is completed for the current period")
    xp: int = Field(default=0, ge=0, description="XP reward, fixed at creation")
    coins: int = Field(default=0, ge=0, description="Coin reward, fixed at creation")
    streak: int = Field(default=0, ge=0, description="Consecutive completions (recurring tasks only)")
    last_completed: date | None = Field(default=None, description="Calendar day of the last completion")
    created_at: datetime | None = Field(default=None, description="Creation timestamp")

    @property
    def is_recurring(self) -> bool:
        return self.type in RECURRING_TYPES


class TaskCreate(BaseModel):
    """Payload for creating a task. Omitted rewards are computed from difficulty and level."""

    title: str = Field(default="New Quest", min_length=1, max_length=200)
    description: str = ""
    category: TaskCategory = TaskCategory.HOBBIES
    difficulty: Difficulty = Difficulty.EASY
    type: TaskType = TaskType.ONE_TIME
    xp: int | None = Field(default=None, ge=0)
    coins: int | None = Field(default=None, ge=0)
