"""Pydantic models for service layer return types.

Business-rule rejections are carried in these results as `Rejection` values
instead of being raised, so callers can branch on `success` and surface the
reason to the player.
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from src.core.errors import Rejection
from src.domain.dungeon import DungeonCrawl
from src.domain.reward import EquipmentSlot, InventoryItem
from src.domain.session import GameSession
from src.domain.task import Difficulty, Task, TaskCategory, TaskType


class LevelProgress(BaseModel):
    """Progress inside the current level."""

    xp_to_next: int
    percent_complete: float
    current_level_xp: int


class LevelData(BaseModel):
    """Static metadata for one level of the curve."""

    level: int
    xp_required: int
    total_xp_from_start: int
    estimated_days: int
    tier_name: str
    reward_coins: int
    reward_badge: str | None = None
    unlock_perk: str | None = None
    difficulty_multiplier: float
    description: str


class XpResult(BaseModel):
    """Outcome of an XP change."""

    xp: int
    old_level: int
    new_level: int
    levels_gained: int = 0
    skill_points_gained: int = 0
    achievements_unlocked: list[str] = Field(default_factory=list, description="IDs of newly unlocked achievements")


class TransactionResult(BaseModel):
    """Outcome of a coin or gem transaction."""

    success: bool
    balance: int
    rejection: Rejection | None = None


class RedemptionResult(BaseModel):
    """Outcome of redeeming a shop or custom reward."""

    success: bool
    reward_id: str
    rejection: Rejection | None = None
    redeemed_count: int = 0
    item: InventoryItem | None = None


class HitOutcome(StrEnum):
    """Classification of a boss hit."""

    CRITICAL = "critical"
    RESISTED = "resisted"
    NORMAL = "normal"
    NO_DAMAGE = "no_damage"
    ALREADY_DEFEATED = "already_defeated"


class DamageResult(BaseModel):
    """Outcome of dealing boss damage."""

    damage: int = 0
    outcome: HitOutcome
    current_hp: int = 0
    defeated: bool = False


class TaskCompletionResult(BaseModel):
    """Outcome of completing a task."""

    success: bool
    task: Task | None = None
    rejection: Rejection | None = None
    already_completed: bool = False
    xp_awarded: int = 0
    coins_awarded: int = 0
    damage: DamageResult | None = None


class DungeonResult(BaseModel):
    """Outcome of a dungeon state transition."""

    success: bool
    dungeon: DungeonCrawl | None = None
    rejection: Rejection | None = None
    time_taken: int | None = None
    base_xp: int = 0
    bonus_xp: int = 0

    @property
    def total_xp(self) -> int:
        return self.base_xp + self.bonus_xp


class RolloverReport(BaseModel):
    """Summary of a daily rollover transition."""

    rolled_over: bool
    debuff_damage: int = 0
    health_penalty: int = 0
    missed_dailies: int = 0
    new_streak: int = 0
    exhausted: bool = False
    expired_debuffs: list[str] = Field(default_factory=list)
    health: int = 0

    @property
    def total_damage(self) -> int:
        return self.debuff_damage + self.health_penalty


class SkillUpgradeResult(BaseModel):
    """Outcome of spending skill points."""

    success: bool
    skill_name: str
    level: int = 0
    rejection: Rejection | None = None


class EquipResult(BaseModel):
    """Outcome of equipping an inventory item."""

    success: bool
    item_id: str
    slot: EquipmentSlot | None = None
    replaced: InventoryItem | None = Field(default=None, description="Item previously in the slot")
    rejection: Rejection | None = None


class JournalDeletionResult(BaseModel):
    """Outcome of deleting a journal entry."""

    success: bool
    rejection: Rejection | None = None
    xp_penalty: int = 0
    coin_penalty: int = 0


class QuestUserContext(BaseModel):
    """Player context handed to the quest generator."""

    level: int
    tier_name: str
    streak: int
    recent_categories: list[TaskCategory] = Field(default_factory=list)
    completed_today: int = 0


class QuestResult(BaseModel):
    """Quest produced by the quest generator."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    category: TaskCategory = TaskCategory.HOBBIES
    difficulty: Difficulty = Difficulty.EASY
    type: TaskType = TaskType.ONE_TIME


class SessionSnapshot(BaseModel):
    """Read-only view of a session returned by the HTTP layer."""

    session: GameSession
    generated_at: datetime
    tier_name: str
    progress: LevelProgress
    daily_xp_target: int = Field(..., description="Suggested XP to earn per day at the current level")
