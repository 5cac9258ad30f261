"""User (player) domain models and enums."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field, model_validator

from src.core.config import Constants
from src.domain.reward import Equipment, InventoryItem, RedeemedReward, RewardItem


class DebuffKind(StrEnum):
    """Timed negative effects. Their health impact is interpreted by the daily rollover."""

    FATIGUE = "fatigue"  # flat health loss per day
    POISON = "poison"  # percentage of max health per day
    BURNOUT = "burnout"  # flat loss that grows with remaining duration


class Debuff(BaseModel):
    """A serializable timed debuff."""

    id: str
    name: str
    kind: DebuffKind
    duration: int = Field(..., ge=1, description="Remaining days, including today")
    potency: int = Field(default=5, ge=0, description="Strength of the effect (meaning depends on kind)")


class Achievement(BaseModel):
    """Achievement unlock state, merged from the static catalog."""

    id: str
    title: str
    description: str = ""
    unlocked: bool = False
    unlocked_at: datetime | None = None


class Skill(BaseModel):
    """Upgradable stat bought with skill points."""

    name: str
    level: int = Field(default=0, ge=0)
    max_level: int = Field(default=5, ge=1)
    cost: int = Field(default=1, ge=1)


class SkillTree(BaseModel):
    """Named group of skills."""

    name: str
    skills: list[Skill] = Field(default_factory=list)


class NotificationKind(StrEnum):
    """Kinds of player-facing notifications emitted by state transitions."""

    LEVEL_UP = "level_up"
    DAMAGE_TAKEN = "damage_taken"
    EXHAUSTION = "exhaustion"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    REWARD_REDEEMED = "reward_redeemed"
    ITEM_PURCHASED = "item_purchased"
    REDEMPTION_LIMIT_REACHED = "redemption_limit_reached"
    BOSS_DAMAGED = "boss_damaged"
    BOSS_DEFEATED = "boss_defeated"
    QUEST_ADDED = "quest_added"
    QUEST_DELETED = "quest_deleted"
    ACHIEVEMENT_UNLOCKED = "achievement_unlocked"
    DUNGEON_ADDED = "dungeon_added"
    DUNGEON_COMPLETED = "dungeon_completed"
    CHALLENGES_REMAINING = "challenges_remaining"
    JOURNAL_SAVED = "journal_saved"
    JOURNAL_PENALTY = "journal_penalty"
    WEEKLY_REVIEW = "weekly_review"
    SKILL_UPGRADED = "skill_upgraded"
    ITEM_EQUIPPED = "item_equipped"


class Notification(BaseModel):
    """Inbox entry."""

    id: str
    kind: NotificationKind
    title: str
    message: str = ""
    created_at: datetime
    read: bool = False


class JournalDeletions(BaseModel):
    """Recent journal deletions, used to escalate the early-deletion penalty."""

    count: int = 0
    last_deletion: datetime | None = None


def default_skill_trees() -> list[SkillTree]:
    """Starting skill trees for new players."""
    return [
        SkillTree(name="Body", skills=[Skill(name="Vitality"), Skill(name="Endurance")]),
        SkillTree(name="Mind", skills=[Skill(name="Focus"), Skill(name="Wisdom")]),
        SkillTree(name="Spirit", skills=[Skill(name="Calm"), Skill(name="Resolve")]),
    ]


class User(BaseModel):
    """Player aggregate. `level` and `xp_to_next_level` are derived from `xp` by the progression engine."""

    id: str = Field(..., description="Account ID owning this session")
    name: str = Field(default="Adventurer", description="Display name")
    xp: int = Field(default=0, ge=0, description="Cumulative XP")
    level: int = Field(default=1, ge=1, le=99)
    xp_to_next_level: int = Field(default=0, ge=0)
    skill_points: int = Field(default=0, ge=0)
    coins: int = Field(default=0, ge=0)
    gems: int = Field(default=0, ge=0)
    health: int = Field(default=Constants.DEFAULT_MAX_HEALTH, ge=0)
    max_health: int = Field(default=Constants.DEFAULT_MAX_HEALTH, ge=1)
    streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    debuffs: list[Debuff] = Field(default_factory=list)
    last_login: datetime
    redeemed_rewards: list[RedeemedReward] = Field(default_factory=list)
    achievements: list[Achievement] = Field(default_factory=list)
    tasks_completed: int = Field(default=0, ge=0)
    bosses_defeated: int = Field(default=0, ge=0)
    dungeons_completed: int = Field(default=0, ge=0)
    inventory: list[InventoryItem] = Field(default_factory=list)
    equipment: Equipment = Field(default_factory=Equipment)
    custom_rewards: list[RewardItem] = Field(default_factory=list)
    skill_trees: list[SkillTree] = Field(default_factory=default_skill_trees)
    notifications: list[Notification] = Field(default_factory=list)
    journal_deletions: JournalDeletions = Field(default_factory=JournalDeletions)

    @model_validator(mode="after")
    def validate_health_bounds(self) -> "User":
        """Health never exceeds max health."""
        if self.health > self.max_health:
            raise ValueError("health cannot exceed max_health")
        return self
