"""Domain models and DTOs."""

from src.domain.boss import Boss, BossRewards
from src.domain.dungeon import Challenge, ChallengeCreate, DungeonCrawl, DungeonCreate
from src.domain.journal import JournalEntry, JournalEntryCreate, WeeklyReview, WeeklyReviewCreate
from src.domain.reward import (
    CustomRewardCreate,
    Equipment,
    EquipmentSlot,
    InventoryItem,
    RedeemedReward,
    RedeemPeriod,
    RewardItem,
)
from src.domain.session import GameSession
from src.domain.task import Difficulty, Task, TaskCategory, TaskCreate, TaskType
from src.domain.user import (
    Achievement,
    Debuff,
    DebuffKind,
    Notification,
    NotificationKind,
    Skill,
    SkillTree,
    User,
)


__all__ = [
    "Achievement",
    "Boss",
    "BossRewards",
    "Challenge",
    "ChallengeCreate",
    "CustomRewardCreate",
    "Debuff",
    "DebuffKind",
    "Difficulty",
    "DungeonCrawl",
    "DungeonCreate",
    "Equipment",
    "EquipmentSlot",
    "GameSession",
    "InventoryItem",
    "JournalEntry",
    "JournalEntryCreate",
    "Notification",
    "NotificationKind",
    "RedeemPeriod",
    "RedeemedReward",
    "RewardItem",
    "Skill",
    "SkillTree",
    "Task",
    "TaskCategory",
    "TaskCreate",
    "TaskType",
    "User",
    "WeeklyReview",
    "WeeklyReviewCreate",
]
