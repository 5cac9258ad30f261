"""Pure reward formulas for tasks, habits and boss damage."""

import math

from src.core.config import Constants
from src.domain.task import Difficulty
from src.services.level_curve import difficulty_multiplier


TASK_XP: dict[Difficulty, int] = {
    Difficulty.EASY: 20,
    Difficulty.MEDIUM: 40,
    Difficulty.HARD: 60,
    Difficulty.NOT_APPLICABLE: 0,
}

TASK_COIN_FACTOR: dict[Difficulty, float] = {
    Difficulty.EASY: 1.0,
    Difficulty.MEDIUM: 1.5,
    Difficulty.HARD: 2.0,
    Difficulty.NOT_APPLICABLE: 0.0,
}

BASE_TASK_COINS = 5

BOSS_BASE_DAMAGE: dict[Difficulty, int] = {
    Difficulty.EASY: 25,
    Difficulty.MEDIUM: 50,
    Difficulty.HARD: 100,
}

HABIT_BASE_XP = 15
HABIT_STREAK_XP_PER_DAY = 2
HABIT_STREAK_XP_CAP = 50

DAILY_XP_BASE_TARGET = 150


def task_xp(difficulty: Difficulty) -> int:
    """Flat XP for a task; not scaled by level."""
    return TASK_XP.get(difficulty, 0)


def task_coins(difficulty: Difficulty, user_level: int) -> int:
    return math.floor(BASE_TASK_COINS * TASK_COIN_FACTOR.get(difficulty, 0.0) * difficulty_multiplier(user_level))


def habit_xp(streak_days: int, user_level: int) -> int:
    """XP for a recurring task completion; the streak bonus is capped at 50."""
    streak_bonus = min(streak_days * HABIT_STREAK_XP_PER_DAY, HABIT_STREAK_XP_CAP)
    return math.floor((HABIT_BASE_XP + streak_bonus) * difficulty_multiplier(user_level))


def boss_base_damage(difficulty: Difficulty) -> int:
    return BOSS_BASE_DAMAGE.get(difficulty, 0)


def daily_xp_target(level: int) -> int:
    """Suggested XP to earn per day at level."""
    return math.floor(DAILY_XP_BASE_TARGET * difficulty_multiplier(level))


def journal_penalty(recent_deletions: int) -> tuple[int, int]:
    """XP and coin penalty for deleting a fresh journal entry; doubles with each recent deletion."""
    factor = 2**recent_deletions
    return Constants.JOURNAL_ENTRY_XP * factor, Constants.JOURNAL_ENTRY_COINS * factor
