"""Level curve: pure mapping between cumulative XP and levels 1-99.

XP required to reach a level grows as `BASE_XP * (1 + (level - 1) * GROWTH_RATE) ** EXPONENT`.
Tiers are cosmetic 10-level bands; the difficulty multiplier scales coin and habit rewards.
"""

import math
from functools import cache

from src.models.service_models import LevelData, LevelProgress


BASE_XP = 100
GROWTH_RATE = 0.08
EXPONENT = 1.5

MIN_LEVEL = 1
MAX_LEVEL = 99

AVERAGE_DAILY_XP = 175

TIERS: list[tuple[str, int, int]] = [
    ("Novice", 1, 9),
    ("Apprentice", 10, 19),
    ("Adept", 20, 29),
    ("Expert", 30, 39),
    ("Master", 40, 49),
    ("Grandmaster", 50, 59),
    ("Champion", 60, 69),
    ("Legend", 70, 79),
    ("Mythic", 80, 89),
    ("Transcendent", 90, 99),
]

# level -> (badge, perk, description)
_MILESTONES: dict[int, tuple[str | None, str | None, str]] = {
    1: (None, None, "Your journey begins! Welcome to LifeQuest."),
    10: ("Apprentice Badge", "Custom Quest Colors", "You've reached Apprentice! Unlock custom quest colors."),
    20: ("Adept Badge", "Advanced Analytics Dashboard", "Welcome to Adept tier! Advanced analytics unlocked."),
    30: ("Expert Badge", "Custom Habit Templates", "Expert achieved! Create custom habit templates."),
    40: ("Master Badge", "AI Quest Suggestions", "Master tier! AI-powered quest suggestions enabled."),
    50: ("Grandmaster Badge", "Premium Profile Themes", "Grandmaster! Premium profile themes unlocked."),
    60: ("Champion Badge", "Boss Fight Difficulty Selector", "Champion status! Choose your boss fight difficulty."),
    70: ("Legend Badge", "Legendary Quest Creator", "Legend! Create and share custom quest templates."),
    80: ("Mythic Badge", "Mythic Profile Border", "Mythic tier! Show off with exclusive profile borders."),
    90: ("Transcendent Badge", "Ultimate Customization Suite", "Transcendent! Full customization suite unlocked."),
    99: ("LifeQuest Master Badge", "Max Level Crown + All Perks", "MAX LEVEL! You are a LifeQuest Master!"),
}


def _clamp_level(level: int) -> int:
    return max(MIN_LEVEL, min(MAX_LEVEL, level))


def xp_required_for_level(level: int) -> int:
    """XP needed to advance from level - 1 to level. Level 1 requires nothing."""
    level = _clamp_level(level)
    if level == MIN_LEVEL:
        return 0
    return math.floor(BASE_XP * (1 + (level - 1) * GROWTH_RATE) ** EXPONENT)


@cache
def cumulative_xp_for_level(level: int) -> int:
    """Total XP from level 1 needed to reach level."""
    level = _clamp_level(level)
    return sum(xp_required_for_level(i) for i in range(2, level + 1))


def level_from_cumulative_xp(total_xp: int) -> int:
    """Return the highest level whose cumulative requirement is covered by total_xp (capped at 99)."""
    level = MIN_LEVEL
    for candidate in range(MIN_LEVEL + 1, MAX_LEVEL + 1):
        if cumulative_xp_for_level(candidate) > total_xp:
            break
        level = candidate
    return level


def tier_name(level: int) -> str:
    level = _clamp_level(level)
    for name, low, high in TIERS:
        if low <= level <= high:
            return name
    return TIERS[0][0]


def difficulty_multiplier(level: int) -> float:
    """Reward multiplier: 1.0 below level 10, +0.1 per 10-level band up to 1.8, then 2.0 from level 90."""
    if level < 10:
        return 1.0
    if level >= 90:
        return 2.0
    return round(1.0 + (level // 10) * 0.1, 1)


def progress_to_next_level(total_xp: int, current_level: int) -> LevelProgress:
    """Compute progress inside current_level.

    At the level cap there is nothing left to earn, so progress is reported as complete.
    """
    current_level = _clamp_level(current_level)
    current_level_xp = total_xp - cumulative_xp_for_level(current_level)

    if current_level >= MAX_LEVEL:
        return LevelProgress(xp_to_next=0, percent_complete=100.0, current_level_xp=current_level_xp)

    needed = xp_required_for_level(current_level + 1)
    xp_to_next = max(0, needed - current_level_xp)
    percent = (current_level_xp / needed) * 100 if needed else 100.0
    return LevelProgress(
        xp_to_next=xp_to_next,
        percent_complete=max(0.0, min(100.0, percent)),
        current_level_xp=current_level_xp,
    )


def _build_level_data(level: int) -> LevelData:
    total_xp = cumulative_xp_for_level(level)
    tier = tier_name(level)
    badge, perk, description = _MILESTONES.get(level, (None, None, ""))
    if not description:
        if level % 5 == 0:
            badge = f"Level {level} Milestone Badge"
            description = f"Milestone {level} reached! Keep pushing forward."
        else:
            description = f"Level {level} - {tier} tier. {100 - level} levels to mastery."

    return LevelData(
        level=level,
        xp_required=xp_required_for_level(level),
        total_xp_from_start=total_xp,
        estimated_days=math.ceil(total_xp / AVERAGE_DAILY_XP),
        tier_name=tier,
        reward_coins=math.floor(50 + level * 10 + level * level * 0.5),
        reward_badge=badge,
        unlock_perk=perk,
        difficulty_multiplier=difficulty_multiplier(level),
        description=description,
    )


LEVEL_DATA: list[LevelData] = [_build_level_data(level) for level in range(MIN_LEVEL, MAX_LEVEL + 1)]


def get_level_data(level: int) -> LevelData:
    """Return the metadata row for level (clamped to 1-99)."""
    return LEVEL_DATA[_clamp_level(level) - 1]
