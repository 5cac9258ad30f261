"""Progression engine: XP and levels, currencies, reward redemption, skills and achievements.

Every operation mutates the `User` it is given in place and returns a result
model. Business-rule rejections are reported through `Rejection` values and
never leave the user partially updated.
"""

import logging
import uuid
from collections.abc import Callable
from calendar import SUNDAY
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from src.core.clock import Clock
from src.core.config import Constants
from src.core.deps import Deps
from src.core.errors import Rejection
from src.core.logging import log_with_account_context, span
from src.domain.reward import (
    CustomRewardCreate,
    EquipmentSlot,
    InventoryItem,
    RedeemedReward,
    RedeemPeriod,
    RewardItem,
)
from src.domain.user import Achievement, Debuff, DebuffKind, NotificationKind, Skill, User
from src.models.service_models import (
    EquipResult,
    RedemptionResult,
    SkillUpgradeResult,
    TransactionResult,
    XpResult,
)
from src.services.level_curve import get_level_data, level_from_cumulative_xp, progress_to_next_level
from src.services.notification_service import notify


logger = logging.getLogger(__name__)


# Achievements


@dataclass(frozen=True)
class AchievementRule:
    """Static achievement definition with its unlock condition."""

    id: str
    title: str
    description: str
    predicate: Callable[[User], bool]


ACHIEVEMENT_RULES: list[AchievementRule] = [
    AchievementRule("first_task", "First Steps", "Complete your first quest.", lambda u: u.tasks_completed >= 1),
    AchievementRule("task_10", "Quest Taker", "Complete 10 quests.", lambda u: u.tasks_completed >= 10),
    AchievementRule("task_50", "Seasoned Adventurer", "Complete 50 quests.", lambda u: u.tasks_completed >= 50),
    AchievementRule("task_100", "Centurion", "Complete 100 quests.", lambda u: u.tasks_completed >= 100),
    AchievementRule("week_streak", "Week Warrior", "Keep a 7-day streak.", lambda u: u.streak >= 7),
    AchievementRule("month_streak", "Unbreakable", "Keep a 30-day streak.", lambda u: u.streak >= 30),
    AchievementRule("level_10", "Apprentice", "Reach level 10.", lambda u: u.level >= 10),
    AchievementRule("level_25", "Adept Explorer", "Reach level 25.", lambda u: u.level >= 25),
    AchievementRule("level_50", "Grandmaster", "Reach level 50.", lambda u: u.level >= 50),
    AchievementRule("boss_slayer", "Boss Slayer", "Defeat a weekly boss.", lambda u: u.bosses_defeated >= 1),
    AchievementRule("dungeon_delver", "Dungeon Delver", "Conquer a dungeon.", lambda u: u.dungeons_completed >= 1),
]


def catalog_achievements() -> list[Achievement]:
    """All achievements in their locked state."""
    return [Achievement(id=rule.id, title=rule.title, description=rule.description) for rule in ACHIEVEMENT_RULES]


def merge_achievements(saved: list[dict[str, Any]] | None) -> list[Achievement]:
    """Rebuild the full achievement list from the catalog and persisted unlock state.

    Args:
        saved: Persisted entries of the form {"id": ..., "unlocked_at": ...}

    Returns:
        Catalog achievements with unlock flags restored (unknown ids are ignored)
    """
    unlocked = {entry["id"]: entry.get("unlocked_at") for entry in saved or [] if "id" in entry}
    return [
        Achievement(
            id=rule.id,
            title=rule.title,
            description=rule.description,
            unlocked=rule.id in unlocked,
            unlocked_at=unlocked.get(rule.id),
        )
        for rule in ACHIEVEMENT_RULES
    ]


def evaluate_achievements(user: User, *, deps: Deps) -> list[str]:
    """Unlock every achievement whose condition now holds.

    Each unlock stamps the time, grants coins and notifies the player.

    Returns:
        IDs of the achievements unlocked by this call
    """
    by_id = {achievement.id: achievement for achievement in user.achievements}
    newly_unlocked: list[str] = []

    for rule in ACHIEVEMENT_RULES:
        state = by_id.get(rule.id)
        if state is None:
            state = Achievement(id=rule.id, title=rule.title, description=rule.description)
            user.achievements.append(state)
            by_id[rule.id] = state
        if state.unlocked or not rule.predicate(user):
            continue

        state.unlocked = True
        state.unlocked_at = deps.clock.now()
        user.coins += Constants.ACHIEVEMENT_UNLOCK_COINS
        newly_unlocked.append(rule.id)
        notify(
            deps.notifier,
            NotificationKind.ACHIEVEMENT_UNLOCKED,
            "Achievement Unlocked!",
            f"{rule.title}: {rule.description} (+{Constants.ACHIEVEMENT_UNLOCK_COINS} coins)",
        )
        log_with_account_context(logger, "info", "Achievement unlocked", account_id=user.id, achievement_id=rule.id)

    return newly_unlocked


# XP and levels


def sync_level(user: User) -> None:
    """Recompute the derived level fields from cumulative XP."""
    user.level = level_from_cumulative_xp(user.xp)
    user.xp_to_next_level = progress_to_next_level(user.xp, user.level).xp_to_next


def add_xp(user: User, amount: int, *, deps: Deps) -> XpResult:
    """Apply an XP gain or penalty, handling level-ups.

    XP is floored at 0. Levels are recomputed from the new total; each level
    gained grants skill points. Losing levels never takes skill points back.
    """
    with span("progression_service.add_xp"):
        old_level = user.level
        user.xp = max(0, user.xp + amount)
        sync_level(user)

        levels_gained = max(0, user.level - old_level)
        skill_points = levels_gained * Constants.SKILL_POINTS_PER_LEVEL
        user.skill_points += skill_points

        if levels_gained:
            level_data = get_level_data(user.level)
            notify(
                deps.notifier,
                NotificationKind.LEVEL_UP,
                "Level Up!",
                f"{level_data.description} You earned {skill_points} stat points!",
            )
            log_with_account_context(
                logger,
                "info",
                "Level up",
                account_id=user.id,
                old_level=old_level,
                new_level=user.level,
            )

        unlocked = evaluate_achievements(user, deps=deps)

        return XpResult(
            xp=user.xp,
            old_level=old_level,
            new_level=user.level,
            levels_gained=levels_gained,
            skill_points_gained=skill_points,
            achievements_unlocked=unlocked,
        )


# Currencies


def _apply_currency(user: User, field: str, amount: int, *, deps: Deps) -> TransactionResult:
    balance = getattr(user, field)
    if amount < 0 and balance + amount < 0:
        notify(
            deps.notifier,
            NotificationKind.INSUFFICIENT_FUNDS,
            f"Not enough {field}!",
            f"You need {-amount} {field} but only have {balance}.",
        )
        logger.info("Rejected %s debit of %d for user %s (balance %d)", field, -amount, user.id, balance)
        return TransactionResult(success=False, balance=balance, rejection=Rejection.INSUFFICIENT_FUNDS)

    setattr(user, field, balance + amount)
    return TransactionResult(success=True, balance=balance + amount)


def add_coins(user: User, amount: int, *, deps: Deps) -> TransactionResult:
    """Credit or debit coins. Debits that would go negative are rejected without mutation."""
    return _apply_currency(user, "coins", amount, deps=deps)


def add_gems(user: User, amount: int, *, deps: Deps) -> TransactionResult:
    """Credit or debit gems. Debits that would go negative are rejected without mutation."""
    return _apply_currency(user, "gems", amount, deps=deps)


# Rewards

REWARD_SHOP: list[RewardItem] = [
    RewardItem(
        id="shop-coffee",
        title="Fancy Coffee",
        description="Treat yourself to your favorite coffee.",
        coin_cost=50,
        redeem_limit=1,
        redeem_period=RedeemPeriod.DAILY,
        category="Treats",
    ),
    RewardItem(
        id="shop-movie-night",
        title="Movie Night",
        description="An evening off with a film of your choice.",
        coin_cost=150,
        redeem_limit=1,
        redeem_period=RedeemPeriod.WEEKLY,
        category="Leisure",
    ),
    RewardItem(
        id="shop-day-off",
        title="Guilt-free Day Off",
        description="A full day without quests.",
        gem_cost=5,
        redeem_limit=1,
        redeem_period=RedeemPeriod.MONTHLY,
        level_requirement=10,
        category="Leisure",
    ),
    RewardItem(
        id="shop-health-potion",
        title="Health Potion",
        description="A trusty potion for your inventory.",
        coin_cost=75,
        item=InventoryItem(id="item-health-potion", name="Health Potion", type="Potion"),
        category="Items",
    ),
    RewardItem(
        id="shop-scholars-quill",
        title="Scholar's Quill",
        description="A quill for the dedicated learner.",
        gem_cost=3,
        item=InventoryItem(id="item-scholars-quill", name="Scholar's Quill", type="Trinket"),
        level_requirement=5,
        category="Items",
    ),
    RewardItem(
        id="shop-focus-blade",
        title="Blade of Focus",
        description="A weapon for cutting through distractions.",
        coin_cost=300,
        item=InventoryItem(id="item-focus-blade", name="Blade of Focus", type="Weapon"),
        level_requirement=3,
        category="Equipment",
    ),
    RewardItem(
        id="shop-steadfast-shield",
        title="Steadfast Shield",
        description="Keeps procrastination at bay.",
        gem_cost=4,
        item=InventoryItem(id="item-steadfast-shield", name="Steadfast Shield", type="Shield"),
        level_requirement=8,
        category="Equipment",
    ),
]


def find_reward(user: User, reward_id: str) -> RewardItem | None:
    """Look up a reward in the shop catalog or the player's custom rewards."""
    for reward in [*REWARD_SHOP, *user.custom_rewards]:
        if reward.id == reward_id:
            return reward
    return None


def _period_start(period: RedeemPeriod, clock: Clock) -> datetime:
    if period == RedeemPeriod.DAILY:
        return clock.start_of_day()
    if period == RedeemPeriod.WEEKLY:
        # Redemption weeks run Sunday to Saturday, unlike the ISO weeks used for bosses
        return clock.start_of_week(week_starts_on=SUNDAY)
    return clock.start_of_month()


def get_redeemed_count(user: User, reward: RewardItem, clock: Clock) -> int:
    """Count redemptions of reward inside its current period.

    Rewards without a period count every redemption ever made.
    """
    history = next((r for r in user.redeemed_rewards if r.reward_id == reward.id), None)
    if history is None:
        return 0
    if reward.redeem_period is None:
        return len(history.timestamps)

    period_start = _period_start(reward.redeem_period, clock)
    return sum(1 for ts in history.timestamps if clock.localize(ts) >= period_start)


def redeem_reward(user: User, reward: RewardItem, *, deps: Deps) -> RedemptionResult:
    """Redeem a reward: check limits, level and funds, then debit and record it."""
    with span("progression_service.redeem_reward"):
        redeemed_count = get_redeemed_count(user, reward, deps.clock)

        if reward.redeem_limit is not None and redeemed_count >= reward.redeem_limit:
            notify(
                deps.notifier,
                NotificationKind.REDEMPTION_LIMIT_REACHED,
                "Redemption Limit Reached",
                f"{reward.title} can be redeemed {reward.redeem_limit} time(s) per {reward.redeem_period or 'lifetime'}.",
            )
            return RedemptionResult(
                success=False,
                reward_id=reward.id,
                rejection=Rejection.REDEMPTION_LIMIT_REACHED,
                redeemed_count=redeemed_count,
            )

        if user.level < reward.level_requirement:
            return RedemptionResult(
                success=False,
                reward_id=reward.id,
                rejection=Rejection.LEVEL_REQUIREMENT_NOT_MET,
                redeemed_count=redeemed_count,
            )

        if reward.gem_cost:
            transaction = add_gems(user, -reward.gem_cost, deps=deps)
        else:
            transaction = add_coins(user, -(reward.coin_cost or 0), deps=deps)
        if not transaction.success:
            return RedemptionResult(
                success=False,
                reward_id=reward.id,
                rejection=transaction.rejection,
                redeemed_count=redeemed_count,
            )

        item = reward.item.model_copy() if reward.item else None
        if item is not None:
            user.inventory.append(item)

        history = next((r for r in user.redeemed_rewards if r.reward_id == reward.id), None)
        if history is None:
            history = RedeemedReward(reward_id=reward.id)
            user.redeemed_rewards.append(history)
        history.timestamps.append(deps.clock.now())

        if item is not None:
            notify(
                deps.notifier,
                NotificationKind.ITEM_PURCHASED,
                "Item Purchased!",
                f"{reward.title} has been added to your inventory.",
            )
        else:
            notify(deps.notifier, NotificationKind.REWARD_REDEEMED, "Reward Redeemed!", f"Enjoy your {reward.title}.")

        log_with_account_context(logger, "info", "Reward redeemed", account_id=user.id, reward_id=reward.id)
        return RedemptionResult(success=True, reward_id=reward.id, redeemed_count=redeemed_count + 1, item=item)


def add_custom_reward(user: User, data: CustomRewardCreate) -> RewardItem:
    """Create a player-defined reward."""
    reward = RewardItem(
        id=f"custom-{uuid.uuid4().hex[:12]}",
        title=data.title,
        description=data.description,
        coin_cost=data.coin_cost,
        gem_cost=data.gem_cost,
        redeem_limit=data.redeem_limit,
        redeem_period=data.redeem_period,
        level_requirement=0,
        category="Custom",
    )
    user.custom_rewards.append(reward)
    return reward


def delete_custom_reward(user: User, reward_id: str) -> bool:
    before = len(user.custom_rewards)
    user.custom_rewards = [r for r in user.custom_rewards if r.id != reward_id]
    return len(user.custom_rewards) < before


# Equipment


def equip_item(user: User, item_id: str, *, deps: Deps) -> EquipResult:
    """Equip an inventory item into the slot named by its type.

    The item stays in the inventory; equipping only points a slot at it.
    """
    item = next((i for i in user.inventory if i.id == item_id), None)
    if item is None:
        return EquipResult(success=False, item_id=item_id, rejection=Rejection.NOT_FOUND)
    try:
        slot = EquipmentSlot(item.type.lower())
    except ValueError:
        return EquipResult(success=False, item_id=item_id, rejection=Rejection.ITEM_NOT_EQUIPPABLE)

    replaced = getattr(user.equipment, slot.value)
    setattr(user.equipment, slot.value, item)
    notify(deps.notifier, NotificationKind.ITEM_EQUIPPED, "Item Equipped!", f"{item.name} has been equipped.")
    log_with_account_context(logger, "info", "Item equipped", account_id=user.id, item_id=item.id, slot=slot.value)
    return EquipResult(success=True, item_id=item.id, slot=slot, replaced=replaced)


# Skills and debuffs


def _find_skill(user: User, tree_name: str, skill_name: str) -> Skill | None:
    for tree in user.skill_trees:
        if tree.name == tree_name:
            return next((skill for skill in tree.skills if skill.name == skill_name), None)
    return None


def upgrade_skill(user: User, tree_name: str, skill_name: str, *, deps: Deps) -> SkillUpgradeResult:
    """Spend skill points to raise a skill by one level."""
    skill = _find_skill(user, tree_name, skill_name)
    if skill is None:
        return SkillUpgradeResult(success=False, skill_name=skill_name, rejection=Rejection.NOT_FOUND)
    if skill.level >= skill.max_level:
        return SkillUpgradeResult(
            success=False, skill_name=skill_name, level=skill.level, rejection=Rejection.SKILL_MAXED
        )
    if user.skill_points < skill.cost:
        return SkillUpgradeResult(
            success=False,
            skill_name=skill_name,
            level=skill.level,
            rejection=Rejection.INSUFFICIENT_SKILL_POINTS,
        )

    user.skill_points -= skill.cost
    skill.level += 1
    notify(deps.notifier, NotificationKind.SKILL_UPGRADED, "Stat Upgraded!", f"{skill_name} is now level {skill.level}.")
    return SkillUpgradeResult(success=True, skill_name=skill_name, level=skill.level)


def apply_debuff(user: User, *, kind: DebuffKind, name: str, duration: int, potency: int = 5) -> Debuff:
    """Attach a timed debuff; its effect is applied at each daily rollover."""
    debuff = Debuff(id=f"debuff-{uuid.uuid4().hex[:12]}", name=name, kind=kind, duration=duration, potency=potency)
    user.debuffs.append(debuff)
    logger.info("Applied %s debuff '%s' to user %s for %d day(s)", kind, name, user.id, duration)
    return debuff
