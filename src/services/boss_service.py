"""Weekly boss fights.

A boss is spawned for each ISO week from a static catalog. Completed tasks
deal damage scaled by the boss's per-category resistances, and the defeat
payout is granted exactly once: hits on a boss at 0 HP are no-ops.
"""

import logging
import math

from src.core.deps import Deps
from src.core.logging import log_with_account_context, span
from src.domain.boss import Boss, BossRewards
from src.domain.session import GameSession
from src.domain.task import Task, TaskCategory
from src.domain.user import NotificationKind
from src.models.service_models import DamageResult, HitOutcome
from src.services import progression_service
from src.services.notification_service import notify
from src.services.reward_formulas import boss_base_damage


logger = logging.getLogger(__name__)


BOSS_CATALOG: list[dict] = [
    {
        "id": "procrastination_imp",
        "name": "Procrastination Imp",
        "title": "The Delay Demon",
        "description": "A mischievous imp that thrives on your postponed tasks.",
        "max_hp": 500,
        "resistances": {TaskCategory.PRODUCTIVITY: 0.5, TaskCategory.HOBBIES: 1.5},
        "rewards": {"xp": 150, "coins": 50, "gems": 1},
    },
    {
        "id": "sloth_golem",
        "name": "Sloth Golem",
        "title": "The Couch Colossus",
        "description": "A lumbering giant made of unused gym memberships.",
        "max_hp": 600,
        "resistances": {TaskCategory.FITNESS: 0.5, TaskCategory.HEALTH: 0.75, TaskCategory.LEARNING: 1.5},
        "rewards": {"xp": 200, "coins": 75, "gems": 2},
    },
    {
        "id": "distraction_wraith",
        "name": "Distraction Wraith",
        "title": "The Endless Scroll",
        "description": "A flickering spirit that feeds on notifications and open tabs.",
        "max_hp": 700,
        "resistances": {TaskCategory.LEARNING: 0.5, TaskCategory.CREATIVITY: 0.75, TaskCategory.SOCIAL: 2.0},
        "rewards": {"xp": 250, "coins": 100, "gems": 2},
    },
    {
        "id": "chaos_hydra",
        "name": "Chaos Hydra",
        "title": "The Clutter Beast",
        "description": "Every unwashed dish grows it another head.",
        "max_hp": 800,
        "resistances": {TaskCategory.CHORES: 0.5, TaskCategory.FINANCE: 0.75, TaskCategory.WELLNESS: 1.5},
        "rewards": {"xp": 300, "coins": 120, "gems": 3},
    },
    {
        "id": "burnout_specter",
        "name": "Burnout Specter",
        "title": "The Hollow Flame",
        "description": "It grows stronger when you forget to rest.",
        "max_hp": 650,
        "resistances": {TaskCategory.WELLNESS: 0.5, TaskCategory.SOCIAL: 0.75, TaskCategory.PRODUCTIVITY: 1.5},
        "rewards": {"xp": 225, "coins": 90, "gems": 2},
    },
]


def spawn_boss(week: str, week_number: int) -> Boss:
    """Build a fresh boss for the given ISO week."""
    template = BOSS_CATALOG[week_number % len(BOSS_CATALOG)]
    return Boss(
        id=template["id"],
        name=template["name"],
        title=template["title"],
        description=template["description"],
        max_hp=template["max_hp"],
        current_hp=template["max_hp"],
        resistances=template["resistances"],
        rewards=BossRewards(**template["rewards"]),
        week=week,
    )


def ensure_weekly_boss(session: GameSession, *, deps: Deps) -> Boss:
    """Spawn this week's boss when there is none or the stored one belongs to another week.

    A boss defeated during the current week stays defeated until the week changes.
    """
    current_week = deps.clock.current_iso_week()
    boss = session.boss
    if boss is not None and boss.week == current_week:
        return boss

    boss = spawn_boss(current_week, deps.clock.now().isocalendar().week)
    session.boss = boss
    log_with_account_context(logger, "info", "Spawned weekly boss", account_id=session.account_id, boss_id=boss.id)
    return boss


def calculate_damage(boss: Boss, task: Task) -> tuple[int, HitOutcome]:
    """Damage a task would deal to boss and how the hit is classified."""
    resistance = boss.resistances.get(task.category, 1.0)
    damage = math.floor(boss_base_damage(task.difficulty) / resistance)

    if resistance < 1.0:
        outcome = HitOutcome.CRITICAL
    elif resistance > 1.0:
        outcome = HitOutcome.RESISTED
    else:
        outcome = HitOutcome.NORMAL
    return damage, outcome


_HIT_MESSAGES: dict[HitOutcome, tuple[str, str]] = {
    HitOutcome.CRITICAL: ("Critical Hit!", "Dealt {damage} bonus damage to {boss}!"),
    HitOutcome.RESISTED: ("Resisted!", "{boss} resisted. Dealt only {damage} damage."),
    HitOutcome.NORMAL: ("Direct Hit!", "Dealt {damage} damage to {boss}."),
}


def deal_damage(session: GameSession, task: Task, *, deps: Deps) -> DamageResult:
    """Apply a completed task's damage to the weekly boss.

    Hitting a missing or already defeated boss is a successful no-op. When the
    boss reaches 0 HP its rewards are paid into the user's balances.
    """
    with span("boss_service.deal_damage"):
        boss = session.boss
        if boss is None or boss.current_hp <= 0:
            return DamageResult(
                outcome=HitOutcome.ALREADY_DEFEATED,
                current_hp=boss.current_hp if boss else 0,
                defeated=boss is not None,
            )

        damage, outcome = calculate_damage(boss, task)
        if damage <= 0:
            return DamageResult(outcome=HitOutcome.NO_DAMAGE, current_hp=boss.current_hp)

        boss.current_hp = max(0, boss.current_hp - damage)
        title, template = _HIT_MESSAGES[outcome]
        notify(deps.notifier, NotificationKind.BOSS_DAMAGED, title, template.format(damage=damage, boss=boss.name))

        defeated = boss.current_hp == 0
        if defeated:
            _pay_out_defeat(session, boss, deps=deps)

        return DamageResult(damage=damage, outcome=outcome, current_hp=boss.current_hp, defeated=defeated)


def _pay_out_defeat(session: GameSession, boss: Boss, *, deps: Deps) -> None:
    user = session.user
    boss.last_defeated = deps.clock.current_iso_week()
    user.bosses_defeated += 1

    progression_service.add_xp(user, boss.rewards.xp, deps=deps)
    progression_service.add_coins(user, boss.rewards.coins, deps=deps)
    progression_service.add_gems(user, boss.rewards.gems, deps=deps)

    notify(
        deps.notifier,
        NotificationKind.BOSS_DEFEATED,
        "Boss Defeated!",
        f"You defeated {boss.name} and earned {boss.rewards.xp} XP, "
        f"{boss.rewards.coins} coins and {boss.rewards.gems} gems!",
    )
    log_with_account_context(logger, "info", "Boss defeated", account_id=session.account_id, boss_id=boss.id)
