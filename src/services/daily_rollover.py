"""Daily rollover: the once-per-calendar-day state transition.

When the player's last login falls on an earlier calendar day, debuffs tick,
missed daily quests cost health, recurring quests reset and the daily streak
advances or breaks. Health that drops to 0 triggers exhaustion, which restores
full health at the cost of XP and coins.
"""

import logging
import math

from src.core.clock import Clock, iso_week_id
from src.core.config import Constants
from src.core.deps import Deps
from src.core.logging import log_with_account_context, span
from src.domain.session import GameSession
from src.domain.task import TaskType
from src.domain.user import Debuff, DebuffKind, NotificationKind, User
from src.models.service_models import RolloverReport
from src.services import progression_service
from src.services.notification_service import notify


logger = logging.getLogger(__name__)


def needs_new_day(user: User, clock: Clock) -> bool:
    """True when the last login happened on a different calendar day than today."""
    return clock.calendar_day(user.last_login) != clock.today()


def debuff_health_loss(debuff: Debuff, user: User) -> int:
    """Health a debuff removes at rollover, based on its remaining duration before ticking."""
    if debuff.kind == DebuffKind.POISON:
        return math.ceil(user.max_health * debuff.potency / 100)
    if debuff.kind == DebuffKind.BURNOUT:
        return debuff.potency * debuff.duration
    return debuff.potency


def handle_new_day(session: GameSession, *, deps: Deps) -> RolloverReport:
    """Run the daily rollover if a new calendar day has started.

    Calling this again on the same day is a no-op.
    """
    user = session.user
    clock = deps.clock
    if not needs_new_day(user, clock):
        return RolloverReport(rolled_over=False, new_streak=user.streak, health=user.health)

    with span("daily_rollover.handle_new_day"):
        now = clock.now()
        previous_login = clock.localize(user.last_login)

        # Debuffs
        debuff_damage = 0
        active_debuffs: list[Debuff] = []
        expired: list[str] = []
        for debuff in user.debuffs:
            debuff_damage += debuff_health_loss(debuff, user)
            if debuff.duration > 1:
                active_debuffs.append(debuff.model_copy(update={"duration": debuff.duration - 1}))
            else:
                expired.append(debuff.name)

        # Daily quests
        health_penalty = 0
        missed = 0
        dailies = [task for task in session.tasks if task.type == TaskType.DAILY]
        for task in dailies:
            if task.completed:
                task.completed = False
            else:
                health_penalty += Constants.MISSED_DAILY_HEALTH_PENALTY
                task.streak = 0
                missed += 1

        # Weekly and monthly quests reset when their period changed
        week_changed = iso_week_id(previous_login) != iso_week_id(now)
        month_changed = (previous_login.year, previous_login.month) != (now.year, now.month)
        for task in session.tasks:
            if not task.completed:
                continue
            if (task.type == TaskType.WEEKLY and week_changed) or (task.type == TaskType.MONTHLY and month_changed):
                task.completed = False

        new_health = min(user.max_health, user.health - (debuff_damage + health_penalty))

        all_dailies_done = bool(dailies) and missed == 0
        user.streak = user.streak + 1 if all_dailies_done else 0
        user.longest_streak = max(user.longest_streak, user.streak)

        exhausted = new_health <= 0
        if exhausted:
            user.xp = max(0, user.xp - Constants.EXHAUSTION_XP_PENALTY)
            progression_service.sync_level(user)
            user.coins = max(0, user.coins - Constants.EXHAUSTION_COIN_PENALTY)
            user.health = user.max_health
            user.debuffs = []
        else:
            user.health = new_health
            user.debuffs = active_debuffs

        user.last_login = now

        total_damage = debuff_damage + health_penalty
        if total_damage > 0:
            notify(
                deps.notifier,
                NotificationKind.DAMAGE_TAKEN,
                "A New Day Dawns...",
                f"You took {total_damage} damage from missed quests and debuffs.",
            )
        if exhausted:
            notify(
                deps.notifier,
                NotificationKind.EXHAUSTION,
                "You Have Fainted!",
                f"You lost {Constants.EXHAUSTION_XP_PENALTY} XP and {Constants.EXHAUSTION_COIN_PENALTY} coins. "
                "Your health has been restored.",
            )

        progression_service.evaluate_achievements(user, deps=deps)

        log_with_account_context(
            logger,
            "info",
            "Daily rollover applied",
            account_id=session.account_id,
            damage=total_damage,
            missed_dailies=missed,
            streak=user.streak,
            exhausted=exhausted,
        )

        return RolloverReport(
            rolled_over=True,
            debuff_damage=debuff_damage,
            health_penalty=health_penalty,
            missed_dailies=missed,
            new_streak=user.streak,
            exhausted=exhausted,
            expired_debuffs=expired,
            health=user.health,
        )
