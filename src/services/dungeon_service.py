"""Dungeons: multi-day projects made of ordered challenges.

A dungeon can be completed once every challenge is done. Finishing faster than
the target time (30 minutes per challenge) earns bonus XP on top of the base
reward.
"""

import logging
import math
import uuid

from src.core.config import Constants
from src.core.deps import Deps
from src.core.errors import Rejection
from src.core.logging import log_with_account_context, span
from src.domain.dungeon import Challenge, DungeonCrawl, DungeonCreate
from src.domain.session import GameSession
from src.domain.user import NotificationKind
from src.models.service_models import DungeonResult
from src.services import progression_service
from src.services.notification_service import notify


logger = logging.getLogger(__name__)


def time_bonus_xp(base_xp: int, time_taken: int, challenge_count: int) -> int:
    """Bonus XP for finishing under the target time, rounded half up and never negative."""
    target_time = challenge_count * Constants.DUNGEON_SECONDS_PER_CHALLENGE
    if target_time <= 0:
        return 0
    return max(0, math.floor(base_xp * (1 - time_taken / target_time) + 0.5))


def add_dungeon(session: GameSession, data: DungeonCreate, *, deps: Deps) -> DungeonCrawl:
    dungeon = DungeonCrawl(
        id=f"dungeon-{uuid.uuid4().hex[:12]}",
        title=data.title,
        description=data.description,
        challenges=[
            Challenge(id=f"challenge-{index + 1}", title=challenge.title)
            for index, challenge in enumerate(data.challenges)
        ],
        difficulty=data.difficulty,
        xp=data.xp,
    )
    session.dungeons.append(dungeon)
    notify(deps.notifier, NotificationKind.DUNGEON_ADDED, "Dungeon Added!", f'"{dungeon.title}" awaits you.')
    return dungeon


def toggle_challenge(session: GameSession, dungeon_id: str, challenge_id: str) -> DungeonResult:
    """Flip one challenge's completed flag. Conquered dungeons are frozen."""
    dungeon = session.find_dungeon(dungeon_id)
    if dungeon is None:
        return DungeonResult(success=False, rejection=Rejection.NOT_FOUND)
    if dungeon.completed:
        return DungeonResult(success=False, dungeon=dungeon, rejection=Rejection.DUNGEON_ALREADY_COMPLETED)

    challenge = next((c for c in dungeon.challenges if c.id == challenge_id), None)
    if challenge is None:
        return DungeonResult(success=False, dungeon=dungeon, rejection=Rejection.NOT_FOUND)

    challenge.completed = not challenge.completed
    return DungeonResult(success=True, dungeon=dungeon)


def start_dungeon(session: GameSession, dungeon_id: str, *, deps: Deps) -> DungeonResult:
    """Stamp the start time. A dungeon can only be started once."""
    dungeon = session.find_dungeon(dungeon_id)
    if dungeon is None:
        return DungeonResult(success=False, rejection=Rejection.NOT_FOUND)
    if dungeon.completed:
        return DungeonResult(success=False, dungeon=dungeon, rejection=Rejection.DUNGEON_ALREADY_COMPLETED)
    if dungeon.start_time is not None:
        return DungeonResult(success=False, dungeon=dungeon, rejection=Rejection.DUNGEON_ALREADY_STARTED)

    dungeon.start_time = deps.clock.now()
    log_with_account_context(logger, "info", "Dungeon started", account_id=session.account_id, dungeon_id=dungeon.id)
    return DungeonResult(success=True, dungeon=dungeon)


def complete_dungeon(session: GameSession, dungeon_id: str, *, deps: Deps) -> DungeonResult:
    """Conquer a started dungeon whose challenges are all done, awarding base plus time-bonus XP."""
    with span("dungeon_service.complete_dungeon"):
        dungeon = session.find_dungeon(dungeon_id)
        if dungeon is None:
            return DungeonResult(success=False, rejection=Rejection.NOT_FOUND)
        if dungeon.completed:
            return DungeonResult(success=False, dungeon=dungeon, rejection=Rejection.DUNGEON_ALREADY_COMPLETED)
        if dungeon.start_time is None:
            return DungeonResult(success=False, dungeon=dungeon, rejection=Rejection.DUNGEON_NOT_STARTED)
        if not all(challenge.completed for challenge in dungeon.challenges):
            notify(
                deps.notifier,
                NotificationKind.CHALLENGES_REMAINING,
                "Challenges Remain!",
                "You must complete all challenges to conquer the quest.",
            )
            return DungeonResult(success=False, dungeon=dungeon, rejection=Rejection.CHALLENGES_REMAINING)

        now = deps.clock.now()
        time_taken = max(0, int((now - deps.clock.localize(dungeon.start_time)).total_seconds()))
        bonus_xp = time_bonus_xp(dungeon.xp, time_taken, len(dungeon.challenges))

        dungeon.completed = True
        dungeon.completion_time = now
        dungeon.time_taken = time_taken

        user = session.user
        user.dungeons_completed += 1
        progression_service.add_xp(user, dungeon.xp + bonus_xp, deps=deps)

        notify(
            deps.notifier,
            NotificationKind.DUNGEON_COMPLETED,
            "Dungeon Conquered!",
            f'You conquered "{dungeon.title}" and earned {dungeon.xp} XP plus a {bonus_xp} XP time bonus.',
        )
        log_with_account_context(
            logger,
            "info",
            "Dungeon completed",
            account_id=session.account_id,
            dungeon_id=dungeon.id,
            time_taken=time_taken,
            bonus_xp=bonus_xp,
        )
        return DungeonResult(
            success=True,
            dungeon=dungeon,
            time_taken=time_taken,
            base_xp=dungeon.xp,
            bonus_xp=bonus_xp,
        )
