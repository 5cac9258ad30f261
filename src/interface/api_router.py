"""HTTP endpoints exposing the progression engine, one session per account."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field

from src.agents.quest_agent import OpenRouterQuestGenerator
from src.core.deps import Deps
from src.core.errors import Rejection, rejection_response
from src.core.kv_store import PersistenceError, build_store
from src.domain.dungeon import DungeonCrawl, DungeonCreate
from src.domain.journal import JournalEntry, JournalEntryCreate, WeeklyReview, WeeklyReviewCreate
from src.domain.reward import CustomRewardCreate, RewardItem
from src.domain.session import GameSession
from src.domain.task import Difficulty, Task, TaskCreate
from src.domain.user import Notification
from src.models.service_models import (
    DungeonResult,
    EquipResult,
    JournalDeletionResult,
    LevelData,
    RedemptionResult,
    SessionSnapshot,
    SkillUpgradeResult,
    TaskCompletionResult,
)
from src.services import (
    dungeon_service,
    journal_service,
    level_curve,
    notification_service,
    progression_service,
    reward_formulas,
    task_service,
)
from src.services.notification_service import InboxNotifier
from src.services.session_service import SessionService


router = APIRouter(tags=["lifequest"])
logger = logging.getLogger(__name__)


class QuestRequest(BaseModel):
    theme: str = Field(..., min_length=1, max_length=200)
    difficulty: Difficulty = Difficulty.EASY


class SkillUpgradeRequest(BaseModel):
    tree: str
    skill: str


class _ServiceState:
    """Process-wide collaborators, created on first use."""

    session_service: SessionService | None = None
    quest_generator: task_service.QuestGenerator | None = None


def get_session_service() -> SessionService:
    if _ServiceState.session_service is None:
        _ServiceState.session_service = SessionService(build_store())
    return _ServiceState.session_service


def get_deps() -> Deps:
    return Deps()


def get_quest_generator() -> task_service.QuestGenerator:
    if _ServiceState.quest_generator is None:
        _ServiceState.quest_generator = OpenRouterQuestGenerator()
    return _ServiceState.quest_generator


async def shutdown() -> None:
    """Flush pending saves and release the store."""
    if _ServiceState.session_service is not None:
        await _ServiceState.session_service.close()
        _ServiceState.session_service = None


def rejection_error(rejection: Rejection) -> HTTPException:
    """Map a business-rule rejection to an HTTP error."""
    response = rejection_response(rejection)
    status_code = status.HTTP_404_NOT_FOUND if rejection == Rejection.NOT_FOUND else status.HTTP_409_CONFLICT
    return HTTPException(
        status_code=status_code,
        detail={"rejection": rejection.value, **response.model_dump(mode="json")},
    )


@asynccontextmanager
async def open_session(
    account_id: str,
    service: SessionService,
    base_deps: Deps,
) -> AsyncIterator[tuple[GameSession, Deps]]:
    """Load, prepare and lock a session for one request, scheduling a save afterwards.

    Notifications raised while handling the request go to the player's inbox.
    """
    async with service.lock(account_id):
        try:
            session = await service.load_or_create(account_id, deps=base_deps)
        except PersistenceError as e:
            logger.error("Failed to load session for account %s: %s", account_id, e)
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Session store unavailable") from e

        deps = Deps(
            clock=base_deps.clock,
            notifier=InboxNotifier(session.user, now=base_deps.clock.now(), forward_to=base_deps.notifier),
        )
        service.prepare_session(session, deps=deps)
        try:
            yield session, deps
        finally:
            service.schedule_save(session)


# Session


@router.get("/sessions/{account_id}")
async def get_session_snapshot(
    account_id: str,
    service: SessionService = Depends(get_session_service),
    base_deps: Deps = Depends(get_deps),
) -> SessionSnapshot:
    async with open_session(account_id, service, base_deps) as (session, deps):
        user = session.user
        return SessionSnapshot(
            session=session,
            generated_at=deps.clock.now(),
            tier_name=level_curve.tier_name(user.level),
            progress=level_curve.progress_to_next_level(user.xp, user.level),
            daily_xp_target=reward_formulas.daily_xp_target(user.level),
        )


@router.get("/levels/{level}")
async def get_level(level: int) -> LevelData:
    return level_curve.get_level_data(level)


# Tasks


@router.post("/sessions/{account_id}/tasks", status_code=status.HTTP_201_CREATED)
async def create_task(
    account_id: str,
    data: TaskCreate,
    service: SessionService = Depends(get_session_service),
    base_deps: Deps = Depends(get_deps),
) -> Task:
    async with open_session(account_id, service, base_deps) as (session, deps):
        return task_service.add_task(session, data, deps=deps)


@router.post("/sessions/{account_id}/tasks/generate", status_code=status.HTTP_201_CREATED)
async def generate_task(
    account_id: str,
    request: QuestRequest,
    service: SessionService = Depends(get_session_service),
    base_deps: Deps = Depends(get_deps),
    generator: task_service.QuestGenerator = Depends(get_quest_generator),
) -> Task:
    async with open_session(account_id, service, base_deps) as (session, deps):
        task = await task_service.add_generated_quest(
            session,
            generator,
            theme=request.theme,
            difficulty=request.difficulty,
            deps=deps,
        )
    if task is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="No quest could be generated")
    return task


@router.post("/sessions/{account_id}/tasks/{task_id}/complete")
async def complete_task(
    account_id: str,
    task_id: str,
    service: SessionService = Depends(get_session_service),
    base_deps: Deps = Depends(get_deps),
) -> TaskCompletionResult:
    async with open_session(account_id, service, base_deps) as (session, deps):
        result = task_service.complete_task(session, task_id, deps=deps)
    if result.rejection:
        raise rejection_error(result.rejection)
    return result


@router.post("/sessions/{account_id}/tasks/{task_id}/uncomplete")
async def uncomplete_task(
    account_id: str,
    task_id: str,
    service: SessionService = Depends(get_session_service),
    base_deps: Deps = Depends(get_deps),
) -> TaskCompletionResult:
    async with open_session(account_id, service, base_deps) as (session, _deps):
        result = task_service.uncomplete_task(session, task_id)
    if result.rejection:
        raise rejection_error(result.rejection)
    return result


@router.delete("/sessions/{account_id}/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    account_id: str,
    task_id: str,
    service: SessionService = Depends(get_session_service),
    base_deps: Deps = Depends(get_deps),
) -> Response:
    async with open_session(account_id, service, base_deps) as (session, deps):
        deleted = task_service.delete_task(session, task_id, deps=deps)
    if not deleted:
        raise rejection_error(Rejection.NOT_FOUND)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Dungeons


@router.post("/sessions/{account_id}/dungeons", status_code=status.HTTP_201_CREATED)
async def create_dungeon(
    account_id: str,
    data: DungeonCreate,
    service: SessionService = Depends(get_session_service),
    base_deps: Deps = Depends(get_deps),
) -> DungeonCrawl:
    async with open_session(account_id, service, base_deps) as (session, deps):
        return dungeon_service.add_dungeon(session, data, deps=deps)


@router.post("/sessions/{account_id}/dungeons/{dungeon_id}/start")
async def start_dungeon(
    account_id: str,
    dungeon_id: str,
    service: SessionService = Depends(get_session_service),
    base_deps: Deps = Depends(get_deps),
) -> DungeonResult:
    async with open_session(account_id, service, base_deps) as (session, deps):
        result = dungeon_service.start_dungeon(session, dungeon_id, deps=deps)
    if result.rejection:
        raise rejection_error(result.rejection)
    return result


@router.post("/sessions/{account_id}/dungeons/{dungeon_id}/challenges/{challenge_id}/toggle")
async def toggle_challenge(
    account_id: str,
    dungeon_id: str,
    challenge_id: str,
    service: SessionService = Depends(get_session_service),
    base_deps: Deps = Depends(get_deps),
) -> DungeonResult:
    async with open_session(account_id, service, base_deps) as (session, _deps):
        result = dungeon_service.toggle_challenge(session, dungeon_id, challenge_id)
    if result.rejection:
        raise rejection_error(result.rejection)
    return result


@router.post("/sessions/{account_id}/dungeons/{dungeon_id}/complete")
async def complete_dungeon(
    account_id: str,
    dungeon_id: str,
    service: SessionService = Depends(get_session_service),
    base_deps: Deps = Depends(get_deps),
) -> DungeonResult:
    async with open_session(account_id, service, base_deps) as (session, deps):
        result = dungeon_service.complete_dungeon(session, dungeon_id, deps=deps)
    if result.rejection:
        raise rejection_error(result.rejection)
    return result


# Rewards and skills


@router.get("/sessions/{account_id}/rewards")
async def list_rewards(
    account_id: str,
    service: SessionService = Depends(get_session_service),
    base_deps: Deps = Depends(get_deps),
) -> list[RewardItem]:
    async with open_session(account_id, service, base_deps) as (session, _deps):
        return [*progression_service.REWARD_SHOP, *session.user.custom_rewards]


@router.post("/sessions/{account_id}/rewards/{reward_id}/redeem")
async def redeem_reward(
    account_id: str,
    reward_id: str,
    service: SessionService = Depends(get_session_service),
    base_deps: Deps = Depends(get_deps),
) -> RedemptionResult:
    async with open_session(account_id, service, base_deps) as (session, deps):
        reward = progression_service.find_reward(session.user, reward_id)
        if reward is None:
            raise rejection_error(Rejection.NOT_FOUND)
        result = progression_service.redeem_reward(session.user, reward, deps=deps)
    if result.rejection:
        raise rejection_error(result.rejection)
    return result


@router.post("/sessions/{account_id}/rewards/custom", status_code=status.HTTP_201_CREATED)
async def create_custom_reward(
    account_id: str,
    data: CustomRewardCreate,
    service: SessionService = Depends(get_session_service),
    base_deps: Deps = Depends(get_deps),
) -> RewardItem:
    async with open_session(account_id, service, base_deps) as (session, _deps):
        return progression_service.add_custom_reward(session.user, data)


@router.delete("/sessions/{account_id}/rewards/custom/{reward_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_custom_reward(
    account_id: str,
    reward_id: str,
    service: SessionService = Depends(get_session_service),
    base_deps: Deps = Depends(get_deps),
) -> Response:
    async with open_session(account_id, service, base_deps) as (session, _deps):
        deleted = progression_service.delete_custom_reward(session.user, reward_id)
    if not deleted:
        raise rejection_error(Rejection.NOT_FOUND)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Equipment


@router.post("/sessions/{account_id}/inventory/{item_id}/equip")
async def equip_item(
    account_id: str,
    item_id: str,
    service: SessionService = Depends(get_session_service),
    base_deps: Deps = Depends(get_deps),
) -> EquipResult:
    async with open_session(account_id, service, base_deps) as (session, deps):
        result = progression_service.equip_item(session.user, item_id, deps=deps)
    if result.rejection:
        raise rejection_error(result.rejection)
    return result


@router.post("/sessions/{account_id}/skills/upgrade")
async def upgrade_skill(
    account_id: str,
    request: SkillUpgradeRequest,
    service: SessionService = Depends(get_session_service),
    base_deps: Deps = Depends(get_deps),
) -> SkillUpgradeResult:
    async with open_session(account_id, service, base_deps) as (session, deps):
        result = progression_service.upgrade_skill(session.user, request.tree, request.skill, deps=deps)
    if result.rejection:
        raise rejection_error(result.rejection)
    return result


# Journal


@router.post("/sessions/{account_id}/journal", status_code=status.HTTP_201_CREATED)
async def create_journal_entry(
    account_id: str,
    data: JournalEntryCreate,
    service: SessionService = Depends(get_session_service),
    base_deps: Deps = Depends(get_deps),
) -> JournalEntry:
    async with open_session(account_id, service, base_deps) as (session, deps):
        return journal_service.add_journal_entry(session, data, deps=deps)


@router.delete("/sessions/{account_id}/journal/{entry_id}")
async def delete_journal_entry(
    account_id: str,
    entry_id: str,
    service: SessionService = Depends(get_session_service),
    base_deps: Deps = Depends(get_deps),
) -> JournalDeletionResult:
    async with open_session(account_id, service, base_deps) as (session, deps):
        result = journal_service.delete_journal_entry(session, entry_id, deps=deps)
    if result.rejection:
        raise rejection_error(result.rejection)
    return result


@router.post("/sessions/{account_id}/weekly-reviews", status_code=status.HTTP_201_CREATED)
async def create_weekly_review(
    account_id: str,
    data: WeeklyReviewCreate,
    service: SessionService = Depends(get_session_service),
    base_deps: Deps = Depends(get_deps),
) -> WeeklyReview:
    async with open_session(account_id, service, base_deps) as (session, deps):
        return journal_service.add_weekly_review(session, data, deps=deps)


# Notifications


@router.get("/sessions/{account_id}/notifications")
async def list_notifications(
    account_id: str,
    unread_only: bool = False,
    service: SessionService = Depends(get_session_service),
    base_deps: Deps = Depends(get_deps),
) -> list[Notification]:
    async with open_session(account_id, service, base_deps) as (session, _deps):
        notifications = session.user.notifications
        if unread_only:
            return [n for n in notifications if not n.read]
        return list(notifications)


@router.post("/sessions/{account_id}/notifications/read-all")
async def mark_all_notifications_read(
    account_id: str,
    service: SessionService = Depends(get_session_service),
    base_deps: Deps = Depends(get_deps),
) -> dict[str, int]:
    async with open_session(account_id, service, base_deps) as (session, _deps):
        return {"updated": notification_service.mark_all_notifications_read(session.user)}


@router.post("/sessions/{account_id}/notifications/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_notification_read(
    account_id: str,
    notification_id: str,
    service: SessionService = Depends(get_session_service),
    base_deps: Deps = Depends(get_deps),
) -> Response:
    async with open_session(account_id, service, base_deps) as (session, _deps):
        found = notification_service.mark_notification_read(session.user, notification_id)
    if not found:
        raise rejection_error(Rejection.NOT_FOUND)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/sessions/{account_id}/notifications/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    account_id: str,
    notification_id: str,
    service: SessionService = Depends(get_session_service),
    base_deps: Deps = Depends(get_deps),
) -> Response:
    async with open_session(account_id, service, base_deps) as (session, _deps):
        deleted = notification_service.delete_notification(session.user, notification_id)
    if not deleted:
        raise rejection_error(Rejection.NOT_FOUND)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
