"""Task (quest) and habit lifecycle.

Completing a task is a one-way transition: it damages the weekly boss,
advances the habit streak for recurring tasks and pays out XP and coins.
Recurring tasks are reset by the daily rollover, not by the player.
"""

import logging
import uuid
from typing import Protocol

from src.core.clock import days_between
from src.core.deps import Deps
from src.core.errors import Rejection, classify_agent_error
from src.core.logging import log_with_account_context, span
from src.domain.session import GameSession
from src.domain.task import Difficulty, Task, TaskCategory, TaskCreate
from src.domain.user import NotificationKind
from src.models.service_models import QuestResult, QuestUserContext, TaskCompletionResult
from src.services import boss_service, progression_service
from src.services.level_curve import tier_name
from src.services.notification_service import notify
from src.services.reward_formulas import habit_xp, task_coins, task_xp


logger = logging.getLogger(__name__)


class QuestGenerator(Protocol):
    """Produces a quest for a theme and difficulty. May raise on failure."""

    async def generate_quest(
        self,
        theme: str,
        difficulty: Difficulty,
        user_context: QuestUserContext,
    ) -> QuestResult | None: ...


def add_task(session: GameSession, data: TaskCreate, *, deps: Deps, silent: bool = False) -> Task:
    """Create a task. Rewards not supplied are computed from difficulty and the player's level."""
    with span("task_service.add_task"):
        task = Task(
            id=f"task-{uuid.uuid4().hex[:12]}",
            title=data.title,
            description=data.description,
            category=data.category,
            difficulty=data.difficulty,
            type=data.type,
            xp=data.xp if data.xp is not None else task_xp(data.difficulty),
            coins=data.coins if data.coins is not None else task_coins(data.difficulty, session.user.level),
            created_at=deps.clock.now(),
        )
        session.tasks.insert(0, task)

        if not silent:
            notify(deps.notifier, NotificationKind.QUEST_ADDED, "Quest Added!", f'"{task.title}" added to your log.')
        log_with_account_context(logger, "info", "Task created", account_id=session.account_id, task_id=task.id)
        return task


def _advance_streak(task: Task, *, deps: Deps) -> None:
    today = deps.clock.today()
    if task.last_completed is None:
        task.streak = 1
    else:
        days = days_between(task.last_completed, today)
        if days == 1:
            task.streak += 1
        elif days > 1:
            task.streak = 1
        else:
            task.streak = max(task.streak, 1)
    task.last_completed = today


def complete_task(session: GameSession, task_id: str, *, deps: Deps) -> TaskCompletionResult:
    """Mark a task completed and pay out its rewards.

    Only the incomplete-to-completed transition has effects; completing an
    already completed task is a successful no-op.
    """
    with span("task_service.complete_task"):
        task = session.find_task(task_id)
        if task is None:
            return TaskCompletionResult(success=False, rejection=Rejection.NOT_FOUND)
        if task.completed:
            return TaskCompletionResult(success=True, task=task, already_completed=True)

        user = session.user
        task.completed = True
        user.tasks_completed += 1

        damage = boss_service.deal_damage(session, task, deps=deps)

        if task.is_recurring:
            _advance_streak(task, deps=deps)
            xp = habit_xp(task.streak, user.level)
        else:
            task.last_completed = deps.clock.today()
            xp = task.xp

        progression_service.add_xp(user, xp, deps=deps)
        progression_service.add_coins(user, task.coins, deps=deps)

        log_with_account_context(
            logger,
            "info",
            "Task completed",
            account_id=session.account_id,
            task_id=task.id,
            xp=xp,
            coins=task.coins,
            streak=task.streak,
        )
        return TaskCompletionResult(success=True, task=task, xp_awarded=xp, coins_awarded=task.coins, damage=damage)


def uncomplete_task(session: GameSession, task_id: str) -> TaskCompletionResult:
    """Completion is irreversible; an incomplete task is returned unchanged."""
    task = session.find_task(task_id)
    if task is None:
        return TaskCompletionResult(success=False, rejection=Rejection.NOT_FOUND)
    if task.completed:
        return TaskCompletionResult(success=False, task=task, rejection=Rejection.COMPLETION_IRREVERSIBLE)
    return TaskCompletionResult(success=True, task=task)


def delete_task(session: GameSession, task_id: str, *, deps: Deps) -> bool:
    """Remove a task. Rewards already paid out are kept."""
    task = session.find_task(task_id)
    if task is None:
        return False
    session.tasks.remove(task)
    notify(deps.notifier, NotificationKind.QUEST_DELETED, "Quest Deleted", f'"{task.title}" removed from your log.')
    return True


def build_quest_context(session: GameSession, *, deps: Deps) -> QuestUserContext:
    """Summarize the player for the quest generator."""
    user = session.user
    today = deps.clock.today()
    recent: list[TaskCategory] = []
    for task in session.tasks:
        if task.category not in recent:
            recent.append(task.category)
    return QuestUserContext(
        level=user.level,
        tier_name=tier_name(user.level),
        streak=user.streak,
        recent_categories=recent[:5],
        completed_today=sum(1 for task in session.tasks if task.last_completed == today),
    )


async def add_generated_quest(
    session: GameSession,
    generator: QuestGenerator,
    *,
    theme: str,
    difficulty: Difficulty,
    deps: Deps,
) -> Task | None:
    """Ask the quest generator for a quest and add it to the log.

    Generator failures are logged and produce no quest.
    """
    with span("task_service.add_generated_quest"):
        context = build_quest_context(session, deps=deps)
        try:
            quest = await generator.generate_quest(theme, difficulty, context)
        except Exception as e:
            category, message = classify_agent_error(e)
            log_with_account_context(
                logger,
                "warning",
                "Quest generation failed",
                account_id=session.account_id,
                error_category=category.value,
                error=str(e),
                user_message=message,
            )
            return None

        if quest is None:
            logger.info("Quest generator returned no quest for theme=%s", theme)
            return None

        return add_task(
            session,
            TaskCreate(
                title=quest.title,
                description=quest.description,
                category=quest.category,
                difficulty=quest.difficulty,
                type=quest.type,
            ),
            deps=deps,
        )
