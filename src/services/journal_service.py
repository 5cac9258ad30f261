"""Journal entries and weekly reviews.

Writing in the journal earns a small reward. Deleting an entry within an hour
of writing it costs a penalty that doubles with every such deletion made while
the previous one is still less than an hour old.
"""

import logging
import uuid
from datetime import timedelta

from src.core.config import Constants
from src.core.deps import Deps
from src.core.errors import Rejection
from src.core.logging import span
from src.domain.journal import JournalEntry, JournalEntryCreate, WeeklyReview, WeeklyReviewCreate
from src.domain.session import GameSession
from src.domain.user import NotificationKind
from src.models.service_models import JournalDeletionResult
from src.services import progression_service
from src.services.notification_service import notify
from src.services.reward_formulas import journal_penalty


logger = logging.getLogger(__name__)


def add_journal_entry(session: GameSession, data: JournalEntryCreate, *, deps: Deps) -> JournalEntry:
    entry = JournalEntry(
        id=f"journal-{uuid.uuid4().hex[:12]}",
        content=data.content,
        mood=data.mood,
        created_at=deps.clock.now(),
    )
    session.journal_entries.insert(0, entry)

    progression_service.add_xp(session.user, Constants.JOURNAL_ENTRY_XP, deps=deps)
    progression_service.add_coins(session.user, Constants.JOURNAL_ENTRY_COINS, deps=deps)
    notify(
        deps.notifier,
        NotificationKind.JOURNAL_SAVED,
        "Journal entry saved!",
        f"You earned {Constants.JOURNAL_ENTRY_XP} XP and {Constants.JOURNAL_ENTRY_COINS} Coins.",
    )
    return entry


def delete_journal_entry(session: GameSession, entry_id: str, *, deps: Deps) -> JournalDeletionResult:
    """Delete an entry, applying the early-deletion penalty to entries younger than an hour."""
    with span("journal_service.delete_journal_entry"):
        entry = next((e for e in session.journal_entries if e.id == entry_id), None)
        if entry is None:
            return JournalDeletionResult(success=False, rejection=Rejection.NOT_FOUND)

        user = session.user
        clock = deps.clock
        now = clock.now()
        window = timedelta(seconds=Constants.JOURNAL_PENALTY_WINDOW_SECONDS)

        xp_penalty = coin_penalty = 0
        if now - clock.localize(entry.created_at) <= window:
            deletions = user.journal_deletions
            if deletions.last_deletion is None or now - clock.localize(deletions.last_deletion) > window:
                deletions.count = 0

            xp_penalty, coin_penalty = journal_penalty(deletions.count)
            progression_service.add_xp(user, -xp_penalty, deps=deps)
            if not progression_service.add_coins(user, -coin_penalty, deps=deps).success:
                coin_penalty = 0

            deletions.count += 1
            deletions.last_deletion = now
            notify(
                deps.notifier,
                NotificationKind.JOURNAL_PENALTY,
                "Journal Penalty Applied",
                f"Entry deleted within an hour. You lost {xp_penalty} XP and {coin_penalty} coins.",
            )
            logger.info("Journal penalty for user %s: %d XP, %d coins", user.id, xp_penalty, coin_penalty)

        session.journal_entries.remove(entry)
        return JournalDeletionResult(success=True, xp_penalty=xp_penalty, coin_penalty=coin_penalty)


def add_weekly_review(session: GameSession, data: WeeklyReviewCreate, *, deps: Deps) -> WeeklyReview:
    now = deps.clock.now()
    year, week_number, _ = now.isocalendar()
    review = WeeklyReview(
        id=f"review-{uuid.uuid4().hex[:12]}",
        wins=data.wins,
        challenges=data.challenges,
        next_week_focus=data.next_week_focus,
        created_at=now,
        week_number=week_number,
        year=year,
    )
    session.weekly_reviews.insert(0, review)

    progression_service.add_xp(session.user, Constants.WEEKLY_REVIEW_XP, deps=deps)
    notify(
        deps.notifier,
        NotificationKind.WEEKLY_REVIEW,
        "Weekly Review Complete!",
        f"You earned {Constants.WEEKLY_REVIEW_XP} XP for your reflection.",
    )
    return review
