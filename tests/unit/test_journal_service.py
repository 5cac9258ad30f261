"""Unit tests for journal entries and weekly reviews."""

import pytest

from src.core.errors import Rejection
from src.domain.journal import JournalEntryCreate, WeeklyReviewCreate
from src.domain.user import NotificationKind
from src.services import journal_service


def _write(session, deps, content="Felt great today."):
    return journal_service.add_journal_entry(session, JournalEntryCreate(content=content, mood="happy"), deps=deps)


@pytest.mark.unit
class TestJournalEntries:
    def test_entry_is_rewarded(self, session, deps, notifier):
        entry = _write(session, deps)

        assert session.journal_entries[0] is entry
        assert entry.created_at == deps.clock.now()
        assert session.user.xp == 25
        assert session.user.coins == 5
        assert NotificationKind.JOURNAL_SAVED in notifier.kinds()

    def test_deleting_old_entry_is_free(self, session, deps, clock):
        entry = _write(session, deps)
        clock.advance(hours=2)

        result = journal_service.delete_journal_entry(session, entry.id, deps=deps)

        assert result.success
        assert (result.xp_penalty, result.coin_penalty) == (0, 0)
        assert session.user.xp == 25
        assert session.journal_entries == []

    def test_penalty_doubles_for_repeated_fresh_deletions(self, session, deps, clock):
        """Test that each fresh deletion within the hour doubles the penalty."""
        session.user.xp = 1000
        session.user.coins = 100
        entries = [_write(session, deps, f"Entry {i}") for i in range(3)]

        penalties = []
        for entry in entries:
            clock.advance(minutes=5)
            result = journal_service.delete_journal_entry(session, entry.id, deps=deps)
            penalties.append((result.xp_penalty, result.coin_penalty))

        assert penalties == [(25, 5), (50, 10), (100, 20)]
        assert session.user.xp == 1075 - 175
        assert session.user.coins == 115 - 35
        assert session.user.journal_deletions.count == 3

    def test_penalty_resets_after_quiet_hour(self, session, deps, clock):
        session.user.xp = 1000
        first = _write(session, deps)
        journal_service.delete_journal_entry(session, first.id, deps=deps)

        clock.advance(hours=2)
        second = _write(session, deps)
        result = journal_service.delete_journal_entry(session, second.id, deps=deps)

        assert result.xp_penalty == 25
        assert session.user.journal_deletions.count == 1

    def test_coin_penalty_that_would_overdraw_is_skipped(self, session, deps, notifier):
        entry = _write(session, deps)
        session.user.coins = 2

        result = journal_service.delete_journal_entry(session, entry.id, deps=deps)

        assert result.xp_penalty == 25
        assert result.coin_penalty == 0
        assert session.user.coins == 2
        assert session.user.xp == 0
        assert NotificationKind.JOURNAL_PENALTY in notifier.kinds()

    def test_delete_unknown_entry(self, session, deps):
        result = journal_service.delete_journal_entry(session, "missing", deps=deps)
        assert result.rejection == Rejection.NOT_FOUND


@pytest.mark.unit
class TestWeeklyReview:
    def test_review_records_iso_week_and_rewards(self, session, deps, notifier):
        review = journal_service.add_weekly_review(
            session, WeeklyReviewCreate(wins="Shipped it", next_week_focus="Rest"), deps=deps
        )

        assert (review.year, review.week_number) == (2026, 3)
        assert session.weekly_reviews == [review]
        assert session.user.xp == 150
        assert session.user.level == 2
        assert NotificationKind.WEEKLY_REVIEW in notifier.kinds()
