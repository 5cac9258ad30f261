"""Unit tests for player notifications."""

import pytest

from src.core.config import Constants
from src.domain.user import NotificationKind
from src.services import notification_service, progression_service
from src.services.notification_service import InboxNotifier
from tests.unit.mocks import FailingNotifier, RecordingNotifier


@pytest.mark.unit
class TestInbox:
    def test_newest_notification_first(self, user, clock):
        notification_service.add_to_inbox(user, kind=NotificationKind.LEVEL_UP, title="First", message="", now=clock.now())
        notification_service.add_to_inbox(user, kind=NotificationKind.LEVEL_UP, title="Second", message="", now=clock.now())

        assert [n.title for n in user.notifications] == ["Second", "First"]
        assert not user.notifications[0].read

    def test_inbox_is_capped(self, user, clock):
        for i in range(Constants.NOTIFICATION_INBOX_LIMIT + 5):
            notification_service.add_to_inbox(
                user, kind=NotificationKind.QUEST_ADDED, title=f"#{i}", message="", now=clock.now()
            )

        assert len(user.notifications) == Constants.NOTIFICATION_INBOX_LIMIT
        assert user.notifications[0].title == f"#{Constants.NOTIFICATION_INBOX_LIMIT + 4}"

    def test_inbox_notifier_stores_and_forwards(self, user, clock):
        forward = RecordingNotifier()
        notifier = InboxNotifier(user, now=clock.now(), forward_to=forward)

        notifier.notify(NotificationKind.BOSS_DEFEATED, "Boss Defeated!", "Well done")

        assert user.notifications[0].kind == NotificationKind.BOSS_DEFEATED
        assert user.notifications[0].created_at == clock.now()
        assert forward.kinds() == [NotificationKind.BOSS_DEFEATED]


@pytest.mark.unit
class TestReadState:
    def test_mark_one_read(self, user, clock):
        notification = notification_service.add_to_inbox(
            user, kind=NotificationKind.LEVEL_UP, title="Level Up!", message="", now=clock.now()
        )

        assert notification_service.mark_notification_read(user, notification.id)
        assert notification.read
        assert not notification_service.mark_notification_read(user, "missing")

    def test_mark_all_read_counts_changes(self, user, clock):
        for _ in range(3):
            notification_service.add_to_inbox(user, kind=NotificationKind.LEVEL_UP, title="x", message="", now=clock.now())
        user.notifications[0].read = True

        assert notification_service.mark_all_notifications_read(user) == 2
        assert notification_service.mark_all_notifications_read(user) == 0

    def test_delete(self, user, clock):
        notification = notification_service.add_to_inbox(
            user, kind=NotificationKind.LEVEL_UP, title="x", message="", now=clock.now()
        )

        assert notification_service.delete_notification(user, notification.id)
        assert user.notifications == []
        assert not notification_service.delete_notification(user, notification.id)


@pytest.mark.unit
class TestNotifierFailures:
    def test_failing_notifier_does_not_interrupt_mutation(self, user, deps):
        """Test that XP is still applied when notification delivery fails."""
        deps.notifier = FailingNotifier()

        result = progression_service.add_xp(user, 112, deps=deps)

        assert result.new_level == 2
        assert user.xp == 112

    def test_notify_swallows_errors(self):
        notification_service.notify(FailingNotifier(), NotificationKind.LEVEL_UP, "Level Up!")
