"""Player-facing notifications emitted by state transitions.

Notifications are fire-and-forget: a failing notifier is logged and never
interrupts the mutation that triggered it.
"""

import logging
import uuid
from datetime import datetime
from typing import Protocol

from src.core.config import Constants
from src.domain.user import Notification, NotificationKind, User


logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Notification sink."""

    def notify(self, kind: NotificationKind, title: str, message: str) -> None: ...


class LoggingNotifier:
    """Writes notifications to the application log."""

    def notify(self, kind: NotificationKind, title: str, message: str) -> None:
        logger.info("Notification [%s] %s: %s", kind, title, message)


class InboxNotifier:
    """Stores notifications in the player's inbox, newest first."""

    def __init__(self, user: User, *, now: datetime, forward_to: Notifier | None = None) -> None:
        self._user = user
        self._now = now
        self._forward_to = forward_to

    def notify(self, kind: NotificationKind, title: str, message: str) -> None:
        add_to_inbox(self._user, kind=kind, title=title, message=message, now=self._now)
        if self._forward_to is not None:
            self._forward_to.notify(kind, title, message)


def add_to_inbox(user: User, *, kind: NotificationKind, title: str, message: str, now: datetime) -> Notification:
    """Prepend a notification to the inbox, dropping the oldest beyond the cap."""
    notification = Notification(
        id=f"notif-{uuid.uuid4().hex[:12]}",
        kind=kind,
        title=title,
        message=message,
        created_at=now,
    )
    user.notifications.insert(0, notification)
    del user.notifications[Constants.NOTIFICATION_INBOX_LIMIT :]
    return notification


def notify(notifier: Notifier, kind: NotificationKind, title: str, message: str = "") -> None:
    """Dispatch a notification without letting notifier failures propagate."""
    try:
        notifier.notify(kind, title, message)
    except Exception:
        logger.exception("Notifier failed for %s notification", kind)


def mark_notification_read(user: User, notification_id: str) -> bool:
    """Mark one notification read. Returns False if it does not exist."""
    for notification in user.notifications:
        if notification.id == notification_id:
            notification.read = True
            return True
    return False


def mark_all_notifications_read(user: User) -> int:
    """Mark every notification read and return how many changed."""
    changed = 0
    for notification in user.notifications:
        if not notification.read:
            notification.read = True
            changed += 1
    return changed


def delete_notification(user: User, notification_id: str) -> bool:
    before = len(user.notifications)
    user.notifications = [n for n in user.notifications if n.id != notification_id]
    return len(user.notifications) < before
