"""Collaborators injected into engine operations."""

from dataclasses import dataclass, field

from src.core.clock import Clock, get_clock
from src.services.notification_service import LoggingNotifier, Notifier


@dataclass
class Deps:
    """Time source and notification sink used by every state transition."""

    clock: Clock = field(default_factory=get_clock)
    notifier: Notifier = field(default_factory=LoggingNotifier)
