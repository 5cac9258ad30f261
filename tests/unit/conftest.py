"""Pytest configuration and fixtures for unit tests."""

from datetime import UTC, datetime

import pytest

from src.core.deps import Deps
from src.domain.boss import Boss, BossRewards
from src.domain.session import GameSession
from src.domain.task import TaskCategory
from src.domain.user import User
from src.services import progression_service
from tests.unit.mocks import FrozenClock, RecordingNotifier


# Wednesday of ISO week 2026-W03
NOW = datetime(2026, 1, 14, 10, 0, 0, tzinfo=UTC)


@pytest.fixture
def clock():
    """Clock frozen on a Wednesday morning."""
    return FrozenClock(NOW)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def deps(clock, notifier):
    return Deps(clock=clock, notifier=notifier)


@pytest.fixture
def user(clock):
    """Fresh level 1 user who last logged in today."""
    user = User(id="guest", last_login=clock.now(), achievements=progression_service.catalog_achievements())
    progression_service.sync_level(user)
    return user


@pytest.fixture
def boss():
    return Boss(
        id="test_boss",
        name="Test Boss",
        max_hp=300,
        current_hp=300,
        resistances={TaskCategory.HEALTH: 0.5, TaskCategory.SOCIAL: 2.0},
        rewards=BossRewards(xp=150, coins=50, gems=2),
        week="2026-W03",
    )


@pytest.fixture
def session(user, boss):
    return GameSession(account_id="guest", user=user, boss=boss)
