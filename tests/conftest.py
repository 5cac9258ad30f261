"""Pytest configuration and shared fixtures."""

import logging

import pytest

from src.core.config import Settings


logger = logging.getLogger(__name__)


@pytest.fixture
def test_settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Settings isolated from the developer's environment and .env file."""
    for name in ("TIMEZONE", "REDIS_URL", "SESSION_KEY_PREFIX", "OPENROUTER_API_KEY", "LOGFIRE_TOKEN"):
        monkeypatch.delenv(name, raising=False)
    return Settings(_env_file=None)  # type: ignore[call-arg]
