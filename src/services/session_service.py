"""Session service: loading, preparing and persisting per-account game sessions.

Sessions are stored as one document per account. Saves run in the background
and are chained per key, so the most recently scheduled save always lands last.
The achievement catalog is static and never persisted; only unlock state is.
"""

import asyncio
import logging
import weakref
from typing import Any

from src.core.config import settings
from src.core.deps import Deps
from src.core.kv_store import KeyValueStore, PersistenceError
from src.core.logging import span
from src.domain.session import GameSession
from src.domain.user import User
from src.models.service_models import RolloverReport
from src.services import boss_service, daily_rollover, progression_service


logger = logging.getLogger(__name__)


def serialize_session(session: GameSession) -> dict[str, Any]:
    """Convert a session to its persisted form, reducing achievements to unlock state."""
    payload = session.model_dump(mode="json", exclude={"account_id"})
    payload["user"]["achievements"] = [
        {"id": achievement["id"], "unlocked_at": achievement["unlocked_at"]}
        for achievement in payload["user"]["achievements"]
        if achievement["unlocked"]
    ]
    return payload


def deserialize_session(account_id: str, data: dict[str, Any]) -> GameSession:
    """Rebuild a session from its persisted form, re-merging the achievement catalog."""
    user_data = dict(data["user"])
    user_data["achievements"] = progression_service.merge_achievements(user_data.get("achievements"))
    return GameSession.model_validate({**data, "user": user_data, "account_id": account_id})


def new_session(account_id: str, *, deps: Deps) -> GameSession:
    """Create a fresh level 1 session."""
    user = User(id=account_id, last_login=deps.clock.now(), achievements=progression_service.catalog_achievements())
    progression_service.sync_level(user)
    return GameSession(account_id=account_id, user=user)


class SessionService:
    """Owns session persistence and per-account write serialization."""

    def __init__(self, store: KeyValueStore, *, key_prefix: str | None = None) -> None:
        self._store = store
        self._key_prefix = key_prefix or settings.session_key_prefix
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()
        self._pending: dict[str, asyncio.Task[bool]] = {}

    @property
    def store(self) -> KeyValueStore:
        return self._store

    def key_for(self, account_id: str) -> str:
        return f"{self._key_prefix}-{account_id}"

    def lock(self, account_id: str) -> asyncio.Lock:
        """Lock serializing mutations of one account's session.

        Locks are held weakly and disappear once no request is holding or waiting on them.
        """
        lock = self._locks.get(account_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[account_id] = lock
        return lock

    async def load(self, account_id: str) -> GameSession | None:
        """Load a stored session, waiting for any save still pending for it.

        Raises:
            PersistenceError: If the store cannot be read
        """
        with span("session_service.load"):
            key = self.key_for(account_id)
            pending = self._pending.get(key)
            if pending is not None:
                await pending
            data = await self._store.load(key)
            if data is None:
                return None
            return deserialize_session(account_id, data)

    async def load_or_create(self, account_id: str, *, deps: Deps) -> GameSession:
        session = await self.load(account_id)
        if session is None:
            logger.info("Creating new session for account %s", account_id)
            session = new_session(account_id, deps=deps)
        return session

    def prepare_session(self, session: GameSession, *, deps: Deps) -> RolloverReport:
        """Bring a loaded session up to date: spawn this week's boss and run the daily rollover."""
        boss_service.ensure_weekly_boss(session, deps=deps)
        return daily_rollover.handle_new_day(session, deps=deps)

    async def save_now(self, session: GameSession) -> bool:
        """Persist a session immediately. Returns False if the save did not happen."""
        return await self._save_payload(self.key_for(session.account_id), serialize_session(session))

    async def _save_payload(self, key: str, payload: dict[str, Any]) -> bool:
        try:
            await self._store.save(key, payload)
        except PersistenceError:
            logger.exception("Failed to save session %s", key)
            return False
        return True

    async def _save_after(self, previous: "asyncio.Task[bool] | None", key: str, payload: dict[str, Any]) -> bool:
        if previous is not None:
            await previous
        return await self._save_payload(key, payload)

    def schedule_save(self, session: GameSession) -> "asyncio.Task[bool]":
        """Persist a snapshot of session in the background without blocking the caller.

        Saves for the same key run in scheduling order.
        """
        key = self.key_for(session.account_id)
        payload = serialize_session(session)
        previous = self._pending.get(key)
        task = asyncio.create_task(self._save_after(previous, key, payload))
        self._pending[key] = task

        def _cleanup(done: "asyncio.Task[bool]") -> None:
            if self._pending.get(key) is done:
                del self._pending[key]

        task.add_done_callback(_cleanup)
        return task

    async def flush(self) -> None:
        """Wait for every scheduled save to finish."""
        while self._pending:
            await asyncio.gather(*self._pending.values())

    async def close(self) -> None:
        await self.flush()
        await self._store.close()
