"""Unit tests for session persistence stores."""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from src.core import kv_store
from src.core.kv_store import InMemoryStore, PersistenceError, RedisStore


@pytest.fixture
def no_backoff(monkeypatch):
    """Skip retry sleeps."""
    monkeypatch.setattr(kv_store.asyncio, "sleep", AsyncMock())


@pytest.mark.unit
class TestInMemoryStore:
    async def test_missing_key_loads_none(self):
        store = InMemoryStore()
        assert await store.load("nothing") is None

    async def test_save_merges_top_level_fields(self):
        """Verify save only replaces the fields it is given."""
        store = InMemoryStore()
        await store.save("k", {"user": {"xp": 10}, "tasks": [1, 2]})
        await store.save("k", {"tasks": []})

        assert await store.load("k") == {"user": {"xp": 10}, "tasks": []}

    async def test_invalid_json_raises_persistence_error(self):
        store = InMemoryStore()
        await store._write("k", "{not json")

        with pytest.raises(PersistenceError, match="not valid JSON"):
            await store.load("k")

    async def test_delete(self):
        store = InMemoryStore()
        await store.save("k", {"a": 1})
        await store.delete("k")
        assert await store.load("k") is None


@pytest.mark.unit
class TestRedisStore:
    async def test_load_succeeds_after_retries(self, no_backoff):
        """Verify reads are retried on transient Redis errors."""
        store = RedisStore("redis://localhost:6379/0")
        store._client = AsyncMock()
        store._client.get = AsyncMock(
            side_effect=[
                RedisConnectionError("First failure"),
                RedisConnectionError("Second failure"),
                '{"user": {"xp": 5}}',
            ]
        )

        assert await store.load("k") == {"user": {"xp": 5}}
        assert store._client.get.call_count == 3
        assert store.get_health_status()["total_operations"] == 1

    async def test_persistent_failure_raises_persistence_error(self, no_backoff):
        store = RedisStore("redis://localhost:6379/0")
        store._client = AsyncMock()
        store._client.get = AsyncMock(side_effect=RedisConnectionError("Always fails"))

        with pytest.raises(PersistenceError):
            await store.load("k")

        assert store._client.get.call_count == 3
        assert store.get_health_status()["failure_count"] == 1

    async def test_save_writes_merged_document(self):
        store = RedisStore("redis://localhost:6379/0")
        store._client = AsyncMock()
        store._client.get = AsyncMock(return_value='{"a": 1}')
        store._client.set = AsyncMock()

        await store.save("k", {"b": 2})

        store._client.set.assert_called_once_with("k", '{"a": 1, "b": 2}')

    async def test_ping_failure_returns_false(self):
        store = RedisStore("redis://localhost:6379/0")
        store._client = AsyncMock()
        store._client.ping = AsyncMock(side_effect=RedisConnectionError("down"))

        assert await store.ping() is False

    async def test_closed_store_rejects_operations(self):
        store = RedisStore("redis://localhost:6379/0")
        client = AsyncMock()
        store._client = client

        await store.close()

        client.aclose.assert_called_once()
        assert await store.ping() is False
        with pytest.raises(PersistenceError, match="closed"):
            await store.load("k")
