"""Key-value persistence for session state.

Sessions are stored as one JSON document per key. `save` merges the given
top-level fields into the stored document, so callers can persist only the
parts of the session they changed.
"""

import asyncio
import json
import logging
import threading
from collections.abc import Callable, Coroutine
from datetime import UTC, datetime
from functools import wraps
from typing import Any, TypeVar

from redis.asyncio import Redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import RedisError

from src.core.config import Constants, settings


logger = logging.getLogger(__name__)

# Type variable for generic retry decorator
T = TypeVar("T")


class PersistenceError(Exception):
    """Raised when the backing store cannot read or write a key."""


def with_retry(
    max_retries: int = 3, base_delay: float = 0.1
) -> Callable[[Callable[..., Coroutine[Any, Any, T]]], Callable[..., Coroutine[Any, Any, T]]]:
    """Decorator to retry async Redis calls with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
        base_delay: Base delay in seconds for exponential backoff (default: 0.1)

    Returns:
        Decorated function with retry logic
    """

    def decorator(func: Callable[..., Coroutine[Any, Any, T]]) -> Callable[..., Coroutine[Any, Any, T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:  # noqa: ANN401
            last_exception = None
            for attempt in range(max_retries):
                try:
                    return await func(*args, **kwargs)
                except RedisError as e:
                    last_exception = e
                    if attempt < max_retries - 1:
                        delay = base_delay * (2**attempt)
                        logger.warning(
                            "Redis operation failed (attempt %d/%d): %s. Retrying in %.2fs",
                            attempt + 1,
                            max_retries,
                            e,
                            delay,
                        )
                        await asyncio.sleep(delay)
                    else:
                        logger.error(
                            "Redis operation failed after %d attempts: %s",
                            max_retries,
                            e,
                        )
            raise last_exception  # type: ignore[misc]

        return wrapper

    return decorator


class KeyValueStore:
    """Base class implementing the load/merge-save contract over raw string reads and writes."""

    async def _read(self, key: str) -> str | None:
        raise NotImplementedError

    async def _write(self, key: str, value: str) -> None:
        raise NotImplementedError

    async def load(self, key: str) -> dict[str, Any] | None:
        """Load the document stored under key.

        Returns:
            The stored state, or None if nothing was saved yet

        Raises:
            PersistenceError: If the store cannot be read or holds invalid JSON
        """
        raw = await self._read(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            msg = f"Stored state for {key} is not valid JSON: {e}"
            raise PersistenceError(msg) from e

    async def save(self, key: str, partial_state: dict[str, Any]) -> None:
        """Merge partial_state into the document stored under key.

        Raises:
            PersistenceError: If the store cannot be read or written
        """
        current = await self.load(key) or {}
        current.update(partial_state)
        await self._write(key, json.dumps(current))
        logger.debug("Saved %d field(s) for key: %s", len(partial_state), key)

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None


class InMemoryStore(KeyValueStore):
    """Thread-safe in-memory store used when Redis is not configured."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()

    async def _read(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    async def _write(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    async def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class RedisStore(KeyValueStore):
    """Async Redis store with connection pooling and retrying reads and writes."""

    def __init__(self, url: str) -> None:
        self._pool = ConnectionPool.from_url(
            url,
            decode_responses=True,
            max_connections=Constants.REDIS_MAX_CONNECTIONS,
        )
        self._client: Redis | None = Redis(connection_pool=self._pool)

        # Health tracking
        self._last_successful_operation: datetime | None = None
        self._failure_count = 0
        self._total_operations = 0
        logger.info("Redis store initialized with URL: %s", url)

    def get_health_status(self) -> dict[str, Any]:
        """Get Redis health status."""
        return {
            "connected": self._client is not None,
            "last_successful_operation": self._last_successful_operation.isoformat()
            if self._last_successful_operation
            else None,
            "failure_count": self._failure_count,
            "total_operations": self._total_operations,
        }

    def _record_success(self) -> None:
        self._last_successful_operation = datetime.now(UTC)
        self._total_operations += 1

    def _record_failure(self) -> None:
        self._failure_count += 1
        self._total_operations += 1

    async def _read(self, key: str) -> str | None:
        if not self._client:
            msg = "Redis client is closed"
            raise PersistenceError(msg)

        @with_retry(max_retries=3, base_delay=0.1)
        async def _get_operation() -> str | None:
            return await self._client.get(key)  # type: ignore[union-attr]

        try:
            value = await _get_operation()
        except RedisError as e:
            self._record_failure()
            msg = f"Failed to read {key} from Redis: {e}"
            raise PersistenceError(msg) from e
        self._record_success()
        return value

    async def _write(self, key: str, value: str) -> None:
        if not self._client:
            msg = "Redis client is closed"
            raise PersistenceError(msg)

        @with_retry(max_retries=3, base_delay=0.1)
        async def _set_operation() -> None:
            await self._client.set(key, value)  # type: ignore[union-attr]

        try:
            await _set_operation()
        except RedisError as e:
            self._record_failure()
            msg = f"Failed to write {key} to Redis: {e}"
            raise PersistenceError(msg) from e
        self._record_success()

    async def ping(self) -> bool:
        """Ping Redis to check connection."""
        if not self._client:
            return False
        try:
            return bool(await self._client.ping())  # type: ignore[misc]
        except RedisError as e:
            logger.warning("Redis PING failed: %s", e)
            return False

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Redis store closed")


def build_store() -> KeyValueStore:
    """Use Redis when configured, otherwise keep sessions in memory."""
    if settings.redis_url:
        return RedisStore(settings.redis_url)
    logger.info("Redis URL not configured. Keeping sessions in memory.")
    return InMemoryStore()
