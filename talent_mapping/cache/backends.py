import logging
from typing import Dict, Optional, Protocol, runtime_checkable

import redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from talent_mapping.errors import StorageError

logger = logging.getLogger(__name__)

NAMESPACE = "talent:"


@runtime_checkable
class KeyValueStore(Protocol):
    """Raw string store beneath the encrypted persistence layer."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class InMemoryStore:
    """Dict-backed store, the device-local stand-in used by demos and tests."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StorageError(f"InMemoryStore only accepts strings, got {type(value).__name__}")
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self):
        return list(self._data.keys())

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


# Only connection-level failures are retried
_retry_transient = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
    retry=retry_if_exception_type((RedisConnectionError, RedisTimeoutError)),
    reraise=True,
)


class RedisStore:
    """
    Redis-backed store. Keys are namespaced; transient connection errors are
    retried with exponential backoff and every remaining failure is raised as
    StorageError.
    """

    def __init__(self, client: redis.Redis, namespace: str = NAMESPACE):
        self._client = client
        self._namespace = namespace

    @classmethod
    def from_url(cls, url: str, namespace: str = NAMESPACE) -> "RedisStore":
        logger.info(f"Creating Redis store client for {url}")
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=1,   # 1-second TCP connect cap
            socket_timeout=2,           # 2-second op cap
        )
        return cls(client, namespace=namespace)

    def _full_key(self, key: str) -> str:
        return f"{self._namespace}{key.removeprefix(self._namespace)}"

    def get(self, key: str) -> Optional[str]:
        full_key = self._full_key(key)
        try:
            value = self._get(full_key)
        except RedisError as e:
            logger.error(f"Error getting cache key '{full_key}': {e}")
            raise StorageError(f"Failed to read '{key}' from Redis: {e}") from e
        if value is None:
            logger.debug(f"Cache miss: key='{full_key}'")
        else:
            logger.debug(f"Cache hit: key='{full_key}'")
        return value

    def set(self, key: str, value: str) -> None:
        full_key = self._full_key(key)
        try:
            self._set(full_key, value)
        except RedisError as e:
            logger.error(f"Error setting cache key '{full_key}': {e}")
            raise StorageError(f"Failed to write '{key}' to Redis: {e}") from e
        logger.debug(f"Cache set: key='{full_key}'")

    def remove(self, key: str) -> None:
        full_key = self._full_key(key)
        try:
            self._remove(full_key)
        except RedisError as e:
            logger.error(f"Error removing cache key '{full_key}': {e}")
            raise StorageError(f"Failed to remove '{key}' from Redis: {e}") from e

    @_retry_transient
    def _get(self, full_key: str) -> Optional[str]:
        value = self._client.get(full_key)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    @_retry_transient
    def _set(self, full_key: str, value: str) -> None:
        self._client.set(full_key, value)

    @_retry_transient
    def _remove(self, full_key: str) -> None:
        self._client.unlink(full_key)
