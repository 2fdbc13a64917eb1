"""
Async Redis key/value store.

Each key holds one JSON document as a plain Redis string. Financial values
are serialized as strings to preserve Decimal precision.

Key Patterns:
    - `pricewatch:watch_list` (string, JSON list)
    - `pricewatch:alert_history` (string, JSON list, newest first)
    - `pricewatch:last_alert_time` (string, JSON object)

Example:
    >>> from pricewatch.config.models import RedisConnectionConfig
    >>> from pricewatch.storage.redis_client import RedisKeyValueStore
    >>>
    >>> config = RedisConnectionConfig(url="redis://localhost:6379")
    >>> store = RedisKeyValueStore(config)
    >>> await store.connect()
    >>> await store.set("pricewatch:watch_list", [])
"""

from __future__ import annotations

import json
from typing import Any, Optional

import structlog
from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError, TimeoutError as RedisTimeoutError

from pricewatch.config.models import RedisConnectionConfig
from pricewatch.storage.base import (
    KeyValueStore,
    StorageConnectionError,
    StorageOperationError,
)
from pricewatch.storage.serialization import json_default

logger = structlog.get_logger(__name__)


class RedisKeyValueStore(KeyValueStore):
    """
    Key/value store backed by Redis.

    Attributes:
        config: Redis connection configuration.
        _pool: Connection pool for efficient connection reuse.
        _client: Redis client instance.
        _connected: Whether the client is connected.

    Example:
        >>> store = RedisKeyValueStore(RedisConnectionConfig())
        >>> await store.connect()
        >>> try:
        ...     await store.get("pricewatch:watch_list", [])
        ... finally:
        ...     await store.disconnect()
    """

    def __init__(self, config: RedisConnectionConfig) -> None:
        """
        Initialize the Redis store.

        Args:
            config: Redis connection configuration containing URL, db, and
                pool settings.
        """
        self.config = config
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[Redis] = None  # type: ignore[type-arg]
        self._connected: bool = False

        logger.info(
            "redis_store_initialized",
            url=config.url,
            db=config.db,
            max_connections=config.max_connections,
        )

    @property
    def backend_name(self) -> str:
        return "redis"

    @property
    def is_connected(self) -> bool:
        """
        Check if the store is connected to Redis.

        Returns:
            bool: True if connected, False otherwise.
        """
        return self._connected and self._client is not None

    async def connect(self) -> None:
        """
        Establish connection to Redis.

        Creates a connection pool and verifies it with PING.

        Raises:
            StorageConnectionError: If connection fails.
        """
        if self._connected:
            logger.warning("redis_already_connected")
            return

        try:
            self._pool = ConnectionPool.from_url(
                self.config.url,
                db=self.config.db,
                max_connections=self.config.max_connections,
                socket_timeout=self.config.socket_timeout,
                socket_connect_timeout=self.config.socket_timeout,
                decode_responses=True,
            )
            self._client = Redis(connection_pool=self._pool)

            await self._client.ping()
            self._connected = True

            logger.info(
                "redis_connected",
                url=self.config.url,
                db=self.config.db,
            )

        except (RedisConnectionError, RedisTimeoutError, OSError) as e:
            self._connected = False
            logger.error(
                "redis_connection_failed",
                url=self.config.url,
                error=str(e),
            )
            raise StorageConnectionError(
                f"Failed to connect to Redis at {self.config.url}: {e}"
            ) from e

    async def disconnect(self) -> None:
        """
        Close Redis connection and release resources.

        Safe to call multiple times.
        """
        if self._client is not None:
            try:
                await self._client.aclose()
            except RedisError as e:
                logger.warning("redis_close_error", error=str(e))
            finally:
                self._client = None

        if self._pool is not None:
            try:
                await self._pool.aclose()
            except RedisError as e:
                logger.warning("redis_pool_close_error", error=str(e))
            finally:
                self._pool = None

        self._connected = False
        logger.info("redis_disconnected")

    def _require_connection(self) -> Redis:  # type: ignore[type-arg]
        """
        Ensure client is connected and return the Redis instance.

        Returns:
            Redis: The Redis client instance.

        Raises:
            StorageConnectionError: If not connected.
        """
        if not self._connected or self._client is None:
            raise StorageConnectionError("Redis client is not connected")
        return self._client

    async def get(self, key: str, default: Optional[Any] = None) -> Any:
        """
        Read a JSON document from Redis.

        Args:
            key: Redis key.
            default: Value returned when the key is absent.

        Returns:
            The decoded document, or default.

        Raises:
            StorageConnectionError: If not connected.
            StorageOperationError: If the read fails or the value is not JSON.
        """
        client = self._require_connection()

        try:
            raw = await client.get(key)
        except RedisError as e:
            logger.error("redis_get_failed", key=key, error=str(e))
            raise StorageOperationError(f"Failed to read {key}: {e}") from e

        if raw is None:
            return default

        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("redis_value_corrupt", key=key, error=str(e))
            raise StorageOperationError(f"Corrupt value at {key}: {e}") from e

    async def set(self, key: str, value: Any) -> None:
        """
        Write a JSON document to Redis.

        Args:
            key: Redis key.
            value: JSON-compatible value.

        Raises:
            StorageConnectionError: If not connected.
            StorageOperationError: If serialization or the write fails.
        """
        client = self._require_connection()

        try:
            payload = json.dumps(value, default=json_default)
        except TypeError as e:
            raise StorageOperationError(f"Value for {key} is not serializable: {e}") from e

        try:
            await client.set(key, payload)
            logger.debug("redis_value_stored", key=key, size=len(payload))
        except RedisError as e:
            logger.error("redis_set_failed", key=key, error=str(e))
            raise StorageOperationError(f"Failed to write {key}: {e}") from e
