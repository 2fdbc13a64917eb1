"""Construct the configured key/value store."""

from typing import Optional

from pricewatch.config.models import (
    RedisConnectionConfig,
    StorageBackend,
    StorageConfig,
)
from pricewatch.storage.base import KeyValueStore
from pricewatch.storage.file_store import JsonFileStore
from pricewatch.storage.memory import MemoryStore
from pricewatch.storage.redis_client import RedisKeyValueStore


def create_store(
    storage_config: StorageConfig,
    redis_config: Optional[RedisConnectionConfig] = None,
) -> KeyValueStore:
    """
    Create an unconnected store for the configured backend.

    Args:
        storage_config: Storage section of the application config.
        redis_config: Redis connection settings, used by the redis backend.

    Returns:
        KeyValueStore: The store. Call connect() before use.
    """
    if storage_config.backend == StorageBackend.REDIS:
        return RedisKeyValueStore(redis_config or RedisConnectionConfig())
    if storage_config.backend == StorageBackend.FILE:
        return JsonFileStore(storage_config.path)
    return MemoryStore()
