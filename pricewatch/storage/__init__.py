"""
Persistence gateway for the price monitor.

Modules:
    base: KeyValueStore contract, key names, and storage errors
    memory: Non-durable dict-backed store
    file_store: JSON document on local disk
    redis_client: Redis-backed store
    snapshot: Failure-tolerant wrapper around one persisted key
    factory: Build the configured store
"""

from pricewatch.storage.base import (
    KeyValueStore,
    StorageConnectionError,
    StorageError,
    StorageKeys,
    StorageOperationError,
)
from pricewatch.storage.factory import create_store
from pricewatch.storage.file_store import JsonFileStore
from pricewatch.storage.memory import MemoryStore
from pricewatch.storage.redis_client import RedisKeyValueStore
from pricewatch.storage.snapshot import PersistedSnapshot

__all__ = [
    # Contract
    "KeyValueStore",
    "StorageKeys",
    # Errors
    "StorageError",
    "StorageConnectionError",
    "StorageOperationError",
    # Stores
    "MemoryStore",
    "JsonFileStore",
    "RedisKeyValueStore",
    "create_store",
    # Snapshot
    "PersistedSnapshot",
]
