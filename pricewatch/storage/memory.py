"""
In-memory key/value store.

Values are kept as JSON text so that callers get the same copy semantics as
with a real backend: mutating a value returned by get() never changes what
is stored.
"""

import json
from typing import Any, Dict, Optional

import structlog

from pricewatch.storage.base import (
    KeyValueStore,
    StorageConnectionError,
    StorageOperationError,
)
from pricewatch.storage.serialization import json_default

logger = structlog.get_logger(__name__)


class MemoryStore(KeyValueStore):
    """
    Non-durable store backed by a dict.

    Used for tests, for `backend: memory`, and as the fallback when the
    configured store cannot be reached at start-up.
    """

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}
        self._connected = False

    @property
    def backend_name(self) -> str:
        return "memory"

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        self._connected = True
        logger.debug("memory_store_connected")

    async def disconnect(self) -> None:
        self._connected = False

    async def get(self, key: str, default: Optional[Any] = None) -> Any:
        if not self._connected:
            raise StorageConnectionError("Memory store is not connected")
        raw = self._data.get(key)
        if raw is None:
            return default
        return json.loads(raw)

    async def set(self, key: str, value: Any) -> None:
        if not self._connected:
            raise StorageConnectionError("Memory store is not connected")
        try:
            self._data[key] = json.dumps(value, default=json_default)
        except TypeError as e:
            raise StorageOperationError(f"Value for {key} is not serializable: {e}") from e
