"""
Failure-tolerant access to one persisted snapshot.

Persistence failures must never stop the monitor. A PersistedSnapshot wraps
a single key of a KeyValueStore: reads fall back to a default, writes are
attempted on every mutation, and any StorageError is logged and recorded in
the `degraded` flag instead of being raised.
"""

from typing import Any, Optional

import structlog

from pricewatch.storage.base import KeyValueStore, StorageError

logger = structlog.get_logger(__name__)


class PersistedSnapshot:
    """
    A whole-document snapshot stored under one key.

    Attributes:
        store: Underlying key/value store.
        key: Key of the snapshot.
        degraded: True after a failed read or write, until a write succeeds.
        last_error: Message of the most recent failure.

    Example:
        >>> snapshot = PersistedSnapshot(store, "pricewatch:watch_list")
        >>> watches = await snapshot.read(default=[])
        >>> await snapshot.write([w.model_dump(mode="json") for w in watches])
    """

    def __init__(self, store: KeyValueStore, key: str) -> None:
        self.store = store
        self.key = key
        self.degraded = False
        self.last_error: Optional[str] = None

    async def read(self, default: Any = None) -> Any:
        """
        Read the snapshot.

        Args:
            default: Returned when the key is absent or the read fails.

        Returns:
            The stored value, or default.
        """
        try:
            return await self.store.get(self.key, default)
        except StorageError as e:
            self._mark_degraded("snapshot_read_failed", e)
            return default

    async def write(self, value: Any) -> bool:
        """
        Write the snapshot.

        Args:
            value: JSON-compatible value.

        Returns:
            bool: True if the write succeeded.
        """
        try:
            await self.store.set(self.key, value)
        except StorageError as e:
            self._mark_degraded("snapshot_write_failed", e)
            return False

        if self.degraded:
            logger.info("snapshot_write_recovered", key=self.key)
        self.degraded = False
        self.last_error = None
        return True

    def _mark_degraded(self, event: str, error: StorageError) -> None:
        self.degraded = True
        self.last_error = str(error)
        logger.error(
            event,
            key=self.key,
            backend=self.store.backend_name,
            error_type=type(error).__name__,
            error=str(error),
        )
