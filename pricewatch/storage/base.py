"""
Abstract key/value store contract for persistence.

The monitor only ever persists three whole-document snapshots, so the
contract is deliberately small: JSON-compatible values addressed by string
keys. Concrete stores must raise StorageError subclasses for all failures.

Key Patterns:
    - `{prefix}:watch_list`: list of watch documents, insertion order
    - `{prefix}:alert_history`: list of alert records, newest first
    - `{prefix}:last_alert_time`: symbol -> ISO timestamp of last trigger

Example:
    >>> store = MemoryStore()
    >>> await store.connect()
    >>> await store.set("pricewatch:watch_list", [])
    >>> await store.get("pricewatch:watch_list")
    []
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from pricewatch.exceptions import PriceWatchError


class StorageError(PriceWatchError):
    """Base exception for persistence failures."""

    pass


class StorageConnectionError(StorageError):
    """Raised when the store cannot be reached."""

    pass


class StorageOperationError(StorageError):
    """Raised when a read or write fails, including corrupt stored data."""

    pass


class StorageKeys:
    """
    Persisted key names under a common prefix.

    Attributes:
        watch_list: Key of the watch registry snapshot.
        alert_history: Key of the alert history snapshot.
        last_alert_time: Key of the per-symbol last alert timestamps.
    """

    def __init__(self, prefix: str = "pricewatch") -> None:
        self.prefix = prefix
        self.watch_list = f"{prefix}:watch_list"
        self.alert_history = f"{prefix}:alert_history"
        self.last_alert_time = f"{prefix}:last_alert_time"


class KeyValueStore(ABC):
    """
    Abstract base class for durable key/value stores.

    Values are JSON-compatible Python objects (dict, list, str, numbers,
    bool, None). Implementations serialize them however they like.
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Short backend identifier used in logs and health output."""
        ...

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """True if the store is ready for reads and writes."""
        ...

    @abstractmethod
    async def connect(self) -> None:
        """
        Open the store.

        Raises:
            StorageConnectionError: If the store cannot be reached.
        """
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the store. Safe to call multiple times."""
        ...

    @abstractmethod
    async def get(self, key: str, default: Optional[Any] = None) -> Any:
        """
        Read a value.

        Args:
            key: Key to read.
            default: Value returned when the key is absent.

        Returns:
            The stored value, or default.

        Raises:
            StorageConnectionError: If not connected.
            StorageOperationError: If the read fails or the data is corrupt.
        """
        ...

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """
        Write a value, replacing any previous one.

        Args:
            key: Key to write.
            value: JSON-compatible value.

        Raises:
            StorageConnectionError: If not connected.
            StorageOperationError: If the write fails.
        """
        ...
