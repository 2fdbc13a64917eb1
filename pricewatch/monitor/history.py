"""
Bounded alert history, newest first.

The store never holds more than `capacity` records; prepending beyond that
evicts the oldest. Every mutation writes the full history snapshot before
returning.
"""

from typing import List, Optional

import structlog
from pydantic import ValidationError

from pricewatch.exceptions import HistoryIndexError
from pricewatch.models.alerts import AlertRecord
from pricewatch.storage.snapshot import PersistedSnapshot

logger = structlog.get_logger(__name__)

DEFAULT_HISTORY_CAPACITY = 50


class AlertHistory:
    """
    Ordered, size-capped log of past alerts.

    Index 0 is always the most recent record.

    Attributes:
        snapshot: Persisted snapshot of the history.
        capacity: Maximum number of records retained.

    Example:
        >>> history = AlertHistory(snapshot, capacity=50)
        >>> await history.prepend(record)
        >>> history.list_records(limit=20)[0] == record
        True
    """

    def __init__(
        self,
        snapshot: PersistedSnapshot,
        capacity: int = DEFAULT_HISTORY_CAPACITY,
    ) -> None:
        if capacity < 1:
            raise ValueError(f"History capacity must be >= 1, got {capacity}")
        self.snapshot = snapshot
        self.capacity = capacity
        self._records: List[AlertRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    async def load(self) -> int:
        """
        Restore history from storage, truncating to capacity.

        Returns:
            int: Number of records restored.
        """
        stored = await self.snapshot.read(default=[])
        if not isinstance(stored, list):
            logger.warning("history_snapshot_invalid", type=type(stored).__name__)
            stored = []

        records: List[AlertRecord] = []
        for entry in stored:
            try:
                records.append(AlertRecord.model_validate(entry))
            except ValidationError as e:
                logger.warning("stored_alert_skipped", error=str(e))

        if len(records) > self.capacity:
            logger.info(
                "history_truncated_on_load",
                stored=len(records),
                capacity=self.capacity,
            )
            records = records[: self.capacity]

        self._records = records
        logger.info("history_loaded", count=len(records))
        return len(records)

    def list_records(self, limit: Optional[int] = None) -> List[AlertRecord]:
        """
        Return records newest first.

        Args:
            limit: Maximum number of records, None for all.
        """
        if limit is None:
            return list(self._records)
        return self._records[: max(limit, 0)]

    async def prepend(self, record: AlertRecord) -> Optional[AlertRecord]:
        """
        Insert a record at the front, evicting the oldest beyond capacity.

        Returns:
            Optional[AlertRecord]: The evicted record, if any.
        """
        self._records.insert(0, record)
        evicted: Optional[AlertRecord] = None
        if len(self._records) > self.capacity:
            evicted = self._records.pop()
            logger.debug("history_record_evicted", alert_id=evicted.alert_id)

        await self._persist()
        return evicted

    async def delete_at(self, index: int) -> AlertRecord:
        """
        Remove exactly the record at index, keeping the others in order.

        Raises:
            HistoryIndexError: If index is negative or out of range.
        """
        if index < 0 or index >= len(self._records):
            raise HistoryIndexError(index, len(self._records))

        record = self._records.pop(index)
        await self._persist()
        logger.info("history_entry_deleted", index=index, alert_id=record.alert_id)
        return record

    async def clear(self) -> int:
        """
        Remove all records.

        Returns:
            int: Number of records removed.
        """
        removed = len(self._records)
        self._records = []
        await self._persist()
        logger.info("history_cleared", removed=removed)
        return removed

    async def _persist(self) -> None:
        await self.snapshot.write(
            [record.model_dump(mode="json") for record in self._records]
        )
