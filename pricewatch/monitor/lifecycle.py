"""
Alert lifecycle manager.

Turns a breach into a one-shot trigger. The order of side effects is fixed:

    1. Build the AlertRecord
    2. Prepend it to history and persist
    3. Remove the watch from the registry and persist
    4. Record the per-symbol last alert time and persist
    5. Notify channels
    6. Publish AlertTriggered, HistoryChanged, WatchListChanged

A watch therefore fires at most once; monitoring resumes only if it is added
again. Notification and observer failures are logged by their owners and
never propagate here.

Per-watch states:
    Active --(price breach)--> Triggered and removed
    Active --(explicit remove)--> Removed
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, Optional

import structlog

from pricewatch.models.alerts import AlertRecord
from pricewatch.models.events import AlertTriggered, HistoryChanged, WatchListChanged
from pricewatch.models.watch import Watch
from pricewatch.monitor.dispatcher import NotificationDispatcher
from pricewatch.monitor.events import EventHub
from pricewatch.monitor.history import AlertHistory
from pricewatch.monitor.registry import WatchRegistry
from pricewatch.storage.snapshot import PersistedSnapshot

logger = structlog.get_logger(__name__)


class AlertLifecycleManager:
    """
    Deactivates triggered watches and records their alerts.

    Attributes:
        registry: Active watches.
        history: Alert history.
        dispatcher: Notification fan-out.
        events: Observer hub.
        cooldown_seconds: Window after an alert during which a re-added
            watch for the same symbol is not triggered (0 disables).

    Example:
        >>> manager = AlertLifecycleManager(
        ...     registry, history, dispatcher, events, last_alert_snapshot
        ... )
        >>> record = await manager.trigger(watch, Decimal("71000"))
        >>> record.breach
        <BreachType.UPPER: 'upper'>
    """

    def __init__(
        self,
        registry: WatchRegistry,
        history: AlertHistory,
        dispatcher: NotificationDispatcher,
        events: EventHub,
        last_alert_snapshot: PersistedSnapshot,
        cooldown_seconds: int = 0,
    ) -> None:
        self.registry = registry
        self.history = history
        self.dispatcher = dispatcher
        self.events = events
        self.last_alert_snapshot = last_alert_snapshot
        self.cooldown_seconds = cooldown_seconds
        self._last_alert_times: Dict[str, datetime] = {}

    async def load(self) -> int:
        """
        Restore last alert times from storage.

        Returns:
            int: Number of symbols restored.
        """
        stored = await self.last_alert_snapshot.read(default={})
        if not isinstance(stored, dict):
            logger.warning("last_alert_snapshot_invalid", type=type(stored).__name__)
            stored = {}

        restored: Dict[str, datetime] = {}
        for symbol, value in stored.items():
            try:
                parsed = datetime.fromisoformat(str(value))
            except ValueError:
                logger.warning("stored_last_alert_skipped", symbol=symbol, value=value)
                continue
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            restored[str(symbol)] = parsed

        self._last_alert_times = restored
        return len(restored)

    def last_alert_time(self, symbol: str) -> Optional[datetime]:
        """When the symbol last triggered, None if never."""
        return self._last_alert_times.get(symbol)

    def is_throttled(self, watch: Watch, now: Optional[datetime] = None) -> bool:
        """
        Check whether a breach on this watch falls inside the cooldown.

        Args:
            watch: Watch that breached.
            now: Current time, defaults to now (UTC).

        Returns:
            bool: True if the breach must be ignored for now.
        """
        if self.cooldown_seconds <= 0:
            return False
        last = self._last_alert_times.get(watch.symbol)
        if last is None:
            return False
        now = now or datetime.now(timezone.utc)
        return now - last < timedelta(seconds=self.cooldown_seconds)

    async def trigger(
        self,
        watch: Watch,
        price: Decimal,
        timestamp: Optional[datetime] = None,
    ) -> Optional[AlertRecord]:
        """
        Trigger a watch whose band was breached.

        Args:
            watch: The breached watch.
            price: The breaching price.
            timestamp: Trigger time, defaults to now (UTC).

        Returns:
            Optional[AlertRecord]: The new record, or None if the breach was
                throttled by the cooldown. A throttled watch stays active.
        """
        now = timestamp or datetime.now(timezone.utc)

        if self.is_throttled(watch, now):
            logger.info(
                "alert_throttled",
                symbol=watch.symbol,
                price=str(price),
                cooldown_seconds=self.cooldown_seconds,
                last_alert_at=self._last_alert_times[watch.symbol].isoformat(),
            )
            return None

        record = AlertRecord.from_breach(watch, price, timestamp=now)

        await self.history.prepend(record)
        await self.registry.discard(watch.symbol)
        await self._record_alert_time(watch.symbol, now)

        logger.info(
            "alert_triggered",
            alert_id=record.alert_id,
            symbol=record.symbol,
            price=str(price),
            breach=record.breach.value,
            lower=str(watch.lower),
            upper=str(watch.upper),
        )

        await self.dispatcher.dispatch(record)

        await self.events.publish(AlertTriggered(record=record))
        await self.events.publish(HistoryChanged(history=self.history.list_records()))
        await self.events.publish(WatchListChanged(watches=self.registry.list_watches()))

        return record

    async def _record_alert_time(self, symbol: str, when: datetime) -> None:
        self._last_alert_times[symbol] = when
        await self.last_alert_snapshot.write(
            {sym: ts.isoformat() for sym, ts in self._last_alert_times.items()}
        )
