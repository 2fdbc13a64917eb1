"""
Monitor controller: single owner of all mutable monitor state.

The controller composes the registry, history, price cache, match engine and
lifecycle manager. Feed batches and operator commands are serialized through
one asyncio.Lock, so no two of them ever interleave, even though persistence
awaits. A batch is processed to completion before the next event is handled.

Presentation layers never read internal state directly: they call the
operator methods and subscribe to WatchListChanged / HistoryChanged /
AlertTriggered events.

Example:
    >>> controller = create_controller(config, store, feed=feed)
    >>> await controller.start()
    >>> await controller.add_watch("BTCUSDT", "60000", "70000")
    >>> await controller.run()
"""

import asyncio
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional

import structlog

from pricewatch.config.models import AppConfig
from pricewatch.exceptions import InvalidRangeError
from pricewatch.interfaces.price_feed import PriceFeed
from pricewatch.models.alerts import AlertRecord
from pricewatch.models.events import HistoryChanged, WatchListChanged
from pricewatch.models.health import FeedHealth, WatchStatus
from pricewatch.models.tick import PriceTick
from pricewatch.models.watch import Watch, parse_price
from pricewatch.monitor.dispatcher import NotificationChannel, NotificationDispatcher
from pricewatch.monitor.events import EventHub, Subscriber
from pricewatch.monitor.history import AlertHistory
from pricewatch.monitor.lifecycle import AlertLifecycleManager
from pricewatch.monitor.matcher import MatchEngine
from pricewatch.monitor.prices import PriceCache
from pricewatch.monitor.registry import WatchRegistry, validate_symbol
from pricewatch.storage.base import KeyValueStore, StorageKeys
from pricewatch.storage.snapshot import PersistedSnapshot

logger = structlog.get_logger(__name__)


class MonitorController:
    """
    Serializes feed batches and operator commands over shared state.

    Attributes:
        registry: Active watches.
        history: Alert history.
        prices: Last price per symbol.
        lifecycle: Trigger handling.
        matcher: Tick evaluation.
        events: Observer hub.
        feed: Price feed, None when driven manually (e.g., tests).
        display_limit: Default number of history records for display.
    """

    def __init__(
        self,
        registry: WatchRegistry,
        history: AlertHistory,
        prices: PriceCache,
        lifecycle: AlertLifecycleManager,
        matcher: MatchEngine,
        events: EventHub,
        feed: Optional[PriceFeed] = None,
        display_limit: int = 20,
    ) -> None:
        self.registry = registry
        self.history = history
        self.prices = prices
        self.lifecycle = lifecycle
        self.matcher = matcher
        self.events = events
        self.feed = feed
        self.display_limit = display_limit
        self._lock = asyncio.Lock()
        self._started = False

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def start(self) -> None:
        """Restore persisted state. Storage failures degrade to memory-only."""
        async with self._lock:
            watches = await self.registry.load()
            records = await self.history.load()
            await self.lifecycle.load()
            self._started = True

        logger.info(
            "monitor_started",
            watches=watches,
            history=records,
            storage_degraded=self.storage_degraded,
        )

    async def run(self) -> None:
        """
        Consume the feed until it is disconnected.

        Raises:
            RuntimeError: If the controller has no feed.
        """
        if self.feed is None:
            raise RuntimeError("MonitorController.run() requires a price feed")
        if not self._started:
            await self.start()

        logger.info("monitor_feed_consumer_started", feed=self.feed.name)
        async for batch in self.feed.stream_batches():
            await self.handle_batch(batch)
        logger.info("monitor_feed_consumer_stopped", feed=self.feed.name)

    async def stop(self) -> None:
        """Disconnect the feed, abandoning any pending reconnection."""
        if self.feed is not None:
            await self.feed.disconnect()
        logger.info("monitor_stopped")

    async def handle_batch(self, ticks: Iterable[PriceTick]) -> List[AlertRecord]:
        """
        Process one feed batch to completion.

        Args:
            ticks: Ticks of one message, in message order.

        Returns:
            List[AlertRecord]: Alerts raised by this batch.
        """
        async with self._lock:
            return await self.matcher.process_batch(ticks)

    # =========================================================================
    # OPERATOR COMMANDS
    # =========================================================================

    async def add_watch(self, symbol: Any, lower: Any, upper: Any) -> Watch:
        """
        Register a watch.

        Args:
            symbol: Symbol to watch.
            lower: Lower bound (str, int, float, or Decimal).
            upper: Upper bound (str, int, float, or Decimal).

        Returns:
            Watch: The registered watch.

        Raises:
            InvalidSymbolError: If the symbol is empty or malformed.
            InvalidRangeError: If a bound is not a finite number or
                lower >= upper.
            DuplicateSymbolError: If the symbol is already watched.
        """
        validate_symbol(symbol)
        lower_price = self._parse_bound(lower, "lower")
        upper_price = self._parse_bound(upper, "upper")

        async with self._lock:
            watch = await self.registry.add(symbol, lower_price, upper_price)
            await self._publish_watches()
        return watch

    async def remove_watch(self, symbol: str) -> Watch:
        """
        Remove a watch.

        Raises:
            WatchNotFoundError: If the symbol is not watched.
        """
        async with self._lock:
            watch = await self.registry.remove(symbol)
            await self._publish_watches()
        return watch

    def list_watches(self) -> List[Watch]:
        """Active watches in insertion order."""
        return self.registry.list_watches()

    def list_history(self, limit: Optional[int] = None) -> List[AlertRecord]:
        """Alert records newest first, at most `limit` if given."""
        return self.history.list_records(limit)

    async def delete_history_entry(self, index: int) -> AlertRecord:
        """
        Delete the history record at index (0 is newest).

        Raises:
            HistoryIndexError: If index is out of range.
        """
        async with self._lock:
            record = await self.history.delete_at(index)
            await self._publish_history()
        return record

    async def clear_history(self) -> int:
        """
        Delete all history records.

        Returns:
            int: Number of records removed.
        """
        async with self._lock:
            removed = await self.history.clear()
            await self._publish_history()
        return removed

    # =========================================================================
    # VIEWS
    # =========================================================================

    def watch_statuses(self) -> List[WatchStatus]:
        """Each active watch joined with its last cached price."""
        return [
            WatchStatus.of(watch, self.prices.get(watch.symbol))
            for watch in self.registry.list_watches()
        ]

    def current_price(self, symbol: str) -> Optional[Decimal]:
        """Last price seen for a symbol, None if never seen."""
        return self.prices.get(symbol)

    def feed_health(self) -> Optional[FeedHealth]:
        """Feed health, None without a feed."""
        if self.feed is None:
            return None
        return self.feed.health()

    @property
    def storage_degraded(self) -> bool:
        """True while any snapshot is running in memory-only mode."""
        return any(
            snapshot.degraded
            for snapshot in (
                self.registry.snapshot,
                self.history.snapshot,
                self.lifecycle.last_alert_snapshot,
            )
        )

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Subscribe to monitor events.

        Returns:
            Callable[[], None]: Function that removes the subscription.
        """
        return self.events.subscribe(callback)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    @staticmethod
    def _parse_bound(value: Any, name: str) -> Decimal:
        try:
            return parse_price(value)
        except ValueError as e:
            raise InvalidRangeError(f"Invalid {name} bound: {value!r}") from e

    async def _publish_watches(self) -> None:
        await self.events.publish(WatchListChanged(watches=self.registry.list_watches()))

    async def _publish_history(self) -> None:
        await self.events.publish(HistoryChanged(history=self.history.list_records()))


def create_controller(
    config: AppConfig,
    store: KeyValueStore,
    feed: Optional[PriceFeed] = None,
    channels: Optional[Dict[str, NotificationChannel]] = None,
) -> MonitorController:
    """
    Factory function to wire a MonitorController from configuration.

    Args:
        config: Application configuration.
        store: Connected key/value store.
        feed: Price feed to consume, if any.
        channels: Notification channels by name.

    Returns:
        MonitorController: Configured controller. Call start() before use.

    Example:
        >>> store = MemoryStore()
        >>> await store.connect()
        >>> controller = create_controller(AppConfig(), store)
        >>> await controller.start()
    """
    keys = StorageKeys(config.storage.key_prefix)

    registry = WatchRegistry(PersistedSnapshot(store, keys.watch_list))
    history = AlertHistory(
        PersistedSnapshot(store, keys.alert_history),
        capacity=config.history.capacity,
    )
    prices = PriceCache()
    events = EventHub(timeout_seconds=config.alerts.channel_timeout_seconds)
    dispatcher = NotificationDispatcher(
        channels=channels,
        sound_enabled=config.alerts.sound,
        channel_timeout_seconds=config.alerts.channel_timeout_seconds,
    )
    lifecycle = AlertLifecycleManager(
        registry=registry,
        history=history,
        dispatcher=dispatcher,
        events=events,
        last_alert_snapshot=PersistedSnapshot(store, keys.last_alert_time),
        cooldown_seconds=config.alerts.retrigger_cooldown_seconds,
    )
    matcher = MatchEngine(registry, prices, lifecycle)

    return MonitorController(
        registry=registry,
        history=history,
        prices=prices,
        lifecycle=lifecycle,
        matcher=matcher,
        events=events,
        feed=feed,
        display_limit=config.history.display_limit,
    )
