"""
Streaming match engine.

For each tick the engine updates the price cache and, if the symbol is
watched, compares the price against the band with strict inequality:
a price equal to either bound is in range.

Ticks of a batch are processed strictly in order, and each trigger completes
before the next tick is looked at. A watch that triggered earlier in a batch
is gone from the registry, so later ticks for the same symbol are ignored.
"""

from decimal import Decimal
from typing import Iterable, List, NamedTuple, Optional

import structlog

from pricewatch.models.alerts import AlertRecord
from pricewatch.models.tick import PriceTick
from pricewatch.models.watch import Watch
from pricewatch.monitor.lifecycle import AlertLifecycleManager
from pricewatch.monitor.prices import PriceCache
from pricewatch.monitor.registry import WatchRegistry

logger = structlog.get_logger(__name__)


class Breach(NamedTuple):
    """A watch and the price that left its band."""

    watch: Watch
    price: Decimal


class MatchEngine:
    """
    Matches ticks against active watches.

    Attributes:
        registry: Active watches, looked up by symbol.
        prices: Last price cache, updated for every tick.
        lifecycle: Receives every breach.

    Example:
        >>> engine = MatchEngine(registry, prices, lifecycle)
        >>> records = await engine.process_batch(ticks)
    """

    def __init__(
        self,
        registry: WatchRegistry,
        prices: PriceCache,
        lifecycle: AlertLifecycleManager,
    ) -> None:
        self.registry = registry
        self.prices = prices
        self.lifecycle = lifecycle

    def evaluate(self, tick: PriceTick) -> Optional[Breach]:
        """
        Update the cache and check one tick against its watch.

        Args:
            tick: Incoming tick.

        Returns:
            Optional[Breach]: The breach, or None if the symbol is not
                watched or the price is within the band.
        """
        self.prices.update(tick.symbol, tick.price)

        watch = self.registry.get(tick.symbol)
        if watch is None:
            return None

        if watch.classify(tick.price) is not None:
            return Breach(watch=watch, price=tick.price)
        return None

    async def process_tick(self, tick: PriceTick) -> Optional[AlertRecord]:
        """
        Evaluate one tick and trigger its watch on a breach.

        Returns:
            Optional[AlertRecord]: The alert record, if the watch triggered.
        """
        breach = self.evaluate(tick)
        if breach is None:
            return None

        logger.debug(
            "breach_detected",
            symbol=breach.watch.symbol,
            price=str(breach.price),
        )
        return await self.lifecycle.trigger(breach.watch, breach.price)

    async def process_batch(self, ticks: Iterable[PriceTick]) -> List[AlertRecord]:
        """
        Process a batch of ticks in order.

        Args:
            ticks: Ticks of one feed message.

        Returns:
            List[AlertRecord]: Alerts raised by this batch, in tick order.
        """
        records: List[AlertRecord] = []
        for tick in ticks:
            record = await self.process_tick(tick)
            if record is not None:
                records.append(record)
        return records
