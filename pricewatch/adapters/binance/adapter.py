"""
Binance mark price feed.

Implements the PriceFeed interface on top of BinanceWebSocketClient and
BinanceNormalizer. The feed stays subscribed for as long as it runs,
independent of how many watches exist.
"""

from typing import AsyncIterator, List, Optional

import structlog

from pricewatch.adapters.binance.normalizer import BinanceNormalizer
from pricewatch.adapters.binance.websocket import BinanceWebSocketClient
from pricewatch.config.models import FeedConfig
from pricewatch.interfaces.price_feed import PriceFeed
from pricewatch.models.health import FeedHealth
from pricewatch.models.tick import PriceTick

logger = structlog.get_logger(__name__)


class BinanceMarkPriceFeed(PriceFeed):
    """
    Binance price feed implementing the PriceFeed interface.

    Attributes:
        name: Feed identifier from configuration.
        is_connected: True while the websocket is open.

    Example:
        >>> feed = BinanceMarkPriceFeed(FeedConfig())
        >>> async for batch in feed.stream_batches():
        ...     print(len(batch))
        >>> health = feed.health()
        >>> print(f"Status: {health.status}, reconnects: {health.reconnect_count}")
    """

    def __init__(
        self,
        config: FeedConfig,
        client: Optional[BinanceWebSocketClient] = None,
        normalizer: Optional[BinanceNormalizer] = None,
    ):
        """
        Initialize the feed.

        Args:
            config: Feed configuration from config/feed.yaml.
            client: WebSocket client, built from config if not given.
            normalizer: Payload normalizer.
        """
        self._config = config
        self._client = client or BinanceWebSocketClient(
            url=config.url,
            ping_interval=config.connection.ping_interval_seconds,
            ping_timeout=config.connection.ping_timeout_seconds,
            reconnect_delay=config.connection.reconnect_delay_seconds,
            open_timeout=config.connection.open_timeout_seconds,
        )
        self._normalizer = normalizer or BinanceNormalizer()

        self._tick_count = 0
        self._skipped_records = 0

        logger.info("binance_feed_initialized", url=config.url)

    @property
    def name(self) -> str:
        """Return feed identifier."""
        return self._config.source

    @property
    def is_connected(self) -> bool:
        """Check if the websocket is connected."""
        return self._client.is_connected

    async def connect(self) -> None:
        """Open the websocket if it is not open."""
        await self._client.connect()

    async def disconnect(self) -> None:
        """Close the websocket and stop reconnecting."""
        await self._client.disconnect()
        logger.info("binance_feed_disconnected")

    async def stream_batches(self) -> AsyncIterator[List[PriceTick]]:
        """
        Yield one tick batch per message, skipping empty batches.

        Yields:
            List[PriceTick]: Ticks of one message, in record order.
        """
        async for payload in self._client.stream_messages():
            ticks, skipped = self._normalizer.normalize_batch(payload)
            self._skipped_records += skipped
            if not ticks:
                continue
            self._tick_count += len(ticks)
            yield ticks

    def health(self) -> FeedHealth:
        """
        Get connection health.

        Returns:
            FeedHealth: Status plus message, tick, skip and reconnect counts.
        """
        return FeedHealth(
            source=self.name,
            url=self._config.url,
            status=self._client.status,
            connected_at=self._client.connected_at,
            last_message_at=self._client.last_message_at,
            message_count=self._client.message_count,
            tick_count=self._tick_count,
            skipped_records=self._skipped_records,
            reconnect_count=self._client.reconnect_count,
        )
