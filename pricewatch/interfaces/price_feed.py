"""
Abstract base class for streaming price feeds.

Every feed implementation must inherit from PriceFeed and implement all
abstract methods. The controller consumes feeds only through this interface.

Example:
    >>> class MyFeed(PriceFeed):
    ...     @property
    ...     def name(self) -> str:
    ...         return "my_exchange"
    ...     # ... implement other methods
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator, List

from pricewatch.models.health import FeedHealth
from pricewatch.models.tick import PriceTick


class PriceFeed(ABC):
    """
    Abstract base class for price feeds.

    A feed owns one logical subscription. It reconnects on its own after a
    drop and keeps yielding batches until disconnect() is called.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Feed identifier.

        Returns:
            str: Lowercase feed name (e.g., "binance").
        """
        ...

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """
        Check if the feed is currently connected.

        Returns:
            bool: True if the connection is open.
        """
        ...

    @abstractmethod
    async def connect(self) -> None:
        """
        Open the connection if none is open.

        Raises:
            FeedConnectionError: If the connection cannot be established.
        """
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """
        Close the connection and stop reconnecting.

        Safe to call multiple times. Any pending reconnection is abandoned.
        """
        ...

    @abstractmethod
    def stream_batches(self) -> AsyncIterator[List[PriceTick]]:
        """
        Yield tick batches, one per inbound message, in arrival order.

        Empty batches are not yielded. The iterator ends after disconnect().

        Yields:
            List[PriceTick]: Ticks of one message, in message order.

        Example:
            >>> async for batch in feed.stream_batches():
            ...     await controller.handle_batch(batch)
        """
        ...

    @abstractmethod
    def health(self) -> FeedHealth:
        """
        Get connection health.

        Returns:
            FeedHealth: Current status and counters.
        """
        ...
