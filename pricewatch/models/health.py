"""
Health and status models for the price feed.

Models:
    ConnectionStatus: Feed connection state enumeration
    FeedHealth: Feed connection health metrics
    WatchStatus: A watch joined with the latest cached price
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from pricewatch.models.watch import Watch


class ConnectionStatus(str, Enum):
    """
    Feed connection status.

    Attributes:
        CONNECTED: Connection is open and receiving data.
        DISCONNECTED: Connection is closed and no reconnect is pending.
        RECONNECTING: Connection dropped, waiting for the next attempt.
    """

    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    RECONNECTING = "reconnecting"

    @property
    def is_healthy(self) -> bool:
        """Check if the connection is up."""
        return self == ConnectionStatus.CONNECTED


class FeedHealth(BaseModel):
    """
    Health metrics for the price feed connection.

    Attributes:
        source: Feed identifier (e.g., "binance").
        url: Stream endpoint URL.
        status: Current connection status.
        connected_at: When the current connection was opened.
        last_message_at: Timestamp of the last received message.
        message_count: Messages received in this session.
        tick_count: Ticks yielded in this session.
        skipped_records: Malformed records skipped in this session.
        reconnect_count: Reconnections in this session.

    Example:
        >>> health = feed.health()
        >>> health.status.is_healthy
        True
    """

    model_config = {"extra": "forbid"}

    source: str = Field(
        ...,
        description="Feed identifier",
        min_length=1,
    )
    url: str = Field(
        ...,
        description="Stream endpoint URL",
    )
    status: ConnectionStatus = Field(
        ...,
        description="Current connection status",
    )
    connected_at: Optional[datetime] = Field(
        default=None,
        description="When the current connection was opened (UTC)",
    )
    last_message_at: Optional[datetime] = Field(
        default=None,
        description="Timestamp of the last received message (UTC)",
    )
    message_count: int = Field(
        default=0,
        description="Messages received in this session",
        ge=0,
    )
    tick_count: int = Field(
        default=0,
        description="Ticks yielded in this session",
        ge=0,
    )
    skipped_records: int = Field(
        default=0,
        description="Malformed records skipped in this session",
        ge=0,
    )
    reconnect_count: int = Field(
        default=0,
        description="Reconnections in this session",
        ge=0,
    )

    @property
    def seconds_since_last_message(self) -> Optional[float]:
        """Seconds since the last message, or None if nothing received yet."""
        if self.last_message_at is None:
            return None
        return (datetime.now(timezone.utc) - self.last_message_at).total_seconds()


class WatchStatus(BaseModel):
    """
    A watch joined with the latest price seen for its symbol.

    Attributes:
        watch: The registered watch.
        last_price: Latest cached price, None until the feed reports one.
        in_range: Whether last_price is inside the band, None without a price.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    watch: Watch
    last_price: Optional[Decimal] = None
    in_range: Optional[bool] = None

    @classmethod
    def of(cls, watch: Watch, last_price: Optional[Decimal]) -> "WatchStatus":
        """Build a status from a watch and its cached price."""
        in_range = None if last_price is None else watch.contains(last_price)
        return cls(watch=watch, last_price=last_price, in_range=in_range)
