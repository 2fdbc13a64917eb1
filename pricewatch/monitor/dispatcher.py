"""
Notification dispatcher for fanning alert records out to channels.

Each channel is presented the record and, when sound is enabled, asked to
play its sound. Channel failures and timeouts are logged and isolated: they
never block or fail the trigger path.

Example:
    >>> dispatcher = NotificationDispatcher(
    ...     channels={"console": ConsoleChannel()},
    ...     sound_enabled=True,
    ... )
    >>> await dispatcher.dispatch(record)
    1
"""

import asyncio
from typing import Awaitable, Callable, Dict, Optional, Protocol

import structlog

from pricewatch.models.alerts import AlertRecord

logger = structlog.get_logger(__name__)


class NotificationChannel(Protocol):
    """
    Protocol for alert notification sinks.

    Any channel implementation must support these async methods.
    """

    async def present(self, record: AlertRecord) -> None:
        """Show the alert."""
        ...

    async def play_sound(self) -> None:
        """Play the audible alert cue."""
        ...


class NotificationDispatcher:
    """
    Delivers alert records to every registered channel.

    Attributes:
        channels: Dict mapping channel name to channel instance.
        sound_enabled: Whether play_sound() is requested after present().
        channel_timeout_seconds: Upper bound for each channel call.
    """

    def __init__(
        self,
        channels: Optional[Dict[str, NotificationChannel]] = None,
        sound_enabled: bool = True,
        channel_timeout_seconds: float = 2.0,
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            channels: Dict mapping channel name to channel instance.
            sound_enabled: Whether to request sounds.
            channel_timeout_seconds: Maximum seconds per channel call.
        """
        self.channels: Dict[str, NotificationChannel] = dict(channels or {})
        self.sound_enabled = sound_enabled
        self.channel_timeout_seconds = channel_timeout_seconds

        logger.info(
            "notification_dispatcher_initialized",
            available_channels=list(self.channels.keys()),
            sound_enabled=sound_enabled,
        )

    def add_channel(self, name: str, channel: NotificationChannel) -> None:
        """Register or replace a channel."""
        self.channels[name] = channel

    def remove_channel(self, name: str) -> None:
        """Unregister a channel if present."""
        self.channels.pop(name, None)

    async def dispatch(self, record: AlertRecord) -> int:
        """
        Dispatch an alert record to all channels.

        Args:
            record: The AlertRecord to dispatch.

        Returns:
            int: Number of channels that presented the record successfully.
        """
        dispatched_count = 0

        for channel_name, channel in list(self.channels.items()):
            presented = await self._call(
                channel_name, "present", lambda: channel.present(record), record
            )
            if presented:
                dispatched_count += 1

            if self.sound_enabled:
                await self._call(channel_name, "play_sound", channel.play_sound, record)

        logger.info(
            "alert_dispatch_complete",
            alert_id=record.alert_id,
            symbol=record.symbol,
            dispatched_to=dispatched_count,
            total_channels=len(self.channels),
        )

        return dispatched_count

    async def _call(
        self,
        channel_name: str,
        operation: str,
        call: Callable[[], Awaitable[None]],
        record: AlertRecord,
    ) -> bool:
        try:
            await asyncio.wait_for(call(), timeout=self.channel_timeout_seconds)
            return True
        except asyncio.TimeoutError:
            logger.warning(
                "channel_dispatch_timeout",
                channel=channel_name,
                operation=operation,
                alert_id=record.alert_id,
                timeout_seconds=self.channel_timeout_seconds,
            )
        except Exception as e:
            logger.error(
                "channel_dispatch_failed",
                channel=channel_name,
                operation=operation,
                alert_id=record.alert_id,
                error=str(e),
            )
        return False
