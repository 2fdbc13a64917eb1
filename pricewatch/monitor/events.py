"""
Observer hub for controller events.

Subscribers are plain callables taking one MonitorEvent. They may be sync or
async. A failing or slow subscriber is logged and skipped; it never affects
the controller or other subscribers.
"""

import asyncio
import inspect
from typing import Awaitable, Callable, List, Optional, Union

import structlog

from pricewatch.models.events import MonitorEvent

logger = structlog.get_logger(__name__)

Subscriber = Callable[[MonitorEvent], Union[None, Awaitable[None]]]


class EventHub:
    """
    Fan-out of monitor events to subscribed callbacks.

    Attributes:
        timeout_seconds: Maximum time an async subscriber may take.

    Example:
        >>> hub = EventHub()
        >>> unsubscribe = hub.subscribe(lambda event: print(event.event_type))
        >>> await hub.publish(WatchListChanged(watches=[]))
        watch_list_changed
        >>> unsubscribe()
    """

    def __init__(self, timeout_seconds: Optional[float] = 2.0) -> None:
        self.timeout_seconds = timeout_seconds
        self._subscribers: List[Subscriber] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a callback.

        Returns:
            Callable[[], None]: Function that removes the subscription.
        """
        self._subscribers.append(callback)
        return lambda: self.unsubscribe(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        """Remove a callback. Unknown callbacks are ignored."""
        try:
            self._subscribers.remove(callback)
        except ValueError:
            pass

    async def publish(self, event: MonitorEvent) -> None:
        """Deliver an event to every subscriber in subscription order."""
        for callback in list(self._subscribers):
            try:
                result = callback(event)
                if inspect.isawaitable(result):
                    await asyncio.wait_for(result, timeout=self.timeout_seconds)
            except asyncio.TimeoutError:
                logger.warning(
                    "event_subscriber_timeout",
                    event_type=event.event_type,
                    timeout_seconds=self.timeout_seconds,
                )
            except Exception as e:
                logger.error(
                    "event_subscriber_failed",
                    event_type=event.event_type,
                    error_type=type(e).__name__,
                    error=str(e),
                )
