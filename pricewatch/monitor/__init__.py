"""
Watch monitoring core.

Modules:
    registry: Active watches keyed by symbol
    history: Bounded alert history, newest first
    prices: Last price per symbol
    matcher: Tick-by-tick band evaluation
    lifecycle: One-shot trigger handling
    dispatcher: Notification fan-out to channels
    events: Observer hub for presentation layers
    controller: Single owner of all monitor state

Example:
    >>> from pricewatch.monitor import create_controller
    >>> controller = create_controller(config, store, feed=feed)
"""

from pricewatch.monitor.controller import MonitorController, create_controller
from pricewatch.monitor.dispatcher import NotificationChannel, NotificationDispatcher
from pricewatch.monitor.events import EventHub
from pricewatch.monitor.history import AlertHistory
from pricewatch.monitor.lifecycle import AlertLifecycleManager
from pricewatch.monitor.matcher import Breach, MatchEngine
from pricewatch.monitor.prices import PriceCache
from pricewatch.monitor.registry import WatchRegistry

__all__ = [
    "MonitorController",
    "create_controller",
    "WatchRegistry",
    "AlertHistory",
    "PriceCache",
    "MatchEngine",
    "Breach",
    "AlertLifecycleManager",
    "NotificationDispatcher",
    "NotificationChannel",
    "EventHub",
]
