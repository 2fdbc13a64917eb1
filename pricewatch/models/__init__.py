"""
Shared Pydantic data models for the price monitor.

All prices use Decimal.

Modules:
    watch: Watches and symbol/price helpers
    tick: Normalized price ticks
    alerts: Breach types and alert records
    health: Feed health and watch status views
    events: Observer events emitted by the controller

Example:
    >>> from pricewatch.models import Watch, PriceTick, AlertRecord
"""

from pricewatch.models.alerts import AlertRecord, BreachType
from pricewatch.models.watch import Watch, canonical_symbol, parse_price
from pricewatch.models.tick import PriceTick
from pricewatch.models.health import ConnectionStatus, FeedHealth, WatchStatus
from pricewatch.models.events import (
    AlertTriggered,
    HistoryChanged,
    MonitorEvent,
    WatchListChanged,
)

__all__ = [
    # Watch
    "Watch",
    "canonical_symbol",
    "parse_price",
    # Tick
    "PriceTick",
    # Alerts
    "BreachType",
    "AlertRecord",
    # Health
    "ConnectionStatus",
    "FeedHealth",
    "WatchStatus",
    # Events
    "WatchListChanged",
    "HistoryChanged",
    "AlertTriggered",
    "MonitorEvent",
]
