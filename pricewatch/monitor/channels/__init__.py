"""
Notification channels.

Channels:
    ConsoleChannel: structlog event plus a terminal line and bell
    WebSocketChannel: broadcasts alerts to connected API clients
        (pricewatch.api.websocket)
"""

from pricewatch.monitor.channels.console import ConsoleChannel

__all__ = ["ConsoleChannel"]
