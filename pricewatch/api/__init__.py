"""
Operator API for the price monitor.

This package provides FastAPI routers for:
- Watches: List, add, and remove watches
- History: Read, delete, and clear alert records
- Health: Feed and storage status, last prices
- WebSocket: Real-time push of monitor events
"""

from pricewatch.api.app import create_app
from pricewatch.api.websocket import ConnectionManager, WebSocketChannel

__all__ = ["create_app", "ConnectionManager", "WebSocketChannel"]
