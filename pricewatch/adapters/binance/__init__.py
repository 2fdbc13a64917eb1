"""
Binance price feed.

Components:
    BinanceWebSocketClient: Connection, heartbeat, and fixed-delay reconnection
    BinanceNormalizer: Mark price payloads to PriceTick batches
    BinanceMarkPriceFeed: PriceFeed implementation
"""

from pricewatch.adapters.binance.adapter import BinanceMarkPriceFeed
from pricewatch.adapters.binance.normalizer import BinanceNormalizer
from pricewatch.adapters.binance.websocket import BinanceWebSocketClient

__all__ = ["BinanceMarkPriceFeed", "BinanceNormalizer", "BinanceWebSocketClient"]
