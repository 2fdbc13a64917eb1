"""
Abstract interfaces for pluggable components.

Interfaces:
    PriceFeed: Streaming price feed contract
"""

from pricewatch.interfaces.price_feed import PriceFeed

__all__ = ["PriceFeed"]
