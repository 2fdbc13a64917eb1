"""Ephemeral cache of the last price seen per symbol."""

from decimal import Decimal
from typing import Dict, Optional

from pricewatch.models.watch import canonical_symbol


class PriceCache:
    """
    Last observed price per symbol, rebuilt purely from the feed.

    Never persisted.
    """

    def __init__(self) -> None:
        self._prices: Dict[str, Decimal] = {}

    def __len__(self) -> int:
        return len(self._prices)

    def update(self, symbol: str, price: Decimal) -> None:
        self._prices[symbol] = price

    def get(self, symbol: str) -> Optional[Decimal]:
        return self._prices.get(canonical_symbol(symbol))
