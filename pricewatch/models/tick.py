"""
Price tick model for the price monitor.

Ticks are normalized from the feed and carry no identity beyond their
arrival order. They are never persisted.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from pricewatch.models.watch import canonical_symbol


class PriceTick(BaseModel):
    """
    One price observation for a symbol.

    Attributes:
        symbol: Canonical upper-case symbol.
        price: Observed price.
        event_time: Exchange event time (UTC), if the feed supplied one.

    Example:
        >>> tick = PriceTick(symbol="btcusdt", price=Decimal("71000"))
        >>> tick.symbol
        'BTCUSDT'
    """

    model_config = {"frozen": True, "extra": "forbid"}

    symbol: str = Field(
        ...,
        description="Canonical upper-case symbol",
        min_length=1,
        max_length=50,
    )
    price: Decimal = Field(
        ...,
        description="Observed price",
    )
    event_time: Optional[datetime] = Field(
        default=None,
        description="Exchange event time (UTC)",
    )

    @field_validator("symbol", mode="before")
    @classmethod
    def normalize_symbol(cls, v: Any) -> Any:
        """Store symbols in canonical form."""
        if isinstance(v, str):
            return canonical_symbol(v)
        return v
