"""
Watch data model for the price monitor.

A watch is a symbol plus a closed price band. It is created by an operator
command and lives until it is removed explicitly or it triggers once.

Models:
    Watch: Symbol and price band under active monitoring

Helpers:
    canonical_symbol: Normalize a symbol to its registry key
    parse_price: Parse a wire or operator value into a finite Decimal
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from pricewatch.models.alerts import BreachType


def canonical_symbol(symbol: str) -> str:
    """
    Normalize a symbol to its canonical registry key.

    Args:
        symbol: Raw symbol as typed by an operator or sent by the feed.

    Returns:
        str: Stripped, upper-cased symbol (e.g., " btcusdt " -> "BTCUSDT").
    """
    return symbol.strip().upper()


def parse_price(value: Any) -> Decimal:
    """
    Parse a price into a finite Decimal.

    Strings are parsed directly so that wire precision is kept. Floats go
    through str() first to avoid binary expansion artifacts.

    Args:
        value: str, int, float, or Decimal price.

    Returns:
        Decimal: The parsed price.

    Raises:
        ValueError: If the value is missing, not numeric, or not finite.

    Example:
        >>> parse_price("71000.50")
        Decimal('71000.50')
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f"Invalid price: {value!r}")

    try:
        if isinstance(value, Decimal):
            price = value
        elif isinstance(value, float):
            price = Decimal(str(value))
        else:
            price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid price: {value!r}") from e

    if not price.is_finite():
        raise ValueError(f"Price must be finite: {value!r}")

    return price


class Watch(BaseModel):
    """
    A symbol and the price band it is monitored against.

    The band is inclusive: a price equal to either bound is in range. Watches
    are immutable; changing a band means removing and re-adding the watch.

    Attributes:
        symbol: Canonical upper-case symbol, unique within the registry.
        lower: Lower bound of the band.
        upper: Upper bound of the band (strictly greater than lower).
        created_at: When the watch was registered (UTC).

    Example:
        >>> watch = Watch(
        ...     symbol="BTCUSDT",
        ...     lower=Decimal("60000"),
        ...     upper=Decimal("70000"),
        ... )
        >>> watch.classify(Decimal("71000"))
        <BreachType.UPPER: 'upper'>
    """

    model_config = {"frozen": True, "extra": "forbid"}

    symbol: str = Field(
        ...,
        description="Canonical upper-case symbol",
        min_length=1,
        max_length=50,
        examples=["BTCUSDT", "ETHUSDT"],
    )
    lower: Decimal = Field(
        ...,
        description="Lower bound of the price band (inclusive)",
    )
    upper: Decimal = Field(
        ...,
        description="Upper bound of the price band (inclusive)",
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the watch was registered (UTC)",
    )

    @field_validator("symbol", mode="before")
    @classmethod
    def normalize_symbol(cls, v: Any) -> Any:
        """Store symbols in canonical form."""
        if isinstance(v, str):
            return canonical_symbol(v)
        return v

    @model_validator(mode="after")
    def validate_band(self) -> "Watch":
        """Ensure lower < upper."""
        if self.lower >= self.upper:
            raise ValueError(
                f"Lower bound ({self.lower}) must be less than upper bound ({self.upper})"
            )
        return self

    def contains(self, price: Decimal) -> bool:
        """
        Check whether a price is inside the band.

        Args:
            price: Price to check.

        Returns:
            bool: True if lower <= price <= upper.
        """
        return self.lower <= price <= self.upper

    def classify(self, price: Decimal) -> Optional[BreachType]:
        """
        Classify a price against the band.

        Args:
            price: Price to check.

        Returns:
            Optional[BreachType]: LOWER if below the band, UPPER if above,
                None if in range.
        """
        if price < self.lower:
            return BreachType.LOWER
        if price > self.upper:
            return BreachType.UPPER
        return None
