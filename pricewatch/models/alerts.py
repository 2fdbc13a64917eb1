"""
Alert record models for the price monitor.

An alert record is the immutable trace left behind when a watch triggers.
Records are kept newest-first in the bounded alert history.

Models:
    BreachType: Which side of the band was crossed
    AlertRecord: Historical record of a single trigger
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from pricewatch.models.watch import Watch


class BreachType(str, Enum):
    """
    Side of the band a price crossed.

    Attributes:
        LOWER: Price fell strictly below the lower bound.
        UPPER: Price rose strictly above the upper bound.
    """

    LOWER = "lower"
    UPPER = "upper"

    @property
    def label(self) -> str:
        """Human-readable description of the breach."""
        if self == BreachType.LOWER:
            return "below lower bound"
        return "above upper bound"


class AlertRecord(BaseModel):
    """
    Immutable record of a watch that triggered.

    Attributes:
        alert_id: Unique identifier for this record.
        timestamp: When the trigger happened (UTC).
        symbol: Symbol of the watch that triggered.
        price: Price of the tick that breached the band.
        breach: Which side of the band was crossed.
        lower: Lower bound of the watch at trigger time.
        upper: Upper bound of the watch at trigger time.

    Example:
        >>> record = AlertRecord.from_breach(watch, Decimal("71000"))
        >>> record.breach
        <BreachType.UPPER: 'upper'>
    """

    model_config = {"frozen": True, "extra": "forbid"}

    alert_id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Unique identifier for this record",
    )
    timestamp: datetime = Field(
        ...,
        description="When the trigger happened (UTC)",
    )
    symbol: str = Field(
        ...,
        description="Symbol of the watch that triggered",
        min_length=1,
        max_length=50,
    )
    price: Decimal = Field(
        ...,
        description="Price of the breaching tick",
    )
    breach: BreachType = Field(
        ...,
        description="Which side of the band was crossed",
    )
    lower: Optional[Decimal] = Field(
        default=None,
        description="Lower bound of the watch at trigger time",
    )
    upper: Optional[Decimal] = Field(
        default=None,
        description="Upper bound of the watch at trigger time",
    )

    @classmethod
    def from_breach(
        cls,
        watch: "Watch",
        price: Decimal,
        timestamp: Optional[datetime] = None,
    ) -> "AlertRecord":
        """
        Build a record for a watch whose band was breached.

        The breach side comes from Watch.classify.

        Args:
            watch: The watch that triggered.
            price: The breaching price.
            timestamp: Trigger time, defaults to now (UTC).

        Returns:
            AlertRecord: The new record.

        Raises:
            ValueError: If the price is inside the band.
        """
        breach = watch.classify(price)
        if breach is None:
            raise ValueError(f"{watch.symbol} price {price} is inside its band")
        return cls(
            timestamp=timestamp or datetime.now(timezone.utc),
            symbol=watch.symbol,
            price=price,
            breach=breach,
            lower=watch.lower,
            upper=watch.upper,
        )

    @property
    def message(self) -> str:
        """One-line summary suitable for notifications."""
        bound = self.lower if self.breach == BreachType.LOWER else self.upper
        if bound is None:
            return f"{self.symbol} price {self.price} {self.breach.label}"
        return f"{self.symbol} price {self.price} {self.breach.label} {bound}"
