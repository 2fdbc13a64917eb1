"""
Binance data normalizer.

Converts Binance mark price payloads to PriceTick models. Prices are parsed
to Decimal straight from their wire strings.

Binance Mark Price Format (one record):
    {
        "e": "markPriceUpdate",
        "E": 1562305380000,  # Event time (ms)
        "s": "BTCUSDT",      # Symbol
        "p": "11794.15000000",  # Mark price
        "i": "11784.62659091",  # Index price
        "r": "0.00038167",      # Funding rate
        "T": 1562306400000      # Next funding time
    }

The `!markPrice@arr@1s` stream delivers a list of such records once per
second. A bare list or a single record object are accepted as payloads too.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import structlog
from pydantic import ValidationError

from pricewatch.models.tick import PriceTick
from pricewatch.models.watch import parse_price

logger = structlog.get_logger(__name__)


class BinanceNormalizer:
    """
    Normalizes Binance payloads to PriceTick batches.

    Malformed records are skipped individually; the rest of their batch is
    still returned.

    Example:
        >>> normalizer = BinanceNormalizer()
        >>> ticks, skipped = normalizer.normalize_batch([
        ...     {"e": "markPriceUpdate", "E": 1700000000000, "s": "BTCUSDT", "p": "71000.00"},
        ...     {"s": "ETHUSDT"},
        ... ])
        >>> len(ticks), skipped
        (1, 1)
    """

    @staticmethod
    def extract_records(payload: Any) -> Optional[List[Any]]:
        """
        Get the record list out of a payload.

        Args:
            payload: Parsed JSON payload, possibly still in the combined
                stream envelope.

        Returns:
            Optional[List[Any]]: Records, or None if the payload has no
                record list.
        """
        if isinstance(payload, dict) and "stream" in payload and "data" in payload:
            payload = payload["data"]

        if isinstance(payload, list):
            return payload
        if isinstance(payload, dict):
            return [payload]
        return None

    @staticmethod
    def normalize_tick(raw: Dict[str, Any]) -> PriceTick:
        """
        Normalize one Binance record to a PriceTick.

        Args:
            raw: Raw record with "s", "p" and optionally "E".

        Returns:
            PriceTick: Normalized tick.

        Raises:
            ValueError: If the record has no usable symbol or price.
        """
        if not isinstance(raw, dict):
            raise ValueError(f"Record is not an object: {type(raw).__name__}")

        symbol = raw.get("s")
        if not isinstance(symbol, str) or not symbol.strip():
            raise ValueError(f"Missing symbol: {raw.get('s')!r}")

        price = parse_price(raw.get("p"))

        event_time: Optional[datetime] = None
        timestamp_ms = raw.get("E")
        if isinstance(timestamp_ms, int) and not isinstance(timestamp_ms, bool):
            try:
                event_time = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
            except (OverflowError, OSError, ValueError):
                event_time = None

        try:
            return PriceTick(symbol=symbol, price=price, event_time=event_time)
        except ValidationError as e:
            raise ValueError(f"Invalid record for {symbol}: {e}") from e

    def normalize_batch(self, payload: Any) -> Tuple[List[PriceTick], int]:
        """
        Normalize a payload to a tick batch in record order.

        Args:
            payload: Parsed JSON payload.

        Returns:
            Tuple[List[PriceTick], int]: Ticks and number of skipped records.
        """
        records = self.extract_records(payload)
        if records is None:
            logger.warning(
                "binance_payload_unrecognized",
                payload_type=type(payload).__name__,
            )
            return [], 0

        ticks: List[PriceTick] = []
        skipped = 0
        for raw in records:
            try:
                ticks.append(self.normalize_tick(raw))
            except ValueError as e:
                skipped += 1
                logger.debug("binance_record_skipped", error=str(e))

        if skipped:
            logger.warning(
                "binance_records_skipped",
                skipped=skipped,
                total=len(records),
            )

        return ticks, skipped
