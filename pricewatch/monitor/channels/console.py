"""
Console notification channel.

Logs each alert through structlog and writes a one-line summary to a text
stream. The sound cue is the terminal bell.
"""

import sys
from typing import Optional, TextIO

import structlog

from pricewatch.models.alerts import AlertRecord

logger = structlog.get_logger(__name__)

BELL = "\a"


class ConsoleChannel:
    """
    Alert channel that prints to a terminal.

    Attributes:
        stream: Destination stream (stdout by default).

    Example:
        >>> channel = ConsoleChannel()
        >>> await channel.present(record)
        [ALERT] 2024-05-01T12:00:00+00:00 BTCUSDT price 71000 above upper bound 70000
    """

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self.stream = stream or sys.stdout

    async def present(self, record: AlertRecord) -> None:
        logger.warning(
            "price_alert",
            alert_id=record.alert_id,
            symbol=record.symbol,
            price=str(record.price),
            breach=record.breach.value,
            lower=str(record.lower) if record.lower is not None else None,
            upper=str(record.upper) if record.upper is not None else None,
        )
        self.stream.write(f"[ALERT] {record.timestamp.isoformat()} {record.message}\n")
        self.stream.flush()

    async def play_sound(self) -> None:
        self.stream.write(BELL)
        self.stream.flush()
