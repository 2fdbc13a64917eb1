"""
Exception hierarchy for the price monitor.

    PriceWatchError
    ├── WatchValidationError       operator input rejected, nothing mutated
    │   ├── InvalidSymbolError
    │   ├── InvalidRangeError
    │   ├── DuplicateSymbolError
    │   ├── WatchNotFoundError
    │   └── HistoryIndexError
    ├── FeedError
    │   └── FeedConnectionError
    ├── StorageError               (pricewatch.storage.base)
    └── ConfigLoadError            (pricewatch.config.loader)
"""

from typing import Optional


class PriceWatchError(Exception):
    """Base exception for all monitor errors."""

    pass


# =============================================================================
# VALIDATION
# =============================================================================


class WatchValidationError(PriceWatchError):
    """Raised when an operator command is rejected. No state is changed."""

    pass


class InvalidSymbolError(WatchValidationError):
    """Raised when a symbol is empty or malformed."""

    def __init__(self, symbol: object):
        self.symbol = symbol
        super().__init__(f"Invalid symbol: {symbol!r}")


class InvalidRangeError(WatchValidationError):
    """Raised when a band is not numeric or lower >= upper."""

    def __init__(self, message: str, lower: object = None, upper: object = None):
        self.lower = lower
        self.upper = upper
        super().__init__(message)


class DuplicateSymbolError(WatchValidationError):
    """Raised when a watch already exists for the symbol."""

    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"A watch for {symbol} already exists")


class WatchNotFoundError(WatchValidationError):
    """Raised when removing a symbol that is not watched."""

    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"No watch registered for {symbol}")


class HistoryIndexError(WatchValidationError):
    """Raised when a history index is out of range."""

    def __init__(self, index: int, size: int):
        self.index = index
        self.size = size
        super().__init__(f"History index {index} out of range (size {size})")


# =============================================================================
# FEED
# =============================================================================


class FeedError(PriceWatchError):
    """Base exception for price feed failures."""

    pass


class FeedConnectionError(FeedError):
    """
    Raised when the feed connection cannot be opened or is lost.

    Attributes:
        url: Endpoint that failed.
        cause: Underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        self.url = url
        self.cause = cause
        super().__init__(message)
