"""
Watch registry: the authoritative set of active watches.

Watches are keyed by canonical symbol and kept in insertion order. Every
mutation writes the full registry snapshot to the persistence gateway before
returning.

Example:
    >>> registry = WatchRegistry(PersistedSnapshot(store, keys.watch_list))
    >>> await registry.load()
    >>> await registry.add("btcusdt", Decimal("60000"), Decimal("70000"))
    >>> registry.get("BTCUSDT").upper
    Decimal('70000')
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional

import structlog
from pydantic import ValidationError

from pricewatch.exceptions import (
    DuplicateSymbolError,
    InvalidRangeError,
    InvalidSymbolError,
    WatchNotFoundError,
)
from pricewatch.models.watch import Watch, canonical_symbol
from pricewatch.storage.snapshot import PersistedSnapshot

logger = structlog.get_logger(__name__)

MAX_SYMBOL_LENGTH = 50


def validate_symbol(symbol: Any) -> str:
    """
    Canonicalize and check an operator-supplied symbol.

    Args:
        symbol: Raw symbol.

    Returns:
        str: Canonical symbol.

    Raises:
        InvalidSymbolError: If the symbol is not a string, is empty after
            stripping, contains whitespace, or is too long.
    """
    if not isinstance(symbol, str):
        raise InvalidSymbolError(symbol)
    canonical = canonical_symbol(symbol)
    if not canonical or len(canonical) > MAX_SYMBOL_LENGTH:
        raise InvalidSymbolError(symbol)
    if any(ch.isspace() for ch in canonical):
        raise InvalidSymbolError(symbol)
    return canonical


class WatchRegistry:
    """
    In-memory watch set synced to durable storage.

    Attributes:
        snapshot: Persisted snapshot of the watch list.
    """

    def __init__(self, snapshot: PersistedSnapshot) -> None:
        self.snapshot = snapshot
        self._watches: Dict[str, Watch] = {}

    def __len__(self) -> int:
        return len(self._watches)

    def __contains__(self, symbol: object) -> bool:
        if not isinstance(symbol, str):
            return False
        return canonical_symbol(symbol) in self._watches

    async def load(self) -> int:
        """
        Restore watches from storage, replacing the in-memory set.

        Entries that fail validation or repeat a symbol are skipped.

        Returns:
            int: Number of watches restored.
        """
        stored = await self.snapshot.read(default=[])
        if not isinstance(stored, list):
            logger.warning("watch_snapshot_invalid", type=type(stored).__name__)
            stored = []

        restored: Dict[str, Watch] = {}
        skipped = 0
        for entry in stored:
            try:
                watch = Watch.model_validate(entry)
            except ValidationError as e:
                skipped += 1
                logger.warning("stored_watch_skipped", entry=entry, error=str(e))
                continue
            if watch.symbol in restored:
                skipped += 1
                logger.warning("stored_watch_duplicate", symbol=watch.symbol)
                continue
            restored[watch.symbol] = watch

        self._watches = restored
        logger.info("watches_loaded", count=len(restored), skipped=skipped)
        return len(restored)

    def get(self, symbol: str) -> Optional[Watch]:
        """Look up the watch for a symbol, None if not watched."""
        return self._watches.get(canonical_symbol(symbol))

    def list_watches(self) -> List[Watch]:
        """Return the active watches in insertion order."""
        return list(self._watches.values())

    async def add(self, symbol: Any, lower: Decimal, upper: Decimal) -> Watch:
        """
        Register a new watch and persist the registry.

        Args:
            symbol: Symbol to watch (canonicalized).
            lower: Lower bound of the band.
            upper: Upper bound of the band.

        Returns:
            Watch: The registered watch.

        Raises:
            InvalidSymbolError: If the symbol is empty or malformed.
            InvalidRangeError: If lower >= upper.
            DuplicateSymbolError: If the symbol is already watched.
        """
        canonical = validate_symbol(symbol)

        if lower >= upper:
            raise InvalidRangeError(
                f"Lower bound ({lower}) must be less than upper bound ({upper})",
                lower=lower,
                upper=upper,
            )

        if canonical in self._watches:
            raise DuplicateSymbolError(canonical)

        try:
            watch = Watch(symbol=canonical, lower=lower, upper=upper)
        except ValidationError as e:
            raise InvalidRangeError(str(e), lower=lower, upper=upper) from e

        self._watches[canonical] = watch
        await self._persist()

        logger.info(
            "watch_added",
            symbol=canonical,
            lower=str(lower),
            upper=str(upper),
            active_watches=len(self._watches),
        )
        return watch

    async def remove(self, symbol: str) -> Watch:
        """
        Remove a watch and persist the registry.

        Args:
            symbol: Symbol to stop watching.

        Returns:
            Watch: The removed watch.

        Raises:
            WatchNotFoundError: If the symbol is not watched.
        """
        canonical = canonical_symbol(symbol)
        watch = self._watches.pop(canonical, None)
        if watch is None:
            raise WatchNotFoundError(canonical)

        await self._persist()
        logger.info("watch_removed", symbol=canonical, active_watches=len(self._watches))
        return watch

    async def discard(self, symbol: str) -> Optional[Watch]:
        """
        Remove a watch if present and persist the registry.

        Used by the trigger path, where absence is not an error.

        Returns:
            Optional[Watch]: The removed watch, or None.
        """
        watch = self._watches.pop(canonical_symbol(symbol), None)
        if watch is not None:
            await self._persist()
        return watch

    async def _persist(self) -> None:
        await self.snapshot.write(
            [watch.model_dump(mode="json") for watch in self._watches.values()]
        )
