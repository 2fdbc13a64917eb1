"""Tests for the watch registry."""

from decimal import Decimal

import pytest

from pricewatch.exceptions import (
    DuplicateSymbolError,
    InvalidRangeError,
    InvalidSymbolError,
    WatchNotFoundError,
)
from pricewatch.monitor.registry import WatchRegistry, validate_symbol
from pricewatch.storage import MemoryStore, PersistedSnapshot

KEY = "test:watch_list"


async def make_registry(store=None) -> WatchRegistry:
    if store is None:
        store = MemoryStore()
        await store.connect()
    registry = WatchRegistry(PersistedSnapshot(store, KEY))
    await registry.load()
    return registry


class TestValidateSymbol:
    def test_canonicalizes(self):
        assert validate_symbol(" btcusdt ") == "BTCUSDT"

    @pytest.mark.parametrize("symbol", ["", "   ", "BTC USDT", "X" * 51, None, 42])
    def test_rejects(self, symbol):
        with pytest.raises(InvalidSymbolError):
            validate_symbol(symbol)


class TestAdd:
    @pytest.mark.asyncio
    async def test_add_and_get(self):
        registry = await make_registry()
        watch = await registry.add("btcusdt", Decimal("60000"), Decimal("70000"))

        assert watch.symbol == "BTCUSDT"
        assert registry.get("BTCUSDT") == watch
        assert registry.get("btcusdt") == watch
        assert "btcusdt" in registry
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_insertion_order(self):
        registry = await make_registry()
        await registry.add("ETHUSDT", Decimal("2000"), Decimal("3000"))
        await registry.add("BTCUSDT", Decimal("60000"), Decimal("70000"))
        await registry.add("SOLUSDT", Decimal("100"), Decimal("200"))

        assert [w.symbol for w in registry.list_watches()] == [
            "ETHUSDT",
            "BTCUSDT",
            "SOLUSDT",
        ]

    @pytest.mark.asyncio
    async def test_empty_symbol_rejected(self):
        registry = await make_registry()
        with pytest.raises(InvalidSymbolError):
            await registry.add("  ", Decimal("1"), Decimal("2"))
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_symbol_checked_before_range(self):
        registry = await make_registry()
        with pytest.raises(InvalidSymbolError):
            await registry.add("", Decimal("2"), Decimal("1"))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("lower,upper", [("70000", "70000"), ("70001", "70000")])
    async def test_invalid_range_rejected(self, lower, upper):
        registry = await make_registry()
        with pytest.raises(InvalidRangeError) as exc_info:
            await registry.add("BTCUSDT", Decimal(lower), Decimal(upper))

        assert exc_info.value.lower == Decimal(lower)
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_duplicate_rejected_case_insensitive(self):
        registry = await make_registry()
        original = await registry.add("BTCUSDT", Decimal("60000"), Decimal("70000"))

        with pytest.raises(DuplicateSymbolError) as exc_info:
            await registry.add("btcusdt", Decimal("1"), Decimal("2"))

        assert exc_info.value.symbol == "BTCUSDT"
        assert registry.get("BTCUSDT") == original
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_add_persists_snapshot(self):
        store = MemoryStore()
        await store.connect()
        registry = await make_registry(store)

        await registry.add("BTCUSDT", Decimal("60000.5"), Decimal("70000"))

        stored = await store.get(KEY)
        assert len(stored) == 1
        assert stored[0]["symbol"] == "BTCUSDT"
        assert stored[0]["lower"] == "60000.5"
        assert stored[0]["upper"] == "70000"

    @pytest.mark.asyncio
    async def test_rejected_add_does_not_write(self):
        store = MemoryStore()
        await store.connect()
        registry = await make_registry(store)

        with pytest.raises(InvalidRangeError):
            await registry.add("BTCUSDT", Decimal("2"), Decimal("1"))

        assert await store.get(KEY) is None


class TestRemove:
    @pytest.mark.asyncio
    async def test_remove(self):
        registry = await make_registry()
        await registry.add("BTCUSDT", Decimal("60000"), Decimal("70000"))

        removed = await registry.remove("btcusdt")

        assert removed.symbol == "BTCUSDT"
        assert registry.get("BTCUSDT") is None
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_remove_unknown(self):
        registry = await make_registry()
        with pytest.raises(WatchNotFoundError):
            await registry.remove("BTCUSDT")

    @pytest.mark.asyncio
    async def test_discard_unknown_returns_none(self):
        registry = await make_registry()
        assert await registry.discard("BTCUSDT") is None

    @pytest.mark.asyncio
    async def test_readd_after_remove(self):
        registry = await make_registry()
        await registry.add("BTCUSDT", Decimal("60000"), Decimal("70000"))
        await registry.remove("BTCUSDT")

        watch = await registry.add("BTCUSDT", Decimal("1"), Decimal("2"))
        assert watch.upper == Decimal("2")


class TestLoad:
    @pytest.mark.asyncio
    async def test_survives_restart(self):
        store = MemoryStore()
        await store.connect()
        first = await make_registry(store)
        await first.add("ETHUSDT", Decimal("2000"), Decimal("3000"))
        await first.add("BTCUSDT", Decimal("60000"), Decimal("70000"))

        second = await make_registry(store)

        assert second.list_watches() == first.list_watches()

    @pytest.mark.asyncio
    async def test_skips_invalid_and_duplicate_entries(self):
        store = MemoryStore()
        await store.connect()
        await store.set(
            KEY,
            [
                {"symbol": "BTCUSDT", "lower": "60000", "upper": "70000"},
                {"symbol": "ETHUSDT", "lower": "3000", "upper": "2000"},
                {"symbol": "btcusdt", "lower": "1", "upper": "2"},
                "garbage",
            ],
        )

        registry = await make_registry(store)

        assert [w.symbol for w in registry.list_watches()] == ["BTCUSDT"]
        assert registry.get("BTCUSDT").upper == Decimal("70000")

    @pytest.mark.asyncio
    async def test_non_list_snapshot_is_empty(self):
        store = MemoryStore()
        await store.connect()
        await store.set(KEY, {"not": "a list"})

        registry = await make_registry(store)
        assert len(registry) == 0
