"""Tests for the match engine and alert lifecycle."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from pricewatch.models import AlertRecord, BreachType, PriceTick
from pricewatch.monitor.dispatcher import NotificationDispatcher
from pricewatch.monitor.events import EventHub
from pricewatch.monitor.history import AlertHistory
from pricewatch.monitor.lifecycle import AlertLifecycleManager
from pricewatch.monitor.matcher import MatchEngine
from pricewatch.monitor.prices import PriceCache
from pricewatch.monitor.registry import WatchRegistry
from pricewatch.storage import MemoryStore, PersistedSnapshot, StorageKeys

KEYS = StorageKeys("test")


def make_tick(symbol: str, price: str) -> PriceTick:
    return PriceTick(symbol=symbol, price=Decimal(price))


class Harness:
    """Engine wired over a MemoryStore."""

    def __init__(self, store, channels=None, cooldown_seconds: int = 0, capacity: int = 50):
        self.store = store
        self.registry = WatchRegistry(PersistedSnapshot(store, KEYS.watch_list))
        self.history = AlertHistory(
            PersistedSnapshot(store, KEYS.alert_history), capacity=capacity
        )
        self.prices = PriceCache()
        self.events = EventHub()
        self.received = []
        self.events.subscribe(self.received.append)
        self.dispatcher = NotificationDispatcher(channels=channels or {})
        self.lifecycle = AlertLifecycleManager(
            registry=self.registry,
            history=self.history,
            dispatcher=self.dispatcher,
            events=self.events,
            last_alert_snapshot=PersistedSnapshot(store, KEYS.last_alert_time),
            cooldown_seconds=cooldown_seconds,
        )
        self.engine = MatchEngine(self.registry, self.prices, self.lifecycle)

    async def add(self, symbol: str, lower: str, upper: str):
        return await self.registry.add(symbol, Decimal(lower), Decimal(upper))


async def make_harness(**kwargs) -> Harness:
    store = MemoryStore()
    await store.connect()
    return Harness(store, **kwargs)


# ============================================================
# MatchEngine
# ============================================================


class TestEvaluate:
    @pytest.mark.asyncio
    async def test_unwatched_symbol_only_updates_cache(self):
        h = await make_harness()

        assert h.engine.evaluate(make_tick("BTCUSDT", "71000")) is None
        assert h.prices.get("BTCUSDT") == Decimal("71000")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("price", ["60000", "70000", "65000.5"])
    async def test_bounds_are_in_range(self, price):
        h = await make_harness()
        await h.add("BTCUSDT", "60000", "70000")

        assert h.engine.evaluate(make_tick("BTCUSDT", price)) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("price", ["59999.99", "70000.01"])
    async def test_outside_band_breaches(self, price):
        h = await make_harness()
        watch = await h.add("BTCUSDT", "60000", "70000")

        breach = h.engine.evaluate(make_tick("BTCUSDT", price))

        assert breach is not None
        assert breach.watch == watch
        assert breach.price == Decimal(price)


class TestProcessBatch:
    @pytest.mark.asyncio
    async def test_upper_breach_triggers_and_removes(self):
        h = await make_harness()
        await h.add("BTCUSDT", "60000", "70000")

        records = await h.engine.process_batch([make_tick("BTCUSDT", "71000")])

        assert len(records) == 1
        assert records[0].breach == BreachType.UPPER
        assert records[0].price == Decimal("71000")
        assert "BTCUSDT" not in h.registry
        assert h.history.list_records() == records

    @pytest.mark.asyncio
    async def test_lower_breach(self):
        h = await make_harness()
        await h.add("ETHUSDT", "2000", "3000")

        records = await h.engine.process_batch([make_tick("ETHUSDT", "1999")])

        assert records[0].breach == BreachType.LOWER

    @pytest.mark.asyncio
    async def test_boundary_tick_does_not_trigger(self):
        h = await make_harness()
        await h.add("ETHUSDT", "2000", "3000")

        assert await h.engine.process_batch([make_tick("ETHUSDT", "3000")]) == []
        assert "ETHUSDT" in h.registry
        assert len(h.history) == 0

    @pytest.mark.asyncio
    async def test_triggers_once_within_batch(self):
        h = await make_harness()
        await h.add("BTCUSDT", "60000", "70000")

        records = await h.engine.process_batch(
            [
                make_tick("BTCUSDT", "71000"),
                make_tick("BTCUSDT", "72000"),
                make_tick("BTCUSDT", "50000"),
            ]
        )

        assert len(records) == 1
        assert records[0].price == Decimal("71000")
        assert len(h.history) == 1
        assert h.prices.get("BTCUSDT") == Decimal("50000")

    @pytest.mark.asyncio
    async def test_multiple_symbols_in_tick_order(self):
        h = await make_harness()
        await h.add("BTCUSDT", "60000", "70000")
        await h.add("ETHUSDT", "2000", "3000")
        await h.add("SOLUSDT", "100", "200")

        records = await h.engine.process_batch(
            [
                make_tick("ETHUSDT", "1500"),
                make_tick("SOLUSDT", "150"),
                make_tick("BTCUSDT", "80000"),
            ]
        )

        assert [r.symbol for r in records] == ["ETHUSDT", "BTCUSDT"]
        assert [r.symbol for r in h.history.list_records()] == ["BTCUSDT", "ETHUSDT"]
        assert [w.symbol for w in h.registry.list_watches()] == ["SOLUSDT"]

    @pytest.mark.asyncio
    async def test_readded_watch_triggers_again(self):
        h = await make_harness()
        await h.add("BTCUSDT", "60000", "70000")
        await h.engine.process_batch([make_tick("BTCUSDT", "71000")])

        await h.add("BTCUSDT", "60000", "70000")
        records = await h.engine.process_batch([make_tick("BTCUSDT", "71500")])

        assert len(records) == 1
        assert len(h.history) == 2


# ============================================================
# AlertLifecycleManager
# ============================================================


class TestTrigger:
    @pytest.mark.asyncio
    async def test_state_is_persisted_before_notification(self, recording_channel):
        store = MemoryStore()
        await store.connect()
        seen = {}
        h = Harness(store)

        def inspect_state(record: AlertRecord) -> None:
            seen["watched"] = "BTCUSDT" in h.registry
            seen["history"] = [r.alert_id for r in h.history.list_records()]

        channel = type(recording_channel)(on_present=inspect_state)
        h.dispatcher.add_channel("inspect", channel)
        watch = await h.add("BTCUSDT", "60000", "70000")

        record = await h.lifecycle.trigger(watch, Decimal("71000"))

        assert seen == {"watched": False, "history": [record.alert_id]}
        assert channel.presented == [record]

    @pytest.mark.asyncio
    async def test_persists_all_snapshots(self):
        h = await make_harness()
        watch = await h.add("BTCUSDT", "60000", "70000")
        ts = datetime(2025, 1, 26, 12, 0, tzinfo=timezone.utc)

        record = await h.lifecycle.trigger(watch, Decimal("71000"), timestamp=ts)

        assert await h.store.get(KEYS.watch_list) == []
        stored_history = await h.store.get(KEYS.alert_history)
        assert stored_history[0]["alert_id"] == record.alert_id
        assert stored_history[0]["price"] == "71000"
        assert await h.store.get(KEYS.last_alert_time) == {"BTCUSDT": ts.isoformat()}

    @pytest.mark.asyncio
    async def test_publishes_events_in_order(self):
        h = await make_harness()
        watch = await h.add("BTCUSDT", "60000", "70000")

        record = await h.lifecycle.trigger(watch, Decimal("71000"))

        assert [e.event_type for e in h.received] == [
            "alert",
            "history_changed",
            "watch_list_changed",
        ]
        assert h.received[0].record == record
        assert h.received[1].history == [record]
        assert h.received[2].watches == []

    @pytest.mark.asyncio
    async def test_failing_channel_does_not_stop_trigger(self, failing_channel):
        h = await make_harness(channels={"broken": failing_channel})
        watch = await h.add("BTCUSDT", "60000", "70000")

        record = await h.lifecycle.trigger(watch, Decimal("71000"))

        assert record is not None
        assert "BTCUSDT" not in h.registry
        assert len(h.received) == 3

    @pytest.mark.asyncio
    async def test_failing_subscriber_does_not_stop_trigger(self):
        h = await make_harness()

        def broken(event):
            raise RuntimeError("view crashed")

        h.events.subscribe(broken)
        watch = await h.add("BTCUSDT", "60000", "70000")

        assert await h.lifecycle.trigger(watch, Decimal("71000")) is not None
        assert len(h.history) == 1

    @pytest.mark.asyncio
    async def test_load_restores_last_alert_times(self):
        h = await make_harness()
        ts = datetime(2025, 1, 26, 12, 0, tzinfo=timezone.utc)
        await h.store.set(
            KEYS.last_alert_time,
            {"BTCUSDT": ts.isoformat(), "ETHUSDT": "not a time", "SOLUSDT": "2025-01-26T12:00:00"},
        )

        assert await h.lifecycle.load() == 2
        assert h.lifecycle.last_alert_time("BTCUSDT") == ts
        assert h.lifecycle.last_alert_time("SOLUSDT") == ts
        assert h.lifecycle.last_alert_time("ETHUSDT") is None


class TestCooldown:
    @pytest.mark.asyncio
    async def test_disabled_by_default(self):
        h = await make_harness()
        watch = await h.add("BTCUSDT", "60000", "70000")
        now = datetime.now(timezone.utc)
        await h.lifecycle.trigger(watch, Decimal("71000"), timestamp=now)

        watch = await h.add("BTCUSDT", "60000", "70000")
        assert await h.lifecycle.trigger(watch, Decimal("71000"), timestamp=now) is not None

    @pytest.mark.asyncio
    async def test_throttles_within_window(self):
        h = await make_harness(cooldown_seconds=60)
        watch = await h.add("BTCUSDT", "60000", "70000")
        start = datetime(2025, 1, 26, 12, 0, tzinfo=timezone.utc)
        await h.lifecycle.trigger(watch, Decimal("71000"), timestamp=start)

        watch = await h.add("BTCUSDT", "60000", "70000")
        throttled = await h.lifecycle.trigger(
            watch, Decimal("72000"), timestamp=start + timedelta(seconds=30)
        )

        assert throttled is None
        assert "BTCUSDT" in h.registry
        assert len(h.history) == 1

        record = await h.lifecycle.trigger(
            watch, Decimal("72000"), timestamp=start + timedelta(seconds=61)
        )

        assert record is not None
        assert "BTCUSDT" not in h.registry
        assert len(h.history) == 2

    @pytest.mark.asyncio
    async def test_other_symbols_unaffected(self):
        h = await make_harness(cooldown_seconds=60)
        btc = await h.add("BTCUSDT", "60000", "70000")
        eth = await h.add("ETHUSDT", "2000", "3000")
        now = datetime.now(timezone.utc)

        await h.lifecycle.trigger(btc, Decimal("71000"), timestamp=now)

        assert await h.lifecycle.trigger(eth, Decimal("3500"), timestamp=now) is not None
