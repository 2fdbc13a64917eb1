"""
Shared fixtures: fake stores, channels, and feeds.

Async construction happens inside the tests; fixtures here only hand out
plain objects or factories.
"""

import asyncio
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

import pytest

from pricewatch.interfaces.price_feed import PriceFeed
from pricewatch.models.alerts import AlertRecord
from pricewatch.models.health import ConnectionStatus, FeedHealth
from pricewatch.models.tick import PriceTick
from pricewatch.storage.base import (
    KeyValueStore,
    StorageConnectionError,
    StorageOperationError,
)


class FailingStore(KeyValueStore):
    """Store whose reads and writes fail until `healthy` is set."""

    def __init__(self) -> None:
        self.healthy = False
        self.data: Dict[str, Any] = {}
        self.write_attempts = 0

    @property
    def backend_name(self) -> str:
        return "failing"

    @property
    def is_connected(self) -> bool:
        return self.healthy

    async def connect(self) -> None:
        if not self.healthy:
            raise StorageConnectionError("store is down")

    async def disconnect(self) -> None:
        return None

    async def get(self, key: str, default: Optional[Any] = None) -> Any:
        if not self.healthy:
            raise StorageOperationError("read failed")
        return self.data.get(key, default)

    async def set(self, key: str, value: Any) -> None:
        self.write_attempts += 1
        if not self.healthy:
            raise StorageOperationError("write failed")
        self.data[key] = value


class RecordingChannel:
    """Channel that remembers what it was asked to do."""

    def __init__(self, on_present: Optional[Callable[[AlertRecord], None]] = None) -> None:
        self.presented: List[AlertRecord] = []
        self.sounds = 0
        self._on_present = on_present

    async def present(self, record: AlertRecord) -> None:
        if self._on_present is not None:
            self._on_present(record)
        self.presented.append(record)

    async def play_sound(self) -> None:
        self.sounds += 1


class FailingChannel:
    """Channel that raises on every call."""

    async def present(self, record: AlertRecord) -> None:
        raise RuntimeError("display unavailable")

    async def play_sound(self) -> None:
        raise RuntimeError("no audio device")


class SlowChannel:
    """Channel that never finishes in time."""

    async def present(self, record: AlertRecord) -> None:
        await asyncio.sleep(10)

    async def play_sound(self) -> None:
        await asyncio.sleep(10)


class FakeFeed(PriceFeed):
    """Feed that yields a fixed list of batches, then ends."""

    def __init__(self, batches: List[List[PriceTick]]) -> None:
        self._batches = batches
        self.disconnected = False

    @property
    def name(self) -> str:
        return "fake"

    @property
    def is_connected(self) -> bool:
        return not self.disconnected

    async def connect(self) -> None:
        return None

    async def disconnect(self) -> None:
        self.disconnected = True

    async def stream_batches(self) -> AsyncIterator[List[PriceTick]]:
        for batch in self._batches:
            if self.disconnected:
                return
            yield batch

    def health(self) -> FeedHealth:
        return FeedHealth(
            source="fake",
            url="fake://feed",
            status=(
                ConnectionStatus.DISCONNECTED
                if self.disconnected
                else ConnectionStatus.CONNECTED
            ),
        )


class BlockingFeed(FakeFeed):
    """Feed that holds the stream open until it is disconnected."""

    def __init__(self, batches: Optional[List[List[PriceTick]]] = None) -> None:
        super().__init__(batches or [])
        self._stopped = asyncio.Event()

    async def disconnect(self) -> None:
        await super().disconnect()
        self._stopped.set()

    async def stream_batches(self) -> AsyncIterator[List[PriceTick]]:
        for batch in self._batches:
            yield batch
        await self._stopped.wait()


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()


@pytest.fixture
def recording_channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def failing_channel() -> FailingChannel:
    return FailingChannel()


@pytest.fixture
def slow_channel() -> SlowChannel:
    return SlowChannel()


@pytest.fixture
def fake_feed_factory() -> Callable[[List[List[PriceTick]]], FakeFeed]:
    return FakeFeed


@pytest.fixture
def blocking_feed_factory() -> Callable[[], BlockingFeed]:
    return BlockingFeed
