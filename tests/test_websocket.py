"""Tests for the Binance websocket client connection management."""

import asyncio

import pytest
import websockets
from websockets.exceptions import ConnectionClosed

from pricewatch.adapters.binance.websocket import BinanceWebSocketClient
from pricewatch.exceptions import FeedConnectionError
from pricewatch.models import ConnectionStatus

URL = "wss://example.test/stream"


class FakeConnection:
    """Websocket connection fed from a queue."""

    def __init__(self, messages=(), pong: bool = True):
        self.queue: asyncio.Queue = asyncio.Queue()
        for message in messages:
            self.queue.put_nowait(message)
        self.pong = pong
        self.closed = False

    async def recv(self):
        item = await self.queue.get()
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self):
        if not self.closed:
            self.closed = True
            self.queue.put_nowait(ConnectionClosed(None, None))

    async def ping(self):
        waiter = asyncio.get_running_loop().create_future()
        if self.pong:
            waiter.set_result(0.0)
        return waiter


class FakeConnector:
    """Replacement for websockets.connect returning scripted outcomes."""

    def __init__(self, outcomes, latency: float = 0.0):
        self.outcomes = list(outcomes)
        self.latency = latency
        self.call_times = []

    async def __call__(self, url, **kwargs):
        self.call_times.append(asyncio.get_running_loop().time())
        await asyncio.sleep(self.latency)
        if not self.outcomes:
            raise OSError("connection refused")
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def make_client(**kwargs) -> BinanceWebSocketClient:
    params = {"ping_interval": 30, "ping_timeout": 10, "reconnect_delay": 0.01}
    params.update(kwargs)
    return BinanceWebSocketClient(URL, **params)


async def collect(client: BinanceWebSocketClient, count: int):
    received = []
    async for payload in client.stream_messages():
        received.append(payload)
        if len(received) == count:
            break
    return received


async def wait_until(predicate, timeout: float = 2.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0.01)


class TestStreamMessages:
    @pytest.mark.asyncio
    async def test_unwraps_envelope_and_skips_invalid_json(self, monkeypatch):
        conn = FakeConnection(['{"stream": "s", "data": [1]}', "not json", "[2]"])
        monkeypatch.setattr(websockets, "connect", FakeConnector([conn]))
        client = make_client()

        received = await asyncio.wait_for(collect(client, 2), timeout=2)
        await client.disconnect()

        assert received == [[1], [2]]
        assert client.message_count == 3
        assert client.last_message_at is not None

    @pytest.mark.asyncio
    async def test_reconnects_after_drop(self, monkeypatch):
        first = FakeConnection(["[1]", ConnectionClosed(None, None)])
        second = FakeConnection(["[2]"])
        connector = FakeConnector([first, second])
        monkeypatch.setattr(websockets, "connect", connector)
        client = make_client()

        received = await asyncio.wait_for(collect(client, 2), timeout=2)
        await client.disconnect()

        assert received == [[1], [2]]
        assert len(connector.call_times) == 2
        assert client.reconnect_count == 1
        assert first.closed

    @pytest.mark.asyncio
    async def test_failed_attempts_retry_with_fixed_delay(self, monkeypatch):
        conn = FakeConnection(["[1]"])
        connector = FakeConnector([OSError("down"), OSError("down"), OSError("down"), conn])
        monkeypatch.setattr(websockets, "connect", connector)
        client = make_client(reconnect_delay=0.1)

        received = await asyncio.wait_for(collect(client, 1), timeout=5)
        await client.disconnect()

        assert received == [[1]]
        assert client.reconnect_count == 3
        gaps = [b - a for a, b in zip(connector.call_times, connector.call_times[1:])]
        assert len(gaps) == 3
        for gap in gaps:
            assert 0.08 <= gap < 0.35

    @pytest.mark.asyncio
    async def test_reconnect_after_explicit_connect_waits(self, monkeypatch):
        first = FakeConnection([ConnectionClosed(None, None)])
        second = FakeConnection(["[2]"])
        connector = FakeConnector([first, second])
        monkeypatch.setattr(websockets, "connect", connector)
        client = make_client(reconnect_delay=0.1)
        await client.connect()

        received = await asyncio.wait_for(collect(client, 1), timeout=2)
        await client.disconnect()

        assert received == [[2]]
        assert connector.call_times[1] - connector.call_times[0] >= 0.08

    @pytest.mark.asyncio
    async def test_ping_timeout_drops_connection(self, monkeypatch):
        silent = FakeConnection(pong=False)
        healthy = FakeConnection(["[2]"])
        monkeypatch.setattr(websockets, "connect", FakeConnector([silent, healthy]))
        client = make_client(ping_interval=0.01, ping_timeout=0.01)

        received = await asyncio.wait_for(collect(client, 1), timeout=2)
        await client.disconnect()

        assert received == [[2]]
        assert silent.closed


class TestDisconnect:
    @pytest.mark.asyncio
    async def test_abandons_pending_reconnect(self, monkeypatch):
        connector = FakeConnector([])
        monkeypatch.setattr(websockets, "connect", connector)
        client = make_client(reconnect_delay=30)

        task = asyncio.create_task(collect(client, 1))
        await wait_until(lambda: client.status == ConnectionStatus.RECONNECTING)

        await client.disconnect()
        received = await asyncio.wait_for(task, timeout=1)

        assert received == []
        assert len(connector.call_times) == 1
        assert client.status == ConnectionStatus.DISCONNECTED

    @pytest.mark.asyncio
    async def test_ends_stream_while_receiving(self, monkeypatch):
        conn = FakeConnection()
        monkeypatch.setattr(websockets, "connect", FakeConnector([conn]))
        client = make_client()

        task = asyncio.create_task(collect(client, 1))
        await wait_until(lambda: client.is_connected)

        await client.disconnect()
        received = await asyncio.wait_for(task, timeout=1)

        assert received == []
        assert conn.closed
        assert not client.is_connected

    @pytest.mark.asyncio
    async def test_disconnect_is_idempotent(self):
        client = make_client()
        await client.disconnect()
        await client.disconnect()
        assert client.status == ConnectionStatus.DISCONNECTED


class TestConnect:
    @pytest.mark.asyncio
    async def test_failure_raises_feed_connection_error(self, monkeypatch):
        monkeypatch.setattr(websockets, "connect", FakeConnector([OSError("refused")]))
        client = make_client()

        with pytest.raises(FeedConnectionError) as exc_info:
            await client.connect()

        assert exc_info.value.url == URL
        assert isinstance(exc_info.value.cause, OSError)
        assert not client.is_connected

    @pytest.mark.asyncio
    async def test_single_attempt_in_flight(self, monkeypatch):
        connector = FakeConnector([FakeConnection(), FakeConnection()], latency=0.05)
        monkeypatch.setattr(websockets, "connect", connector)
        client = make_client()

        await asyncio.gather(client.connect(), client.connect())

        assert len(connector.call_times) == 1
        assert client.status == ConnectionStatus.CONNECTED
        await client.disconnect()
