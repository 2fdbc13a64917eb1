"""
Binance WebSocket client.

Manages the single websocket subscription to a Binance combined stream.
Handles connection lifecycle, fixed-delay reconnection, heartbeat, and
streaming message delivery.

Connection Management:
    - Reconnect after a fixed delay, indefinitely, until disconnect()
    - At most one connection attempt in flight (connect lock)
    - Ping/pong heartbeat; a missing pong drops the connection
    - disconnect() abandons any pending reconnect delay

Stream Format:
    - Combined stream: {"stream": "!markPrice@arr@1s", "data": [...]}
"""

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Optional

import structlog
import websockets
from websockets.asyncio.client import ClientConnection
from websockets.exceptions import ConnectionClosed, WebSocketException

from pricewatch.exceptions import FeedConnectionError
from pricewatch.models.health import ConnectionStatus

logger = structlog.get_logger(__name__)


class BinanceWebSocketClient:
    """
    Async WebSocket client for Binance streams.

    Attributes:
        url: WebSocket endpoint URL.
        ping_interval: Seconds between ping messages.
        ping_timeout: Seconds to wait for a pong.
        reconnect_delay: Fixed delay in seconds before each reconnection.
        open_timeout: Seconds to wait for the opening handshake.

    Example:
        >>> client = BinanceWebSocketClient(
        ...     url="wss://fstream.binance.com/stream?streams=!markPrice@arr@1s",
        ...     ping_interval=30,
        ...     reconnect_delay=5,
        ... )
        >>> async for message in client.stream_messages():
        ...     print(message)
    """

    def __init__(
        self,
        url: str,
        ping_interval: float = 30,
        ping_timeout: float = 10,
        reconnect_delay: float = 5,
        open_timeout: float = 10,
    ):
        """
        Initialize WebSocket client.

        Args:
            url: WebSocket endpoint URL.
            ping_interval: Seconds between ping messages.
            ping_timeout: Seconds to wait for pong response.
            reconnect_delay: Fixed delay in seconds before each reconnection.
            open_timeout: Seconds to wait for the opening handshake.
        """
        self.url = url
        self.ping_interval = ping_interval
        self.ping_timeout = ping_timeout
        self.reconnect_delay = reconnect_delay
        self.open_timeout = open_timeout

        self._ws: Optional[ClientConnection] = None
        self._connected = False
        self._reconnecting = False
        self._reconnect_count = 0
        self._message_count = 0
        self._connected_at: Optional[datetime] = None
        self._last_message_at: Optional[datetime] = None
        self._ping_task: Optional[asyncio.Task] = None
        self._connect_lock = asyncio.Lock()
        self._shutdown = asyncio.Event()

        logger.info(
            "websocket_client_initialized",
            url=url,
            ping_interval=ping_interval,
            reconnect_delay=reconnect_delay,
        )

    @property
    def is_connected(self) -> bool:
        """Check if WebSocket is connected."""
        return self._connected and self._ws is not None

    @property
    def status(self) -> ConnectionStatus:
        """Current connection status."""
        if self.is_connected:
            return ConnectionStatus.CONNECTED
        if self._reconnecting:
            return ConnectionStatus.RECONNECTING
        return ConnectionStatus.DISCONNECTED

    @property
    def reconnect_count(self) -> int:
        """Get the number of reconnection attempts in this session."""
        return self._reconnect_count

    @property
    def message_count(self) -> int:
        """Get the number of messages received in this session."""
        return self._message_count

    @property
    def connected_at(self) -> Optional[datetime]:
        """When the current connection was opened."""
        return self._connected_at

    @property
    def last_message_at(self) -> Optional[datetime]:
        """Get timestamp of last received message."""
        return self._last_message_at

    async def connect(self) -> None:
        """
        Establish WebSocket connection.

        Idempotent: does nothing if already connected. Calling connect()
        after disconnect() re-enables reconnection.

        Raises:
            FeedConnectionError: If the connection cannot be opened.
        """
        self._shutdown.clear()
        await self._open()

    async def disconnect(self) -> None:
        """
        Close the connection and stop reconnecting.

        Cancels the ping task, abandons any pending reconnect delay, and
        closes the websocket. Safe to call multiple times.
        """
        self._shutdown.set()
        await self._drop_connection()
        logger.info("websocket_disconnected", url=self.url)

    async def stream_messages(self) -> AsyncIterator[Any]:
        """
        Stream messages from WebSocket.

        Yields parsed JSON payloads as they arrive, unwrapping the combined
        stream envelope. Reconnects after a fixed delay whenever the
        connection drops or an attempt fails. Ends after disconnect().

        Yields:
            Any: Parsed JSON payload (usually a list of records).

        Example:
            >>> async for payload in client.stream_messages():
            ...     print(len(payload))
        """
        needs_delay = False

        while not self._shutdown.is_set():
            if not self.is_connected:
                if needs_delay:
                    if not await self._wait_reconnect_delay():
                        break
                    self._reconnect_count += 1

                try:
                    await self._open()
                except FeedConnectionError:
                    needs_delay = True
                    continue

            # Every later attempt waits the fixed delay
            needs_delay = True

            ws = self._ws
            if ws is None:
                continue

            try:
                raw_message = await ws.recv()

            except ConnectionClosed as e:
                if self._shutdown.is_set():
                    break
                logger.warning(
                    "websocket_connection_closed",
                    url=self.url,
                    code=e.rcvd.code if e.rcvd else None,
                )
                await self._drop_connection()
                continue

            except (WebSocketException, OSError) as e:
                if self._shutdown.is_set():
                    break
                logger.error(
                    "websocket_error",
                    url=self.url,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                await self._drop_connection()
                continue

            except asyncio.CancelledError:
                logger.info("websocket_stream_cancelled", url=self.url)
                raise

            self._last_message_at = datetime.now(timezone.utc)
            self._message_count += 1

            try:
                message = json.loads(raw_message)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                logger.warning(
                    "websocket_invalid_json",
                    url=self.url,
                    error=str(e),
                    message=str(raw_message)[:100],
                )
                continue

            # Binance combined stream wraps messages in "stream" and "data"
            if isinstance(message, dict) and "stream" in message and "data" in message:
                yield message["data"]
            else:
                yield message

    async def _open(self) -> None:
        """
        Open the connection unless one is already open.

        Raises:
            FeedConnectionError: If the attempt fails or the client was shut
                down while connecting.
        """
        async with self._connect_lock:
            if self.is_connected:
                logger.debug("websocket_already_connected", url=self.url)
                return

            try:
                ws = await websockets.connect(
                    self.url,
                    ping_interval=None,  # We handle pings manually
                    ping_timeout=None,
                    open_timeout=self.open_timeout,
                    close_timeout=10,
                    max_size=2**22,
                )
            except (OSError, asyncio.TimeoutError, WebSocketException) as e:
                logger.error("websocket_connection_failed", url=self.url, error=str(e))
                raise FeedConnectionError(
                    f"Failed to connect to Binance WebSocket: {e}",
                    url=self.url,
                    cause=e,
                ) from e

            if self._shutdown.is_set():
                await self._close_quietly(ws)
                raise FeedConnectionError("Client was shut down while connecting", url=self.url)

            self._ws = ws
            self._connected = True
            self._connected_at = datetime.now(timezone.utc)
            self._ping_task = asyncio.create_task(self._send_pings(ws))

            logger.info(
                "websocket_connected",
                url=self.url,
                reconnect_count=self._reconnect_count,
            )

    async def _wait_reconnect_delay(self) -> bool:
        """
        Wait the fixed reconnect delay, abandoning it on shutdown.

        Returns:
            bool: True if a reconnection attempt should follow.
        """
        self._reconnecting = True
        logger.info(
            "websocket_reconnecting",
            url=self.url,
            attempt=self._reconnect_count + 1,
            delay_seconds=self.reconnect_delay,
        )
        try:
            await asyncio.wait_for(self._shutdown.wait(), timeout=self.reconnect_delay)
        except asyncio.TimeoutError:
            return True
        finally:
            self._reconnecting = False

        logger.info("websocket_reconnect_abandoned", url=self.url)
        return False

    async def _drop_connection(self) -> None:
        """Tear down the current connection, if any."""
        self._connected = False
        self._connected_at = None

        task = self._ping_task
        self._ping_task = None
        if task and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        ws = self._ws
        self._ws = None
        if ws is not None:
            await self._close_quietly(ws)

    async def _close_quietly(self, ws: ClientConnection) -> None:
        try:
            await ws.close()
        except (WebSocketException, OSError) as e:
            logger.warning("websocket_close_error", url=self.url, error=str(e))

    async def _send_pings(self, ws: ClientConnection) -> None:
        """
        Send periodic ping messages.

        A pong missing for ping_timeout seconds closes the connection, which
        makes the pending recv() fail and the stream reconnect.
        """
        try:
            while self._ws is ws and self._connected:
                await asyncio.sleep(self.ping_interval)

                try:
                    pong_waiter = await ws.ping()
                    await asyncio.wait_for(pong_waiter, timeout=self.ping_timeout)
                    logger.debug("websocket_ping_success", url=self.url)
                except asyncio.TimeoutError:
                    logger.warning(
                        "websocket_ping_timeout",
                        url=self.url,
                        timeout=self.ping_timeout,
                    )
                    self._connected = False
                    await self._close_quietly(ws)
                    break
                except (ConnectionClosed, WebSocketException, OSError) as e:
                    logger.error("websocket_ping_error", url=self.url, error=str(e))
                    break

        except asyncio.CancelledError:
            logger.debug("websocket_ping_task_cancelled", url=self.url)

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"BinanceWebSocketClient(url={self.url}, "
            f"connected={self.is_connected}, "
            f"reconnects={self._reconnect_count})"
        )
