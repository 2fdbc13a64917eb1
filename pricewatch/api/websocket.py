"""
WebSocket endpoint for real-time monitor updates.

Provides:
    WS /ws/updates - Push updates for the watch list, history, and alerts

Protocol:
    On connect the server sends a snapshot:
    {
        "event_type": "snapshot",
        "watches": [...],
        "history": [...]
    }

    Then pushes every monitor event as it happens:
    {"event_type": "watch_list_changed", "emitted_at": "...", "watches": [...]}
    {"event_type": "history_changed", "emitted_at": "...", "history": [...]}
    {"event_type": "alert", "emitted_at": "...", "record": {...}}

    The websocket notification channel adds presentation cues:
    {"event_type": "notification", "message": "...", "record": {...}}
    {"event_type": "sound"}

    Clients may send {"action": "ping"} and receive {"type": "pong"}.
"""

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, Dict

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from pricewatch.models.alerts import AlertRecord
from pricewatch.models.events import MonitorEvent

logger = structlog.get_logger(__name__)

router = APIRouter()


class ConnectionManager:
    """
    Manages WebSocket connections and message broadcasting.

    Subscribed to the controller's event hub; every event is forwarded to
    all connected clients as JSON. Each client has its own queue drained by
    a writer task, so broadcasting never waits on the network. A client
    whose queue fills up, or that takes longer than send_timeout_seconds to
    accept one message, is dropped.

    Attributes:
        send_timeout_seconds: Maximum time one send to one client may take.
        max_queue_size: Messages buffered per client.
        active_connections: Per-client state keyed by WebSocket.
    """

    def __init__(
        self,
        send_timeout_seconds: float = 2.0,
        max_queue_size: int = 256,
    ) -> None:
        """Initialize the connection manager."""
        self.send_timeout_seconds = send_timeout_seconds
        self.max_queue_size = max_queue_size
        self.active_connections: Dict[WebSocket, Dict[str, Any]] = {}

    async def connect(self, websocket: WebSocket) -> None:
        """
        Accept a new WebSocket connection and start its writer.

        Args:
            websocket: The WebSocket connection to accept.
        """
        await websocket.accept()
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue_size)
        self.active_connections[websocket] = {
            "connected_at": datetime.now(timezone.utc),
            "queue": queue,
            "writer": asyncio.create_task(self._write_loop(websocket, queue)),
        }
        logger.info(
            "api_websocket_connected",
            total_connections=len(self.active_connections),
        )

    def disconnect(self, websocket: WebSocket) -> None:
        """
        Remove a WebSocket connection and stop its writer.

        Args:
            websocket: The WebSocket connection to remove.
        """
        state = self.active_connections.pop(websocket, None)
        if state is None:
            return

        writer: asyncio.Task = state["writer"]
        if writer is not asyncio.current_task():
            writer.cancel()

        logger.info(
            "api_websocket_disconnected",
            total_connections=len(self.active_connections),
        )

    def send(self, websocket: WebSocket, message: Dict[str, Any]) -> bool:
        """
        Queue a message for one client.

        Args:
            websocket: Target connection.
            message: JSON-compatible message.

        Returns:
            bool: False if the client is unknown or was dropped.
        """
        state = self.active_connections.get(websocket)
        if state is None:
            return False

        try:
            state["queue"].put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(
                "api_websocket_queue_full",
                max_queue_size=self.max_queue_size,
            )
            self.disconnect(websocket)
            return False
        return True

    def broadcast(self, message: Dict[str, Any]) -> None:
        """
        Queue a message for every connected client.

        Args:
            message: JSON-compatible message.
        """
        for websocket in list(self.active_connections):
            self.send(websocket, message)

    async def handle_event(self, event: MonitorEvent) -> None:
        """Event hub subscriber: forward a monitor event."""
        if not self.active_connections:
            return
        self.broadcast(event.model_dump(mode="json"))

    async def close(self) -> None:
        """Drop every client and wait for the writers to stop."""
        writers = [state["writer"] for state in self.active_connections.values()]
        for websocket in list(self.active_connections):
            self.disconnect(websocket)
        if writers:
            await asyncio.gather(*writers, return_exceptions=True)

    async def _write_loop(self, websocket: WebSocket, queue: asyncio.Queue) -> None:
        """Send queued messages to one client until a send fails or stalls."""
        while True:
            message = await queue.get()
            try:
                await asyncio.wait_for(
                    websocket.send_json(message),
                    timeout=self.send_timeout_seconds,
                )
            except asyncio.TimeoutError:
                logger.warning(
                    "api_websocket_send_timeout",
                    timeout_seconds=self.send_timeout_seconds,
                )
                break
            except Exception as e:
                logger.warning(
                    "api_websocket_send_failed",
                    error=str(e),
                )
                break

        self.disconnect(websocket)


class WebSocketChannel:
    """
    Notification channel that pushes presentation cues to API clients.

    Example:
        >>> dispatcher.add_channel("websocket", WebSocketChannel(manager))
    """

    def __init__(self, manager: ConnectionManager) -> None:
        self.manager = manager

    async def present(self, record: AlertRecord) -> None:
        self.manager.broadcast(
            {
                "event_type": "notification",
                "message": record.message,
                "record": record.model_dump(mode="json"),
            }
        )

    async def play_sound(self) -> None:
        self.manager.broadcast({"event_type": "sound"})


@router.websocket("/ws/updates")
async def websocket_updates(websocket: WebSocket) -> None:
    """
    WebSocket endpoint for real-time updates.

    Protocol:
        1. Client connects to /ws/updates
        2. Server sends a snapshot of watches and history
        3. Server pushes each monitor event as it happens
        4. Client may send {"action": "ping"} at any time

    Args:
        websocket: The WebSocket connection.
    """
    manager: ConnectionManager = websocket.app.state.ws_manager
    controller = websocket.app.state.controller

    await manager.connect(websocket)

    try:
        # All sends go through the client's queue; the snapshot is queued
        # before any event can be.
        manager.send(
            websocket,
            {
                "event_type": "snapshot",
                "watches": [w.model_dump(mode="json") for w in controller.list_watches()],
                "history": [
                    r.model_dump(mode="json")
                    for r in controller.list_history(controller.display_limit)
                ],
            },
        )

        while True:
            data = await websocket.receive_text()

            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                manager.send(websocket, {"type": "error", "message": "Invalid JSON"})
                continue

            if isinstance(message, dict) and message.get("action") == "ping":
                manager.send(websocket, {"type": "pong"})

    except WebSocketDisconnect:
        manager.disconnect(websocket)
    except Exception as e:
        logger.error("api_websocket_error", error=str(e))
        manager.disconnect(websocket)
