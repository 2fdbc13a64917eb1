"""
Price monitor service entry point.

This service is responsible for:
- Restoring watches and alert history from the key/value store
- Consuming the Binance mark price stream
- Triggering one-shot alerts and dispatching notifications
- Serving the operator API and websocket updates

Usage:
    pricewatch
    python -m pricewatch

Environment Variables:
    CONFIG_PATH: Path to config directory (default: config)
    REDIS_URL: Redis connection URL (default: redis://localhost:6379)
    LOG_LEVEL: Logging level (overrides monitor.yaml)
    STORAGE_BACKEND: memory, file, or redis (overrides monitor.yaml)
"""

import asyncio
import os
import sys
from typing import Dict, List, Optional

import structlog
import uvicorn

from pricewatch import __version__
from pricewatch.adapters.binance.adapter import BinanceMarkPriceFeed
from pricewatch.api.app import create_app
from pricewatch.api.websocket import ConnectionManager, WebSocketChannel
from pricewatch.config.loader import ConfigLoadError, load_config
from pricewatch.config.models import AppConfig
from pricewatch.monitor.channels.console import ConsoleChannel
from pricewatch.monitor.controller import MonitorController, create_controller
from pricewatch.monitor.dispatcher import NotificationChannel
from pricewatch.services.base import ServiceRunner, setup_logging

logger = structlog.get_logger(__name__)


class MonitorService(ServiceRunner):
    """
    Price monitor service.

    Attributes:
        feed: Binance mark price feed.
        controller: Monitor controller.
        server: Uvicorn server for the operator API, if enabled.
        manager: WebSocket connection manager, if the API is enabled.
    """

    def __init__(
        self,
        config_path: str = "config",
        config: Optional[AppConfig] = None,
    ) -> None:
        """Initialize the monitor service."""
        super().__init__(config_path, config)
        self.feed: Optional[BinanceMarkPriceFeed] = None
        self.controller: Optional[MonitorController] = None
        self.server: Optional[uvicorn.Server] = None
        self.manager: Optional[ConnectionManager] = None

    @property
    def service_name(self) -> str:
        """Return service name."""
        return "pricewatch"

    async def _initialize(self) -> None:
        """Wire feed, controller, channels, and API."""
        if self.config is None or self.store is None:
            raise RuntimeError("Service not properly initialized")

        self.feed = BinanceMarkPriceFeed(self.config.feed)

        channels: Dict[str, NotificationChannel] = {"console": ConsoleChannel()}
        if self.config.api.enabled:
            self.manager = ConnectionManager(
                send_timeout_seconds=self.config.api.client_send_timeout_seconds,
                max_queue_size=self.config.api.client_queue_size,
            )
            channels["websocket"] = WebSocketChannel(self.manager)

        self.controller = create_controller(
            self.config,
            self.store,
            feed=self.feed,
            channels=channels,
        )
        await self.controller.start()

        if self.config.api.enabled:
            app = create_app(self.controller, self.manager)
            self.server = uvicorn.Server(
                uvicorn.Config(
                    app,
                    host=self.config.api.host,
                    port=self.config.api.port,
                    log_config=None,
                    lifespan="off",
                )
            )

        self.logger.info(
            "monitor_components_initialized",
            feed_url=self.config.feed.url,
            storage_backend=self.store.backend_name,
            api_enabled=self.config.api.enabled,
            channels=list(channels.keys()),
        )

    async def _run(self) -> None:
        """Run the feed consumer and API server until shutdown."""
        if self.controller is None:
            raise RuntimeError("Service not properly initialized")

        tasks: List[asyncio.Task] = [
            asyncio.create_task(self.controller.run(), name="feed-consumer")
        ]
        if self.server is not None:
            tasks.append(asyncio.create_task(self.server.serve(), name="api-server"))

        shutdown_task = asyncio.create_task(self.shutdown_event.wait(), name="shutdown")
        await asyncio.wait([*tasks, shutdown_task], return_when=asyncio.FIRST_COMPLETED)

        # Stop everything that is still running
        await self.controller.stop()
        if self.server is not None:
            self.server.should_exit = True
        await asyncio.wait(tasks)
        shutdown_task.cancel()

        failures = [
            task for task in tasks if not task.cancelled() and task.exception() is not None
        ]
        for task in failures:
            self.logger.error(
                "service_task_failed",
                task=task.get_name(),
                error=str(task.exception()),
            )
        if failures:
            raise RuntimeError(f"{len(failures)} service task(s) failed")

    async def _cleanup(self) -> None:
        """Drop API clients and log final state."""
        if self.manager is not None:
            await self.manager.close()

        if self.controller is not None:
            self.logger.info(
                "cleanup_state",
                active_watches=len(self.controller.list_watches()),
                history_size=len(self.controller.list_history()),
                storage_degraded=self.controller.storage_degraded,
            )


async def main() -> None:
    """Main entry point."""
    config_path = os.getenv("CONFIG_PATH", "config")

    try:
        config = load_config(config_path)
    except ConfigLoadError as e:
        setup_logging()
        logger.error(
            "config_load_failed",
            config_path=config_path,
            file_path=str(e.file_path) if e.file_path else None,
            error=e.message,
        )
        sys.exit(1)

    setup_logging(config.logging.level.value, config.logging.format.value)

    logger.info(
        "pricewatch_service_starting",
        version=__version__,
        config_path=config_path,
    )

    service = MonitorService(config_path=config_path, config=config)

    try:
        await service.run()
    except Exception as e:
        logger.error("service_failed", error=str(e))
        sys.exit(1)


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
