"""
Service runner base class and logging setup.

A service loads configuration, opens the key/value store, then runs its
main loop until SIGINT/SIGTERM sets the shutdown event. Cleanup always runs.

Subclasses implement:
    - service_name: Name used in logs
    - _initialize(): Build components once config and store are ready
    - _run(): Main loop; return when shutdown_event is set
    - _cleanup(): Optional service-specific teardown
"""

import asyncio
import logging
import signal
from abc import ABC, abstractmethod
from typing import Optional

import structlog

from pricewatch.config.loader import load_config
from pricewatch.config.models import AppConfig
from pricewatch.storage.base import KeyValueStore, StorageError
from pricewatch.storage.factory import create_store


def setup_logging(level: str = "INFO", log_format: str = "json") -> None:
    """
    Configure structured logging.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: "json" for JSON lines, "text" for a console renderer.
    """
    renderer = (
        structlog.dev.ConsoleRenderer()
        if log_format == "text"
        else structlog.processors.JSONRenderer()
    )

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Configure standard logging
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
    )
    logging.getLogger().setLevel(getattr(logging, level.upper(), logging.INFO))

    # Reduce noise from uvicorn access logs and websocket frames
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("websockets").setLevel(logging.WARNING)


class ServiceRunner(ABC):
    """
    Base class for long-running services.

    Attributes:
        config_path: Configuration directory.
        config: Loaded configuration.
        store: Key/value store, connected if reachable.
        shutdown_event: Set when the service should stop.
        logger: Logger bound to the service name.
    """

    def __init__(
        self,
        config_path: str = "config",
        config: Optional[AppConfig] = None,
    ) -> None:
        self.config_path = config_path
        self.config: Optional[AppConfig] = config
        self.store: Optional[KeyValueStore] = None
        self.shutdown_event = asyncio.Event()
        self.logger = structlog.get_logger(self.service_name)

    @property
    @abstractmethod
    def service_name(self) -> str:
        """Return service name."""
        ...

    @abstractmethod
    async def _initialize(self) -> None:
        """Build service components."""
        ...

    @abstractmethod
    async def _run(self) -> None:
        """Main service loop."""
        ...

    async def _cleanup(self) -> None:
        """Service-specific cleanup."""
        return None

    def request_shutdown(self) -> None:
        """Ask the service to stop."""
        if not self.shutdown_event.is_set():
            self.logger.info("shutdown_requested", service=self.service_name)
        self.shutdown_event.set()

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.request_shutdown)
            except (NotImplementedError, RuntimeError):
                # Not supported on this platform or outside the main thread
                self.logger.debug("signal_handler_unavailable", signal=sig.name)

    async def _connect_store(self) -> None:
        """
        Create and connect the configured store.

        An unreachable store is kept unconnected: every read and write then
        fails, and the monitor runs in memory-only mode.
        """
        if self.config is None:
            raise RuntimeError("Configuration not loaded")
        self.store = create_store(self.config.storage, self.config.redis)
        try:
            await self.store.connect()
        except StorageError as e:
            self.logger.error(
                "storage_unavailable",
                backend=self.store.backend_name,
                error=str(e),
                message="Running in memory-only mode",
            )

    async def run(self) -> None:
        """
        Run the service until shutdown.

        Raises:
            ConfigLoadError: If configuration is missing or invalid.
        """
        if self.config is None:
            self.config = load_config(self.config_path)

        self._install_signal_handlers()
        await self._connect_store()

        self.logger.info("service_starting", service=self.service_name)
        try:
            await self._initialize()
            await self._run()
        finally:
            try:
                await self._cleanup()
            finally:
                if self.store is not None:
                    await self.store.disconnect()
                self.logger.info("service_stopped", service=self.service_name)
