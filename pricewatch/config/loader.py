"""
Configuration loader for YAML-based application configuration.

This module loads and validates configuration from YAML files. All
configuration is validated using Pydantic models so that mistakes surface at
start-up instead of in the middle of a trading session.

Configuration files expected:
    - config/feed.yaml: Price feed endpoint and connection settings
    - config/monitor.yaml: History, alerting, storage, API, and logging

Environment variables override:
    - REDIS_URL: Redis connection URL
    - LOG_LEVEL: Application log level
    - STORAGE_BACKEND: Persistence backend (memory, file, redis)

Example:
    >>> from pricewatch.config.loader import load_config
    >>> config = load_config("config")
    >>> config.feed.connection.reconnect_delay_seconds
    5.0
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from pricewatch.config.models import (
    AlertSettings,
    ApiConfig,
    AppConfig,
    FeedConfig,
    FeedConnectionSettings,
    HistoryConfig,
    LoggingConfig,
    LogLevel,
    RedisConnectionConfig,
    StorageBackend,
    StorageConfig,
)
from pricewatch.exceptions import PriceWatchError


class ConfigLoadError(PriceWatchError):
    """
    Raised when configuration loading fails.

    Attributes:
        message: Error message describing what went wrong.
        file_path: Path to the file that caused the error, if applicable.
        cause: Original exception that caused the error, if any.
    """

    def __init__(
        self,
        message: str,
        file_path: Optional[Path] = None,
        cause: Optional[Exception] = None,
    ):
        self.message = message
        self.file_path = file_path
        self.cause = cause
        super().__init__(message)


class ConfigLoader:
    """
    Loads and validates application configuration from YAML files.

    Expects the following directory structure:
        config/
        ├── feed.yaml     - Price feed endpoint and connection settings
        └── monitor.yaml  - History, alerts, storage, API, logging

    Example:
        >>> loader = ConfigLoader("config")
        >>> config = loader.load()
        >>> config.storage.backend
        <StorageBackend.FILE: 'file'>
    """

    def __init__(self, config_dir: Path | str = "config"):
        """
        Initialize config loader.

        Args:
            config_dir: Path to configuration directory (default: 'config').

        Raises:
            ConfigLoadError: If config directory does not exist.
        """
        self.config_dir = Path(config_dir)
        if not self.config_dir.exists():
            raise ConfigLoadError(
                f"Configuration directory not found: {self.config_dir}",
                file_path=self.config_dir,
            )
        if not self.config_dir.is_dir():
            raise ConfigLoadError(
                f"Configuration path is not a directory: {self.config_dir}",
                file_path=self.config_dir,
            )

    def _load_yaml(self, filename: str) -> Dict[str, Any]:
        """
        Load a YAML file from the config directory.

        Args:
            filename: Name of YAML file (e.g., 'feed.yaml').

        Returns:
            Dict containing parsed YAML content.

        Raises:
            ConfigLoadError: If file not found, empty, or invalid YAML.
        """
        file_path = self.config_dir / filename
        if not file_path.exists():
            raise ConfigLoadError(
                f"Configuration file not found: {file_path}",
                file_path=file_path,
            )

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigLoadError(
                f"Invalid YAML syntax in {file_path}: {e}",
                file_path=file_path,
                cause=e,
            ) from e
        except OSError as e:
            raise ConfigLoadError(
                f"Error reading {file_path}: {e}",
                file_path=file_path,
                cause=e,
            ) from e

        if data is None:
            raise ConfigLoadError(
                f"Configuration file is empty: {file_path}",
                file_path=file_path,
            )
        if not isinstance(data, dict):
            raise ConfigLoadError(
                f"Configuration file must contain a mapping: {file_path}",
                file_path=file_path,
            )
        return data

    def _load_feed(self) -> FeedConfig:
        """
        Load feed configuration from feed.yaml.

        Returns:
            FeedConfig object.

        Raises:
            ConfigLoadError: If validation fails.
        """
        data = self._load_yaml("feed.yaml")

        try:
            feed_data = data.get("feed", {}) or {}
            conn_data = feed_data.get("connection", {}) or {}

            connection = FeedConnectionSettings(
                reconnect_delay_seconds=conn_data.get("reconnect_delay_seconds", 5),
                ping_interval_seconds=conn_data.get("ping_interval_seconds", 30),
                ping_timeout_seconds=conn_data.get("ping_timeout_seconds", 10),
                open_timeout_seconds=conn_data.get("open_timeout_seconds", 10),
            )

            defaults = FeedConfig()
            return FeedConfig(
                source=feed_data.get("source", defaults.source),
                url=feed_data.get("url", defaults.url),
                connection=connection,
            )

        except ValidationError as e:
            raise ConfigLoadError(
                f"Invalid feed configuration: {e}",
                file_path=self.config_dir / "feed.yaml",
                cause=e,
            ) from e

    def _load_monitor(self) -> Dict[str, Any]:
        """
        Load monitor settings from monitor.yaml.

        Returns:
            Dict of validated section models keyed by AppConfig field name.

        Raises:
            ConfigLoadError: If validation fails.
        """
        data = self._load_yaml("monitor.yaml")

        try:
            history_data = data.get("history", {}) or {}
            history = HistoryConfig(
                capacity=history_data.get("capacity", 50),
                display_limit=history_data.get("display_limit", 20),
            )

            alerts_data = data.get("alerts", {}) or {}
            alerts = AlertSettings(
                retrigger_cooldown_seconds=alerts_data.get(
                    "retrigger_cooldown_seconds", 0
                ),
                sound=alerts_data.get("sound", True),
                channel_timeout_seconds=alerts_data.get("channel_timeout_seconds", 2.0),
            )

            storage_data = data.get("storage", {}) or {}
            storage = StorageConfig(
                backend=self._get_storage_backend(
                    storage_data.get("backend", StorageBackend.FILE.value)
                ),
                path=storage_data.get("path", "data/pricewatch.json"),
                key_prefix=storage_data.get("key_prefix", "pricewatch"),
            )

            api_data = data.get("api", {}) or {}
            api = ApiConfig(
                enabled=api_data.get("enabled", True),
                host=api_data.get("host", "127.0.0.1"),
                port=api_data.get("port", 8050),
                client_send_timeout_seconds=api_data.get(
                    "client_send_timeout_seconds", 2.0
                ),
                client_queue_size=api_data.get("client_queue_size", 256),
            )

            logging_data = data.get("logging", {}) or {}
            logging_config = LoggingConfig(
                format=logging_data.get("format", "json"),
                level=self._get_log_level(logging_data.get("level", "INFO")),
            )

            return {
                "history": history,
                "alerts": alerts,
                "storage": storage,
                "api": api,
                "logging": logging_config,
            }

        except ValidationError as e:
            raise ConfigLoadError(
                f"Invalid monitor configuration: {e}",
                file_path=self.config_dir / "monitor.yaml",
                cause=e,
            ) from e

    def _load_redis_connection(self) -> RedisConnectionConfig:
        """
        Load Redis connection configuration from environment.

        Environment variables:
            - REDIS_URL: Redis connection URL (default: redis://localhost:6379)

        Returns:
            RedisConnectionConfig object.
        """
        redis_url = os.getenv("REDIS_URL", "redis://localhost:6379")
        return RedisConnectionConfig(url=redis_url)

    def _get_log_level(self, configured: str) -> LogLevel:
        """
        Resolve the log level, letting LOG_LEVEL override the file.

        Args:
            configured: Level from monitor.yaml.

        Returns:
            LogLevel enum value, INFO if the value is unknown.
        """
        level_str = os.getenv("LOG_LEVEL", str(configured)).upper()
        try:
            return LogLevel(level_str)
        except ValueError:
            return LogLevel.INFO

    def _get_storage_backend(self, configured: str) -> StorageBackend:
        """
        Resolve the storage backend, letting STORAGE_BACKEND override the file.

        Args:
            configured: Backend from monitor.yaml.

        Returns:
            StorageBackend enum value.

        Raises:
            ConfigLoadError: If the backend name is unknown.
        """
        backend_str = os.getenv("STORAGE_BACKEND", str(configured)).lower()
        try:
            return StorageBackend(backend_str)
        except ValueError as e:
            raise ConfigLoadError(
                f"Unknown storage backend: {backend_str}",
                file_path=self.config_dir / "monitor.yaml",
                cause=e,
            ) from e

    def load(self) -> AppConfig:
        """
        Load and validate all configuration files.

        Returns:
            AppConfig: Validated application configuration.

        Raises:
            ConfigLoadError: If any configuration is invalid or missing.
        """
        try:
            feed = self._load_feed()
            monitor = self._load_monitor()
            redis = self._load_redis_connection()

            return AppConfig(
                feed=feed,
                redis=redis,
                **monitor,
            )

        except ConfigLoadError:
            raise
        except ValidationError as e:
            raise ConfigLoadError(
                f"Configuration validation failed: {e}",
                cause=e,
            ) from e


def load_config(config_dir: Path | str = "config") -> AppConfig:
    """
    Convenience function to load application configuration.

    Args:
        config_dir: Path to configuration directory (default: 'config').

    Returns:
        AppConfig: Validated application configuration.

    Raises:
        ConfigLoadError: If configuration loading fails.

    Example:
        >>> from pricewatch.config import load_config
        >>> config = load_config()
        >>> print(config.feed.url)
    """
    loader = ConfigLoader(config_dir)
    return loader.load()
