"""
Pydantic models for application configuration.

This module defines all configuration models that are validated when loading
YAML configuration files. The models provide sensible defaults so that a
minimal configuration directory is enough to run the monitor.

Configuration files:
    - config/feed.yaml: Price feed endpoint and connection settings
    - config/monitor.yaml: History, alerting, storage, API, and logging

Example:
    >>> from pricewatch.config.models import AppConfig
    >>> config = AppConfig()
    >>> config.feed.connection.reconnect_delay_seconds
    5.0
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


# =============================================================================
# ENUMS
# =============================================================================


class LogFormat(str, Enum):
    """Logging format options."""

    JSON = "json"
    TEXT = "text"


class LogLevel(str, Enum):
    """Logging level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class StorageBackend(str, Enum):
    """Persistence gateway implementations."""

    MEMORY = "memory"
    FILE = "file"
    REDIS = "redis"


# =============================================================================
# FEED CONFIGURATION
# =============================================================================


DEFAULT_FEED_URL = "wss://fstream.binance.com/stream?streams=!markPrice@arr@1s"


class FeedConnectionSettings(BaseModel):
    """Connection settings for the price feed."""

    model_config = {"frozen": True, "extra": "forbid"}

    reconnect_delay_seconds: float = Field(
        default=5.0,
        description="Fixed delay before each reconnection attempt",
        ge=0,
        le=300,
    )
    ping_interval_seconds: float = Field(
        default=30.0,
        description="Seconds between heartbeat pings",
        gt=0,
        le=300,
    )
    ping_timeout_seconds: float = Field(
        default=10.0,
        description="Seconds to wait for a pong before dropping the connection",
        gt=0,
        le=120,
    )
    open_timeout_seconds: float = Field(
        default=10.0,
        description="Seconds to wait for the websocket handshake",
        gt=0,
        le=120,
    )


class FeedConfig(BaseModel):
    """Price feed configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    source: str = Field(
        default="binance",
        description="Feed identifier",
        min_length=1,
    )
    url: str = Field(
        default=DEFAULT_FEED_URL,
        description="Websocket URL of the batched price stream",
        min_length=1,
    )
    connection: FeedConnectionSettings = Field(
        default_factory=FeedConnectionSettings,
        description="Connection and reconnection settings",
    )


# =============================================================================
# MONITOR CONFIGURATION
# =============================================================================


class HistoryConfig(BaseModel):
    """Alert history settings."""

    model_config = {"frozen": True, "extra": "forbid"}

    capacity: int = Field(
        default=50,
        description="Maximum number of alert records retained",
        ge=1,
        le=10000,
    )
    display_limit: int = Field(
        default=20,
        description="Number of recent records returned for display by default",
        ge=1,
    )

    @model_validator(mode="after")
    def validate_limits(self) -> "HistoryConfig":
        """Ensure display_limit does not exceed capacity."""
        if self.display_limit > self.capacity:
            raise ValueError(
                f"display_limit ({self.display_limit}) must be <= capacity ({self.capacity})"
            )
        return self


class AlertSettings(BaseModel):
    """Alert lifecycle settings."""

    model_config = {"frozen": True, "extra": "forbid"}

    retrigger_cooldown_seconds: int = Field(
        default=0,
        description="Seconds after an alert during which a re-added watch "
        "for the same symbol cannot trigger (0 disables)",
        ge=0,
    )
    sound: bool = Field(
        default=True,
        description="Whether to ask notification channels to play a sound",
    )
    channel_timeout_seconds: float = Field(
        default=2.0,
        description="Maximum seconds a notification channel or async event "
        "subscriber may take",
        gt=0,
    )


class StorageConfig(BaseModel):
    """Persistence gateway settings."""

    model_config = {"frozen": True, "extra": "forbid"}

    backend: StorageBackend = Field(
        default=StorageBackend.FILE,
        description="Which key/value store to use",
    )
    path: str = Field(
        default="data/pricewatch.json",
        description="JSON document path for the file backend",
        min_length=1,
    )
    key_prefix: str = Field(
        default="pricewatch",
        description="Prefix for all persisted keys",
        min_length=1,
    )


class ApiConfig(BaseModel):
    """Operator API settings."""

    model_config = {"frozen": True, "extra": "forbid"}

    enabled: bool = Field(
        default=True,
        description="Whether to serve the HTTP/websocket operator API",
    )
    host: str = Field(
        default="127.0.0.1",
        description="Host to bind to",
    )
    port: int = Field(
        default=8050,
        description="Port to bind to",
        ge=1,
        le=65535,
    )
    client_send_timeout_seconds: float = Field(
        default=2.0,
        description="Seconds a websocket client may take to accept one message "
        "before it is dropped",
        gt=0,
    )
    client_queue_size: int = Field(
        default=256,
        description="Messages buffered per websocket client before it is dropped",
        ge=1,
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    format: LogFormat = Field(
        default=LogFormat.JSON,
        description="Log output format",
    )
    level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Log level",
    )


# =============================================================================
# CONNECTION CONFIGURATION (from environment)
# =============================================================================


class RedisConnectionConfig(BaseModel):
    """Redis connection configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    url: str = Field(
        default="redis://localhost:6379",
        description="Redis connection URL",
    )
    db: int = Field(
        default=0,
        description="Redis database number",
        ge=0,
    )
    max_connections: int = Field(
        default=10,
        description="Maximum connection pool size",
        ge=1,
    )
    socket_timeout: int = Field(
        default=5,
        description="Socket timeout in seconds",
        ge=1,
    )


# =============================================================================
# ROOT CONFIGURATION
# =============================================================================


class AppConfig(BaseModel):
    """
    Root application configuration.

    Aggregates all configuration sections into a single validated object.

    Example:
        >>> config = load_config("config")
        >>> config.history.capacity
        50
    """

    model_config = {"frozen": True, "extra": "forbid"}

    feed: FeedConfig = Field(
        default_factory=FeedConfig,
        description="Price feed configuration",
    )
    history: HistoryConfig = Field(
        default_factory=HistoryConfig,
        description="Alert history settings",
    )
    alerts: AlertSettings = Field(
        default_factory=AlertSettings,
        description="Alert lifecycle settings",
    )
    storage: StorageConfig = Field(
        default_factory=StorageConfig,
        description="Persistence gateway settings",
    )
    api: ApiConfig = Field(
        default_factory=ApiConfig,
        description="Operator API settings",
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )
    redis: RedisConnectionConfig = Field(
        default_factory=RedisConnectionConfig,
        description="Redis connection config",
    )

    def storage_path(self) -> Optional[str]:
        """Return the file path when the file backend is selected."""
        if self.storage.backend == StorageBackend.FILE:
            return self.storage.path
        return None
