"""
Configuration management for the price monitor.

Configuration is loaded from YAML files in the config/ directory and
validated with Pydantic models:
    - feed.yaml: Price feed endpoint and connection settings
    - monitor.yaml: History, alerting, storage, API, and logging

Environment variables can override selected settings:
    - REDIS_URL: Redis connection URL
    - LOG_LEVEL: Application log level
    - STORAGE_BACKEND: Persistence backend (memory, file, redis)

Example:
    >>> from pricewatch.config import load_config
    >>> config = load_config()
    >>> config.history.capacity
    50
"""

from pricewatch.config.loader import ConfigLoadError, ConfigLoader, load_config
from pricewatch.config.models import (
    # Enums
    LogFormat,
    LogLevel,
    StorageBackend,
    # Feed config
    FeedConfig,
    FeedConnectionSettings,
    # Monitor config
    AlertSettings,
    ApiConfig,
    HistoryConfig,
    LoggingConfig,
    StorageConfig,
    # Connection config
    RedisConnectionConfig,
    # Root config
    AppConfig,
)

__all__: list[str] = [
    # Loader
    "load_config",
    "ConfigLoader",
    "ConfigLoadError",
    # Enums
    "LogFormat",
    "LogLevel",
    "StorageBackend",
    # Feed config
    "FeedConfig",
    "FeedConnectionSettings",
    # Monitor config
    "HistoryConfig",
    "AlertSettings",
    "StorageConfig",
    "ApiConfig",
    "LoggingConfig",
    # Connection config
    "RedisConnectionConfig",
    # Root config
    "AppConfig",
]
