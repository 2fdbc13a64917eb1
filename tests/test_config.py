"""Tests for YAML configuration loading."""

from pathlib import Path

import pytest

from pricewatch.config import (
    AppConfig,
    ConfigLoadError,
    ConfigLoader,
    LogFormat,
    LogLevel,
    StorageBackend,
    load_config,
)
from pricewatch.config.models import DEFAULT_FEED_URL, HistoryConfig

REPO_CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"

FEED_YAML = """
feed:
  source: binance
  url: "wss://example.test/stream"
  connection:
    reconnect_delay_seconds: 2
    ping_interval_seconds: 15
"""

MONITOR_YAML = """
history:
  capacity: 30
  display_limit: 10
alerts:
  retrigger_cooldown_seconds: 60
  sound: false
storage:
  backend: memory
  key_prefix: test
api:
  enabled: false
  port: 9000
  client_send_timeout_seconds: 0.5
  client_queue_size: 16
logging:
  format: text
  level: debug
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("REDIS_URL", "LOG_LEVEL", "STORAGE_BACKEND"):
        monkeypatch.delenv(name, raising=False)


def write_config(directory: Path, feed: str = FEED_YAML, monitor: str = MONITOR_YAML) -> Path:
    (directory / "feed.yaml").write_text(feed)
    (directory / "monitor.yaml").write_text(monitor)
    return directory


class TestDefaults:
    def test_app_config_defaults(self):
        config = AppConfig()
        assert config.feed.url == DEFAULT_FEED_URL
        assert config.feed.connection.reconnect_delay_seconds == 5.0
        assert config.history.capacity == 50
        assert config.history.display_limit == 20
        assert config.alerts.retrigger_cooldown_seconds == 0
        assert config.storage.backend == StorageBackend.FILE
        assert config.storage_path() == "data/pricewatch.json"
        assert config.api.client_send_timeout_seconds == 2.0
        assert config.api.client_queue_size == 256

    def test_display_limit_bounded_by_capacity(self):
        with pytest.raises(ValueError):
            HistoryConfig(capacity=5, display_limit=10)

    def test_repository_config_loads(self):
        config = load_config(REPO_CONFIG_DIR)
        assert config.feed.url == DEFAULT_FEED_URL
        assert config.history.capacity == 50
        assert config.api.port == 8050


class TestLoader:
    def test_load_values(self, tmp_path):
        config = load_config(write_config(tmp_path))

        assert config.feed.url == "wss://example.test/stream"
        assert config.feed.connection.reconnect_delay_seconds == 2
        assert config.feed.connection.ping_interval_seconds == 15
        assert config.feed.connection.ping_timeout_seconds == 10
        assert config.history.capacity == 30
        assert config.history.display_limit == 10
        assert config.alerts.retrigger_cooldown_seconds == 60
        assert config.alerts.sound is False
        assert config.storage.backend == StorageBackend.MEMORY
        assert config.storage.key_prefix == "test"
        assert config.storage_path() is None
        assert config.api.enabled is False
        assert config.api.port == 9000
        assert config.api.client_send_timeout_seconds == 0.5
        assert config.api.client_queue_size == 16
        assert config.logging.format == LogFormat.TEXT
        assert config.logging.level == LogLevel.DEBUG

    def test_minimal_files_use_defaults(self, tmp_path):
        config = load_config(write_config(tmp_path, feed="feed: {}\n", monitor="history: {}\n"))

        assert config.feed.url == DEFAULT_FEED_URL
        assert config.history.capacity == 50
        assert config.storage.backend == StorageBackend.FILE

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ConfigLoadError):
            ConfigLoader(tmp_path / "missing")

    def test_missing_file(self, tmp_path):
        (tmp_path / "feed.yaml").write_text(FEED_YAML)
        with pytest.raises(ConfigLoadError) as exc_info:
            load_config(tmp_path)
        assert exc_info.value.file_path == tmp_path / "monitor.yaml"

    def test_invalid_yaml(self, tmp_path):
        write_config(tmp_path, feed="feed: [unclosed\n")
        with pytest.raises(ConfigLoadError) as exc_info:
            load_config(tmp_path)
        assert exc_info.value.cause is not None

    def test_empty_file(self, tmp_path):
        write_config(tmp_path, monitor="")
        with pytest.raises(ConfigLoadError):
            load_config(tmp_path)

    def test_invalid_values(self, tmp_path):
        write_config(tmp_path, monitor="history:\n  capacity: 5\n  display_limit: 10\n")
        with pytest.raises(ConfigLoadError):
            load_config(tmp_path)

    def test_negative_reconnect_delay(self, tmp_path):
        write_config(
            tmp_path,
            feed="feed:\n  connection:\n    reconnect_delay_seconds: -1\n",
        )
        with pytest.raises(ConfigLoadError):
            load_config(tmp_path)


class TestEnvironmentOverrides:
    def test_storage_backend(self, tmp_path, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "redis")
        config = load_config(write_config(tmp_path))
        assert config.storage.backend == StorageBackend.REDIS

    def test_unknown_storage_backend(self, tmp_path, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "postgres")
        with pytest.raises(ConfigLoadError):
            load_config(write_config(tmp_path))

    def test_log_level(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warning")
        config = load_config(write_config(tmp_path))
        assert config.logging.level == LogLevel.WARNING

    def test_unknown_log_level_falls_back_to_info(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        config = load_config(write_config(tmp_path))
        assert config.logging.level == LogLevel.INFO

    def test_redis_url(self, tmp_path, monkeypatch):
        monkeypatch.setenv("REDIS_URL", "redis://cache:6380")
        config = load_config(write_config(tmp_path))
        assert config.redis.url == "redis://cache:6380"
