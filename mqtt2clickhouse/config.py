# ==============================================
# Configuration Management
# ==============================================
#
# PURPOSE:
#   Load and validate all configuration from environment
#   variables / .env file. Provides typed config objects
#   to all other modules.
#
# CLASSES:
# --------
# - StoreConfig (dataclass)
#     host: str              (default "localhost")
#     port: int              (default 9004, ClickHouse MySQL interface)
#     user: str              (default "default")
#     password: str          (default "")
#     database: str          (default "default")
#     connect_timeout: int   (default 10)
#     table_engine: str      (default "Memory")
#
# - IngestConfig (dataclass)
#     queue_size: int                 (default 300)
#     submit_timeout_seconds: float   (default 1.0)
#     poll_interval_seconds: float    (default 0.5)
#     numbers_as_float: bool          (default True)
#
# - SourceConfig (dataclass)
#     data_stream_url: str            (default "http://127.0.0.1:8000/messages")
#     poll_interval_seconds: float    (default 0.1)
#
# - AppConfig (dataclass)
#     store: StoreConfig
#     ingest: IngestConfig
#     source: SourceConfig
#     log_level: str                  (default "INFO")
#
# FUNCTIONS:
# ----------
# - load_config() -> AppConfig
#     Load .env using python-dotenv, construct a fresh AppConfig.
#
# - get_config() -> AppConfig
#     Same as load_config(), but returns a singleton on repeated calls.
#
# USAGE:
# ------
#   from mqtt2clickhouse.config import get_config
#   config = get_config()
#   print(config.store.host)
#   print(config.ingest.queue_size)
#
# ==============================================

import os
from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path

from dotenv import load_dotenv


_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class StoreConfig:
    """ClickHouse connection configuration (MySQL wire protocol)."""
    host: str = "localhost"
    port: int = 9004
    user: str = "default"
    password: str = ""
    database: str = "default"
    connect_timeout: int = 10
    table_engine: str = "Memory"


@dataclass
class IngestConfig:
    """Consumer loop and record builder settings."""
    queue_size: int = 300
    submit_timeout_seconds: float = 1.0
    poll_interval_seconds: float = 0.5
    numbers_as_float: bool = True


@dataclass
class SourceConfig:
    """Settings for the message sources that feed the queue."""
    data_stream_url: str = "http://127.0.0.1:8000/messages"
    poll_interval_seconds: float = 0.1


@dataclass
class AppConfig:
    """Main application configuration."""
    store: StoreConfig = field(default_factory=StoreConfig)
    ingest: IngestConfig = field(default_factory=IngestConfig)
    source: SourceConfig = field(default_factory=SourceConfig)
    log_level: str = "INFO"


# Singleton instance
_config_instance: Optional[AppConfig] = None


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUE_VALUES


def load_config(env_path: Optional[Path] = None) -> AppConfig:
    """
    Build configuration from environment variables / .env file.

    Args:
        env_path: Optional .env location. Defaults to the project root.

    Returns:
        AppConfig: A freshly constructed configuration
    """
    if env_path is None:
        env_path = Path(__file__).parent.parent / ".env"
    load_dotenv(dotenv_path=env_path)

    store_config = StoreConfig(
        host=os.getenv("CLICKHOUSE_HOST", "localhost"),
        port=int(os.getenv("CLICKHOUSE_MYSQL_PORT", "9004")),
        user=os.getenv("CLICKHOUSE_USER", "default"),
        password=os.getenv("CLICKHOUSE_PASSWORD", ""),
        database=os.getenv("CLICKHOUSE_DATABASE", "default"),
        connect_timeout=int(os.getenv("CLICKHOUSE_CONNECT_TIMEOUT", "10")),
        table_engine=os.getenv("CLICKHOUSE_TABLE_ENGINE", "Memory"),
    )

    ingest_config = IngestConfig(
        queue_size=int(os.getenv("INGEST_QUEUE_SIZE", "300")),
        submit_timeout_seconds=float(os.getenv("INGEST_SUBMIT_TIMEOUT_SECONDS", "1.0")),
        poll_interval_seconds=float(os.getenv("INGEST_POLL_INTERVAL_SECONDS", "0.5")),
        numbers_as_float=_env_bool("INGEST_NUMBERS_AS_FLOAT", True),
    )

    source_config = SourceConfig(
        data_stream_url=os.getenv("DATA_STREAM_URL", "http://127.0.0.1:8000/messages"),
        poll_interval_seconds=float(os.getenv("SOURCE_POLL_INTERVAL_SECONDS", "0.1")),
    )

    return AppConfig(
        store=store_config,
        ingest=ingest_config,
        source=source_config,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def get_config() -> AppConfig:
    """
    Load configuration from environment variables / .env file.
    Returns the same singleton instance on repeated calls.

    Returns:
        AppConfig: Application configuration
    """
    global _config_instance

    if _config_instance is not None:
        return _config_instance

    _config_instance = load_config()
    return _config_instance
