# ==============================================
# Tests for Configuration Management
# ==============================================

import pytest

from mqtt2clickhouse.config import load_config

ENV_VARS = [
    "CLICKHOUSE_HOST",
    "CLICKHOUSE_MYSQL_PORT",
    "CLICKHOUSE_USER",
    "CLICKHOUSE_PASSWORD",
    "CLICKHOUSE_DATABASE",
    "CLICKHOUSE_CONNECT_TIMEOUT",
    "CLICKHOUSE_TABLE_ENGINE",
    "INGEST_QUEUE_SIZE",
    "INGEST_SUBMIT_TIMEOUT_SECONDS",
    "INGEST_POLL_INTERVAL_SECONDS",
    "INGEST_NUMBERS_AS_FLOAT",
    "DATA_STREAM_URL",
    "SOURCE_POLL_INTERVAL_SECONDS",
    "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch):
    # setenv first so teardown also removes what load_dotenv writes
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch


def test_defaults(clean_env, tmp_path):
    config = load_config(tmp_path / ".env")

    assert config.store.host == "localhost"
    assert config.store.port == 9004
    assert config.store.table_engine == "Memory"
    assert config.ingest.queue_size == 300
    assert config.ingest.numbers_as_float is True
    assert config.log_level == "INFO"


def test_environment_overrides(clean_env, tmp_path):
    clean_env.setenv("CLICKHOUSE_HOST", "clickhouse")
    clean_env.setenv("CLICKHOUSE_MYSQL_PORT", "19004")
    clean_env.setenv("INGEST_QUEUE_SIZE", "5")
    clean_env.setenv("INGEST_NUMBERS_AS_FLOAT", "false")
    clean_env.setenv("LOG_LEVEL", "debug")

    config = load_config(tmp_path / ".env")

    assert config.store.host == "clickhouse"
    assert config.store.port == 19004
    assert config.ingest.queue_size == 5
    assert config.ingest.numbers_as_float is False
    assert config.log_level == "DEBUG"


def test_dotenv_file_is_read(clean_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("CLICKHOUSE_DATABASE=telemetry\nINGEST_SUBMIT_TIMEOUT_SECONDS=2.5\n")

    config = load_config(env_file)

    assert config.store.database == "telemetry"
    assert config.ingest.submit_timeout_seconds == 2.5
