# ==============================================
# Tests for the StoreClient
# ==============================================

import pymysql
import pytest

from mqtt2clickhouse.config import StoreConfig
from mqtt2clickhouse.errors import StoreError
from mqtt2clickhouse.storage import StoreClient


class FakeCursor:
    def __init__(self, connection):
        self.connection = connection

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False

    def execute(self, query, params=None):
        self.connection.queries.append((query, params))
        if self.connection.error is not None:
            raise self.connection.error
        return len(self.connection.result)

    def fetchall(self):
        return tuple(self.connection.result)


class FakeConnection:
    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.queries = []
        self.result = []
        self.error = None
        self.closed = False

    def cursor(self):
        return FakeCursor(self)

    def close(self):
        self.closed = True


@pytest.fixture
def connection(monkeypatch):
    holder = {}

    def fake_connect(**kwargs):
        holder["connection"] = FakeConnection(**kwargs)
        return holder["connection"]

    monkeypatch.setattr(pymysql, "connect", fake_connect)
    return holder


@pytest.fixture
def client(connection):
    store = StoreClient.from_config(StoreConfig(host="ch", port=9004))
    store.connect()
    return store


def test_connect_uses_config(client, connection):
    kwargs = connection["connection"].kwargs
    assert kwargs["host"] == "ch"
    assert kwargs["port"] == 9004
    assert kwargs["autocommit"] is True
    assert client.is_connected


def test_connect_failure_wrapped(monkeypatch):
    def refuse(**kwargs):
        raise pymysql.err.OperationalError(2003, "Can't connect")

    monkeypatch.setattr(pymysql, "connect", refuse)
    store = StoreClient("ch", 9004, "default", "", "default")

    with pytest.raises(StoreError) as excinfo:
        store.connect()
    assert excinfo.value.code == 2003
    assert not store.is_connected


def test_execute_passes_params(client, connection):
    client.execute("INSERT INTO `t` (`v`) VALUES (%s)", (1.5,))
    assert connection["connection"].queries == [("INSERT INTO `t` (`v`) VALUES (%s)", (1.5,))]


def test_query_error_keeps_server_code(client, connection):
    connection["connection"].error = pymysql.err.OperationalError(57, "Table default.t already exists")
    with pytest.raises(StoreError) as excinfo:
        client.execute("CREATE TABLE IF NOT EXISTS `t` (`v` Float64) ENGINE = Memory")
    assert excinfo.value.code == 57
    assert excinfo.value.is_table_exists()


def test_catalog_queries(client, connection):
    conn = connection["connection"]
    conn.result = [("temp_out",), ("humidity",)]
    assert client.list_tables() == ["temp_out", "humidity"]

    conn.result = [("client", "String", "", "", "", "", ""), ("value", "Float64", "", "", "", "", "")]
    assert client.describe_table("temp_out") == [("client", "String"), ("value", "Float64")]
    assert conn.queries[-1] == ("DESCRIBE TABLE `temp_out`", None)


def test_not_connected():
    store = StoreClient("ch", 9004, "default", "", "default")
    with pytest.raises(StoreError, match="Not connected"):
        store.execute("SELECT 1")


def test_disconnect_closes(client, connection):
    client.disconnect()
    assert connection["connection"].closed
    assert not client.is_connected
