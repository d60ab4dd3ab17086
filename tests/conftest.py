# ==============================================
# Pytest Configuration and Fixtures
# ==============================================
#
# Shared fixtures for all tests. The store is an in-memory fake
# that understands just enough SQL (CREATE TABLE IF NOT EXISTS,
# INSERT INTO) to stand in for ClickHouse.
# ==============================================

import re
import threading

import pytest

from mqtt2clickhouse.errors import StoreError
from mqtt2clickhouse.registry.schema_registry import SchemaRegistry
from mqtt2clickhouse.schema.types import ColumnDescriptor, ColumnType
from mqtt2clickhouse.storage.table_manager import TableManager
from mqtt2clickhouse.storage.writer import RecordWriter

CREATE_PATTERN = re.compile(r"^CREATE TABLE IF NOT EXISTS `(\w+)` \((.*)\) ENGINE = (\w+)$")
INSERT_PATTERN = re.compile(r"^INSERT INTO `(\w+)` \((.*)\) VALUES \((.*)\)$")


class FakeStore:
    """In-memory stand-in for StoreClient."""

    def __init__(self, tables=None):
        # table name -> list of (column, store_type)
        self.tables = {name: list(columns) for name, columns in (tables or {}).items()}
        self.rows = {}
        self.executed = []
        self.fail_on = {}
        self.create_calls = 0
        self._lock = threading.Lock()

    def execute(self, query, params=None):
        with self._lock:
            self.executed.append((query, params))
            for fragment, error in self.fail_on.items():
                if fragment in query:
                    raise error

            create = CREATE_PATTERN.match(query)
            if create:
                self.create_calls += 1
                name = create.group(1)
                if name not in self.tables:
                    columns = []
                    for part in create.group(2).split(", "):
                        column, store_type = part.split(" ", 1)
                        columns.append((column.strip("`"), store_type))
                    self.tables[name] = columns
                return 0

            insert = INSERT_PATTERN.match(query)
            if insert:
                name = insert.group(1)
                if name not in self.tables:
                    raise StoreError(f"Table default.{name} doesn't exist", 60)
                self.rows.setdefault(name, []).append(tuple(params))
                return 1

            raise StoreError(f"FakeStore cannot run: {query}")

    def list_tables(self):
        if "SHOW TABLES" in self.fail_on:
            raise self.fail_on["SHOW TABLES"]
        return list(self.tables)

    def describe_table(self, table_name):
        if "DESCRIBE" in self.fail_on:
            raise self.fail_on["DESCRIBE"]
        return list(self.tables[table_name])


@pytest.fixture
def make_store():
    return FakeStore


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def registry():
    return SchemaRegistry()


@pytest.fixture
def table_manager(registry, fake_store):
    return TableManager(registry, fake_store)


@pytest.fixture
def writer(fake_store):
    return RecordWriter(fake_store)


@pytest.fixture
def sensor_topic():
    return "/balalaykajazz/plants1/out/sensors/temp_out"


@pytest.fixture
def sensor_payload():
    return b'{"timestamp":"2021-11-24T20:27:23Z","value":27.8}'


@pytest.fixture
def float_schema():
    return (
        ColumnDescriptor("client", ColumnType.STRING),
        ColumnDescriptor("device", ColumnType.STRING),
        ColumnDescriptor("value", ColumnType.FLOAT64),
    )
