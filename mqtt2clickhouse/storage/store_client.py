# ==============================================
# StoreClient
# ==============================================
#
# PURPOSE:
#   Manages the connection to ClickHouse through its MySQL-compatible
#   interface and exposes the few primitives the engine needs:
#   "run this query" and "give me these rows".
#
# CLASS: StoreClient
# ------------------
#   Stateful: holds one pymysql connection. pymysql connections are
#   not thread-safe, so every query runs under an internal mutex.
#
#   Constructor:
#   ------------
#   - __init__(host, port, user, password, database, connect_timeout=10)
#       Store connection params. Don't connect yet.
#
#   Methods:
#   --------
#   - connect() -> None
#   - disconnect() -> None
#   - execute(query: str, params: tuple | None = None) -> int
#       Run a statement, return affected row count.
#   - fetch_all(query: str, params: tuple | None = None) -> list[tuple]
#       Run a query and return all rows.
#
#   Catalog (used by SchemaRegistry.load):
#   - list_tables() -> list[str]
#   - describe_table(table_name) -> list[tuple[str, str]]
#
#   Every pymysql error is re-raised as StoreError carrying the
#   server error code.
#
#   Context Manager:
#   ----------------
#   - __enter__ / __exit__ for `with StoreClient(...) as store:` usage.
#
# ==============================================

import logging
import threading
from typing import Any, List, Optional, Tuple

import pymysql

from mqtt2clickhouse.config import StoreConfig
from mqtt2clickhouse.errors import StoreError
from mqtt2clickhouse.normalization.identifier import quote_identifier

logger = logging.getLogger(__name__)


def _error_code(error: Exception) -> Optional[int]:
    if error.args and isinstance(error.args[0], int):
        return error.args[0]
    return None


class StoreClient:
    def __init__(self, host, port, user, password, database, connect_timeout=10):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.database = database
        self.connect_timeout = connect_timeout
        self.connection = None
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: StoreConfig) -> "StoreClient":
        return cls(
            host=config.host,
            port=config.port,
            user=config.user,
            password=config.password,
            database=config.database,
            connect_timeout=config.connect_timeout,
        )

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}/{self.database}"

    def connect(self) -> None:
        try:
            self.connection = pymysql.connect(
                host=self.host,
                port=self.port,
                user=self.user,
                password=self.password,
                database=self.database,
                connect_timeout=self.connect_timeout,
                autocommit=True,
            )
        except pymysql.MySQLError as e:
            raise StoreError(f"Could not connect to store at {self.address}: {e}", _error_code(e)) from e
        logger.info("Connected to store at %s", self.address)

    def disconnect(self) -> None:
        if self.connection:
            try:
                self.connection.close()
            except pymysql.MySQLError as e:
                logger.warning("Error while closing store connection: %s", e)
            self.connection = None
            logger.info("Disconnected from store at %s", self.address)

    @property
    def is_connected(self) -> bool:
        return self.connection is not None

    def execute(self, query: str, params: Optional[tuple] = None) -> int:
        return self._run(query, params, fetch=False)

    def fetch_all(self, query: str, params: Optional[tuple] = None) -> List[Tuple[Any, ...]]:
        return self._run(query, params, fetch=True)

    def list_tables(self) -> List[str]:
        return [str(row[0]) for row in self.fetch_all("SHOW TABLES")]

    def describe_table(self, table_name: str) -> List[Tuple[str, str]]:
        # DESCRIBE returns name, type, default_type, default_expression,
        # comment, codec_expression, ttl_expression
        rows = self.fetch_all(f"DESCRIBE TABLE {quote_identifier(table_name)}")
        return [(str(row[0]), str(row[1])) for row in rows]

    def _run(self, query: str, params: Optional[tuple], fetch: bool):
        if self.connection is None:
            raise StoreError(f"Not connected to store at {self.address}")

        with self._lock:
            try:
                with self.connection.cursor() as cursor:
                    if params is not None:
                        affected = cursor.execute(query, params)
                    else:
                        affected = cursor.execute(query)
                    if fetch:
                        return list(cursor.fetchall())
                    return affected
            except pymysql.MySQLError as e:
                raise StoreError(str(e), _error_code(e)) from e

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
