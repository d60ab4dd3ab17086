# ==============================================
# SchemaRegistry
# ==============================================
#
# PURPOSE:
#   Authoritative in-memory cache of every table's column shape.
#   Populated from the store catalog at startup, extended when a
#   new table is created, never altered for an existing table.
#
# CLASS: SchemaRegistry
# ---------------------
#   Stateful: the only shared mutable structure in the engine.
#   The underlying dict is never handed out.
#
#   Methods:
#   --------
#   - load(catalog) -> int
#       catalog.list_tables(), then catalog.describe_table(name)
#       for each table. All queries run outside the lock; the new
#       map replaces the old one in a single write-locked swap.
#       Tables registered while the load was running are kept.
#       Any failure raises RegistryLoadError and leaves the
#       registry untouched.
#
#   - lookup(table_name) -> (schema | None, found)       [read lock]
#   - register(table_name, schema) -> None               [write lock]
#   - register_if_absent(table_name, schema)
#         -> (installed_schema, inserted)                [write lock]
#   - tables() -> list[str]                              [read lock]
#   - snapshot() -> dict[str, schema]                    [read lock]
#
# CATALOG CONTRACT:
# -----------------
#   list_tables() -> list[str]
#   describe_table(name) -> list[(column_name, store_type, ...)]
#
# ==============================================

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from mqtt2clickhouse.errors import RegistryLoadError
from mqtt2clickhouse.schema.types import ColumnDescriptor, Schema
from .rwlock import ReadWriteLock

logger = logging.getLogger(__name__)


class SchemaRegistry:
    def __init__(self):
        self._tables: Dict[str, Schema] = {}
        self._lock = ReadWriteLock()
        # one dict per in-flight load, collecting registrations made meanwhile
        self._pending: List[Dict[str, Schema]] = []

    def load(self, catalog) -> int:
        """
        Replace the registry contents with the store's catalog.

        Args:
            catalog: Object providing list_tables() and describe_table(name)

        Returns:
            Number of tables loaded

        Raises:
            RegistryLoadError: any catalog query failed
        """
        registered_meanwhile: Dict[str, Schema] = {}
        with self._lock.write_locked():
            self._pending.append(registered_meanwhile)

        loaded: Dict[str, Schema] = {}
        try:
            table_names = list(catalog.list_tables())
            for table_name in table_names:
                rows = catalog.describe_table(table_name)
                loaded[table_name] = tuple(
                    ColumnDescriptor.from_store(str(row[0]), str(row[1])) for row in rows
                )
        except Exception as e:
            with self._lock.write_locked():
                self._pending.remove(registered_meanwhile)
            raise RegistryLoadError(f"Failed to load schema from store: {e}") from e

        with self._lock.write_locked():
            self._pending.remove(registered_meanwhile)
            loaded.update(registered_meanwhile)
            self._tables = loaded

        logger.info("Loaded schema for %d table(s) from store", len(loaded))
        return len(loaded)

    def lookup(self, table_name: str) -> Tuple[Optional[Schema], bool]:
        with self._lock.read_locked():
            schema = self._tables.get(table_name)
        return schema, schema is not None

    def register(self, table_name: str, schema: Sequence[ColumnDescriptor]) -> None:
        schema = tuple(schema)
        with self._lock.write_locked():
            self._install(table_name, schema)

    def register_if_absent(
        self, table_name: str, schema: Sequence[ColumnDescriptor]
    ) -> Tuple[Schema, bool]:
        """
        Install schema unless the table is already registered.

        Returns:
            (schema now installed for table_name, True if this call installed it)
        """
        schema = tuple(schema)
        with self._lock.write_locked():
            existing = self._tables.get(table_name)
            if existing is not None:
                return existing, False
            self._install(table_name, schema)
            return schema, True

    def _install(self, table_name: str, schema: Schema) -> None:
        # caller holds the write lock
        self._tables[table_name] = schema
        for registered_meanwhile in self._pending:
            registered_meanwhile[table_name] = schema

    def tables(self) -> List[str]:
        with self._lock.read_locked():
            return sorted(self._tables)

    def snapshot(self) -> Dict[str, Schema]:
        with self._lock.read_locked():
            return dict(self._tables)

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._tables)

    def __contains__(self, table_name: str) -> bool:
        return self.lookup(table_name)[1]
