# ==============================================
# TableManager
# ==============================================
#
# PURPOSE:
#   Reconcile a record's inferred schema with the registry before
#   anything is written.
#
#   lookup(table)
#     ├── not found → CREATE TABLE IF NOT EXISTS, register_if_absent,
#     │               then validate against whatever schema won
#     └── found     → check_compatible(registered, record)
#
# CLASS: TableManager
# -------------------
#   Constructor:
#   ------------
#   - __init__(registry: SchemaRegistry, store, engine: str = "Memory")
#
#   Methods:
#   --------
#   - ensure_and_validate(record: Record) -> None
#   - create_table(table_name, descriptors) -> Schema
#       Idempotent: an existing table in the store is not an error,
#       and the registry keeps exactly one entry per table.
#
#   The store only needs execute(query, params=None).
#
# ==============================================

import logging
import re
from typing import Sequence

from mqtt2clickhouse.errors import StoreError, StoreWriteError
from mqtt2clickhouse.normalization.identifier import quote_identifier
from mqtt2clickhouse.registry.schema_registry import SchemaRegistry
from mqtt2clickhouse.schema.compatibility import check_compatible
from mqtt2clickhouse.schema.types import ColumnDescriptor, Record, Schema

logger = logging.getLogger(__name__)

_ENGINE_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]*(\([A-Za-z0-9_, ]*\))?$")


def render_create_table(table_name: str, descriptors: Sequence[ColumnDescriptor], engine: str) -> str:
    columns_def = ", ".join(
        f"{quote_identifier(descriptor.name)} {descriptor.store_type}" for descriptor in descriptors
    )
    return f"CREATE TABLE IF NOT EXISTS {quote_identifier(table_name)} ({columns_def}) ENGINE = {engine}"


class TableManager:
    def __init__(self, registry: SchemaRegistry, store, engine: str = "Memory"):
        if not _ENGINE_PATTERN.match(engine):
            raise ValueError(f"Invalid table engine: {engine!r}")
        self.registry = registry
        self.store = store
        self.engine = engine

    def ensure_and_validate(self, record: Record) -> None:
        """
        Make sure the record's table exists and its schema matches.

        Raises:
            SchemaArityError, SchemaTypeMismatchError: schema drift
            InvalidIdentifierError: table or column name not allowed
            StoreWriteError: table creation failed
        """
        registered, found = self.registry.lookup(record.table_name)
        if not found:
            registered = self.create_table(record.table_name, record.descriptors)

        check_compatible(record.table_name, registered, record.descriptors)

    def create_table(self, table_name: str, descriptors: Sequence[ColumnDescriptor]) -> Schema:
        """
        Create the table in the store and register its schema.

        Returns:
            The schema installed in the registry. When another writer
            registered the table first, that writer's schema is returned.
        """
        query = render_create_table(table_name, descriptors, self.engine)
        try:
            self.store.execute(query)
        except StoreError as e:
            if not e.is_table_exists():
                raise StoreWriteError(table_name, e) from e
            logger.info("Table %s already exists in store", table_name)

        installed, inserted = self.registry.register_if_absent(table_name, descriptors)
        if inserted:
            logger.info(
                "Created table %s (%s)",
                table_name,
                ", ".join(f"{d.name} {d.type_name}" for d in installed),
            )
        return installed
