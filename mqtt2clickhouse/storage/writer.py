import logging
from typing import Any, Sequence, Tuple

from mqtt2clickhouse.errors import StoreError, StoreWriteError
from mqtt2clickhouse.normalization.identifier import quote_identifier
from mqtt2clickhouse.schema.types import Record

logger = logging.getLogger(__name__)

PLACEHOLDER = "%s"


def render_insert(table_name: str, columns: Sequence[str]) -> str:
    """
    Build a positional INSERT statement. Only identifiers are spliced
    into the text, values are always bound as parameters.
    """
    column_list = ", ".join(quote_identifier(column) for column in columns)
    placeholders = ", ".join([PLACEHOLDER] * len(columns))
    return f"INSERT INTO {quote_identifier(table_name)} ({column_list}) VALUES ({placeholders})"


class RecordWriter:
    """Issue one parameterized insert per record. Never retries."""

    def __init__(self, store):
        self.store = store

    def insert(self, table_name: str, columns: Sequence[str], values: Sequence[Any]) -> None:
        """
        Insert one row.

        Raises:
            InvalidIdentifierError: table or column name outside the allow-list
            StoreWriteError: the store did not acknowledge the write
        """
        if len(columns) != len(values):
            raise ValueError(
                f"Insert into '{table_name}' got {len(columns)} columns and {len(values)} values"
            )

        query = render_insert(table_name, columns)
        params: Tuple[Any, ...] = tuple(values)
        try:
            self.store.execute(query, params)
        except StoreError as e:
            raise StoreWriteError(table_name, e) from e

        logger.debug("Inserted row into %s", table_name)

    def write(self, record: Record) -> None:
        self.insert(record.table_name, record.columns, record.values)
