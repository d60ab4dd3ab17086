from typing import Sequence

from mqtt2clickhouse.errors import SchemaArityError, SchemaTypeMismatchError
from mqtt2clickhouse.schema.types import ColumnDescriptor


def check_compatible(
    table_name: str,
    registered: Sequence[ColumnDescriptor],
    incoming: Sequence[ColumnDescriptor],
) -> None:
    """
    Check that a record's inferred schema fits a registered table schema.

    Columns are matched by position and compared by logical type only.
    Names are not compared.

    Raises:
        SchemaArityError: column counts differ
        SchemaTypeMismatchError: first position whose types differ
    """
    if len(registered) != len(incoming):
        raise SchemaArityError(table_name, expected=len(registered), actual=len(incoming))

    for position, (expected, actual) in enumerate(zip(registered, incoming)):
        if expected.type is None or expected.type != actual.type:
            raise SchemaTypeMismatchError(
                table_name,
                column=actual.name,
                position=position,
                expected=expected.type_name,
                actual=actual.type_name,
            )
