from typing import Any

from mqtt2clickhouse.errors import UnsupportedValueTypeError
from mqtt2clickhouse.schema.types import ColumnDescriptor, ColumnType


class TypeDetector:
    """Map a decoded payload value onto the closed ColumnType set."""

    @classmethod
    def detect(cls, value: Any) -> str:
        if value is None:
            return "null"

        if isinstance(value, bool):
            return "bool"

        if isinstance(value, int):
            return "int"

        if isinstance(value, float):
            return "float"

        if isinstance(value, list):
            return "array"

        if isinstance(value, dict):
            return "object"

        if isinstance(value, str):
            return "str"

        return type(value).__name__

    @classmethod
    def column_type(cls, column: str, value: Any) -> ColumnType:
        kind = cls.detect(value)

        if kind == "str":
            return ColumnType.STRING

        if kind == "int":
            return ColumnType.INT

        if kind == "float":
            return ColumnType.FLOAT64

        raise UnsupportedValueTypeError(column, value)

    @classmethod
    def describe(cls, column: str, value: Any) -> ColumnDescriptor:
        return ColumnDescriptor(name=column, type=cls.column_type(column, value))
