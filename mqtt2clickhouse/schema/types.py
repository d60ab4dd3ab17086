# ==============================================
# Schema Types (Data Classes)
# ==============================================
#
# PURPOSE:
#   Data classes that carry a message from the record builder
#   to the store: the closed set of logical column types, the
#   (name, type) column descriptor, and the immutable Record.
#
# ENUMS:
# ------
# - ColumnType(Enum): STRING, INT, FLOAT64
#     Logical type of one column. Each member knows the store
#     type it is created with, and which store types map back
#     to it when the catalog is loaded.
#
# CLASSES:
# --------
# - ColumnDescriptor (frozen dataclass)
#     - name: str                       → Column name
#     - type: ColumnType | None         → Logical type (None if the store type has no counterpart)
#     - store_type: str                 → Store type as created / described
#
# - Record (frozen dataclass)
#     - table_name: str
#     - columns: tuple[str, ...]        → Ordered column names
#     - values: tuple[Any, ...]         → Ordered values, same length as columns
#     - descriptors: tuple[ColumnDescriptor, ...]
#     - topic: str                      → Source topic, for log context
#
# ==============================================

import re
from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple


class ColumnType(Enum):
    """
    Closed set of logical column types inferred from payload values.

    - STRING:  str values
    - INT:     integral JSON numbers (only when numbers keep their kind)
    - FLOAT64: floating point JSON numbers
    """
    STRING = "String"
    INT = "Int"
    FLOAT64 = "Float64"

    @property
    def store_type(self) -> str:
        """Type used in CREATE TABLE statements."""
        return _STORE_TYPES[self]

    @classmethod
    def from_store_type(cls, store_type: str) -> Optional["ColumnType"]:
        """
        Map a type reported by DESCRIBE TABLE back to a logical type.

        Args:
            store_type: Raw store type, e.g. "Nullable(Float64)"

        Returns:
            The matching ColumnType, or None when it has no logical counterpart
        """
        inner = _unwrap(store_type.strip())
        if inner == "String" or inner.startswith("FixedString("):
            return cls.STRING
        if _INT_PATTERN.match(inner):
            return cls.INT
        if inner in ("Float64", "Float32"):
            return cls.FLOAT64
        return None


_STORE_TYPES = {
    ColumnType.STRING: "String",
    ColumnType.INT: "Int64",
    ColumnType.FLOAT64: "Float64",
}

_INT_PATTERN = re.compile(r"^U?Int(8|16|32|64|128|256)?$")
_WRAPPER_PATTERN = re.compile(r"^(Nullable|LowCardinality)\((.*)\)$")


def _unwrap(store_type: str) -> str:
    match = _WRAPPER_PATTERN.match(store_type)
    while match:
        store_type = match.group(2).strip()
        match = _WRAPPER_PATTERN.match(store_type)
    return store_type


@dataclass(frozen=True)
class ColumnDescriptor:
    """(name, logical type) pair describing one column of a record or table."""

    name: str
    type: Optional[ColumnType]
    store_type: str = ""

    def __post_init__(self):
        if not self.store_type and self.type is not None:
            object.__setattr__(self, "store_type", self.type.store_type)

    @classmethod
    def from_store(cls, name: str, store_type: str) -> "ColumnDescriptor":
        """Build a descriptor from one DESCRIBE TABLE row."""
        return cls(name=name, type=ColumnType.from_store_type(store_type), store_type=store_type)

    @property
    def type_name(self) -> str:
        """Logical type name, or the raw store type when there is none."""
        if self.type is not None:
            return self.type.value
        return self.store_type


Schema = Tuple[ColumnDescriptor, ...]


@dataclass(frozen=True)
class Record:
    """
    Fully decoded, schema-tagged representation of one inbound message.

    Built once by the RecordBuilder and never mutated afterwards.
    """

    table_name: str
    columns: Tuple[str, ...]
    values: Tuple[Any, ...]
    descriptors: Schema
    topic: str = field(default="", compare=False)

    def __post_init__(self):
        if not (len(self.columns) == len(self.values) == len(self.descriptors)):
            raise ValueError(
                f"Record for '{self.table_name}' has {len(self.columns)} columns, "
                f"{len(self.values)} values and {len(self.descriptors)} descriptors"
            )
