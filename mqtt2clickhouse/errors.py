# ==============================================
# Errors
# ==============================================
#
# PURPOSE:
#   One exception hierarchy for everything that can go wrong
#   between an inbound message and a row in the store.
#
# HIERARCHY:
# ----------
#   IngestError
#   ├── InvalidTopicError           (record builder, drop)
#   ├── MalformedPayloadError       (record builder, drop)
#   ├── UnsupportedValueTypeError   (record builder, drop)
#   ├── InvalidIdentifierError      (table manager / write path, drop)
#   ├── SchemaConflictError
#   │   ├── SchemaArityError        (table manager, operator action)
#   │   └── SchemaTypeMismatchError (table manager, operator action)
#   ├── StoreError                  (store adapter, maybe transient)
#   │   └── StoreWriteError         (write path / table creation)
#   └── RegistryLoadError           (startup, fatal)
#
# ==============================================

from typing import Any, Optional


class IngestError(Exception):
    """Base class for all ingestion errors."""


class InvalidTopicError(IngestError):
    """Topic does not have the '/client/device/.../sensor' shape."""

    def __init__(self, topic: str, reason: str):
        self.topic = topic
        self.reason = reason
        super().__init__(f"Invalid topic '{topic}': {reason}")


class MalformedPayloadError(IngestError):
    """Payload is not a JSON object carrying a 'value' field."""

    def __init__(self, reason: str, payload: Any = None):
        self.reason = reason
        self.payload = payload
        super().__init__(f"Malformed payload: {reason}")


class UnsupportedValueTypeError(IngestError):
    """A column value has a kind that cannot be mapped to a column type."""

    def __init__(self, column: str, value: Any):
        self.column = column
        self.value = value
        self.kind = type(value).__name__
        super().__init__(
            f"Column '{column}' has unsupported value type '{self.kind}': {value!r}"
        )


class InvalidIdentifierError(IngestError):
    """A table or column name is outside the allowed character set."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"Invalid SQL identifier: {identifier!r}")


class SchemaConflictError(IngestError):
    """Record schema does not match the registered table schema."""

    def __init__(self, table_name: str, message: str):
        self.table_name = table_name
        super().__init__(f"Table '{table_name}': {message}")


class SchemaArityError(SchemaConflictError):
    def __init__(self, table_name: str, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            table_name,
            f"column count mismatch, table has {expected}, record has {actual}",
        )


class SchemaTypeMismatchError(SchemaConflictError):
    def __init__(
        self,
        table_name: str,
        column: str,
        position: int,
        expected: str,
        actual: str,
    ):
        self.column = column
        self.position = position
        self.expected = expected
        self.actual = actual
        super().__init__(
            table_name,
            f"type mismatch for column '{column}' at position {position}: "
            f"expected {expected}, got {actual}",
        )


class StoreError(IngestError):
    """The store rejected a query or could not be reached."""

    # ClickHouse server error code for TABLE_ALREADY_EXISTS
    TABLE_ALREADY_EXISTS = 57

    def __init__(self, message: str, code: Optional[int] = None):
        self.code = code
        super().__init__(message)

    def is_table_exists(self) -> bool:
        if self.code == self.TABLE_ALREADY_EXISTS:
            return True
        return "already exists" in str(self).lower()


class StoreWriteError(StoreError):
    def __init__(self, table_name: str, cause: Exception):
        self.table_name = table_name
        self.cause = cause
        code = getattr(cause, "code", None)
        super().__init__(f"Write to table '{table_name}' failed: {cause}", code)


class RegistryLoadError(IngestError):
    """Schema registry could not be populated from the store catalog."""
