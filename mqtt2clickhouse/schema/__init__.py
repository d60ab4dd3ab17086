# ==============================================
# SCHEMA: Column types and compatibility
# ==============================================
#
# Shared vocabulary used by every stage:
#
# Modules:
# --------
# - types.py          → ColumnType, ColumnDescriptor, Record
# - compatibility.py  → Position + type comparison of two schemas
#
# ==============================================

from .types import ColumnType, ColumnDescriptor, Record, Schema
from .compatibility import check_compatible

__all__ = ["ColumnType", "ColumnDescriptor", "Record", "Schema", "check_compatible"]
