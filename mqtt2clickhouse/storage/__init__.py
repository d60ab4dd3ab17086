# ==============================================
# STAGE 3+4: STORAGE (ClickHouse)
# ==============================================
#
# This package handles all store operations:
# connecting, creating tables on first sight, validating
# schemas against the registry, and inserting rows.
#
# Modules:
# --------
# - store_client.py   → pymysql connection + catalog queries
# - table_manager.py  → Create-if-absent / validate-if-present
# - writer.py         → Parameterized INSERT per record
#
# ==============================================

from .store_client import StoreClient
from .table_manager import TableManager, render_create_table
from .writer import RecordWriter, render_insert

__all__ = [
    "StoreClient",
    "TableManager",
    "render_create_table",
    "RecordWriter",
    "render_insert",
]
