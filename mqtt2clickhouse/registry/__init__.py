# ==============================================
# STAGE 2: SCHEMA REGISTRY
# ==============================================
#
# This package holds the table -> column schema cache shared
# by the consumer loop and any administrative refresh.
#
# Modules:
# --------
# - rwlock.py           → Shared/exclusive lock
# - schema_registry.py  → SchemaRegistry (load / lookup / register)
#
# ==============================================

from .rwlock import ReadWriteLock
from .schema_registry import SchemaRegistry

__all__ = ["ReadWriteLock", "SchemaRegistry"]
