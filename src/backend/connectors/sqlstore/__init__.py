"""SQL record store (database access lives here; domain logic lives in common/reconciliation)."""

from .config import SqlStoreConfig, get_sql_store_config
from .store import SqlRecordStore

__all__ = ["SqlStoreConfig", "get_sql_store_config", "SqlRecordStore"]
