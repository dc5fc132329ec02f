"""Storage layer - MEV alert persistence."""

from mev_sentinel.storage.database import DatabaseManager, create_async_db_engine, init_async_db
from mev_sentinel.storage.models import Base, MEVAlertModel
from mev_sentinel.storage.repos import MEVAlertRepository
from mev_sentinel.storage.store import AlertStore, AlertStoreError, SqlAlertStore

__all__ = [
    "AlertStore",
    "AlertStoreError",
    "Base",
    "DatabaseManager",
    "MEVAlertModel",
    "MEVAlertRepository",
    "SqlAlertStore",
    "create_async_db_engine",
    "init_async_db",
]
