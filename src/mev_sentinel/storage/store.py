"""Alert store abstraction over the repository layer."""

from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError

from mev_sentinel.detector.models import MEVAlert
from mev_sentinel.storage.database import DatabaseManager
from mev_sentinel.storage.repos import DEFAULT_LIST_LIMIT, MEVAlertRepository

logger = logging.getLogger(__name__)


class AlertStoreError(Exception):
    """Raised when the alert store cannot read or write."""


class AlertStore(Protocol):
    """Durable, append-only alert storage."""

    async def save(self, alert: MEVAlert) -> bool: ...

    async def list_by_contract(self, contract_id: str, limit: int = DEFAULT_LIST_LIMIT) -> list[MEVAlert]: ...


class SqlAlertStore:
    """AlertStore backed by SQLAlchemy, one session per call."""

    def __init__(self, db_manager: DatabaseManager) -> None:
        self._db = db_manager

    async def save(self, alert: MEVAlert) -> bool:
        """Persist an alert. Returns False if it was already stored.

        Raises:
            AlertStoreError: If the write fails.
        """
        try:
            async with self._db.get_async_session() as session:
                return await MEVAlertRepository(session).insert(alert)
        except (SQLAlchemyError, OSError) as e:
            raise AlertStoreError(f"Failed to save alert {alert.id}: {e}") from e

    async def list_by_contract(self, contract_id: str, limit: int = DEFAULT_LIST_LIMIT) -> list[MEVAlert]:
        """Raises AlertStoreError if the read fails."""
        try:
            async with self._db.get_async_session() as session:
                return await MEVAlertRepository(session).list_by_contract(contract_id, limit=limit)
        except (SQLAlchemyError, OSError) as e:
            raise AlertStoreError(f"Failed to list alerts for {contract_id}: {e}") from e

    async def count_by_contract(self, contract_id: str) -> int:
        try:
            async with self._db.get_async_session() as session:
                return await MEVAlertRepository(session).count_by_contract(contract_id)
        except (SQLAlchemyError, OSError) as e:
            raise AlertStoreError(f"Failed to count alerts for {contract_id}: {e}") from e
