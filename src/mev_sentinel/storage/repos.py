"""Repository implementations for MEV alert data access."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from mev_sentinel.detector.models import MEVAlert, MEVAttackType, RiskLevel
from mev_sentinel.storage.models import MEVAlertModel

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 50


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def alert_to_row(alert: MEVAlert) -> dict[str, Any]:
    return {
        "id": alert.id,
        "contract_id": alert.contract_id.lower(),
        "attack_type": alert.attack_type.value,
        "risk_level": alert.risk_level.value,
        "confidence": alert.confidence,
        "description": alert.description,
        "transaction_hash": alert.transaction_hash.lower(),
        "block_number": alert.block_number,
        "gas_price": alert.gas_price,
        "mev_profit": alert.mev_profit,
        "victim_address": alert.victim_address,
        "attacker_address": alert.attacker_address,
        "metadata_json": json.dumps(dict(alert.metadata), sort_keys=True, default=str),
        "timestamp": alert.timestamp,
    }


def alert_from_model(model: MEVAlertModel) -> MEVAlert:
    return MEVAlert(
        id=model.id,
        contract_id=model.contract_id,
        attack_type=MEVAttackType(model.attack_type),
        risk_level=RiskLevel(model.risk_level),
        confidence=model.confidence,
        description=model.description,
        transaction_hash=model.transaction_hash,
        block_number=model.block_number,
        gas_price=model.gas_price,
        timestamp=_as_utc(model.timestamp),
        mev_profit=model.mev_profit,
        victim_address=model.victim_address,
        attacker_address=model.attacker_address,
        metadata=json.loads(model.metadata_json or "{}"),
    )


class MEVAlertRepository:
    """Repository for persisted MEV alerts.

    Rows are append-only: an alert whose (contract, attack type, transaction)
    is already stored is ignored rather than updated.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def insert(self, alert: MEVAlert) -> bool:
        """Insert an alert; returns False when an equivalent row already exists."""
        values = alert_to_row(alert)
        now = datetime.now(UTC)
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            stmt = pg_insert(MEVAlertModel).values(**values, created_at=now).on_conflict_do_nothing()
        else:
            stmt = sqlite_insert(MEVAlertModel).values(**values, created_at=now).on_conflict_do_nothing()
        result = await self.session.execute(stmt)
        await self.session.flush()
        written = bool(result.rowcount)
        if not written:
            logger.debug("Alert %s already stored, skipped", alert.id)
        return written

    async def list_by_contract(self, contract_id: str, *, limit: int = DEFAULT_LIST_LIMIT) -> list[MEVAlert]:
        """Most recent alerts for a contract, newest block timestamp first."""
        if limit <= 0:
            return []
        result = await self.session.execute(
            select(MEVAlertModel)
            .where(MEVAlertModel.contract_id == contract_id.lower())
            .order_by(MEVAlertModel.timestamp.desc(), MEVAlertModel.block_number.desc(), MEVAlertModel.id)
            .limit(limit)
        )
        return [alert_from_model(m) for m in result.scalars().all()]

    async def count_by_contract(self, contract_id: str) -> int:
        result = await self.session.execute(
            select(sa.func.count())
            .select_from(MEVAlertModel)
            .where(MEVAlertModel.contract_id == contract_id.lower())
        )
        return int(result.scalar_one())
