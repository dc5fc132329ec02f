"""Per-contract MEV statistics folded from stored alerts."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from mev_sentinel.chain.models import format_decimal
from mev_sentinel.storage.store import AlertStore

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_LIMIT = 1000


@dataclass(frozen=True)
class MEVStats:
    """Aggregate view of a contract's recent alerts.

    Attributes:
        total_alerts: Alerts in the sample.
        alerts_by_type: Count per attack type value ("sandwich", ...).
        alerts_by_risk: Count per risk level value ("high", ...).
        total_estimated_mev_value: Sum of mev_profit over alerts that carry one.
        last_alert_timestamp: Block timestamp of the newest alert.
    """

    total_alerts: int = 0
    alerts_by_type: dict[str, int] = field(default_factory=dict)
    alerts_by_risk: dict[str, int] = field(default_factory=dict)
    total_estimated_mev_value: Decimal = Decimal(0)
    last_alert_timestamp: datetime | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "total_alerts": self.total_alerts,
            "alerts_by_type": dict(self.alerts_by_type),
            "alerts_by_risk": dict(self.alerts_by_risk),
            "total_estimated_mev_value": format_decimal(self.total_estimated_mev_value),
            "last_alert_timestamp": (
                self.last_alert_timestamp.isoformat() if self.last_alert_timestamp else None
            ),
        }


class StatsAggregator:
    """Computes MEVStats over the most recent alerts of a contract."""

    def __init__(self, store: AlertStore, *, sample_limit: int = DEFAULT_SAMPLE_LIMIT) -> None:
        if sample_limit <= 0:
            raise ValueError("sample_limit must be > 0")
        self._store = store
        self._sample_limit = sample_limit

    async def stats(self, contract_id: str) -> MEVStats:
        """Raises AlertStoreError if the store cannot be read."""
        alerts = await self._store.list_by_contract(contract_id, limit=self._sample_limit)
        if not alerts:
            return MEVStats()

        by_type = Counter(a.attack_type.value for a in alerts)
        by_risk = Counter(a.risk_level.value for a in alerts)
        total_value = sum((a.mev_profit for a in alerts if a.mev_profit is not None), Decimal(0))
        newest = max(a.timestamp for a in alerts)

        logger.debug("Stats for %s over %d alert(s)", contract_id, len(alerts))
        return MEVStats(
            total_alerts=len(alerts),
            alerts_by_type=dict(by_type),
            alerts_by_risk=dict(by_risk),
            total_estimated_mev_value=total_value,
            last_alert_timestamp=newest,
        )
