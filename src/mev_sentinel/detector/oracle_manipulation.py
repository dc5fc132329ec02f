"""Oracle manipulation detection from bursts of high-gas transactions."""

from __future__ import annotations

from mev_sentinel.detector.base import DetectionContext, PatternDetector
from mev_sentinel.detector.models import MEVAlert, MEVAttackType, MEVPattern, RiskLevel

DEFAULT_MIN_HIGH_GAS_TRANSACTIONS = 3


class OracleManipulationDetector(PatternDetector):
    """Emits one alert when enough transactions bid above the pattern gas floor."""

    attack_type = MEVAttackType.ORACLE_MANIPULATION
    risk = RiskLevel.HIGH
    confidence = 0.75

    def __init__(
        self,
        *,
        min_high_gas_transactions: int = DEFAULT_MIN_HIGH_GAS_TRANSACTIONS,
        pattern: MEVPattern | None = None,
    ) -> None:
        super().__init__(pattern)
        self._min_high_gas = min_high_gas_transactions

    def _detect(self, ctx: DetectionContext) -> list[MEVAlert]:
        gas_floor = self.pattern.indicators.min_gas_price_gwei
        high_gas = [tx for tx in ctx.transactions if tx.gas_price_gwei > gas_floor]
        if len(high_gas) < self._min_high_gas:
            return []
        first = high_gas[0]
        return [
            self.build_alert(
                ctx,
                first,
                description=f"Potential oracle manipulation: {len(high_gas)} high-gas transactions",
                attacker_address=first.sender,
                metadata={
                    "high_gas_transactions": len(high_gas),
                    "transactions": [tx.hash for tx in high_gas],
                },
            )
        ]
