"""Sandwich attack detection over consecutive transactions."""

from __future__ import annotations

from decimal import Decimal

from mev_sentinel.detector.base import DetectionContext, PatternDetector
from mev_sentinel.detector.models import MEVAlert, MEVAttackType, MEVPattern, RiskLevel

# Each outer leg must outbid the victim by this factor.
DEFAULT_OUTER_GAS_MULTIPLE = Decimal("1.3")


class SandwichDetector(PatternDetector):
    """Flags three consecutive transactions shaped like a sandwich.

    Windows slide over block order: the first and third transaction come
    from the same sender and both outbid the middle one by more than 30%.
    The alert points at the middle (victim) transaction.
    """

    attack_type = MEVAttackType.SANDWICH
    risk = RiskLevel.HIGH
    confidence = 0.85

    def __init__(
        self,
        *,
        outer_gas_multiple: Decimal = DEFAULT_OUTER_GAS_MULTIPLE,
        pattern: MEVPattern | None = None,
    ) -> None:
        super().__init__(pattern)
        self._outer_gas_multiple = outer_gas_multiple

    def _detect(self, ctx: DetectionContext) -> list[MEVAlert]:
        txs = ctx.transactions
        alerts: list[MEVAlert] = []
        for front, victim, back in zip(txs, txs[1:], txs[2:]):
            floor = victim.gas_price_wei * self._outer_gas_multiple
            if front.gas_price_wei <= floor or back.gas_price_wei <= floor:
                continue
            if front.sender.lower() != back.sender.lower():
                continue
            alerts.append(
                self.build_alert(
                    ctx,
                    victim,
                    description="Potential sandwich attack detected: front-run and back-run pattern",
                    attacker_address=front.sender,
                    victim_address=victim.sender,
                    metadata={"frontrun_tx": front.hash, "backrun_tx": back.hash},
                )
            )
        return alerts
