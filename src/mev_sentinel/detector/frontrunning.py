"""Front-running detection from gas price gaps.

A transaction bidding well above the next-highest bid on the same contract
in the same block is the classic signature of a front-runner outbidding a
pending victim.
"""

from __future__ import annotations

from decimal import Decimal

from mev_sentinel.chain.models import format_decimal
from mev_sentinel.detector.base import DetectionContext, PatternDetector
from mev_sentinel.detector.models import MEVAlert, MEVAttackType, MEVPattern
from mev_sentinel.detector.scorer import clamp_confidence, risk_level

# Gas ratio between adjacent bids that counts as outbidding.
DEFAULT_MIN_GAS_RATIO = Decimal("1.5")
MAX_CONFIDENCE = 0.95


class FrontRunningDetector(PatternDetector):
    """Flags adjacent gas-price pairs whose ratio exceeds 1.5.

    Transactions are ranked by gas price (highest first) on a copy of the
    input. Every adjacent pair is evaluated, so one block may yield several
    alerts. Risk comes from the risk scorer using the gas ratio as intensity.
    """

    attack_type = MEVAttackType.FRONTRUNNING

    def __init__(
        self,
        *,
        min_gas_ratio: Decimal = DEFAULT_MIN_GAS_RATIO,
        pattern: MEVPattern | None = None,
    ) -> None:
        super().__init__(pattern)
        self._min_gas_ratio = min_gas_ratio

    def _detect(self, ctx: DetectionContext) -> list[MEVAlert]:
        ranked = sorted(ctx.transactions, key=lambda tx: tx.gas_price_wei, reverse=True)
        alerts: list[MEVAlert] = []
        for higher, lower in zip(ranked, ranked[1:]):
            if lower.gas_price_wei <= 0:
                continue
            ratio = Decimal(higher.gas_price_wei) / Decimal(lower.gas_price_wei)
            if ratio <= self._min_gas_ratio:
                continue
            ratio_f = float(ratio)
            alerts.append(
                self.build_alert(
                    ctx,
                    higher,
                    description=f"Potential frontrunning detected: {ratio_f:.2f}x higher gas price",
                    risk_level=risk_level(ratio_f, self.pattern.base_risk),
                    confidence=clamp_confidence(min(ratio_f / 2, MAX_CONFIDENCE)),
                    attacker_address=higher.sender,
                    victim_address=lower.sender,
                    metadata={
                        "frontrun_tx": higher.hash,
                        "backrun_tx": lower.hash,
                        "gas_ratio": format_decimal(ratio.quantize(Decimal("0.0001"))),
                    },
                )
            )
        return alerts
