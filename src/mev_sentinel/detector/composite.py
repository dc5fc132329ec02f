"""Composite strategy detection combining gas, timing and value signals."""

from __future__ import annotations

import logging
from decimal import Decimal

from mev_sentinel.detector.base import DetectionContext, build_alert
from mev_sentinel.detector.models import MEVAlert, MEVAttackType, RiskLevel
from mev_sentinel.detector.signals import (
    DEFAULT_HIGH_VALUE_MAX_ETHER,
    DEFAULT_HIGH_VALUE_TOTAL_ETHER,
    analyze_gas,
    analyze_timing,
    analyze_value,
)

logger = logging.getLogger(__name__)

COMPOSITE_CONFIDENCE = 0.8


class CompositeStrategyDetector:
    """Flags blocks where gas, timing and value signals all fire together.

    The alert is reported as front-running because the combined signature
    (outsized bids, clustered nonces, large value) is a coordinated
    ordering attack. The three analyses are embedded in the alert metadata.
    """

    attack_type = MEVAttackType.FRONTRUNNING
    name = "composite"

    def __init__(
        self,
        *,
        high_value_max_ether: Decimal = DEFAULT_HIGH_VALUE_MAX_ETHER,
        high_value_total_ether: Decimal = DEFAULT_HIGH_VALUE_TOTAL_ETHER,
    ) -> None:
        self._high_value_max = high_value_max_ether
        self._high_value_total = high_value_total_ether

    async def detect(self, ctx: DetectionContext) -> list[MEVAlert]:
        txs = ctx.transactions
        if not txs:
            return []

        gas = analyze_gas(txs)
        timing = analyze_timing(txs)
        value = analyze_value(
            txs,
            max_value_threshold=self._high_value_max,
            total_value_threshold=self._high_value_total,
        )
        if not (gas.suspicious and timing.rapid_execution and value.high_value):
            return []

        logger.info(
            "Composite strategy matched for %s in block %d (max_gas=%.2f, spread=%d, total=%s)",
            ctx.contract_id,
            ctx.block_number,
            gas.maximum,
            timing.nonce_spread,
            value.total_value,
        )
        first = txs[0]
        return [
            build_alert(
                ctx,
                first,
                attack_type=self.attack_type,
                risk_level=RiskLevel.HIGH,
                confidence=COMPOSITE_CONFIDENCE,
                description="Complex MEV strategy detected: sophisticated gas, timing, and value patterns",
                attacker_address=first.sender,
                metadata={
                    "strategy": "composite",
                    "gas_analysis": gas.to_dict(),
                    "timing_analysis": timing.to_dict(),
                    "value_analysis": value.to_dict(),
                },
            )
        ]
