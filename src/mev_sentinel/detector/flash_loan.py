"""Flash-loan attack detection from single large, complex transactions."""

from __future__ import annotations

from mev_sentinel.chain.models import format_decimal
from mev_sentinel.detector.base import DetectionContext, DetectorError, PatternDetector
from mev_sentinel.detector.models import MEVAlert, MEVAttackType, MEVPattern, RiskLevel

# Call data above this many bytes suggests a multi-step execution.
DEFAULT_MIN_INPUT_BYTES = 1000


class FlashLoanDetector(PatternDetector):
    """Flags transactions that move a very large value with heavy call data and a high bid.

    The value floor and gas floor come from the flash-loan pattern.
    """

    attack_type = MEVAttackType.FLASH_LOAN_ATTACK
    risk = RiskLevel.CRITICAL
    confidence = 0.9

    def __init__(
        self,
        *,
        min_input_bytes: int = DEFAULT_MIN_INPUT_BYTES,
        pattern: MEVPattern | None = None,
    ) -> None:
        super().__init__(pattern)
        if self.pattern.indicators.value_threshold_ether is None:
            raise DetectorError("flash-loan pattern requires a value threshold")
        self._min_input_bytes = min_input_bytes

    def _detect(self, ctx: DetectionContext) -> list[MEVAlert]:
        indicators = self.pattern.indicators
        value_floor = indicators.value_threshold_ether
        gas_floor = indicators.min_gas_price_gwei

        alerts: list[MEVAlert] = []
        for tx in ctx.transactions:
            if tx.value_ether <= value_floor:
                continue
            if tx.gas_price_gwei <= gas_floor:
                continue
            if tx.input_length <= self._min_input_bytes:
                continue
            alerts.append(
                self.build_alert(
                    ctx,
                    tx,
                    description="Potential flash loan attack: high value transaction with complex execution",
                    attacker_address=tx.sender,
                    metadata={
                        "flash_loan_amount": format_decimal(tx.value_ether),
                        "input_bytes": tx.input_length,
                    },
                )
            )
        return alerts
