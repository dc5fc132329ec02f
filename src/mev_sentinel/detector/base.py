"""Shared detector capability.

Each MEV detector is a PatternDetector subclass bound to one entry of the
pattern library. The Block Analyzer iterates a list of detectors and never
switches on attack type.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, ClassVar

from mev_sentinel.chain.models import Block, Transaction, format_gwei
from mev_sentinel.detector.models import MEVAlert, MEVAttackType, MEVPattern, RiskLevel, alert_id
from mev_sentinel.detector.patterns import pattern_for

logger = logging.getLogger(__name__)


class DetectorError(Exception):
    """Raised when a detector cannot evaluate its input."""


@dataclass(frozen=True)
class DetectionContext:
    """Inputs for one detection run.

    Attributes:
        chain: Network name.
        contract_id: Monitored contract address.
        block: Block the transactions came from.
        transactions: Transactions touching the contract, in block order.
    """

    chain: str
    contract_id: str
    block: Block
    transactions: tuple[Transaction, ...]

    @property
    def block_number(self) -> int:
        return self.block.number


def average_gas_gwei(txs: Sequence[Transaction]) -> Decimal:
    if not txs:
        return Decimal(0)
    return sum((tx.gas_price_gwei for tx in txs), Decimal(0)) / len(txs)


class PatternDetector:
    """Base class for the per-pattern MEV detectors.

    Subclasses set ``attack_type`` and implement ``_detect``. Detectors with
    a fixed outcome also set ``risk`` and ``confidence``; detectors that
    score each alert pass both to ``build_alert`` instead.
    ``detect`` applies the pattern preconditions shared by every detector:
    the transaction count must fall within the pattern bounds and the
    average gas price must reach the pattern minimum.
    """

    attack_type: ClassVar[MEVAttackType]
    risk: ClassVar[RiskLevel]
    confidence: ClassVar[float]

    def __init__(self, pattern: MEVPattern | None = None) -> None:
        self.pattern = pattern or pattern_for(self.attack_type)

    @property
    def name(self) -> str:
        return self.attack_type.value

    def preconditions_met(self, txs: Sequence[Transaction]) -> bool:
        indicators = self.pattern.indicators
        if not indicators.accepts_count(len(txs)):
            return False
        return indicators.accepts_average_gas(average_gas_gwei(txs))

    async def detect(self, ctx: DetectionContext) -> list[MEVAlert]:
        if not self.preconditions_met(ctx.transactions):
            logger.debug(
                "%s preconditions not met (block=%d, txs=%d)",
                self.name,
                ctx.block_number,
                len(ctx.transactions),
            )
            return []
        alerts = self._detect(ctx)
        if alerts:
            logger.info(
                "%s detector matched %d alert(s) for %s in block %d",
                self.name,
                len(alerts),
                ctx.contract_id,
                ctx.block_number,
            )
        return alerts

    def _detect(self, ctx: DetectionContext) -> list[MEVAlert]:
        raise NotImplementedError

    def build_alert(
        self,
        ctx: DetectionContext,
        trigger: Transaction,
        *,
        description: str,
        risk_level: RiskLevel | None = None,
        confidence: float | None = None,
        attacker_address: str | None = None,
        victim_address: str | None = None,
        mev_profit: Decimal | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> MEVAlert:
        risk_level = risk_level or getattr(self, "risk", None)
        if confidence is None:
            confidence = getattr(self, "confidence", None)
        if risk_level is None or confidence is None:
            raise DetectorError(f"{self.name} has no fixed risk; pass risk_level and confidence")
        return build_alert(
            ctx,
            trigger,
            attack_type=self.attack_type,
            risk_level=risk_level,
            confidence=confidence,
            description=description,
            attacker_address=attacker_address,
            victim_address=victim_address,
            mev_profit=mev_profit,
            metadata=metadata,
        )


def build_alert(
    ctx: DetectionContext,
    trigger: Transaction,
    *,
    attack_type: MEVAttackType,
    risk_level: RiskLevel,
    confidence: float,
    description: str,
    attacker_address: str | None = None,
    victim_address: str | None = None,
    mev_profit: Decimal | None = None,
    metadata: dict[str, Any] | None = None,
) -> MEVAlert:
    """Construct an alert stamped with the block timestamp and a deterministic id."""
    return MEVAlert(
        id=alert_id(
            chain=ctx.chain,
            contract_id=ctx.contract_id,
            attack_type=attack_type,
            block_number=ctx.block_number,
            transaction_hash=trigger.hash,
        ),
        contract_id=ctx.contract_id,
        attack_type=attack_type,
        risk_level=risk_level,
        confidence=confidence,
        description=description,
        transaction_hash=trigger.hash,
        block_number=ctx.block_number,
        gas_price=format_gwei(trigger.gas_price_wei),
        timestamp=ctx.block.timestamp,
        mev_profit=mev_profit,
        victim_address=victim_address,
        attacker_address=attacker_address,
        metadata=dict(metadata or {}),
    )


def default_detectors() -> list[PatternDetector]:
    """Return one instance of each pattern detector in registration order."""
    from mev_sentinel.detector.arbitrage import ArbitrageDetector
    from mev_sentinel.detector.flash_loan import FlashLoanDetector
    from mev_sentinel.detector.frontrunning import FrontRunningDetector
    from mev_sentinel.detector.oracle_manipulation import OracleManipulationDetector
    from mev_sentinel.detector.sandwich import SandwichDetector

    return [
        FrontRunningDetector(),
        SandwichDetector(),
        ArbitrageDetector(),
        FlashLoanDetector(),
        OracleManipulationDetector(),
    ]
