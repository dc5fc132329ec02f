"""Arbitrage detection from clustered same-sender activity."""

from __future__ import annotations

from mev_sentinel.chain.models import Transaction
from mev_sentinel.detector.base import DetectionContext, PatternDetector
from mev_sentinel.detector.models import MEVAlert, MEVAttackType, MEVPattern, RiskLevel

DEFAULT_MAX_NONCE_SPREAD = 5
MIN_SENDER_TRANSACTIONS = 2


class ArbitrageDetector(PatternDetector):
    """Flags senders with several near-consecutive transactions on the contract."""

    attack_type = MEVAttackType.ARBITRAGE
    risk = RiskLevel.MEDIUM
    confidence = 0.7

    def __init__(
        self,
        *,
        max_nonce_spread: int = DEFAULT_MAX_NONCE_SPREAD,
        pattern: MEVPattern | None = None,
    ) -> None:
        super().__init__(pattern)
        self._max_nonce_spread = max_nonce_spread

    def _detect(self, ctx: DetectionContext) -> list[MEVAlert]:
        by_sender: dict[str, list[Transaction]] = {}
        for tx in ctx.transactions:
            by_sender.setdefault(tx.sender.lower(), []).append(tx)

        alerts: list[MEVAlert] = []
        for sender_txs in by_sender.values():
            if len(sender_txs) < MIN_SENDER_TRANSACTIONS:
                continue
            nonces = [tx.nonce for tx in sender_txs]
            spread = max(nonces) - min(nonces)
            if spread > self._max_nonce_spread:
                continue
            first = sender_txs[0]
            alerts.append(
                self.build_alert(
                    ctx,
                    first,
                    description=f"Potential arbitrage detected: {len(sender_txs)} rapid transactions",
                    attacker_address=first.sender,
                    metadata={
                        "transaction_count": len(sender_txs),
                        "nonce_spread": spread,
                        "transactions": [tx.hash for tx in sender_txs],
                    },
                )
            )
        return alerts
