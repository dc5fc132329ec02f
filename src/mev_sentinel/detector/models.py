"""Data models for the detector module."""

from __future__ import annotations

import hashlib
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any


class MEVAttackType(str, Enum):
    """MEV attack classes.

    BACKRUNNING and LIQUIDATION are reserved; no detector emits them yet.
    """

    FRONTRUNNING = "frontrunning"
    BACKRUNNING = "backrunning"
    SANDWICH = "sandwich"
    ARBITRAGE = "arbitrage"
    LIQUIDATION = "liquidation"
    ORACLE_MANIPULATION = "oracle_manipulation"
    FLASH_LOAN_ATTACK = "flash_loan_attack"


class RiskLevel(str, Enum):
    """Coarse operator-facing risk buckets, ordered low to critical."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]


_RISK_RANK = {
    RiskLevel.LOW: 0,
    RiskLevel.MEDIUM: 1,
    RiskLevel.HIGH: 2,
    RiskLevel.CRITICAL: 3,
}


@dataclass(frozen=True)
class PatternIndicators:
    """Thresholds describing when a pattern is worth evaluating.

    Attributes:
        min_gas_price_gwei: Average gas price floor for the transaction set.
        max_gas_price_gwei: Optional average gas price ceiling.
        time_window_seconds: Window over which the pattern typically unfolds.
        min_transactions: Minimum transactions touching the contract.
        max_transactions: Optional maximum transactions touching the contract.
        value_threshold_ether: Optional per-transaction value floor (native units).
        contract_interactions: Optional function selectors of interest.
    """

    min_gas_price_gwei: Decimal
    time_window_seconds: int
    min_transactions: int
    max_transactions: int | None = None
    max_gas_price_gwei: Decimal | None = None
    value_threshold_ether: Decimal | None = None
    contract_interactions: tuple[str, ...] = ()

    def accepts_count(self, count: int) -> bool:
        if count < self.min_transactions:
            return False
        return self.max_transactions is None or count <= self.max_transactions

    def accepts_average_gas(self, average_gwei: Decimal) -> bool:
        if average_gwei < self.min_gas_price_gwei:
            return False
        return self.max_gas_price_gwei is None or average_gwei <= self.max_gas_price_gwei


@dataclass(frozen=True)
class MEVPattern:
    """A catalog entry: attack type, indicator thresholds and base risk."""

    attack_type: MEVAttackType
    indicators: PatternIndicators
    base_risk: float

    def __post_init__(self) -> None:
        if not 0.0 <= self.base_risk <= 1.0:
            raise ValueError("base_risk must be within [0, 1]")


def alert_id(
    *,
    chain: str,
    contract_id: str,
    attack_type: MEVAttackType,
    block_number: int,
    transaction_hash: str,
) -> str:
    """Deterministic alert identifier for one (pattern, evidence) match."""
    material = "|".join(
        [chain, contract_id.lower(), attack_type.value, str(block_number), transaction_hash.lower()]
    ).encode("utf-8")
    return f"mev_{hashlib.sha256(material).hexdigest()[:24]}"


@dataclass(frozen=True)
class MEVAlert:
    """A risk-scored MEV detection.

    Alerts are immutable once created; corrections are emitted as new alerts.

    Attributes:
        id: Unique identifier for this detection.
        contract_id: Monitored contract the alert belongs to.
        attack_type: Detected attack class.
        risk_level: Operator-facing risk bucket.
        confidence: Detector confidence (0.0 to 1.0).
        description: Human-readable summary.
        transaction_hash: Triggering transaction.
        block_number: Block the evidence was found in.
        gas_price: Triggering transaction gas price in gwei, as a decimal string.
        timestamp: Block timestamp (never wall-clock).
        mev_profit: Optional estimated extracted value (native units).
        victim_address: Optional victim address.
        attacker_address: Optional attacker address.
        metadata: Pattern-specific evidence (JSON-serialisable, read-only).
    """

    id: str
    contract_id: str
    attack_type: MEVAttackType
    risk_level: RiskLevel
    confidence: float
    description: str
    transaction_hash: str
    block_number: int
    gas_price: str
    timestamp: datetime
    mev_profit: Decimal | None = None
    victim_address: str | None = None
    attacker_address: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {self.confidence}")

    @property
    def dedup_key(self) -> tuple[str, MEVAttackType, str]:
        return (self.contract_id.lower(), self.attack_type, self.transaction_hash.lower())

    @property
    def is_high_risk(self) -> bool:
        """Return True for high and critical alerts."""
        return self.risk_level.rank >= RiskLevel.HIGH.rank

    def to_dict(self) -> dict[str, object]:
        """Serialize to a JSON-friendly dictionary."""
        return {
            "id": self.id,
            "contract_id": self.contract_id,
            "attack_type": self.attack_type.value,
            "risk_level": self.risk_level.value,
            "confidence": self.confidence,
            "description": self.description,
            "transaction_hash": self.transaction_hash,
            "block_number": self.block_number,
            "gas_price": self.gas_price,
            "mev_profit": str(self.mev_profit) if self.mev_profit is not None else None,
            "victim_address": self.victim_address,
            "attacker_address": self.attacker_address,
            "timestamp": self.timestamp.isoformat(),
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MEVAlert:
        mev_profit = data.get("mev_profit")
        return cls(
            id=str(data["id"]),
            contract_id=str(data["contract_id"]),
            attack_type=MEVAttackType(data["attack_type"]),
            risk_level=RiskLevel(data["risk_level"]),
            confidence=float(data["confidence"]),
            description=str(data["description"]),
            transaction_hash=str(data["transaction_hash"]),
            block_number=int(data["block_number"]),
            gas_price=str(data["gas_price"]),
            timestamp=datetime.fromisoformat(str(data["timestamp"])),
            mev_profit=Decimal(str(mev_profit)) if mev_profit is not None else None,
            victim_address=data.get("victim_address"),
            attacker_address=data.get("attacker_address"),
            metadata=dict(data.get("metadata") or {}),
        )
