"""Signal extractors over a contract's transaction set.

Pure functions: each takes the filtered transactions of one block and returns
a small frozen summary that detectors and the composite strategy consume.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

import numpy as np

from mev_sentinel.chain.models import Transaction, format_decimal

# Default configuration
DEFAULT_SUSPICIOUS_GAS_MULTIPLE = 2.0
DEFAULT_RAPID_NONCE_SPREAD = 10
DEFAULT_RAPID_MIN_TRANSACTIONS = 3
DEFAULT_HIGH_VALUE_MAX_ETHER = Decimal("10")
DEFAULT_HIGH_VALUE_TOTAL_ETHER = Decimal("50")


@dataclass(frozen=True)
class GasAnalysis:
    """Gas price distribution in gwei.

    ``variance`` is the spread between the highest and lowest bid
    (max - min), not the statistical variance.
    """

    average: float
    maximum: float
    minimum: float
    variance: float
    suspicious: bool

    def to_dict(self) -> dict[str, object]:
        return {
            "average_gwei": round(self.average, 6),
            "max_gwei": round(self.maximum, 6),
            "min_gwei": round(self.minimum, 6),
            "variance": round(self.variance, 6),
            "suspicious": self.suspicious,
        }


@dataclass(frozen=True)
class TimingAnalysis:
    """Nonce clustering, a proxy for rapid execution by related senders."""

    nonce_spread: int
    rapid_execution: bool

    def to_dict(self) -> dict[str, object]:
        return {"nonce_spread": self.nonce_spread, "rapid_execution": self.rapid_execution}


@dataclass(frozen=True)
class ValueAnalysis:
    """Native value moved, in native-currency units."""

    total_value: Decimal
    max_value: Decimal
    high_value: bool

    def to_dict(self) -> dict[str, object]:
        return {
            "total_value": format_decimal(self.total_value),
            "max_value": format_decimal(self.max_value),
            "high_value": self.high_value,
        }


def analyze_gas(txs: Sequence[Transaction]) -> GasAnalysis:
    """Summarise gas prices; suspicious when the maximum exceeds twice the mean."""
    if not txs:
        return GasAnalysis(average=0.0, maximum=0.0, minimum=0.0, variance=0.0, suspicious=False)

    prices = np.array([float(tx.gas_price_gwei) for tx in txs], dtype=float)
    average = float(prices.mean())
    maximum = float(prices.max())
    return GasAnalysis(
        average=average,
        maximum=maximum,
        minimum=float(prices.min()),
        variance=float(np.ptp(prices)),
        suspicious=maximum > DEFAULT_SUSPICIOUS_GAS_MULTIPLE * average,
    )


def analyze_timing(txs: Sequence[Transaction]) -> TimingAnalysis:
    """Summarise nonce spread; rapid when at least three txs sit within ten nonces."""
    if not txs:
        return TimingAnalysis(nonce_spread=0, rapid_execution=False)

    nonces = np.array([tx.nonce for tx in txs], dtype=np.int64)
    spread = int(np.ptp(nonces))
    return TimingAnalysis(
        nonce_spread=spread,
        rapid_execution=spread <= DEFAULT_RAPID_NONCE_SPREAD and len(txs) >= DEFAULT_RAPID_MIN_TRANSACTIONS,
    )


def analyze_value(
    txs: Sequence[Transaction],
    *,
    max_value_threshold: Decimal = DEFAULT_HIGH_VALUE_MAX_ETHER,
    total_value_threshold: Decimal = DEFAULT_HIGH_VALUE_TOTAL_ETHER,
) -> ValueAnalysis:
    """Summarise value moved; high when one tx or the total crosses its threshold."""
    if not txs:
        return ValueAnalysis(total_value=Decimal(0), max_value=Decimal(0), high_value=False)

    # Wei amounts can exceed int64, so sums stay in Decimal.
    values = [tx.value_ether for tx in txs]
    total = sum(values, Decimal(0))
    largest = max(values)
    return ValueAnalysis(
        total_value=total,
        max_value=largest,
        high_value=largest > max_value_threshold or total > total_value_threshold,
    )
