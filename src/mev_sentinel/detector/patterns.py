"""Canonical MEV pattern library.

Thresholds are tuned to keep false positives down at typical mainnet
gas-price variance. The table is built once at import and never mutated.
"""

from __future__ import annotations

from decimal import Decimal
from types import MappingProxyType

from mev_sentinel.detector.models import MEVAttackType, MEVPattern, PatternIndicators


class UnknownPatternError(KeyError):
    """Raised when no pattern is registered for an attack type."""


_PATTERNS: tuple[MEVPattern, ...] = (
    MEVPattern(
        attack_type=MEVAttackType.FRONTRUNNING,
        indicators=PatternIndicators(
            min_gas_price_gwei=Decimal("50"),
            time_window_seconds=30,
            min_transactions=2,
            max_transactions=5,
        ),
        base_risk=0.8,
    ),
    MEVPattern(
        attack_type=MEVAttackType.SANDWICH,
        indicators=PatternIndicators(
            min_gas_price_gwei=Decimal("30"),
            time_window_seconds=60,
            min_transactions=3,
            max_transactions=10,
        ),
        base_risk=0.9,
    ),
    MEVPattern(
        attack_type=MEVAttackType.ARBITRAGE,
        indicators=PatternIndicators(
            min_gas_price_gwei=Decimal("20"),
            time_window_seconds=120,
            min_transactions=2,
            max_transactions=20,
        ),
        base_risk=0.6,
    ),
    MEVPattern(
        attack_type=MEVAttackType.FLASH_LOAN_ATTACK,
        indicators=PatternIndicators(
            min_gas_price_gwei=Decimal("100"),
            time_window_seconds=10,
            min_transactions=1,
            max_transactions=3,
            value_threshold_ether=Decimal("1000"),
        ),
        base_risk=0.95,
    ),
    MEVPattern(
        attack_type=MEVAttackType.ORACLE_MANIPULATION,
        indicators=PatternIndicators(
            min_gas_price_gwei=Decimal("80"),
            time_window_seconds=300,
            min_transactions=5,
            max_transactions=50,
        ),
        base_risk=0.85,
    ),
)

PATTERNS = MappingProxyType({p.attack_type: p for p in _PATTERNS})


def pattern_for(attack_type: MEVAttackType) -> MEVPattern:
    """Return the pattern for an attack type.

    Raises:
        UnknownPatternError: For reserved types with no catalog entry.
    """
    try:
        return PATTERNS[attack_type]
    except KeyError:
        raise UnknownPatternError(f"No MEV pattern registered for {attack_type.value}") from None


def all_patterns() -> tuple[MEVPattern, ...]:
    return _PATTERNS
