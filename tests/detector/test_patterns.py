"""Tests for the MEV pattern library."""

from __future__ import annotations

from decimal import Decimal

import pytest

from mev_sentinel.detector.models import MEVAttackType
from mev_sentinel.detector.patterns import PATTERNS, UnknownPatternError, all_patterns, pattern_for


class TestPatternLibrary:
    def test_one_pattern_per_detected_type(self) -> None:
        assert {p.attack_type for p in all_patterns()} == {
            MEVAttackType.FRONTRUNNING,
            MEVAttackType.SANDWICH,
            MEVAttackType.ARBITRAGE,
            MEVAttackType.FLASH_LOAN_ATTACK,
            MEVAttackType.ORACLE_MANIPULATION,
        }

    def test_thresholds(self) -> None:
        sandwich = pattern_for(MEVAttackType.SANDWICH)
        assert sandwich.indicators.min_gas_price_gwei == Decimal("30")
        assert sandwich.indicators.min_transactions == 3
        assert sandwich.indicators.max_transactions == 10
        assert sandwich.base_risk == pytest.approx(0.9)

        flash = pattern_for(MEVAttackType.FLASH_LOAN_ATTACK)
        assert flash.indicators.value_threshold_ether == Decimal("1000")
        assert flash.indicators.time_window_seconds == 10

    @pytest.mark.parametrize("reserved", [MEVAttackType.BACKRUNNING, MEVAttackType.LIQUIDATION])
    def test_reserved_types_have_no_pattern(self, reserved: MEVAttackType) -> None:
        with pytest.raises(UnknownPatternError):
            pattern_for(reserved)

    def test_library_is_read_only(self) -> None:
        with pytest.raises(TypeError):
            PATTERNS[MEVAttackType.LIQUIDATION] = pattern_for(MEVAttackType.ARBITRAGE)  # type: ignore[index]
