"""Tests for risk scoring."""

from __future__ import annotations

import pytest

from mev_sentinel.detector.models import RiskLevel
from mev_sentinel.detector.scorer import clamp_confidence, risk_level


class TestRiskLevel:
    @pytest.mark.parametrize(
        ("intensity", "base", "expected"),
        [
            (1.0, 0.9, RiskLevel.CRITICAL),
            (1.0, 0.7, RiskLevel.HIGH),
            (1.0, 0.4, RiskLevel.MEDIUM),
            (1.0, 0.39, RiskLevel.LOW),
            (2.0, 0.5, RiskLevel.CRITICAL),
            (0.5, 0.8, RiskLevel.MEDIUM),
        ],
    )
    def test_buckets(self, intensity: float, base: float, expected: RiskLevel) -> None:
        assert risk_level(intensity, base) == expected

    def test_intensity_is_capped(self) -> None:
        assert risk_level(100.0, 0.4) == risk_level(2.0, 0.4) == RiskLevel.HIGH

    @pytest.mark.parametrize("base", [0.1, 0.3, 0.6, 0.8, 0.95])
    def test_monotonic_in_intensity(self, base: float) -> None:
        intensities = [i / 10 for i in range(0, 41)]
        ranks = [risk_level(i, base).rank for i in intensities]
        assert ranks == sorted(ranks)


class TestClampConfidence:
    def test_bounds(self) -> None:
        assert clamp_confidence(-0.2) == 0.0
        assert clamp_confidence(1.7) == 1.0
        assert clamp_confidence(0.42) == pytest.approx(0.42)
