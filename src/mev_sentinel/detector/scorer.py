"""Risk scoring from an intensity factor and a pattern's base risk."""

from __future__ import annotations

from mev_sentinel.detector.models import RiskLevel

# Intensity above this adds no further risk.
MAX_INTENSITY = 2.0

CRITICAL_THRESHOLD = 0.9
HIGH_THRESHOLD = 0.7
MEDIUM_THRESHOLD = 0.4


def effective_risk(intensity_factor: float, base_risk: float) -> float:
    return base_risk * min(intensity_factor, MAX_INTENSITY)


def risk_level(intensity_factor: float, base_risk: float) -> RiskLevel:
    """Map an intensity factor (e.g. a gas ratio) to a risk bucket.

    Non-decreasing in intensity_factor for a fixed base_risk.
    """
    effective = effective_risk(intensity_factor, base_risk)
    if effective >= CRITICAL_THRESHOLD:
        return RiskLevel.CRITICAL
    if effective >= HIGH_THRESHOLD:
        return RiskLevel.HIGH
    if effective >= MEDIUM_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def clamp_confidence(value: float) -> float:
    return max(0.0, min(1.0, float(value)))
