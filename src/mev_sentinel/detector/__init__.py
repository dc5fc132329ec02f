"""MEV detectors: pattern library, signal extractors and per-pattern detectors."""

from mev_sentinel.detector.arbitrage import ArbitrageDetector
from mev_sentinel.detector.base import (
    DetectionContext,
    DetectorError,
    PatternDetector,
    build_alert,
    default_detectors,
)
from mev_sentinel.detector.composite import CompositeStrategyDetector
from mev_sentinel.detector.flash_loan import FlashLoanDetector
from mev_sentinel.detector.frontrunning import FrontRunningDetector
from mev_sentinel.detector.models import (
    MEVAlert,
    MEVAttackType,
    MEVPattern,
    PatternIndicators,
    RiskLevel,
    alert_id,
)
from mev_sentinel.detector.oracle_manipulation import OracleManipulationDetector
from mev_sentinel.detector.patterns import PATTERNS, UnknownPatternError, all_patterns, pattern_for
from mev_sentinel.detector.sandwich import SandwichDetector
from mev_sentinel.detector.scorer import clamp_confidence, risk_level
from mev_sentinel.detector.signals import (
    GasAnalysis,
    TimingAnalysis,
    ValueAnalysis,
    analyze_gas,
    analyze_timing,
    analyze_value,
)

__all__ = [
    "PATTERNS",
    "ArbitrageDetector",
    "CompositeStrategyDetector",
    "DetectionContext",
    "DetectorError",
    "FlashLoanDetector",
    "FrontRunningDetector",
    "GasAnalysis",
    "MEVAlert",
    "MEVAttackType",
    "MEVPattern",
    "OracleManipulationDetector",
    "PatternDetector",
    "PatternIndicators",
    "RiskLevel",
    "SandwichDetector",
    "TimingAnalysis",
    "UnknownPatternError",
    "ValueAnalysis",
    "alert_id",
    "all_patterns",
    "analyze_gas",
    "analyze_timing",
    "analyze_value",
    "build_alert",
    "clamp_confidence",
    "default_detectors",
    "pattern_for",
    "risk_level",
]
