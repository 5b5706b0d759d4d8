"""Data models for observations, features, weights and signals."""

from signal_core.models.enums import (
    CandlePattern,
    Direction,
    ExtremumKind,
    Trend,
    ValidationCheck,
)
from signal_core.models.indicators import BollingerBands, IndicatorBundle, MacdValues
from signal_core.models.observation import CandleShape, MarketContext, Observation
from signal_core.models.analysis import (
    Extremum,
    Pullback,
    PullbackAnalysis,
    PullbackMetrics,
)
from signal_core.models.features import (
    FeatureBundle,
    MarketFeatures,
    PriceActionFeatures,
    PullbackFeatures,
    TechnicalFeatures,
)
from signal_core.models.weights import WeightCategory, WeightTable
from signal_core.models.signal import Signal, SignalDecision, TrainingResult
from signal_core.models.config import IndicatorConfig, PipelineConfig, TrainingConfig

__all__ = [
    "CandlePattern",
    "Direction",
    "ExtremumKind",
    "Trend",
    "ValidationCheck",
    "BollingerBands",
    "IndicatorBundle",
    "MacdValues",
    "CandleShape",
    "MarketContext",
    "Observation",
    "Extremum",
    "Pullback",
    "PullbackAnalysis",
    "PullbackMetrics",
    "FeatureBundle",
    "MarketFeatures",
    "PriceActionFeatures",
    "PullbackFeatures",
    "TechnicalFeatures",
    "WeightCategory",
    "WeightTable",
    "Signal",
    "SignalDecision",
    "TrainingResult",
    "IndicatorConfig",
    "PipelineConfig",
    "TrainingConfig",
]
