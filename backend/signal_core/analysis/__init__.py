"""Candle pattern and pullback analysis (pure, no I/O)."""

from signal_core.analysis.patterns import (
    classify_candle,
    classify_observation,
    analyze_price_action,
)
from signal_core.analysis.pullbacks import (
    find_extrema,
    find_peaks,
    find_valleys,
    identify_pullbacks,
    pullback_metrics,
    pullback_strength,
    classify_trend,
    analyze_pullbacks,
)

__all__ = [
    "classify_candle",
    "classify_observation",
    "analyze_price_action",
    "find_extrema",
    "find_peaks",
    "find_valleys",
    "identify_pullbacks",
    "pullback_metrics",
    "pullback_strength",
    "classify_trend",
    "analyze_pullbacks",
]
