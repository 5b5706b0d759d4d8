"""Feature extraction for one decision point.

Assembles indicator, price-action, pullback and market-context values
into a FeatureBundle. Missing optional inputs fall back to neutral values;
only a window shorter than ``pullback_analysis_depth`` yields no features.
"""

from __future__ import annotations

import logging
from typing import Sequence

from signal_core.analysis.patterns import analyze_price_action
from signal_core.indicators import compute_indicators, returns_volatility
from signal_core.models.analysis import PullbackAnalysis
from signal_core.models.config import PipelineConfig
from signal_core.models.features import (
    FeatureBundle,
    MarketFeatures,
    PriceActionFeatures,
    PullbackFeatures,
    TechnicalFeatures,
)
from signal_core.models.indicators import IndicatorBundle
from signal_core.models.observation import MarketContext, Observation

logger = logging.getLogger(__name__)

NEUTRAL_RSI = 50.0
HALF_WINDOW = 5


# =============================================================================
# Derived market features
# =============================================================================

def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def relative_change(values: Sequence[float], half: int = HALF_WINDOW) -> float:
    """
    Compare the mean of the last ``half`` values with the ``half`` before.

    Returns:
        (recent_avg - older_avg) / older_avg, or 0.0 when there is no older
        segment or its mean is not positive
    """
    recent = values[-half:]
    older = values[-2 * half:-half]
    if not recent or not older:
        return 0.0
    older_avg = _mean(older)
    if older_avg <= 0:
        return 0.0
    return (_mean(recent) - older_avg) / older_avg


def trend_strength(prices: Sequence[float], min_samples: int = 10) -> float:
    """Absolute whole-window change, 0.0 for short windows."""
    if len(prices) < min_samples:
        return 0.0
    return abs((prices[-1] - prices[0]) / prices[0])


def support_resistance(prices: Sequence[float]) -> tuple[float, float, float]:
    """
    Distances from the current price to the window extremes.

    Returns:
        Tuple of (distance_to_high, distance_to_low, range)
    """
    high = max(prices)
    low = min(prices)
    current = prices[-1]
    return (high - current) / high, (current - low) / low, (high - low) / low


# =============================================================================
# Section builders
# =============================================================================

def _technical_features(indicators: IndicatorBundle) -> TechnicalFeatures:
    macd_line = macd_signal = macd_histogram = 0.0
    if indicators.macd is not None:
        macd_line = indicators.macd.line
        macd_histogram = indicators.macd.histogram
        if indicators.macd.signal is not None:
            macd_signal = indicators.macd.signal

    bands = indicators.bollinger
    return TechnicalFeatures(
        rsi=indicators.rsi if indicators.rsi is not None else NEUTRAL_RSI,
        macd=macd_line,
        macd_signal=macd_signal,
        macd_histogram=macd_histogram,
        sma20=indicators.sma20,
        sma50=indicators.sma50,
        ema12=indicators.ema12,
        ema26=indicators.ema26,
        bollinger_upper=bands.upper if bands else None,
        bollinger_middle=bands.middle if bands else None,
        bollinger_lower=bands.lower if bands else None,
    )


def _pullback_features(analysis: PullbackAnalysis) -> PullbackFeatures:
    return PullbackFeatures(
        peaks=len(analysis.peaks),
        valleys=len(analysis.valleys),
        pullback_count=len(analysis.pullbacks),
        trend=analysis.trend,
        avg_depth=analysis.metrics.avg_depth,
        avg_recovery=analysis.metrics.avg_recovery,
        strength=analysis.strength,
        has_valid_pullback=analysis.has_valid_pullback,
        pullbacks=analysis.pullbacks,
    )


def resolve_indicators(
    window: Sequence[Observation],
    config: PipelineConfig,
) -> IndicatorBundle:
    """Use the latest observation's own indicators, else compute them."""
    latest = window[-1]
    if latest.indicators is not None:
        return latest.indicators
    prices = [o.price for o in window]
    volumes = [o.volume or 0.0 for o in window]
    return compute_indicators(prices, volumes, config.indicators)


# =============================================================================
# Entry point
# =============================================================================

def extract_features(
    window: Sequence[Observation],
    analysis: PullbackAnalysis,
    market_context: MarketContext | None = None,
    config: PipelineConfig | None = None,
    indicators: IndicatorBundle | None = None,
) -> FeatureBundle | None:
    """
    Build the feature bundle for the latest point of a window (pure).

    Args:
        window: Observation window, oldest first
        analysis: Pullback analysis of the same window
        market_context: Optional external market context
        config: Pipeline configuration
        indicators: Indicators already resolved for this window, if any

    Returns:
        FeatureBundle, or None when the window is shorter than
        ``config.pullback_analysis_depth``
    """
    cfg = config or PipelineConfig()
    if len(window) < cfg.pullback_analysis_depth:
        logger.debug(
            f"Window too short for features: {len(window)} < {cfg.pullback_analysis_depth}"
        )
        return None

    prices = [o.price for o in window]
    volumes = [o.volume or 0.0 for o in window]

    if indicators is None:
        indicators = resolve_indicators(window, cfg)
    patterns, shapes = analyze_price_action(window, cfg.pattern_lookback)
    distance_to_high, distance_to_low, price_range = support_resistance(prices)
    context = market_context or MarketContext()

    return FeatureBundle(
        technical=_technical_features(indicators),
        price_action=PriceActionFeatures(
            patterns=tuple(patterns),
            recent_candles=tuple(shapes),
            body_ratio=shapes[-1].body_ratio if shapes else 0.0,
        ),
        pullback=_pullback_features(analysis),
        market=MarketFeatures(
            price=prices[-1],
            volatility=returns_volatility(prices),
            momentum=relative_change(prices),
            volume_trend=relative_change(volumes),
            trend_strength=trend_strength(prices, cfg.trend_min_samples),
            distance_to_high=distance_to_high,
            distance_to_low=distance_to_low,
            range=price_range,
            market_cap=context.market_cap,
            volume_24h=context.volume_24h,
            price_change_24h=context.price_change_24h,
            context_volatility=context.volatility,
        ),
    )
