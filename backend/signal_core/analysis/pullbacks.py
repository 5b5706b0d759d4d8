"""Peak/valley detection and pullback (retracement) analysis.

A pullback is a peak, the lowest valley strictly between it and the next
peak, and that next peak. When several valleys sit between two peaks the
lowest one is used; on an exact price tie the earliest valley wins.
"""

from __future__ import annotations

import logging
from typing import Sequence

from signal_core.models.analysis import (
    Extremum,
    Pullback,
    PullbackAnalysis,
    PullbackMetrics,
)
from signal_core.models.config import PipelineConfig
from signal_core.models.enums import ExtremumKind, Trend

logger = logging.getLogger(__name__)

# Pullbacks recovering more than this fraction count as successful
SUCCESS_RECOVERY = 0.5


# =============================================================================
# Extrema
# =============================================================================

def find_extrema(prices: Sequence[float]) -> tuple[list[Extremum], list[Extremum]]:
    """
    Find strict local maxima and minima in one pass.

    Boundary points are never extrema; flat neighbours disqualify a point.

    Returns:
        Tuple of (peaks, valleys), each ordered by index
    """
    peaks: list[Extremum] = []
    valleys: list[Extremum] = []

    for i in range(1, len(prices) - 1):
        prev_price, price, next_price = prices[i - 1], prices[i], prices[i + 1]
        if price > prev_price and price > next_price:
            peaks.append(Extremum(index=i, price=price, kind=ExtremumKind.PEAK))
        elif price < prev_price and price < next_price:
            valleys.append(Extremum(index=i, price=price, kind=ExtremumKind.VALLEY))

    return peaks, valleys


def find_peaks(prices: Sequence[float]) -> list[Extremum]:
    """Strict local maxima ordered by index."""
    return find_extrema(prices)[0]


def find_valleys(prices: Sequence[float]) -> list[Extremum]:
    """Strict local minima ordered by index."""
    return find_extrema(prices)[1]


# =============================================================================
# Pullbacks
# =============================================================================

def identify_pullbacks(
    peaks: Sequence[Extremum],
    valleys: Sequence[Extremum],
) -> list[Pullback]:
    """
    Pair each peak with the next one and the lowest valley between them.

    Args:
        peaks: Peaks ordered by index
        valleys: Valleys ordered by index

    Returns:
        Pullbacks in chronological order; peak pairs with no valley
        between them are skipped
    """
    pullbacks: list[Pullback] = []

    for peak, next_peak in zip(peaks, peaks[1:]):
        between = [v for v in valleys if peak.index < v.index < next_peak.index]
        if not between:
            continue
        # min() keeps the first of equal prices, i.e. the earliest valley
        valley = min(between, key=lambda v: v.price)
        pullbacks.append(Pullback(peak=peak, valley=valley, next_peak=next_peak))

    return pullbacks


def pullback_metrics(pullbacks: Sequence[Pullback]) -> PullbackMetrics:
    """Aggregate depth and recovery statistics."""
    if not pullbacks:
        return PullbackMetrics()

    depths = [p.depth for p in pullbacks]
    recoveries = [p.recovery for p in pullbacks]

    return PullbackMetrics(
        avg_depth=sum(depths) / len(depths),
        avg_recovery=sum(recoveries) / len(recoveries),
        max_depth=max(depths),
        min_depth=min(depths),
        success_rate=sum(1 for r in recoveries if r > SUCCESS_RECOVERY) / len(recoveries),
    )


def pullback_strength(pullbacks: Sequence[Pullback]) -> float:
    """Mean of depth x recovery over all pullbacks (0.0 when none)."""
    if not pullbacks:
        return 0.0
    return sum(p.strength for p in pullbacks) / len(pullbacks)


# =============================================================================
# Trend
# =============================================================================

def classify_trend(
    prices: Sequence[float],
    config: PipelineConfig | None = None,
) -> Trend:
    """
    Bucket the whole-window change ``(last - first) / first``.

    Args:
        prices: Price window, oldest first
        config: Supplies the trend thresholds

    Returns:
        Trend label; NEUTRAL when the window is too short
    """
    cfg = config or PipelineConfig()
    if len(prices) < cfg.trend_min_samples:
        return Trend.NEUTRAL

    change = (prices[-1] - prices[0]) / prices[0]

    if change > cfg.strong_trend_threshold:
        return Trend.STRONG_UPTREND
    if change > cfg.trend_threshold:
        return Trend.UPTREND
    if change < -cfg.strong_trend_threshold:
        return Trend.STRONG_DOWNTREND
    if change < -cfg.trend_threshold:
        return Trend.DOWNTREND
    return Trend.SIDEWAYS


# =============================================================================
# Analysis entry point
# =============================================================================

def analyze_pullbacks(
    prices: Sequence[float],
    config: PipelineConfig | None = None,
) -> PullbackAnalysis:
    """
    Analyse a price window for pullbacks (pure).

    The window has a valid pullback when at least one pullback exists and
    the mean depth exceeds ``config.pullback_min_depth``.

    Args:
        prices: Price window, oldest first
        config: Pipeline configuration

    Returns:
        PullbackAnalysis
    """
    cfg = config or PipelineConfig()
    prices = [float(p) for p in prices]

    peaks, valleys = find_extrema(prices)
    pullbacks = identify_pullbacks(peaks, valleys)
    metrics = pullback_metrics(pullbacks)

    has_valid = len(pullbacks) > 0 and metrics.avg_depth > cfg.pullback_min_depth

    logger.debug(
        f"Pullback analysis: {len(peaks)} peaks, {len(valleys)} valleys, "
        f"{len(pullbacks)} pullbacks, avg depth {metrics.avg_depth:.4f}, valid={has_valid}"
    )

    return PullbackAnalysis(
        peaks=tuple(peaks),
        valleys=tuple(valleys),
        pullbacks=tuple(pullbacks),
        metrics=metrics,
        trend=classify_trend(prices, cfg),
        strength=pullback_strength(pullbacks),
        has_valid_pullback=has_valid,
    )
