"""Enumerations shared across the signal models."""

from __future__ import annotations

from enum import Enum


class Direction(str, Enum):
    """Predicted direction of the next period."""

    UP = "UP"
    DOWN = "DOWN"


class CandlePattern(str, Enum):
    """Single-candle pattern labels."""

    DOJI = "doji"
    HAMMER = "hammer"
    SHOOTING_STAR = "shooting_star"
    MARUBOZU_UP = "marubozu_up"
    MARUBOZU_DOWN = "marubozu_down"


class ExtremumKind(str, Enum):
    PEAK = "peak"
    VALLEY = "valley"


class Trend(str, Enum):
    """Whole-window trend label."""

    STRONG_UPTREND = "strong_uptrend"
    UPTREND = "uptrend"
    SIDEWAYS = "sideways"
    DOWNTREND = "downtrend"
    STRONG_DOWNTREND = "strong_downtrend"
    NEUTRAL = "neutral"  # window too short to classify

    @property
    def bias(self) -> Direction | None:
        """Direction this trend favours, if any."""
        if self in (Trend.STRONG_UPTREND, Trend.UPTREND):
            return Direction.UP
        if self in (Trend.STRONG_DOWNTREND, Trend.DOWNTREND):
            return Direction.DOWN
        return None


class ValidationCheck(str, Enum):
    """Gate that rejected a candidate signal."""

    INSUFFICIENT_DATA = "insufficient_data"
    CONFIDENCE = "confidence"
    DATA_FRESHNESS = "data_freshness"
    VOLUME = "volume"
    VOLATILITY = "volatility"
    PULLBACK = "pullback"
