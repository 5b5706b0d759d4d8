"""Technical indicators for signal generation.

All functions take an ordered price window (oldest first) and return the
latest indicator value, or ``None`` when the window is shorter than the
indicator's period. Insufficient data is never an error.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from signal_core.models.config import IndicatorConfig
from signal_core.models.indicators import BollingerBands, IndicatorBundle, MacdValues


def _as_array(values: Sequence[float]) -> np.ndarray:
    """Convert a price window to a float array, rejecting malformed input.

    Raises:
        ValueError: If any value is non-numeric or non-finite
    """
    arr = np.asarray(values, dtype=np.float64)
    if arr.ndim != 1:
        raise ValueError(f"Expected a 1-D price window, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise ValueError("Price window contains non-finite values")
    return arr


# =============================================================================
# Moving averages
# =============================================================================

def sma(values: Sequence[float], period: int) -> float | None:
    """
    Calculate Simple Moving Average of the last ``period`` values.

    Args:
        values: Sequence of price values
        period: SMA period

    Returns:
        SMA value, or None if fewer than ``period`` values
    """
    arr = _as_array(values)
    if period <= 0 or len(arr) < period:
        return None
    return float(np.mean(arr[-period:]))


def ema_series(values: Sequence[float], period: int) -> list[float] | None:
    """
    Calculate the Exponential Moving Average at every index.

    Seeded with the first value of the window, then
    ``ema[i] = price[i] * alpha + ema[i-1] * (1 - alpha)`` with
    ``alpha = 2 / (period + 1)``. Plain float arithmetic keeps the result
    bit-identical across calls.

    Args:
        values: Sequence of price values
        period: EMA period

    Returns:
        List of EMA values (same length as input), or None if fewer than
        ``period`` values
    """
    arr = _as_array(values)
    if period <= 0 or len(arr) < period:
        return None

    alpha = 2.0 / (period + 1)
    result = [float(arr[0])]
    for price in arr[1:]:
        result.append(float(price) * alpha + result[-1] * (1 - alpha))
    return result


def ema(values: Sequence[float], period: int) -> float | None:
    """
    Calculate the latest Exponential Moving Average value.

    Args:
        values: Sequence of price values
        period: EMA period

    Returns:
        EMA value, or None if fewer than ``period`` values
    """
    series = ema_series(values, period)
    if series is None:
        return None
    return series[-1]


# =============================================================================
# Oscillators
# =============================================================================

def rsi(values: Sequence[float], period: int = 14) -> float | None:
    """
    Calculate the Relative Strength Index over the last ``period`` transitions.

    RSI = 100 - 100 / (1 + avg_gain / avg_loss). When the average loss is
    exactly zero the RSI is 100 (fully overbought), including flat windows.

    Args:
        values: Sequence of price values
        period: RSI period

    Returns:
        RSI in [0, 100], or None if fewer than ``period + 1`` values
    """
    arr = _as_array(values)
    if period <= 0 or len(arr) < period + 1:
        return None

    deltas = np.diff(arr[-(period + 1):])
    avg_gain = float(np.sum(deltas[deltas > 0])) / period
    avg_loss = float(-np.sum(deltas[deltas < 0])) / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def macd(
    values: Sequence[float],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> MacdValues | None:
    """
    Calculate MACD line, signal line and histogram.

    The signal line smooths only the single latest MACD value, so with any
    ``signal_period`` above 1 it is insufficient data (None). The histogram
    then equals the MACD line.

    Args:
        values: Sequence of price values
        fast_period: Fast EMA period
        slow_period: Slow EMA period
        signal_period: Signal line EMA period

    Returns:
        MacdValues, or None if either EMA is unavailable
    """
    fast = ema(values, fast_period)
    slow = ema(values, slow_period)
    if fast is None or slow is None:
        return None

    line = fast - slow
    signal = ema([line], signal_period)
    histogram = line - (signal if signal is not None else 0.0)
    return MacdValues(line=line, signal=signal, histogram=histogram)


# =============================================================================
# Volatility
# =============================================================================

def bollinger_bands(
    values: Sequence[float],
    period: int = 20,
    width: float = 2.0,
) -> BollingerBands | None:
    """
    Calculate Bollinger Bands.

    middle = SMA(period), band = width * population std of the last
    ``period`` values.

    Args:
        values: Sequence of price values
        period: Lookback period
        width: Number of standard deviations

    Returns:
        BollingerBands, or None if fewer than ``period`` values
    """
    arr = _as_array(values)
    if period <= 0 or len(arr) < period:
        return None

    window = arr[-period:]
    middle = float(np.mean(window))
    band = width * float(np.std(window))
    return BollingerBands(upper=middle + band, middle=middle, lower=middle - band)


def returns_volatility(values: Sequence[float]) -> float:
    """
    Calculate the population standard deviation of simple returns.

    Args:
        values: Sequence of price values (must be positive)

    Returns:
        Volatility, 0.0 with fewer than two values
    """
    arr = _as_array(values)
    if len(arr) < 2:
        return 0.0
    returns = np.diff(arr) / arr[:-1]
    result = float(np.std(returns))
    return result if math.isfinite(result) else 0.0


# =============================================================================
# IndicatorCalculator class
# =============================================================================

class IndicatorCalculator:
    """Calculator for all technical indicators needed by the scoring engine."""

    def __init__(self, config: IndicatorConfig | None = None):
        self.config = config or IndicatorConfig()

    def calculate(
        self,
        prices: Sequence[float],
        volumes: Sequence[float] | None = None,
    ) -> IndicatorBundle:
        """
        Calculate all indicators for the latest point of the window.

        Args:
            prices: Closing prices, oldest first
            volumes: Optional volumes aligned with ``prices``

        Returns:
            IndicatorBundle with None for every indicator lacking history
        """
        cfg = self.config
        volume_sma = None
        if volumes is not None and len(volumes) > 0:
            volume_sma = sma(volumes, cfg.volume_sma_period)

        return IndicatorBundle(
            sma20=sma(prices, cfg.sma_fast_period),
            sma50=sma(prices, cfg.sma_slow_period),
            ema12=ema(prices, cfg.ema_fast_period),
            ema26=ema(prices, cfg.ema_slow_period),
            rsi=rsi(prices, cfg.rsi_period),
            macd=macd(
                prices,
                cfg.ema_fast_period,
                cfg.ema_slow_period,
                cfg.macd_signal_period,
            ),
            bollinger=bollinger_bands(prices, cfg.bollinger_period, cfg.bollinger_width),
            volume_sma=volume_sma,
        )


def compute_indicators(
    prices: Sequence[float],
    volumes: Sequence[float] | None = None,
    config: IndicatorConfig | None = None,
) -> IndicatorBundle:
    """Compute the indicator bundle for a price window (pure)."""
    return IndicatorCalculator(config).calculate(prices, volumes)
