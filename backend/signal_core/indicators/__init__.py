"""Technical indicators (pure math, no I/O)."""

from signal_core.indicators.indicators import (
    sma,
    ema,
    ema_series,
    rsi,
    macd,
    bollinger_bands,
    returns_volatility,
    compute_indicators,
    IndicatorCalculator,
)

__all__ = [
    "sma",
    "ema",
    "ema_series",
    "rsi",
    "macd",
    "bollinger_bands",
    "returns_volatility",
    "compute_indicators",
    "IndicatorCalculator",
]
