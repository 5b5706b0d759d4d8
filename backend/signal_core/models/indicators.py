"""Indicator value models.

Every field is ``None`` when the input window was shorter than the period
the indicator needs. ``None`` means "insufficient data", never zero.
"""

from pydantic import BaseModel, ConfigDict


class MacdValues(BaseModel):
    """MACD line, signal line and histogram."""

    model_config = ConfigDict(frozen=True)

    line: float
    signal: float | None = None
    histogram: float


class BollingerBands(BaseModel):
    """Volatility bands around a simple moving average."""

    model_config = ConfigDict(frozen=True)

    upper: float
    middle: float
    lower: float


class IndicatorBundle(BaseModel):
    """Indicators computed from a trailing window of prices."""

    model_config = ConfigDict(frozen=True)

    sma20: float | None = None
    sma50: float | None = None
    ema12: float | None = None
    ema26: float | None = None
    rsi: float | None = None
    macd: MacdValues | None = None
    bollinger: BollingerBands | None = None
    volume_sma: float | None = None
