"""Feature bundle: the sole input to scoring.

Sections mirror the weight categories. Neutral defaults stand in for
missing optional inputs, so a bundle is always fully populated.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from signal_core.models.analysis import Pullback
from signal_core.models.enums import CandlePattern, Trend
from signal_core.models.observation import CandleShape


class TechnicalFeatures(BaseModel):
    model_config = ConfigDict(frozen=True)

    rsi: float = 50.0
    macd: float = 0.0
    macd_signal: float = 0.0
    macd_histogram: float = 0.0
    sma20: float | None = None
    sma50: float | None = None
    ema12: float | None = None
    ema26: float | None = None
    bollinger_upper: float | None = None
    bollinger_middle: float | None = None
    bollinger_lower: float | None = None


class PriceActionFeatures(BaseModel):
    model_config = ConfigDict(frozen=True)

    patterns: tuple[CandlePattern, ...] = ()
    recent_candles: tuple[CandleShape, ...] = ()
    body_ratio: float = 0.0


class PullbackFeatures(BaseModel):
    model_config = ConfigDict(frozen=True)

    peaks: int = 0
    valleys: int = 0
    pullback_count: int = 0
    trend: Trend = Trend.NEUTRAL
    avg_depth: float = 0.0
    avg_recovery: float = 0.0
    strength: float = 0.0
    has_valid_pullback: bool = False
    pullbacks: tuple[Pullback, ...] = ()


class MarketFeatures(BaseModel):
    model_config = ConfigDict(frozen=True)

    price: float
    volatility: float = 0.0
    momentum: float = 0.0
    volume_trend: float = 0.0
    trend_strength: float = 0.0
    distance_to_high: float = 0.0
    distance_to_low: float = 0.0
    range: float = 0.0

    # External market context (zero when not supplied)
    market_cap: float = 0.0
    volume_24h: float = 0.0
    price_change_24h: float = 0.0
    context_volatility: float = 0.0


class FeatureBundle(BaseModel):
    """Flattened features for one decision point."""

    model_config = ConfigDict(frozen=True)

    technical: TechnicalFeatures = TechnicalFeatures()
    price_action: PriceActionFeatures = PriceActionFeatures()
    pullback: PullbackFeatures = PullbackFeatures()
    market: MarketFeatures
