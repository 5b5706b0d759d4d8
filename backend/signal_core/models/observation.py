"""Observation (market snapshot) data models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from signal_core.models.indicators import IndicatorBundle
from signal_core.models.enums import Direction


class CandleShape(BaseModel):
    """Body/range geometry of a single candle."""

    model_config = ConfigDict(frozen=True)

    color: Direction
    body_size: float
    total_size: float
    body_ratio: float


class Observation(BaseModel):
    """A single time-stamped market snapshot.

    Prices must be finite and positive; anything else is rejected here,
    before the observation enters the pipeline.
    """

    model_config = ConfigDict(frozen=True)

    instrument: str = ""
    timestamp: datetime
    price: float = Field(gt=0, allow_inf_nan=False)
    volume: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    open: float | None = Field(default=None, gt=0, allow_inf_nan=False)
    high: float | None = Field(default=None, gt=0, allow_inf_nan=False)
    low: float | None = Field(default=None, gt=0, allow_inf_nan=False)
    indicators: IndicatorBundle | None = None

    @model_validator(mode="after")
    def _check_range(self) -> Observation:
        if self.high is not None and self.low is not None and self.high < self.low:
            raise ValueError(f"high {self.high} is below low {self.low}")
        return self

    @property
    def has_ohlc(self) -> bool:
        """Check whether open, high and low are all present."""
        return self.open is not None and self.high is not None and self.low is not None

    @property
    def is_bullish(self) -> bool:
        """Check if this is a bullish (green) candle."""
        return self.open is not None and self.price > self.open

    def candle_shape(self) -> CandleShape | None:
        """Get the candle geometry, or None when OHLC is incomplete."""
        if not self.has_ohlc:
            return None
        body = abs(self.price - self.open)
        total = self.high - self.low
        return CandleShape(
            color=Direction.UP if self.price > self.open else Direction.DOWN,
            body_size=body,
            total_size=total,
            body_ratio=body / total if total > 0 else 0.0,
        )


class MarketContext(BaseModel):
    """Optional market-wide context supplied by a data provider."""

    model_config = ConfigDict(frozen=True)

    market_cap: float = 0.0
    volume_24h: float = 0.0
    price_change_24h: float = 0.0  # percent

    @property
    def volatility(self) -> float:
        return abs(self.price_change_24h)
