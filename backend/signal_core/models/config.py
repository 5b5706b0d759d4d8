"""Pipeline and training configuration models.

Invalid values are rejected when the model is constructed
(``pydantic.ValidationError``); a bad configuration never reaches the
pipeline.
"""

from __future__ import annotations

from datetime import timedelta

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, model_validator


class IndicatorConfig(BaseModel):
    """Indicator periods."""

    model_config = ConfigDict(frozen=True)

    sma_fast_period: PositiveInt = 20
    sma_slow_period: PositiveInt = 50
    ema_fast_period: PositiveInt = 12
    ema_slow_period: PositiveInt = 26
    rsi_period: PositiveInt = 14
    macd_signal_period: PositiveInt = 9
    bollinger_period: PositiveInt = 20
    bollinger_width: float = Field(default=2.0, gt=0)
    volume_sma_period: PositiveInt = 20

    @model_validator(mode="after")
    def _check_macd_periods(self) -> IndicatorConfig:
        if self.ema_fast_period >= self.ema_slow_period:
            raise ValueError("ema_fast_period must be shorter than ema_slow_period")
        return self


class PipelineConfig(BaseModel):
    """Signal generation parameters."""

    model_config = ConfigDict(frozen=True)

    indicators: IndicatorConfig = IndicatorConfig()

    # Release gates
    confidence_threshold: float = Field(default=85.0, ge=0, le=100)
    max_data_age: timedelta = timedelta(minutes=5)
    volume_floor: float = Field(default=1000.0, ge=0)
    volatility_floor: float = Field(default=0.001, ge=0)
    volatility_lookback: int = Field(default=10, ge=2)

    # Pullback analysis
    pullback_min_depth: float = Field(default=0.02, ge=0, lt=1)
    pullback_analysis_depth: int = Field(default=20, ge=3)

    # Trend buckets on whole-window change
    trend_threshold: float = Field(default=0.02, gt=0)
    strong_trend_threshold: float = Field(default=0.05, gt=0)
    trend_min_samples: PositiveInt = 10

    # Number of trailing candles scanned for patterns
    pattern_lookback: PositiveInt = 3

    model_version: str = "1.0.0"

    @model_validator(mode="after")
    def _check_thresholds(self) -> PipelineConfig:
        if self.strong_trend_threshold <= self.trend_threshold:
            raise ValueError("strong_trend_threshold must exceed trend_threshold")
        if self.max_data_age <= timedelta(0):
            raise ValueError("max_data_age must be positive")
        return self


class TrainingConfig(BaseModel):
    """Simulated training parameters.

    Accuracy values are percentages (0-100).
    """

    model_config = ConfigDict(frozen=True)

    epochs: PositiveInt = 100
    batch_size: PositiveInt = 32
    target_accuracy: float = Field(default=80.0, ge=0, le=100)
    window_size: int = Field(default=20, ge=3)
    min_samples: PositiveInt = 100

    reinforce_above: float = Field(default=80.0, ge=0, le=100)
    dampen_below: float = Field(default=60.0, ge=0, le=100)
    reinforce_factor: float = Field(default=1.01, gt=0)
    dampen_factor: float = Field(default=0.99, gt=0)

    # Clamp applied after every update; repeated runs otherwise drift geometrically
    weight_min: float = Field(default=0.001, gt=0)
    weight_max: float = Field(default=10.0, gt=0)

    log_every: PositiveInt = 20

    @model_validator(mode="after")
    def _check_bounds(self) -> TrainingConfig:
        if self.dampen_below > self.reinforce_above:
            raise ValueError("dampen_below must not exceed reinforce_above")
        if self.weight_min >= self.weight_max:
            raise ValueError("weight_min must be below weight_max")
        return self
