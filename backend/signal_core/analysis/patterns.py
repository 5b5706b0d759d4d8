"""Single-candle pattern classification.

A candle is classified from its body-to-range ratio and shadow lengths:

- body/range < 0.1                      -> doji
- 0.1 <= body/range < 0.3, lower shadow > 2 x body -> hammer
- 0.1 <= body/range < 0.3, upper shadow > 2 x body -> shooting_star
- body/range > 0.8                      -> marubozu (up or down by color)

A candle may carry more than one label (hammer and shooting_star can both
match a spinning top with long shadows).
"""

from __future__ import annotations

from typing import Sequence

from signal_core.models.enums import CandlePattern
from signal_core.models.observation import CandleShape, Observation

DOJI_MAX_RATIO = 0.1
SMALL_BODY_MAX_RATIO = 0.3
MARUBOZU_MIN_RATIO = 0.8
SHADOW_BODY_MULTIPLE = 2.0


def classify_candle(
    open_price: float,
    high: float,
    low: float,
    close: float,
) -> list[CandlePattern]:
    """
    Classify one candle.

    Args:
        open_price: Open price
        high: High price
        low: Low price
        close: Close price

    Returns:
        Every pattern the candle matches, possibly empty
    """
    body = abs(close - open_price)
    total = high - low
    body_ratio = body / total if total > 0 else 0.0

    patterns: list[CandlePattern] = []

    if body_ratio < DOJI_MAX_RATIO:
        patterns.append(CandlePattern.DOJI)
    elif body_ratio < SMALL_BODY_MAX_RATIO:
        upper_shadow = high - max(open_price, close)
        lower_shadow = min(open_price, close) - low
        if lower_shadow > body * SHADOW_BODY_MULTIPLE:
            patterns.append(CandlePattern.HAMMER)
        if upper_shadow > body * SHADOW_BODY_MULTIPLE:
            patterns.append(CandlePattern.SHOOTING_STAR)
    elif body_ratio > MARUBOZU_MIN_RATIO:
        if close > open_price:
            patterns.append(CandlePattern.MARUBOZU_UP)
        else:
            patterns.append(CandlePattern.MARUBOZU_DOWN)

    return patterns


def classify_observation(observation: Observation) -> list[CandlePattern]:
    """Classify an observation's candle; empty when OHLC is incomplete."""
    if not observation.has_ohlc:
        return []
    return classify_candle(
        observation.open,
        observation.high,
        observation.low,
        observation.price,
    )


def analyze_price_action(
    observations: Sequence[Observation],
    lookback: int = 3,
) -> tuple[list[CandlePattern], list[CandleShape]]:
    """
    Scan the trailing candles for patterns.

    Args:
        observations: Observation window, oldest first
        lookback: Number of trailing observations to scan

    Returns:
        Tuple of (patterns in candle order, candle shapes). Observations
        without OHLC contribute nothing.
    """
    patterns: list[CandlePattern] = []
    shapes: list[CandleShape] = []

    for obs in observations[-lookback:]:
        shape = obs.candle_shape()
        if shape is None:
            continue
        shapes.append(shape)
        patterns.extend(classify_observation(obs))

    return patterns, shapes
