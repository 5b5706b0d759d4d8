"""Heuristic scoring engine.

Each candidate direction accumulates weighted evidence from the feature
bundle; the higher-scoring direction is the prediction. Scoring only
reads the WeightTable and FeatureBundle.

Evidence rules (weight in brackets):
- RSI below 70 -> UP, above 30 -> DOWN                  [technical.rsi]
- MACD line above/below its signal line                 [technical.macd]
- price below lower band -> UP, above upper -> DOWN     [technical.bollinger]
- hammer -> UP, shooting star -> DOWN                   [price_action.patterns]
- trend label favouring the direction                   [pullback.trend]
- any pullback present -> UP                            [pullback.pullbacks]
- positive/negative momentum                            [market.momentum]
- positive/negative volume trend                        [market.volume]
"""

from __future__ import annotations

from signal_core.models.enums import CandlePattern, Direction
from signal_core.models.features import FeatureBundle
from signal_core.models.weights import WeightTable

RSI_OVERBOUGHT = 70.0
RSI_OVERSOLD = 30.0
NEUTRAL_CONFIDENCE = 50


def score(features: FeatureBundle, direction: Direction, weights: WeightTable) -> float:
    """
    Score the evidence for one direction.

    Args:
        features: Feature bundle for the decision point
        direction: Candidate direction
        weights: Weight table to read

    Returns:
        Score clamped to [0, 1]
    """
    up = direction == Direction.UP
    tech = features.technical
    total = 0.0

    # RSI: reward the non-extreme side
    if up and tech.rsi < RSI_OVERBOUGHT:
        total += weights.technical.rsi
    if not up and tech.rsi > RSI_OVERSOLD:
        total += weights.technical.rsi

    # MACD
    if up and tech.macd > tech.macd_signal:
        total += weights.technical.macd
    if not up and tech.macd < tech.macd_signal:
        total += weights.technical.macd

    # Bollinger band extremes (only when bands exist)
    if tech.bollinger_lower is not None and tech.bollinger_upper is not None:
        price = features.market.price
        if up and price < tech.bollinger_lower:
            total += weights.technical.bollinger
        if not up and price > tech.bollinger_upper:
            total += weights.technical.bollinger

    # Candle patterns
    patterns = features.price_action.patterns
    if up and CandlePattern.HAMMER in patterns:
        total += weights.price_action.patterns
    if not up and CandlePattern.SHOOTING_STAR in patterns:
        total += weights.price_action.patterns

    # Trend and pullbacks
    pb = features.pullback
    if pb.trend.bias == direction:
        total += weights.pullback.trend
    if up and pb.pullback_count > 0:
        total += weights.pullback.pullbacks

    # Momentum and volume trend
    market = features.market
    if up and market.momentum > 0:
        total += weights.market.momentum
    if not up and market.momentum < 0:
        total += weights.market.momentum
    if up and market.volume_trend > 0:
        total += weights.market.volume
    if not up and market.volume_trend < 0:
        total += weights.market.volume

    return max(0.0, min(1.0, total))


def score_both(features: FeatureBundle, weights: WeightTable) -> tuple[float, float]:
    """Return (score_up, score_down)."""
    return score(features, Direction.UP, weights), score(features, Direction.DOWN, weights)


def predict_from_scores(score_up: float, score_down: float) -> Direction:
    """Pick the higher-scoring direction; an exact tie resolves to UP."""
    return Direction.UP if score_up >= score_down else Direction.DOWN


def confidence_from_scores(score_up: float, score_down: float) -> int:
    """
    Normalised margin between the two scores.

    Returns:
        round(100 * max / (up + down)) in [50, 100]; 50 when both are zero
    """
    total = score_up + score_down
    if total <= 0:
        return NEUTRAL_CONFIDENCE
    return round(100 * max(score_up, score_down) / total)


def predict(features: FeatureBundle, weights: WeightTable) -> Direction:
    """Predict the next-period direction."""
    return predict_from_scores(*score_both(features, weights))


def confidence(features: FeatureBundle, weights: WeightTable) -> int:
    """Confidence (0-100) of the prediction."""
    return confidence_from_scores(*score_both(features, weights))


def build_rationale(features: FeatureBundle, direction: Direction) -> list[str]:
    """
    Short human-readable reasons supporting a prediction, in fixed order.

    Returns:
        Reason strings; a generic reason when nothing specific applies
    """
    reasons: list[str] = []
    up = direction == Direction.UP
    pb = features.pullback
    tech = features.technical
    patterns = features.price_action.patterns

    if pb.has_valid_pullback:
        reasons.append(f"Pullback detected ({pb.avg_depth * 100:.1f}% depth)")

    if up and tech.rsi < RSI_OVERSOLD:
        reasons.append("RSI oversold")
    elif not up and tech.rsi > RSI_OVERBOUGHT:
        reasons.append("RSI overbought")

    if up and CandlePattern.HAMMER in patterns:
        reasons.append("Hammer pattern detected")
    elif not up and CandlePattern.SHOOTING_STAR in patterns:
        reasons.append("Shooting star pattern detected")

    if pb.trend.bias == Direction.UP and up:
        reasons.append("Uptrend")
    elif pb.trend.bias == Direction.DOWN and not up:
        reasons.append("Downtrend")

    return reasons or ["General technical analysis"]
