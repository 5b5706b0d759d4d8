"""Release gates applied to candidate signals.

Checks run in a fixed order and the first failure short-circuits:

1. confidence >= threshold
2. latest observation no older than ``max_data_age``
3. latest volume >= floor (skipped when volume is absent)
4. returns volatility of the trailing window >= floor
5. a valid pullback is present

A rejection is a normal "no signal this round" outcome, never an error.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Sequence

from signal_core.indicators import returns_volatility
from signal_core.models.analysis import PullbackAnalysis
from signal_core.models.config import PipelineConfig
from signal_core.models.enums import ValidationCheck
from signal_core.models.observation import Observation
from signal_core.models.signal import Signal, SignalDecision

logger = logging.getLogger(__name__)


def _as_utc(ts: datetime) -> datetime:
    # Naive timestamps are taken to be UTC
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


class SignalValidator:
    """Apply the release gates to a scored candidate signal."""

    def __init__(self, config: PipelineConfig | None = None):
        self.config = config or PipelineConfig()

    def _reject(self, signal: Signal, check: ValidationCheck, detail: str) -> SignalDecision:
        logger.info(f"Signal rejected for {signal.instrument} [{check.value}]: {detail}")
        return SignalDecision(signal=None, rejected_by=check, detail=detail)

    def validate(
        self,
        signal: Signal,
        window: Sequence[Observation],
        analysis: PullbackAnalysis,
        now: datetime | None = None,
    ) -> SignalDecision:
        """
        Run every gate against a candidate signal.

        Args:
            signal: Candidate signal
            window: Observation window the signal was scored on
            analysis: Pullback analysis of that window
            now: Reference time for the freshness check (defaults to now, UTC)

        Returns:
            SignalDecision carrying the signal, or the first failing check
        """
        cfg = self.config

        if signal.confidence < cfg.confidence_threshold:
            return self._reject(
                signal,
                ValidationCheck.CONFIDENCE,
                f"confidence {signal.confidence} < {cfg.confidence_threshold:g}",
            )

        if not window:
            return self._reject(signal, ValidationCheck.INSUFFICIENT_DATA, "empty window")

        latest = window[-1]
        now = _as_utc(now or datetime.now(timezone.utc))
        age = now - _as_utc(latest.timestamp)
        if age > cfg.max_data_age:
            return self._reject(
                signal,
                ValidationCheck.DATA_FRESHNESS,
                f"latest data is {age.total_seconds():.0f}s old",
            )

        if latest.volume is not None and latest.volume < cfg.volume_floor:
            return self._reject(
                signal,
                ValidationCheck.VOLUME,
                f"volume {latest.volume:g} < {cfg.volume_floor:g}",
            )

        recent_prices = [o.price for o in window[-cfg.volatility_lookback:]]
        volatility = returns_volatility(recent_prices)
        if volatility < cfg.volatility_floor:
            return self._reject(
                signal,
                ValidationCheck.VOLATILITY,
                f"volatility {volatility:.5f} < {cfg.volatility_floor:g}",
            )

        if not analysis.has_valid_pullback:
            return self._reject(signal, ValidationCheck.PULLBACK, "no valid pullback")

        return SignalDecision(signal=signal)
