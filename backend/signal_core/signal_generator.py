"""Signal generation pipeline and service.

``evaluate_window`` / ``generate_signal`` are pure: indicators ->
pullback analysis -> features -> scoring -> validation, reading an
explicit WeightTable.

``SignalGenerator`` wraps the pipeline for a long-running host. All I/O is
injected via callbacks, so it works the same in live polling and in
offline replays. It holds the current WeightTable as an immutable
snapshot: evaluations read whichever table was current when they started,
and a training run swaps in a new table only once it has completed.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Iterable, Mapping, Sequence

from signal_core.analysis.pullbacks import analyze_pullbacks
from signal_core.features import extract_features, resolve_indicators
from signal_core.models.config import PipelineConfig, TrainingConfig
from signal_core.models.enums import ValidationCheck
from signal_core.models.observation import MarketContext, Observation
from signal_core.models.signal import Signal, SignalDecision, TrainingResult
from signal_core.models.weights import WeightTable
from signal_core.scoring import (
    build_rationale,
    confidence_from_scores,
    predict_from_scores,
    score_both,
)
from signal_core.training import check_window, train
from signal_core.validator import SignalValidator

logger = logging.getLogger(__name__)

# Type aliases for callbacks
SignalCallback = Callable[[Signal], Awaitable[None]]
SaveSignalCallback = Callable[[Signal], Awaitable[None]]
SaveWeightsCallback = Callable[[WeightTable, TrainingResult], Awaitable[None]]
LoadWeightsCallback = Callable[[], Awaitable[WeightTable | None]]


# =============================================================================
# Pure pipeline
# =============================================================================

def evaluate_window(
    instrument: str,
    window: Sequence[Observation],
    weights: WeightTable,
    config: PipelineConfig | None = None,
    market_context: MarketContext | None = None,
    now: datetime | None = None,
) -> SignalDecision:
    """
    Run the full pipeline on one observation window.

    Args:
        instrument: Instrument identifier
        window: Observation window, oldest first
        weights: Weight table snapshot to score with
        config: Pipeline configuration
        market_context: Optional external market context
        now: Reference time (defaults to now, UTC)

    Returns:
        SignalDecision with the signal, or the check that rejected it
    """
    cfg = config or PipelineConfig()
    now = now or datetime.now(timezone.utc)

    if len(window) < cfg.pullback_analysis_depth:
        detail = f"{len(window)} observations < {cfg.pullback_analysis_depth}"
        logger.debug(f"Insufficient data for {instrument}: {detail}")
        return SignalDecision(rejected_by=ValidationCheck.INSUFFICIENT_DATA, detail=detail)

    # Pullbacks are the primary filter; skip scoring without one
    analysis = analyze_pullbacks([o.price for o in window], cfg)
    if not analysis.has_valid_pullback:
        logger.debug(f"No valid pullback for {instrument}")
        return SignalDecision(
            rejected_by=ValidationCheck.PULLBACK,
            detail="no valid pullback",
        )

    indicators = resolve_indicators(window, cfg)
    features = extract_features(window, analysis, market_context, cfg, indicators)
    if features is None:
        return SignalDecision(
            rejected_by=ValidationCheck.INSUFFICIENT_DATA,
            detail="no features",
        )

    score_up, score_down = score_both(features, weights)
    direction = predict_from_scores(score_up, score_down)

    signal = Signal(
        instrument=instrument,
        direction=direction,
        confidence=confidence_from_scores(score_up, score_down),
        rationale=tuple(build_rationale(features, direction)),
        score_up=score_up,
        score_down=score_down,
        features=features,
        weights=weights,
        indicators=indicators,
        model_version=cfg.model_version,
        observed_at=window[-1].timestamp,
        timestamp=now,
    )

    decision = SignalValidator(cfg).validate(signal, window, analysis, now=now)
    if decision.accepted:
        logger.info(
            f"{direction.value} signal: {instrument} @ {window[-1].price} "
            f"confidence={signal.confidence}% ({signal.reason})"
        )
    return decision


def generate_signal(
    instrument: str,
    window: Sequence[Observation],
    weights: WeightTable,
    config: PipelineConfig | None = None,
    market_context: MarketContext | None = None,
    now: datetime | None = None,
) -> Signal | None:
    """Run the pipeline and return the released signal, or None."""
    return evaluate_window(
        instrument, window, weights, config, market_context, now
    ).signal


# =============================================================================
# Service
# =============================================================================

class SignalGenerator:
    """
    Long-running wrapper around the pipeline.

    All I/O operations are injected via callbacks:
    - save_signal: Persist a released signal (e.g., to a database)
    - save_weights: Persist weights after a training run
    - load_weights: Load persisted weights at startup

    Training runs are serialised; weight updates are atomic reference swaps
    of an immutable table.
    """

    def __init__(
        self,
        config: PipelineConfig | None = None,
        training_config: TrainingConfig | None = None,
        weights: WeightTable | None = None,
        save_signal: SaveSignalCallback | None = None,
        save_weights: SaveWeightsCallback | None = None,
        load_weights: LoadWeightsCallback | None = None,
    ):
        self.config = config or PipelineConfig()
        self.training_config = training_config or TrainingConfig()
        check_window(self.training_config, self.config)
        self._weights = weights or WeightTable()

        # Injected callbacks (None = no-op, e.g., in replay mode)
        self._save_signal = save_signal
        self._save_weights = save_weights
        self._load_weights = load_weights

        self._callbacks: list[SignalCallback] = []
        self._train_lock = asyncio.Lock()
        self._initialized = False

    @property
    def weights(self) -> WeightTable:
        """Current weight snapshot."""
        return self._weights

    async def init(self) -> None:
        """Load persisted weights, if a loader was provided."""
        if self._initialized:
            return

        if self._load_weights:
            loaded = await self._load_weights()
            if loaded is not None:
                self._weights = loaded
                logger.info("Loaded persisted weights")
            else:
                logger.info("No persisted weights found, using defaults")

        self._initialized = True

    def on_signal(self, callback: SignalCallback) -> None:
        """Register callback for new signals.

        Note: Duplicate callbacks are ignored.
        """
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def off_signal(self, callback: SignalCallback) -> None:
        """Unregister callback for new signals."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def evaluate(
        self,
        instrument: str,
        window: Sequence[Observation],
        market_context: MarketContext | None = None,
        now: datetime | None = None,
    ) -> SignalDecision:
        """Evaluate a window against the current weight snapshot."""
        return evaluate_window(
            instrument, window, self._weights, self.config, market_context, now
        )

    async def _publish(self, decision: SignalDecision) -> SignalDecision:
        signal = decision.signal
        if signal is None:
            return decision

        if self._save_signal:
            try:
                await self._save_signal(signal)
            except Exception as e:
                logger.error(
                    f"Failed to save signal {signal.id}: {e}. "
                    "Signal will NOT be released."
                )
                return SignalDecision(detail=f"save failed: {e}")

        for callback in self._callbacks:
            try:
                await callback(signal)
            except Exception as e:
                logger.error(f"Signal callback error: {e}")

        return decision

    async def process_window(
        self,
        instrument: str,
        window: Sequence[Observation],
        market_context: MarketContext | None = None,
        now: datetime | None = None,
    ) -> SignalDecision:
        """
        Evaluate one instrument and publish a released signal.

        Returns:
            The decision; a signal that could not be saved is dropped
        """
        decision = self.evaluate(instrument, window, market_context, now)
        return await self._publish(decision)

    async def _evaluate_isolated(
        self,
        instrument: str,
        window: Sequence[Observation],
        market_context: MarketContext | None,
        now: datetime | None,
    ) -> SignalDecision:
        try:
            return await asyncio.to_thread(
                self.evaluate, instrument, window, market_context, now
            )
        except Exception as e:
            logger.error(f"Evaluation failed for {instrument}: {e}")
            return SignalDecision(detail=f"evaluation failed: {e}")

    async def process_many(
        self,
        windows: Mapping[str, Sequence[Observation]],
        market_contexts: Mapping[str, MarketContext] | None = None,
        now: datetime | None = None,
    ) -> dict[str, SignalDecision]:
        """
        Evaluate several instruments concurrently.

        Each instrument runs on its own worker thread; instruments share no
        state besides the (immutable) weight snapshot.
        An instrument whose evaluation raises gets an unaccepted decision;
        the others are unaffected.
        """
        contexts = market_contexts or {}
        instruments = list(windows)
        decisions = await asyncio.gather(
            *(
                self._evaluate_isolated(
                    instrument,
                    windows[instrument],
                    contexts.get(instrument),
                    now,
                )
                for instrument in instruments
            )
        )

        results: dict[str, SignalDecision] = {}
        for instrument, decision in zip(instruments, decisions):
            results[instrument] = await self._publish(decision)
        return results

    async def retrain(self, history: Iterable[Observation]) -> TrainingResult:
        """
        Run a training cycle and swap in the updated weights.

        Concurrent calls queue behind each other.
        """
        async with self._train_lock:
            result = await asyncio.to_thread(
                train,
                list(history),
                self._weights,
                self.training_config,
                self.config,
            )
            if result.skipped:
                return result

            self._weights = result.weights

            if self._save_weights:
                try:
                    await self._save_weights(result.weights, result)
                except Exception as e:
                    logger.error(f"Failed to save weights: {e}")

            return result
