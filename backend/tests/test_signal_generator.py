"""Tests for the signal pipeline and SignalGenerator service."""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from signal_core import features as features_module
from signal_core.models import (
    Direction,
    PipelineConfig,
    TrainingConfig,
    ValidationCheck,
    WeightTable,
)
from signal_core.signal_generator import (
    SignalGenerator,
    evaluate_window,
    generate_signal,
)

FAST_TRAINING = TrainingConfig(epochs=2, min_samples=5)


class TestEvaluateWindow:
    """Tests for the pure pipeline."""

    def test_accepted_signal(self, pullback_window, fresh_now):
        decision = evaluate_window("BTC/USDT", pullback_window, WeightTable(), now=fresh_now)
        signal = decision.signal

        assert decision.accepted
        assert signal.direction == Direction.UP
        assert signal.confidence == 100
        assert signal.score_up == pytest.approx(0.80)
        assert signal.score_down == 0.0
        assert signal.rationale == (
            "Pullback detected (3.0% depth)",
            "RSI oversold",
            "Uptrend",
        )
        assert signal.reason == "Pullback detected (3.0% depth), RSI oversold, Uptrend"
        assert signal.observed_at == pullback_window[-1].timestamp
        assert signal.timestamp == fresh_now
        assert signal.signal_type == "NEXT_CANDLE_COLOR"
        assert signal.model_version == "1.0.0"
        assert signal.indicators.rsi == 25.0

    def test_signal_carries_weight_snapshot(self, pullback_window, fresh_now):
        weights = WeightTable.model_validate({"market": {"momentum": 0.3}})
        signal = generate_signal("BTC/USDT", pullback_window, weights, now=fresh_now)

        assert signal.weights == weights
        assert signal.score_up == pytest.approx(0.90)

    def test_no_pullback_rejected_before_scoring(self, rising_window):
        now = rising_window[-1].timestamp
        decision = evaluate_window("BTC/USDT", rising_window, WeightTable(), now=now)

        assert decision.rejected_by == ValidationCheck.PULLBACK
        assert generate_signal("BTC/USDT", rising_window, WeightTable(), now=now) is None

    def test_low_volume_rejected(self, make_window, pullback_prices, oversold_indicators, fresh_now):
        window = make_window(
            pullback_prices, latest_volume=500.0, latest_indicators=oversold_indicators
        )
        decision = evaluate_window("BTC/USDT", window, WeightTable(), now=fresh_now)

        assert decision.rejected_by == ValidationCheck.VOLUME

    def test_short_window(self, pullback_window, fresh_now):
        decision = evaluate_window(
            "BTC/USDT", pullback_window[:10], WeightTable(), now=fresh_now
        )

        assert decision.rejected_by == ValidationCheck.INSUFFICIENT_DATA
        assert decision.detail == "10 observations < 20"

    def test_low_confidence_rejected(self, make_window, pullback_prices, fresh_now):
        """Computed indicators on this window leave the scores too close."""
        window = make_window(pullback_prices)
        config = PipelineConfig(confidence_threshold=100)
        decision = evaluate_window("BTC/USDT", window, WeightTable(), config, now=fresh_now)

        assert decision.rejected_by == ValidationCheck.CONFIDENCE

    def test_signal_id_is_deterministic(self, pullback_window, fresh_now):
        first = generate_signal("BTC/USDT", pullback_window, WeightTable(), now=fresh_now)
        later = generate_signal(
            "BTC/USDT", pullback_window, WeightTable(), now=fresh_now + timedelta(seconds=1)
        )
        other = generate_signal("ETH/USDT", pullback_window, WeightTable(), now=fresh_now)

        assert len(first.id) == 32
        assert first.id == later.id
        assert first.id != other.id

    def test_indicators_computed_once(self, make_window, pullback_prices, fresh_now, monkeypatch):
        """A window without indicators has them computed a single time."""
        calls = []
        original = features_module.compute_indicators

        def counting(*args, **kwargs):
            calls.append(args)
            return original(*args, **kwargs)

        monkeypatch.setattr(features_module, "compute_indicators", counting)
        decision = evaluate_window(
            "BTC/USDT", make_window(pullback_prices), WeightTable(), now=fresh_now
        )

        assert decision.rejected_by != ValidationCheck.PULLBACK
        assert len(calls) == 1


class TestSignalGenerator:
    """Tests for the SignalGenerator service."""

    def test_mismatched_window_rejected(self):
        with pytest.raises(ValueError):
            SignalGenerator(
                config=PipelineConfig(pullback_analysis_depth=30),
                training_config=TrainingConfig(window_size=20),
            )

    @pytest.mark.asyncio
    async def test_init_loads_weights(self):
        persisted = WeightTable.model_validate({"technical": {"rsi": 0.5}})
        loader = AsyncMock(return_value=persisted)
        generator = SignalGenerator(load_weights=loader)

        await generator.init()
        await generator.init()

        assert generator.weights == persisted
        loader.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_init_keeps_defaults_when_nothing_persisted(self):
        generator = SignalGenerator(load_weights=AsyncMock(return_value=None))
        await generator.init()
        assert generator.weights == WeightTable()

    @pytest.mark.asyncio
    async def test_process_window_saves_and_notifies(self, pullback_window, fresh_now):
        save_signal = AsyncMock()
        listener = AsyncMock()
        generator = SignalGenerator(save_signal=save_signal)
        generator.on_signal(listener)
        generator.on_signal(listener)

        decision = await generator.process_window("BTC/USDT", pullback_window, now=fresh_now)

        assert decision.accepted
        save_signal.assert_awaited_once_with(decision.signal)
        listener.assert_awaited_once_with(decision.signal)

    @pytest.mark.asyncio
    async def test_rejected_window_not_published(self, rising_window):
        save_signal = AsyncMock()
        generator = SignalGenerator(save_signal=save_signal)

        decision = await generator.process_window(
            "BTC/USDT", rising_window, now=rising_window[-1].timestamp
        )

        assert not decision.accepted
        save_signal.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_save_drops_signal(self, pullback_window, fresh_now):
        listener = AsyncMock()
        generator = SignalGenerator(save_signal=AsyncMock(side_effect=RuntimeError("db down")))
        generator.on_signal(listener)

        decision = await generator.process_window("BTC/USDT", pullback_window, now=fresh_now)

        assert not decision.accepted
        assert "db down" in decision.detail
        listener.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_listener_error_does_not_stop_others(self, pullback_window, fresh_now):
        failing = AsyncMock(side_effect=RuntimeError("boom"))
        working = AsyncMock()
        generator = SignalGenerator()
        generator.on_signal(failing)
        generator.on_signal(working)

        decision = await generator.process_window("BTC/USDT", pullback_window, now=fresh_now)

        assert decision.accepted
        working.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_off_signal(self, pullback_window, fresh_now):
        listener = AsyncMock()
        generator = SignalGenerator()
        generator.on_signal(listener)
        generator.off_signal(listener)

        await generator.process_window("BTC/USDT", pullback_window, now=fresh_now)

        listener.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_process_many(self, pullback_window, rising_window, fresh_now):
        generator = SignalGenerator()
        results = await generator.process_many(
            {"BTC/USDT": pullback_window, "ETH/USDT": rising_window},
            now=fresh_now,
        )

        assert results["BTC/USDT"].accepted
        assert results["BTC/USDT"].signal.instrument == "BTC/USDT"
        assert results["ETH/USDT"].rejected_by == ValidationCheck.PULLBACK

    @pytest.mark.asyncio
    async def test_process_many_isolates_failures(self, pullback_window, fresh_now, monkeypatch):
        """One instrument raising does not discard the others."""
        generator = SignalGenerator()
        original = generator.evaluate

        def evaluate(instrument, window, market_context=None, now=None):
            if instrument == "ETH/USDT":
                raise RuntimeError("bad feed")
            return original(instrument, window, market_context, now)

        monkeypatch.setattr(generator, "evaluate", evaluate)
        results = await generator.process_many(
            {"BTC/USDT": pullback_window, "ETH/USDT": pullback_window},
            now=fresh_now,
        )

        assert results["BTC/USDT"].accepted
        assert not results["ETH/USDT"].accepted
        assert results["ETH/USDT"].detail == "evaluation failed: bad feed"

    @pytest.mark.asyncio
    async def test_retrain_swaps_weights(self, make_window):
        history = make_window([100.0 * 1.01**i for i in range(30)])
        save_weights = AsyncMock()
        generator = SignalGenerator(training_config=FAST_TRAINING, save_weights=save_weights)

        result = await generator.retrain(history)

        assert not result.skipped
        assert generator.weights == result.weights
        assert generator.weights.technical.rsi == pytest.approx(0.15 * 1.01)
        save_weights.assert_awaited_once_with(result.weights, result)

    @pytest.mark.asyncio
    async def test_skipped_retrain_keeps_weights(self, make_window):
        save_weights = AsyncMock()
        generator = SignalGenerator(training_config=FAST_TRAINING, save_weights=save_weights)
        before = generator.weights

        result = await generator.retrain(make_window([100.0] * 21))

        assert result.skipped
        assert generator.weights is before
        save_weights.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_concurrent_retrains_are_serialised(self, make_window):
        """Two queued runs each apply one adjustment."""
        history = make_window([100.0 * 1.01**i for i in range(30)])
        generator = SignalGenerator(training_config=FAST_TRAINING)

        await asyncio.gather(generator.retrain(history), generator.retrain(history))

        assert generator.weights.technical.rsi == pytest.approx(0.15 * 1.01 * 1.01)

    @pytest.mark.asyncio
    async def test_failed_weight_save_keeps_new_weights(self, make_window):
        history = make_window([100.0 * 1.01**i for i in range(30)])
        generator = SignalGenerator(
            training_config=FAST_TRAINING,
            save_weights=AsyncMock(side_effect=OSError("disk full")),
        )

        result = await generator.retrain(history)

        assert generator.weights == result.weights
