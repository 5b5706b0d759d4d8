"""Tests for candle pattern classification."""

from datetime import datetime, timedelta, timezone

import pytest

from signal_core.analysis import analyze_price_action, classify_candle, classify_observation
from signal_core.models import CandlePattern, Direction, Observation

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _candle(i, open_price, high, low, close):
    return Observation(
        instrument="ETH/USDT",
        timestamp=BASE_TIME + timedelta(minutes=i),
        price=close,
        open=open_price,
        high=high,
        low=low,
        volume=2000.0,
    )


class TestClassifyCandle:
    """Tests for single-candle classification."""

    @pytest.mark.parametrize(
        "ohlc, expected",
        [
            ((100.0, 100.6, 98.0, 100.5), [CandlePattern.HAMMER]),
            ((100.5, 103.0, 99.9, 100.0), [CandlePattern.SHOOTING_STAR]),
            ((100.0, 104.2, 99.9, 104.0), [CandlePattern.MARUBOZU_UP]),
            ((104.0, 104.2, 99.9, 100.0), [CandlePattern.MARUBOZU_DOWN]),
            ((100.0, 101.0, 99.0, 100.05), [CandlePattern.DOJI]),
            ((100.0, 102.0, 99.5, 101.0), []),
        ],
    )
    def test_single_patterns(self, ohlc, expected):
        assert classify_candle(*ohlc) == expected

    def test_spinning_top_matches_both_shadows(self):
        """Long shadows on both sides carry both labels."""
        patterns = classify_candle(100.0, 102.0, 98.5, 100.5)
        assert patterns == [CandlePattern.HAMMER, CandlePattern.SHOOTING_STAR]

    def test_zero_range_is_doji(self):
        """A candle with no range has a zero body ratio."""
        assert classify_candle(100.0, 100.0, 100.0, 100.0) == [CandlePattern.DOJI]


class TestCandleShape:
    """Tests for Observation candle geometry."""

    def test_shape_of_bullish_candle(self):
        shape = _candle(0, 100.0, 104.2, 99.9, 104.0).candle_shape()

        assert shape.color == Direction.UP
        assert shape.body_size == pytest.approx(4.0)
        assert shape.total_size == pytest.approx(4.3)
        assert shape.body_ratio == pytest.approx(4.0 / 4.3)

    def test_no_shape_without_ohlc(self):
        obs = Observation(timestamp=BASE_TIME, price=100.0)

        assert obs.candle_shape() is None
        assert classify_observation(obs) == []

    def test_high_below_low_rejected(self):
        with pytest.raises(ValueError):
            _candle(0, 100.0, 99.0, 101.0, 100.0)


class TestAnalyzePriceAction:
    """Tests for trailing-window pattern scan."""

    def test_only_trailing_candles_scanned(self):
        """A hammer older than the lookback is ignored."""
        window = [
            _candle(0, 100.0, 100.6, 98.0, 100.5),  # hammer, outside lookback
            _candle(1, 100.0, 102.0, 99.5, 101.0),
            _candle(2, 100.0, 102.0, 99.5, 101.0),
            _candle(3, 100.5, 103.0, 99.9, 100.0),  # shooting star
        ]
        patterns, shapes = analyze_price_action(window, lookback=3)

        assert patterns == [CandlePattern.SHOOTING_STAR]
        assert len(shapes) == 3

    def test_observations_without_ohlc_skipped(self):
        window = [
            Observation(timestamp=BASE_TIME, price=100.0),
            _candle(1, 100.0, 100.6, 98.0, 100.5),
        ]
        patterns, shapes = analyze_price_action(window)

        assert patterns == [CandlePattern.HAMMER]
        assert len(shapes) == 1
