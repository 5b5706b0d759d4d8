"""Tests for technical indicators."""

import math

import pytest

from signal_core.indicators import (
    IndicatorCalculator,
    bollinger_bands,
    compute_indicators,
    ema,
    ema_series,
    macd,
    returns_volatility,
    rsi,
    sma,
)
from signal_core.models import IndicatorConfig


class TestSMA:
    """Tests for SMA calculation."""

    def test_sma_uses_trailing_values(self):
        """SMA averages only the last ``period`` values."""
        values = [float(i) for i in range(1, 11)]  # 1-10
        assert sma(values, 3) == pytest.approx(9.0)

    def test_sma_insufficient_data(self):
        """Too few values is None, not an error."""
        assert sma([100.0, 101.0], 20) is None

    def test_sma_rejects_nan(self):
        """Non-finite input is rejected at the boundary."""
        with pytest.raises(ValueError):
            sma([100.0, math.nan, 101.0], 2)

    def test_sma_rejects_nested_input(self):
        with pytest.raises(ValueError):
            sma([[1.0, 2.0], [3.0, 4.0]], 2)


class TestEMA:
    """Tests for EMA calculation."""

    def test_ema_seeded_with_first_value(self):
        """EMA starts at the first price and smooths with alpha = 2/(n+1)."""
        result = ema_series([1.0, 2.0, 3.0], 2)

        assert result[0] == 1.0
        assert result[1] == pytest.approx(5 / 3)
        assert result[2] == pytest.approx(3 * 2 / 3 + 5 / 9)

    def test_ema_constant_series(self):
        """A flat series has an EMA equal to the price."""
        assert ema([50.0] * 30, 12) == pytest.approx(50.0)

    def test_ema_period_one_is_identity(self):
        """EMA(1) reproduces the price sequence."""
        values = [100.0, 97.5, 101.25, 99.0, 104.0]
        assert ema_series(values, 1) == values

    def test_ema_insufficient_data(self):
        assert ema([100.0] * 5, 12) is None
        assert ema_series([100.0] * 5, 12) is None

    def test_ema_is_deterministic(self):
        """Repeated calls on the same input give identical results."""
        values = [100.0 + (i % 7) * 0.37 for i in range(40)]
        assert ema(values, 26) == ema(values, 26)


class TestRSI:
    """Tests for RSI calculation."""

    def test_rsi_all_gains_is_100(self):
        """Only the last 14 transitions count; all gains gives 100."""
        values = [120.0] + [float(p) for p in range(100, 115)]
        assert rsi(values, 14) == 100.0

    def test_rsi_all_losses_is_0(self):
        values = [float(p) for p in range(130, 100, -1)]
        assert rsi(values, 14) == pytest.approx(0.0)

    def test_rsi_flat_window_is_100(self):
        """Zero average loss is treated as fully overbought."""
        assert rsi([100.0] * 15, 14) == 100.0

    def test_rsi_balanced_moves(self):
        """Equal gains and losses give 50."""
        values = [100.0, 101.0] * 8  # 16 values, alternating
        assert rsi(values, 14) == pytest.approx(50.0)

    def test_rsi_insufficient_data(self):
        """RSI needs period + 1 values."""
        assert rsi([100.0] * 14, 14) is None


class TestMACD:
    """Tests for MACD calculation."""

    def test_macd_rising_series(self):
        """Rising prices give a positive line; the signal line is unavailable."""
        values = [100.0 + i for i in range(30)]
        result = macd(values)

        assert result is not None
        assert result.line > 0
        assert result.signal is None
        assert result.histogram == result.line

    def test_macd_line_is_fast_minus_slow(self):
        values = [100.0 + (i % 5) for i in range(40)]
        result = macd(values)
        assert result.line == pytest.approx(ema(values, 12) - ema(values, 26))

    def test_macd_signal_period_one(self):
        """A one-period signal line is the MACD line itself."""
        values = [100.0 + i for i in range(30)]
        result = macd(values, signal_period=1)

        assert result.signal == pytest.approx(result.line)
        assert result.histogram == pytest.approx(0.0)

    def test_macd_insufficient_data(self):
        assert macd([100.0] * 25) is None


class TestBollingerBands:
    """Tests for Bollinger Bands."""

    def test_flat_prices_collapse_bands(self):
        bands = bollinger_bands([100.0] * 20)
        assert bands.upper == bands.middle == bands.lower == 100.0

    def test_bands_use_population_std(self):
        values = [float(i) for i in range(1, 21)]
        bands = bollinger_bands(values, 20, 2.0)

        # population std of 1..20 = sqrt((20^2 - 1) / 12)
        std = math.sqrt((20**2 - 1) / 12)
        assert bands.middle == pytest.approx(10.5)
        assert bands.upper == pytest.approx(10.5 + 2 * std)
        assert bands.lower == pytest.approx(10.5 - 2 * std)

    def test_bands_insufficient_data(self):
        assert bollinger_bands([100.0] * 19) is None


class TestReturnsVolatility:
    """Tests for returns volatility."""

    def test_symmetric_returns(self):
        """Returns of +10% and -10% have a std of 0.1."""
        assert returns_volatility([100.0, 110.0, 99.0]) == pytest.approx(0.1)

    def test_flat_prices(self):
        assert returns_volatility([100.0] * 10) == 0.0

    def test_single_value(self):
        assert returns_volatility([100.0]) == 0.0


class TestIndicatorCalculator:
    """Tests for IndicatorCalculator."""

    def test_partial_history(self, pullback_prices):
        """Indicators lacking history are None; the rest are populated."""
        volumes = [5000.0] * len(pullback_prices)
        bundle = IndicatorCalculator().calculate(pullback_prices, volumes)

        assert bundle.sma20 is not None
        assert bundle.sma50 is None
        assert bundle.ema12 is not None
        assert bundle.ema26 is None
        assert bundle.macd is None
        assert bundle.rsi is not None
        assert bundle.bollinger is not None
        assert bundle.volume_sma == pytest.approx(5000.0)

    def test_without_volumes(self, pullback_prices):
        bundle = compute_indicators(pullback_prices)
        assert bundle.volume_sma is None

    def test_custom_periods(self):
        config = IndicatorConfig(
            sma_fast_period=3,
            sma_slow_period=5,
            ema_fast_period=2,
            ema_slow_period=4,
        )
        bundle = compute_indicators([1.0, 2.0, 3.0, 4.0, 5.0], config=config)

        assert bundle.sma20 == pytest.approx(4.0)
        assert bundle.sma50 == pytest.approx(3.0)
        assert bundle.macd is not None
