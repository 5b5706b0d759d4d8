"""Shared fixtures for signal pipeline tests."""

from datetime import datetime, timedelta, timezone

import pytest

from signal_core.models import IndicatorBundle, MacdValues, Observation

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)

# Rises to 100, dips 3% to 97, makes a higher high at 101, then a shallow
# dip to 99.5 before closing at 102. One valid pullback, strong uptrend.
PULLBACK_PRICES = [
    90.0, 91.0, 92.0, 93.0, 94.0, 95.0, 96.0, 97.0, 98.0, 99.0,
    100.0, 98.5, 97.0, 98.0, 99.0, 100.0, 101.0, 100.0, 99.5, 100.5,
    101.5, 102.0,
]


def build_window(
    prices,
    instrument="BTC/USDT",
    volume=5000.0,
    start=BASE_TIME,
    step=timedelta(minutes=1),
    latest_volume=None,
    latest_indicators=None,
):
    """Build an observation window with one observation per ``step``."""
    window = []
    for i, price in enumerate(prices):
        last = i == len(prices) - 1
        window.append(
            Observation(
                instrument=instrument,
                timestamp=start + step * i,
                price=price,
                volume=latest_volume if last and latest_volume is not None else volume,
                indicators=latest_indicators if last else None,
            )
        )
    return window


@pytest.fixture
def oversold_indicators():
    """Indicators for an oversold latest observation with a positive MACD."""
    return IndicatorBundle(rsi=25.0, macd=MacdValues(line=1.0, histogram=1.0))


@pytest.fixture
def pullback_window(oversold_indicators):
    """Window that passes every release gate."""
    return build_window(PULLBACK_PRICES, latest_indicators=oversold_indicators)


@pytest.fixture
def rising_window():
    """Steady 1% rises with no retracement at all."""
    return build_window([100.0 * 1.01**i for i in range(25)])


@pytest.fixture
def fresh_now(pullback_window):
    """Reference time a few seconds after the latest observation."""
    return pullback_window[-1].timestamp + timedelta(seconds=5)


@pytest.fixture
def make_window():
    """Factory for observation windows."""
    return build_window


@pytest.fixture
def pullback_prices():
    return list(PULLBACK_PRICES)
