"""Offline replay of historical observations through the signal pipeline.

Slides a window over each instrument's history, evaluates it as if it
were live (reference time = latest observation), and checks every
released signal against the following observation.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

from signal_core.models.converters import group_by_instrument, records_to_observations
from signal_core.models.enums import Direction
from signal_core.models.observation import Observation
from signal_core.signal_generator import SignalGenerator
from signal_core.training import label_next_move

logger = logging.getLogger(__name__)

_OPTIONAL_COLUMNS = ("volume", "open", "high", "low", "pair", "instrument")


@dataclass
class ReplayStats:
    """Outcome counts for a replay."""

    windows: int = 0
    signals: int = 0
    hits: int = 0
    up_signals: int = 0
    down_signals: int = 0
    rejections: Counter = field(default_factory=Counter)

    @property
    def hit_rate(self) -> float:
        return (self.hits / self.signals * 100) if self.signals > 0 else 0.0


def load_history_csv(path: Path, instrument: str | None = None) -> list[Observation]:
    """
    Load a CSV of observations.

    Required columns: ``timestamp`` and ``price`` (or ``close``). Optional:
    volume, open, high, low, pair/instrument.

    Raises:
        ValueError: If a required column is missing
        pydantic.ValidationError: If a row is malformed
    """
    df = pd.read_csv(path)
    if "price" not in df.columns and "close" in df.columns:
        df = df.rename(columns={"close": "price"})
    missing = {"timestamp", "price"} - set(df.columns)
    if missing:
        raise ValueError(f"{path}: missing columns {sorted(missing)}")

    df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
    if instrument is not None:
        df["instrument"] = instrument

    columns = ["timestamp", "price"] + [c for c in _OPTIONAL_COLUMNS if c in df.columns]
    df = df[columns].astype(object).where(df[columns].notna(), None)

    records = df.to_dict(orient="records")
    for record in records:
        record["timestamp"] = record["timestamp"].to_pydatetime()

    observations = records_to_observations(records)
    logger.info(f"Loaded {len(observations)} observations from {path}")
    return observations


def replay(
    generator: SignalGenerator,
    observations: list[Observation],
) -> ReplayStats:
    """
    Evaluate every window of ``pullback_analysis_depth`` observations.

    Args:
        generator: Service holding config and the weight snapshot
        observations: History, any order, any instruments

    Returns:
        ReplayStats
    """
    depth = generator.config.pullback_analysis_depth
    stats = ReplayStats()

    for instrument, series in group_by_instrument(observations).items():
        for end in range(depth, len(series)):
            window = series[end - depth:end]
            decision = generator.evaluate(instrument, window, now=window[-1].timestamp)
            stats.windows += 1

            if decision.signal is None:
                if decision.rejected_by is not None:
                    stats.rejections[decision.rejected_by.value] += 1
                continue

            signal = decision.signal
            stats.signals += 1
            if signal.direction == Direction.UP:
                stats.up_signals += 1
            else:
                stats.down_signals += 1
            if label_next_move(window[-1].price, series[end].price) == signal.direction:
                stats.hits += 1

    return stats
