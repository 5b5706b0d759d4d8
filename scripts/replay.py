#!/usr/bin/env python3
"""
Historical signal replay script.

Loads a CSV of price observations, optionally runs a simulated training
cycle to adjust the scoring weights, then replays every window through
the signal pipeline and reports how released signals fared against the
next observation.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from app.config import get_settings
from app.replay import load_history_csv, replay
from app.signal_config import load_signal_config, save_weights
from signal_core.signal_generator import SignalGenerator

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def main():
    parser = argparse.ArgumentParser(description="Replay history through the signal pipeline")
    parser.add_argument("csv", type=Path, help="CSV with timestamp, price[, volume, open, high, low, pair]")
    parser.add_argument("--instrument", default=None, help="Instrument name for single-pair files")
    parser.add_argument("--config", type=Path, default=None, help="Path to signals.yaml")
    parser.add_argument("--train", action="store_true", help="Run a training cycle first")
    parser.add_argument("--save-weights", action="store_true", help="Write trained weights to the config file")
    args = parser.parse_args()

    file_config = load_signal_config(args.config)
    config_path = args.config or Path(get_settings().signal_config_path)

    observations = load_history_csv(args.csv, args.instrument)

    generator = SignalGenerator(
        config=file_config.pipeline,
        training_config=file_config.training,
        weights=file_config.weights,
    )
    await generator.init()

    if args.train:
        result = await generator.retrain(observations)
        if result.skipped:
            logger.warning(f"Training skipped: only {result.samples} samples")
        else:
            print(f"Training accuracy: {result.accuracy:.2f}% "
                  f"({result.correct}/{result.total}, {result.epochs} epochs)")
            if args.save_weights:
                save_weights(config_path, generator.weights)

    stats = replay(generator, observations)

    print("\n" + "=" * 60)
    print("REPLAY RESULTS")
    print("=" * 60)
    print(f"Windows:          {stats.windows}")
    print(f"Signals:          {stats.signals}")
    print(f"  UP:             {stats.up_signals}")
    print(f"  DOWN:           {stats.down_signals}")
    print(f"Hit Rate:         {stats.hit_rate:.2f}%")
    print("-" * 60)
    for check, count in stats.rejections.most_common():
        print(f"Rejected ({check}): {count}")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
