"""Simulated training loop for the scoring weights.

This is a measurement loop, not a learning algorithm: every sample is
scored with the current weights, no weight changes during the run, and a
single multiplicative nudge is applied afterwards based on the overall
hit rate. Because the weights are static during the run every epoch
scores identically; the accuracy reflects the fixed weights, not learning.

Labels: a window is labelled UP when the next observation's price is
strictly greater than the window's last price, otherwise DOWN. An
unchanged price is therefore DOWN.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Sequence

from signal_core.analysis.pullbacks import analyze_pullbacks
from signal_core.features import extract_features
from signal_core.models.config import PipelineConfig, TrainingConfig
from signal_core.models.converters import group_by_instrument
from signal_core.models.enums import Direction
from signal_core.models.features import FeatureBundle
from signal_core.models.observation import Observation
from signal_core.models.signal import TrainingResult
from signal_core.models.weights import WeightTable
from signal_core.scoring import predict

logger = logging.getLogger(__name__)


@dataclass
class TrainingSample:
    """One supervised sample: features of a window and the next move."""

    instrument: str
    features: FeatureBundle
    target: Direction
    timestamp: datetime


@dataclass
class RunStats:
    """Hit counts accumulated over a whole simulated run."""

    correct: int = 0
    total: int = 0
    epochs: int = 0

    @property
    def accuracy(self) -> float:
        return (self.correct / self.total * 100) if self.total > 0 else 0.0


def label_next_move(last_price: float, next_price: float) -> Direction:
    """UP when the next price is strictly higher, else DOWN."""
    return Direction.UP if next_price > last_price else Direction.DOWN


def check_window(training: TrainingConfig, pipeline: PipelineConfig) -> None:
    """Reject a training window no feature extraction can fill."""
    if training.window_size < pipeline.pullback_analysis_depth:
        raise ValueError(
            f"window_size ({training.window_size}) must be at least "
            f"pullback_analysis_depth ({pipeline.pullback_analysis_depth})"
        )


def prepare_samples(
    observations: Iterable[Observation],
    training: TrainingConfig | None = None,
    pipeline: PipelineConfig | None = None,
) -> list[TrainingSample]:
    """
    Build supervised samples from historical observations.

    Observations are grouped by instrument and sorted by timestamp. Every
    run of ``window_size`` consecutive observations is paired with the
    observation right after it.

    Args:
        observations: Historical observations (any order, any instruments)
        training: Training configuration (window size)
        pipeline: Pipeline configuration used for feature extraction

    Returns:
        Samples, in instrument then timestamp order

    Raises:
        ValueError: If the window is shorter than the pullback analysis depth
    """
    training = training or TrainingConfig()
    pipeline = pipeline or PipelineConfig()
    check_window(training, pipeline)
    size = training.window_size

    samples: list[TrainingSample] = []

    for instrument, series in group_by_instrument(observations).items():
        for end in range(size, len(series)):
            window = series[end - size:end]
            next_obs = series[end]

            analysis = analyze_pullbacks([o.price for o in window], pipeline)
            features = extract_features(window, analysis, config=pipeline)
            if features is None:
                continue

            samples.append(
                TrainingSample(
                    instrument=instrument,
                    features=features,
                    target=label_next_move(window[-1].price, next_obs.price),
                    timestamp=next_obs.timestamp,
                )
            )

    return samples


def simulate_training(
    samples: Sequence[TrainingSample],
    weights: WeightTable,
    config: TrainingConfig | None = None,
) -> RunStats:
    """
    Replay samples through the scoring engine for ``epochs`` passes.

    Args:
        samples: Supervised samples
        weights: Weight table used for every prediction
        config: Training configuration (epochs, batch size)

    Returns:
        RunStats accumulated over all epochs
    """
    config = config or TrainingConfig()
    stats = RunStats(epochs=config.epochs)

    logger.info(f"Training on {len(samples)} samples for {config.epochs} epochs")

    for epoch in range(config.epochs):
        epoch_correct = 0
        epoch_total = 0

        for start in range(0, len(samples), config.batch_size):
            batch = samples[start:start + config.batch_size]
            for sample in batch:
                if predict(sample.features, weights) == sample.target:
                    epoch_correct += 1
                epoch_total += 1

        stats.correct += epoch_correct
        stats.total += epoch_total

        if epoch % config.log_every == 0 and epoch_total > 0:
            logger.info(
                f"Epoch {epoch}: accuracy = {epoch_correct / epoch_total * 100:.2f}%"
            )

    return stats


def update_weights(
    weights: WeightTable,
    accuracy: float,
    config: TrainingConfig | None = None,
) -> WeightTable:
    """
    Apply the post-run multiplicative adjustment.

    accuracy > reinforce_above -> x reinforce_factor
    accuracy < dampen_below    -> x dampen_factor
    otherwise                  -> unchanged

    Results are clamped to [weight_min, weight_max].

    Returns:
        New weight table (the input is never modified)
    """
    config = config or TrainingConfig()

    if accuracy > config.reinforce_above:
        factor = config.reinforce_factor
    elif accuracy < config.dampen_below:
        factor = config.dampen_factor
    else:
        return weights

    return weights.scaled(factor, config.weight_min, config.weight_max)


def train(
    observations: Iterable[Observation],
    weights: WeightTable,
    config: TrainingConfig | None = None,
    pipeline: PipelineConfig | None = None,
) -> TrainingResult:
    """
    Run one simulated training cycle.

    Args:
        observations: Historical observations
        weights: Current weight table
        config: Training configuration
        pipeline: Pipeline configuration used for feature extraction

    Returns:
        TrainingResult with the updated weights; skipped (weights unchanged,
        accuracy None) when there are fewer than ``min_samples`` samples

    Raises:
        ValueError: If the window is shorter than the pullback analysis depth
    """
    config = config or TrainingConfig()
    samples = prepare_samples(observations, config, pipeline)

    if len(samples) < config.min_samples:
        logger.warning(
            f"Too few samples for training: {len(samples)} < {config.min_samples}, skipping"
        )
        return TrainingResult(skipped=True, samples=len(samples), weights=weights)

    stats = simulate_training(samples, weights, config)
    accuracy = stats.accuracy
    updated = update_weights(weights, accuracy, config)

    logger.info(
        f"Training finished - accuracy: {accuracy:.2f}% "
        f"({stats.correct}/{stats.total}, {stats.epochs} epochs)"
    )

    return TrainingResult(
        skipped=False,
        accuracy=accuracy,
        correct=stats.correct,
        total=stats.total,
        epochs=stats.epochs,
        samples=len(samples),
        target_reached=accuracy >= config.target_accuracy,
        weights=updated,
    )
