"""Signal configuration loaded from signals.yaml.

Supports:
- Overrides for pipeline and training parameters
- Persisted weight table (written back after training)
- Backward compatible: no YAML file = environment settings + default weights
"""

import logging
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, model_validator

from app.config import Settings, get_settings
from signal_core.models.config import PipelineConfig, TrainingConfig
from signal_core.models.weights import WeightTable

logger = logging.getLogger(__name__)


class SignalFileConfig(BaseModel):
    """Top-level signals.yaml configuration."""

    pipeline: PipelineConfig = PipelineConfig()
    training: TrainingConfig = TrainingConfig()
    weights: WeightTable = WeightTable()

    @model_validator(mode="after")
    def _check_window(self) -> "SignalFileConfig":
        if self.training.window_size < self.pipeline.pullback_analysis_depth:
            raise ValueError(
                f"training.window_size ({self.training.window_size}) must be at least "
                f"pipeline.pullback_analysis_depth ({self.pipeline.pullback_analysis_depth})"
            )
        return self


def load_signal_config(
    path: Path | None = None,
    settings: Settings | None = None,
) -> SignalFileConfig:
    """Load signal config from YAML file.

    A ``.env`` file next to the YAML file is loaded into the environment
    first (existing variables win), so it feeds the settings built here.
    Values missing from the file come from those settings. Falls back to
    settings + default weights if the file doesn't exist.

    Args:
        path: signals.yaml location (defaults to ``signal_config_path``)
        settings: Prebuilt settings; when given, the ``.env`` file does not
            affect them

    Raises:
        pydantic.ValidationError: If the file holds invalid values
    """
    config_path = path or Path((settings or Settings()).signal_config_path)

    env_path = config_path.parent / ".env"
    if load_dotenv(env_path, override=False):
        get_settings.cache_clear()
    settings = settings or get_settings()

    base = {
        "pipeline": settings.pipeline_config().model_dump(),
        "training": settings.training_config().model_dump(),
    }

    if not config_path.exists():
        logger.info(
            f"No signals.yaml found at {config_path}, "
            "using environment settings and default weights"
        )
        return SignalFileConfig(**base)

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    for section in ("pipeline", "training"):
        base[section].update(raw.get(section) or {})
    if raw.get("weights"):
        base["weights"] = raw["weights"]

    # The training window follows the analysis depth unless set explicitly
    pipeline_raw = raw.get("pipeline") or {}
    training_raw = raw.get("training") or {}
    if "pullback_analysis_depth" in pipeline_raw and "window_size" not in training_raw:
        base["training"]["window_size"] = base["pipeline"]["pullback_analysis_depth"]

    config = SignalFileConfig(**base)
    logger.info(
        f"Loaded signal config: threshold={config.pipeline.confidence_threshold:.0f}, "
        f"depth={config.pipeline.pullback_analysis_depth}, epochs={config.training.epochs}"
    )
    return config


def save_weights(path: Path, weights: WeightTable) -> None:
    """Write the weight table into signals.yaml, keeping other sections."""
    raw: dict = {}
    if path.exists():
        with open(path) as f:
            raw = yaml.safe_load(f) or {}

    raw["weights"] = weights.to_dict()

    with open(path, "w") as f:
        yaml.safe_dump(raw, f, sort_keys=False)
    logger.info(f"Saved weights to {path}")
