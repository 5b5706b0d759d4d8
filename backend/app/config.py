"""Application configuration."""

from datetime import timedelta
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from signal_core.models.config import PipelineConfig, TrainingConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Signal gates
    signal_confidence_threshold: float = 85.0
    pullback_analysis_depth: int = 20
    pullback_min_depth: float = 0.02
    volume_floor: float = 1000.0
    volatility_floor: float = 0.001
    max_data_age_seconds: int = 300

    # Simulated training
    ai_epochs: int = 100
    ai_batch_size: int = 32
    ai_target_accuracy: float = 80.0
    ai_weight_min: float = 0.001
    ai_weight_max: float = 10.0

    # Optional YAML file with config overrides and persisted weights
    signal_config_path: str = "signals.yaml"

    def pipeline_config(self) -> PipelineConfig:
        """Build the pipeline configuration (validated on construction)."""
        return PipelineConfig(
            confidence_threshold=self.signal_confidence_threshold,
            pullback_analysis_depth=self.pullback_analysis_depth,
            pullback_min_depth=self.pullback_min_depth,
            volume_floor=self.volume_floor,
            volatility_floor=self.volatility_floor,
            max_data_age=timedelta(seconds=self.max_data_age_seconds),
        )

    def training_config(self) -> TrainingConfig:
        """Build the training configuration (validated on construction)."""
        return TrainingConfig(
            epochs=self.ai_epochs,
            batch_size=self.ai_batch_size,
            target_accuracy=self.ai_target_accuracy,
            window_size=self.pullback_analysis_depth,
            weight_min=self.ai_weight_min,
            weight_max=self.ai_weight_max,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
