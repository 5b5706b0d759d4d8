"""Signal, decision and training result models."""

import hashlib
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from signal_core.models.enums import Direction, ValidationCheck
from signal_core.models.features import FeatureBundle
from signal_core.models.indicators import IndicatorBundle
from signal_core.models.weights import WeightTable

SIGNAL_TYPE_NEXT_CANDLE = "NEXT_CANDLE_COLOR"


def _generate_signal_id(instrument: str, observed_at: datetime, direction: str) -> str:
    """Generate deterministic signal ID based on signal attributes.

    Replaying the same window produces the same ID, so the caller can
    de-duplicate on persistence.
    """
    ts_str = observed_at.strftime("%Y%m%d%H%M%S%f")
    key = f"{instrument}:{ts_str}:{direction}"
    return hashlib.sha256(key.encode()).hexdigest()[:32]


class Signal(BaseModel):
    """Directional next-period signal. Never mutated after creation."""

    model_config = ConfigDict(frozen=True)

    id: str = ""  # Will be set in model_post_init
    instrument: str
    signal_type: str = SIGNAL_TYPE_NEXT_CANDLE
    direction: Direction
    confidence: int = Field(ge=0, le=100)
    rationale: tuple[str, ...] = ()
    score_up: float = 0.0
    score_down: float = 0.0
    features: FeatureBundle
    weights: WeightTable
    indicators: IndicatorBundle = IndicatorBundle()
    model_version: str = "1.0.0"
    observed_at: datetime  # timestamp of the latest observation
    timestamp: datetime  # creation time

    def model_post_init(self, __context) -> None:
        """Generate deterministic ID after model initialization."""
        if not self.id:
            object.__setattr__(
                self,
                "id",
                _generate_signal_id(self.instrument, self.observed_at, self.direction.value),
            )

    @property
    def reason(self) -> str:
        """Rationale joined into a single display string."""
        return ", ".join(self.rationale)


class SignalDecision(BaseModel):
    """Outcome of one evaluation: a signal, or the gate that rejected it."""

    model_config = ConfigDict(frozen=True)

    signal: Signal | None = None
    rejected_by: ValidationCheck | None = None
    detail: str = ""

    @property
    def accepted(self) -> bool:
        return self.signal is not None


class TrainingResult(BaseModel):
    """Summary of a simulated training run."""

    model_config = ConfigDict(frozen=True)

    skipped: bool = False
    accuracy: float | None = None  # percent, accumulated over all epochs
    correct: int = 0
    total: int = 0
    epochs: int = 0
    samples: int = 0
    target_reached: bool = False
    weights: WeightTable
