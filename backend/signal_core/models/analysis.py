"""Pattern and pullback analysis models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from signal_core.models.enums import ExtremumKind, Trend


class Extremum(BaseModel):
    """Strict local maximum (peak) or minimum (valley) in a price sequence."""

    model_config = ConfigDict(frozen=True)

    index: int
    price: float
    kind: ExtremumKind


class Pullback(BaseModel):
    """Peak -> valley -> next peak retracement.

    depth     = (peak - valley) / peak
    recovery  = (next_peak - valley) / valley
    strength  = depth * recovery
    """

    model_config = ConfigDict(frozen=True)

    peak: Extremum
    valley: Extremum
    next_peak: Extremum

    @property
    def depth(self) -> float:
        return (self.peak.price - self.valley.price) / self.peak.price

    @property
    def recovery(self) -> float:
        return (self.next_peak.price - self.valley.price) / self.valley.price

    @property
    def strength(self) -> float:
        return self.depth * self.recovery

    @property
    def recovery_ratio(self) -> float:
        """Share of the drop that was recovered (> 1.0 means a higher high)."""
        drop = self.peak.price - self.valley.price
        if drop <= 0:
            return 0.0
        return (self.next_peak.price - self.valley.price) / drop


class PullbackMetrics(BaseModel):
    """Aggregate depth/recovery statistics over all pullbacks in a window."""

    model_config = ConfigDict(frozen=True)

    avg_depth: float = 0.0
    avg_recovery: float = 0.0
    max_depth: float = 0.0
    min_depth: float = 0.0
    success_rate: float = 0.0  # share of pullbacks with recovery > 0.5


class PullbackAnalysis(BaseModel):
    """Result of analysing one price window for pullbacks."""

    model_config = ConfigDict(frozen=True)

    peaks: tuple[Extremum, ...] = ()
    valleys: tuple[Extremum, ...] = ()
    pullbacks: tuple[Pullback, ...] = ()
    metrics: PullbackMetrics = PullbackMetrics()
    trend: Trend = Trend.NEUTRAL
    strength: float = 0.0
    has_valid_pullback: bool = False
