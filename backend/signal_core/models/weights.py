"""Scoring weight table.

The table has a fixed category/feature schema so a misspelt weight name
fails loudly instead of silently reading a default. Tables are immutable:
training returns a new table and callers swap the reference, so a reader
never observes a partially updated table.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterator

from pydantic import BaseModel, ConfigDict, Field


class WeightCategory(str, Enum):
    TECHNICAL = "technical"
    PRICE_ACTION = "price_action"
    MARKET = "market"
    PULLBACK = "pullback"


class TechnicalWeights(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    rsi: float = Field(default=0.15, gt=0)
    macd: float = Field(default=0.20, gt=0)
    bollinger: float = Field(default=0.15, gt=0)
    sma: float = Field(default=0.10, gt=0)
    ema: float = Field(default=0.10, gt=0)


class PriceActionWeights(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    patterns: float = Field(default=0.25, gt=0)
    pullbacks: float = Field(default=0.30, gt=0)
    volume: float = Field(default=0.15, gt=0)


class MarketWeights(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    volatility: float = Field(default=0.10, gt=0)
    trend: float = Field(default=0.15, gt=0)
    momentum: float = Field(default=0.20, gt=0)
    volume: float = Field(default=0.05, gt=0)


class PullbackWeights(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    trend: float = Field(default=0.15, gt=0)
    pullbacks: float = Field(default=0.10, gt=0)


class WeightTable(BaseModel):
    """Positive multipliers read by the scoring engine."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    technical: TechnicalWeights = TechnicalWeights()
    price_action: PriceActionWeights = PriceActionWeights()
    market: MarketWeights = MarketWeights()
    pullback: PullbackWeights = PullbackWeights()

    def get(self, category: WeightCategory | str, feature: str) -> float:
        """Look up a single weight.

        Raises:
            KeyError: If the category or feature is not part of the schema.
        """
        try:
            section = getattr(self, WeightCategory(category).value)
        except ValueError:
            raise KeyError(f"Unknown weight category '{category}'") from None
        if feature not in type(section).model_fields:
            raise KeyError(f"Unknown weight '{category}.{feature}'")
        return getattr(section, feature)

    def items(self) -> Iterator[tuple[WeightCategory, str, float]]:
        """Iterate over (category, feature, weight) triples."""
        for category in WeightCategory:
            section = getattr(self, category.value)
            for feature in type(section).model_fields:
                yield category, feature, getattr(section, feature)

    def scaled(
        self,
        factor: float,
        min_weight: float | None = None,
        max_weight: float | None = None,
    ) -> WeightTable:
        """Return a new table with every weight multiplied by ``factor``.

        Results are clamped to [min_weight, max_weight] when bounds are given.
        """
        data: dict[str, dict[str, float]] = {}
        for category, feature, weight in self.items():
            value = weight * factor
            if min_weight is not None:
                value = max(value, min_weight)
            if max_weight is not None:
                value = min(value, max_weight)
            data.setdefault(category.value, {})[feature] = value
        return WeightTable.model_validate(data)

    def to_dict(self) -> dict[str, dict[str, float]]:
        return self.model_dump()
