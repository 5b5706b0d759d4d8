"""Converters from raw collaborator records to pipeline models.

Market-data collectors hand over plain dicts (decoded JSON rows). These
helpers map them onto Observation/IndicatorBundle at the boundary so
malformed rows fail before entering the pipeline:

- ``pair`` or ``instrument`` -> Observation.instrument
- ``technical_indicators`` uses the collector's camelCase keys
  (``macdLine``, ``bollingerBands``, ``volumeSMA``)
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from signal_core.models.indicators import BollingerBands, IndicatorBundle, MacdValues
from signal_core.models.observation import Observation


# =============================================================================
# Timestamp conversion helpers
# =============================================================================

def millis_to_datetime(ms: float) -> datetime:
    """Convert a Unix timestamp in milliseconds to a UTC datetime."""
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def _parse_timestamp(value: Any) -> Any:
    # Collectors emit epoch millis; anything else is left to pydantic
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return millis_to_datetime(value)
    return value


# =============================================================================
# Indicator conversions
# =============================================================================

def indicators_from_record(raw: Mapping[str, Any] | None) -> IndicatorBundle | None:
    """Build an IndicatorBundle from a collector's ``technical_indicators`` dict.

    Args:
        raw: Indicator dict, or None

    Returns:
        IndicatorBundle, or None when no indicators were supplied
    """
    if not raw:
        return None

    macd = None
    raw_macd = raw.get("macd")
    if raw_macd and raw_macd.get("macdLine") is not None:
        line = raw_macd["macdLine"]
        macd = MacdValues(
            line=line,
            signal=raw_macd.get("signalLine"),
            histogram=raw_macd.get("histogram", line),
        )

    bollinger = None
    raw_bands = raw.get("bollingerBands")
    if raw_bands and all(raw_bands.get(k) is not None for k in ("upper", "middle", "lower")):
        bollinger = BollingerBands(
            upper=raw_bands["upper"],
            middle=raw_bands["middle"],
            lower=raw_bands["lower"],
        )

    return IndicatorBundle(
        sma20=raw.get("sma20"),
        sma50=raw.get("sma50"),
        ema12=raw.get("ema12"),
        ema26=raw.get("ema26"),
        rsi=raw.get("rsi"),
        macd=macd,
        bollinger=bollinger,
        volume_sma=raw.get("volumeSMA"),
    )


# =============================================================================
# Observation conversions
# =============================================================================

def record_to_observation(record: Mapping[str, Any]) -> Observation:
    """Convert one raw market-data record to an Observation.

    Args:
        record: Raw row with at least ``timestamp`` and ``price``

    Returns:
        Observation

    Raises:
        pydantic.ValidationError: If the row is malformed (missing or
            non-numeric price, unparseable timestamp, ...)
    """
    return Observation(
        instrument=record.get("instrument") or record.get("pair") or "",
        timestamp=_parse_timestamp(record.get("timestamp")),
        price=record.get("price", record.get("close")),
        volume=record.get("volume"),
        open=record.get("open"),
        high=record.get("high"),
        low=record.get("low"),
        indicators=indicators_from_record(record.get("technical_indicators")),
    )


def records_to_observations(records: Iterable[Mapping[str, Any]]) -> list[Observation]:
    """Convert raw records to Observations sorted by timestamp (oldest first)."""
    observations = [record_to_observation(r) for r in records]
    observations.sort(key=lambda o: o.timestamp)
    return observations


def group_by_instrument(
    observations: Iterable[Observation],
) -> dict[str, list[Observation]]:
    """Group observations per instrument, each group sorted by timestamp.

    The sort is stable, so duplicate timestamps keep their input order.
    """
    groups: dict[str, list[Observation]] = defaultdict(list)
    for obs in observations:
        groups[obs.instrument].append(obs)
    for group in groups.values():
        group.sort(key=lambda o: o.timestamp)
    return dict(groups)
