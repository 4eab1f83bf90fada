"""
Timeframe definitions and display mappings.
Single source of truth for all timeframe-related constants.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

VALID_GRANULARITIES = ("5min", "30min", "hourly", "daily")
VALID_AXIS_UNITS = ("minute", "hour", "day")


@dataclass(frozen=True)
class TimeframeConfig:
    """Fetch parameters and display metadata for one chart window."""
    key: str
    lookback_days: float
    sample_granularity: str
    label: str
    axis_unit: str

    def __post_init__(self):
        if not self.key:
            raise ValueError("Timeframe key cannot be empty")
        if self.lookback_days <= 0:
            raise ValueError(f"Timeframe {self.key}: lookback_days must be > 0")
        if self.sample_granularity not in VALID_GRANULARITIES:
            raise ValueError(
                f"Timeframe {self.key}: unknown granularity {self.sample_granularity!r}"
            )
        if self.axis_unit not in VALID_AXIS_UNITS:
            raise ValueError(f"Timeframe {self.key}: unknown axis unit {self.axis_unit!r}")


# Labels in Portuguese (shown next to the chart stats)
TIMEFRAMES: Dict[str, TimeframeConfig] = {
    tf.key: tf
    for tf in (
        TimeframeConfig("24h", 1, "5min", "24 Horas", "hour"),
        TimeframeConfig("7d", 7, "hourly", "7 Dias", "day"),
        TimeframeConfig("30d", 30, "hourly", "30 Dias", "day"),
        TimeframeConfig("1y", 365, "daily", "1 Ano", "day"),
    )
}

DEFAULT_TIMEFRAME = "24h"


def get_timeframe(key: str, registry: Optional[Mapping[str, TimeframeConfig]] = None) -> TimeframeConfig:
    """Look up a timeframe by key.

    Args:
        key: Timeframe key (e.g., "24h", "7d")
        registry: Registry to search (defaults to TIMEFRAMES)

    Returns:
        The matching TimeframeConfig.

    Raises:
        ValueError: If the key is not registered.
    """
    registry = TIMEFRAMES if registry is None else registry
    if key not in registry:
        raise ValueError(f"Unknown timeframe: {key}")
    return registry[key]


def build_registry(rows: Iterable[Mapping[str, Any]]) -> Dict[str, TimeframeConfig]:
    """
    Build a registry from config rows (YAML `timeframes:` list).

    Each row: {key, lookback_days, granularity, label, axis_unit}.
    Order of the rows is kept (it is the bootstrap fetch order).
    """
    registry: Dict[str, TimeframeConfig] = {}
    for row in rows:
        try:
            tf = TimeframeConfig(
                key=str(row["key"]),
                lookback_days=float(row["lookback_days"]),
                sample_granularity=str(row["granularity"]),
                label=str(row.get("label", row["key"])),
                axis_unit=str(row.get("axis_unit", "day")),
            )
        except KeyError as e:
            raise ValueError(f"Timeframe row missing field {e}: {dict(row)}") from e

        if tf.key in registry:
            raise ValueError(f"Duplicate timeframe key: {tf.key}")
        registry[tf.key] = tf

    if not registry:
        raise ValueError("At least one timeframe must be configured")
    return registry


def all_timeframe_keys(registry: Optional[Mapping[str, TimeframeConfig]] = None) -> List[str]:
    return list(TIMEFRAMES if registry is None else registry)
