"""Tests for the timeframe registry."""
import pytest

from solmonitor.datafeeds.coingecko import GRANULARITY_TO_INTERVAL
from solmonitor.utils.timeframes import (
    DEFAULT_TIMEFRAME,
    TIMEFRAMES,
    VALID_GRANULARITIES,
    TimeframeConfig,
    all_timeframe_keys,
    build_registry,
    get_timeframe,
)


class TestDefaultRegistry:

    def test_default_timeframe_registered(self):
        assert DEFAULT_TIMEFRAME in TIMEFRAMES

    def test_keys_in_order(self):
        assert all_timeframe_keys() == ["24h", "7d", "30d", "1y"]

    def test_24h_config(self):
        tf = get_timeframe("24h")
        assert tf.lookback_days == 1
        assert tf.sample_granularity == "5min"
        assert tf.axis_unit == "hour"

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown timeframe"):
            get_timeframe("2h")

    def test_config_is_frozen(self):
        with pytest.raises(AttributeError):
            TIMEFRAMES["7d"].label = "x"


class TestTimeframeValidation:

    def test_bad_granularity(self):
        with pytest.raises(ValueError, match="granularity"):
            TimeframeConfig("x", 1, "1min", "X", "hour")

    def test_bad_axis_unit(self):
        with pytest.raises(ValueError, match="axis unit"):
            TimeframeConfig("x", 1, "hourly", "X", "week")

    def test_non_positive_lookback(self):
        with pytest.raises(ValueError):
            TimeframeConfig("x", 0, "hourly", "X", "day")


class TestBuildRegistry:

    def test_build_from_rows(self):
        registry = build_registry([
            {"key": "7d", "lookback_days": 7, "granularity": "hourly", "label": "7 Dias", "axis_unit": "day"},
            {"key": "24h", "lookback_days": 1, "granularity": "5min"},
        ])
        assert list(registry) == ["7d", "24h"]
        assert registry["24h"].label == "24h"
        assert registry["24h"].axis_unit == "day"

    def test_missing_field(self):
        with pytest.raises(ValueError, match="missing field"):
            build_registry([{"key": "7d", "granularity": "hourly"}])

    def test_duplicate_key(self):
        row = {"key": "7d", "lookback_days": 7, "granularity": "hourly"}
        with pytest.raises(ValueError, match="Duplicate"):
            build_registry([row, row])

    def test_empty(self):
        with pytest.raises(ValueError):
            build_registry([])

    def test_every_granularity_has_a_fetch_interval(self):
        assert set(VALID_GRANULARITIES) == set(GRANULARITY_TO_INTERVAL)
