"""Shared test fixtures and configuration."""
import asyncio
from pathlib import Path
from typing import Dict, List, Optional
import pytest
import yaml

from solmonitor.engine.coordinator import RefreshCoordinator
from solmonitor.notif.chart import MemoryChartSink
from solmonitor.notif.display import DisplayBoard
from solmonitor.storage.models import PricePoint, Snapshot
from solmonitor.utils.timeframes import TimeframeConfig


class FakeFetcher:
    """
    In-memory PriceFetcher. History is keyed by lookback_days.
    Every call is appended to `journal` (shared with RecordingChart).
    """

    def __init__(self, snapshot: Optional[Snapshot] = None,
                 histories: Optional[Dict[float, List[PricePoint]]] = None,
                 journal: Optional[list] = None):
        self.snapshot = snapshot
        self.histories = histories or {}
        self.snapshot_error: Optional[Exception] = None
        self.history_errors: Dict[float, Exception] = {}
        self.history_gate: Optional[asyncio.Event] = None
        self.journal = journal if journal is not None else []

    @property
    def history_calls(self) -> List[tuple]:
        return [c for c in self.journal if c[0] == "history"]

    @property
    def snapshot_calls(self) -> List[tuple]:
        return [c for c in self.journal if c[0] == "snapshot"]

    async def fetch_snapshot(self, asset_id: str) -> Snapshot:
        self.journal.append(("snapshot", asset_id))
        if self.snapshot_error is not None:
            raise self.snapshot_error
        return self.snapshot

    async def fetch_history(self, asset_id: str, lookback_days: float, granularity: str) -> List[PricePoint]:
        self.journal.append(("history", lookback_days))
        if self.history_gate is not None:
            await self.history_gate.wait()
        if lookback_days in self.history_errors:
            raise self.history_errors[lookback_days]
        return list(self.histories.get(lookback_days, []))


class RecordingChart(MemoryChartSink):
    """MemoryChartSink that also logs renders into the fetcher journal."""

    def __init__(self, journal: list):
        super().__init__()
        self.journal = journal

    def render(self, timestamps, values, axis_unit):
        self.journal.append(("render", axis_unit, len(values)))
        super().render(timestamps, values, axis_unit)


@pytest.fixture
def timeframes() -> Dict[str, TimeframeConfig]:
    """Three-timeframe registry with distinct lookbacks."""
    return {
        "24h": TimeframeConfig("24h", 1, "5min", "24 Horas", "hour"),
        "7d": TimeframeConfig("7d", 7, "hourly", "7 Dias", "day"),
        "30d": TimeframeConfig("30d", 30, "hourly", "30 Dias", "day"),
    }


@pytest.fixture
def sample_snapshot() -> Snapshot:
    return Snapshot(
        asset_id="solana",
        price=100.50,
        change_pct=2.5,
        high_24h=105.25,
        low_24h=95.10,
        volume_24h=1_530_000_000.0,
        market_cap=48_200_000_000.0,
        icon_url="https://assets.coingecko.com/coins/images/4128/large/solana.png",
        timestamp=1_700_000_000_000,
    )


@pytest.fixture
def history_24h() -> List[PricePoint]:
    return [PricePoint(1000, 100.0), PricePoint(2000, 101.0), PricePoint(3000, 99.0)]


@pytest.fixture
def history_7d() -> List[PricePoint]:
    return [PricePoint(100, 80.0), PricePoint(200, 90.0), PricePoint(300, 120.0), PricePoint(400, 110.0)]


@pytest.fixture
def history_30d() -> List[PricePoint]:
    return [PricePoint(10, 50.0), PricePoint(20, 100.0)]


@pytest.fixture
def journal() -> list:
    return []


@pytest.fixture
def fetcher(sample_snapshot, history_24h, history_7d, history_30d, journal) -> FakeFetcher:
    return FakeFetcher(
        snapshot=sample_snapshot,
        histories={1: history_24h, 7: history_7d, 30: history_30d},
        journal=journal,
    )


@pytest.fixture
def chart(journal) -> RecordingChart:
    return RecordingChart(journal)


@pytest.fixture
def display() -> DisplayBoard:
    return DisplayBoard(tz_name="UTC")


@pytest.fixture
def coordinator(fetcher, chart, display, timeframes) -> RefreshCoordinator:
    return RefreshCoordinator(
        fetcher=fetcher,
        chart=chart,
        display=display,
        timeframes=timeframes,
        asset_id="solana",
        default_timeframe="24h",
        poll_interval_ms=30_000,
        history_refresh_interval_ms=300_000,
        fetch_timeout=None,
    )


@pytest.fixture
def coin_payload() -> Dict:
    """Trimmed /coins/solana response."""
    return {
        "id": "solana",
        "symbol": "sol",
        "image": {"large": "https://assets.coingecko.com/coins/images/4128/large/solana.png"},
        "market_data": {
            "current_price": {"usd": 100.5, "brl": 502.1},
            "price_change_percentage_24h": 2.5,
            "high_24h": {"usd": 105.25},
            "low_24h": {"usd": 95.1},
            "total_volume": {"usd": 1530000000},
            "market_cap": {"usd": 48200000000},
        },
    }


@pytest.fixture
def market_chart_payload() -> Dict:
    return {
        "prices": [[1000, 100.0], [2000, 101.0], [3000, 99.0]],
        "market_caps": [[1000, 1.0], [2000, 1.0], [3000, 1.0]],
        "total_volumes": [[1000, 5.0], [2000, 5.0], [3000, 5.0]],
    }


@pytest.fixture
def test_config_yaml(tmp_path: Path) -> Path:
    """Create a temporary test config YAML file."""
    config = {
        'monitor': {
            'name': 'Solana Monitor Test',
            'version': '2.0.0',
            'asset_id': 'solana',
            'default_timeframe': '7d',
            'multi_timeframe': True,
        },
        'polling': {
            'interval_ms': 15000,
            'history_refresh_interval_ms': 60000,
            'fetch_timeout_seconds': 5,
        },
        'history': {
            'max_live_points': 50,
        },
        'api': {
            'vs_currency': 'usd',
            'api_key': '${TEST_CG_KEY}',
        },
        'timeframes': [
            {'key': '24h', 'lookback_days': 1, 'granularity': '5min', 'label': '24 Horas', 'axis_unit': 'hour'},
            {'key': '7d', 'lookback_days': 7, 'granularity': 'hourly', 'label': '7 Dias', 'axis_unit': 'day'},
        ],
    }

    config_file = tmp_path / 'test_config.yaml'
    with open(config_file, 'w', encoding='utf-8') as f:
        yaml.dump(config, f, allow_unicode=True)

    return config_file


@pytest.fixture
def test_env_vars(monkeypatch, test_config_yaml: Path):
    """Point the config singleton at the test YAML."""
    import solmonitor.config as config_module

    monkeypatch.setenv('CONFIG_FILE', str(test_config_yaml))
    monkeypatch.setenv('TEST_CG_KEY', 'cg-test-key')
    monkeypatch.setattr(config_module, '_config_instance', None)
    yield
    config_module._config_instance = None
