"""Tests for configuration loading and validation."""
import pytest
from pathlib import Path
import yaml

from solmonitor.config import (
    ConfigLoader,
    get_api_config,
    get_asset_id,
    get_dashboard_config,
    get_default_timeframe,
    get_history_config,
    get_monitor_name,
    get_polling_config,
    get_timeframes,
    is_multi_timeframe,
)
from solmonitor.utils.timeframes import TIMEFRAMES


class TestConfigLoaderBasics:

    def test_config_loader_init(self, test_config_yaml: Path):
        loader = ConfigLoader(str(test_config_yaml))
        assert loader.raw['monitor']['asset_id'] == 'solana'

    def test_config_loader_missing_file(self):
        with pytest.raises(FileNotFoundError):
            ConfigLoader("/nonexistent/path/config.yaml")

    def test_config_loader_missing_section(self, tmp_path: Path):
        config_file = tmp_path / 'invalid_config.yaml'
        with open(config_file, 'w') as f:
            yaml.dump({'monitor': {'asset_id': 'solana'}}, f)

        with pytest.raises(ValueError, match="Missing required config section: polling"):
            ConfigLoader(str(config_file))

    def test_empty_file(self, tmp_path: Path):
        config_file = tmp_path / 'empty.yaml'
        config_file.write_text("")
        with pytest.raises(ValueError):
            ConfigLoader(str(config_file))

    def test_shipped_default_config_is_valid(self):
        path = Path(__file__).resolve().parent.parent / "configs" / "default.yaml"
        loader = ConfigLoader(str(path))
        assert loader.get('monitor.asset_id') == 'solana'
        assert loader.get('polling.interval_ms') == 30000


class TestConfigLoaderDotNotation:

    def test_get_nested_key(self, test_config_yaml: Path):
        loader = ConfigLoader(str(test_config_yaml))
        assert loader.get('polling.interval_ms') == 15000

    def test_get_nonexistent_key_with_default(self, test_config_yaml: Path):
        loader = ConfigLoader(str(test_config_yaml))
        assert loader.get('nonexistent.key', 'default_value') == 'default_value'

    def test_get_partial_path(self, test_config_yaml: Path):
        loader = ConfigLoader(str(test_config_yaml))
        assert loader.get('monitor.asset_id.deep', 'fallback') == 'fallback'

    def test_env_substitution(self, test_config_yaml: Path, monkeypatch):
        monkeypatch.setenv('TEST_CG_KEY', 'secret')
        loader = ConfigLoader(str(test_config_yaml))
        assert loader.get('api.api_key') == 'secret'


class TestHelpers:

    def test_monitor_settings(self, test_env_vars):
        assert get_monitor_name() == 'Solana Monitor Test'
        assert get_asset_id() == 'solana'
        assert get_default_timeframe() == '7d'
        assert is_multi_timeframe() is True

    def test_polling_config(self, test_env_vars):
        assert get_polling_config() == {
            'interval_ms': 15000,
            'history_refresh_interval_ms': 60000,
            'fetch_timeout_seconds': 5.0,
        }

    def test_history_config(self, test_env_vars):
        assert get_history_config()['max_live_points'] == 50

    def test_api_config_uses_env_key(self, test_env_vars):
        api = get_api_config()
        assert api['api_key'] == 'cg-test-key'
        assert api['base_url'] == 'https://api.coingecko.com/api/v3'

    def test_dashboard_defaults(self, test_env_vars):
        assert get_dashboard_config() == {'enabled': True, 'host': '0.0.0.0', 'port': 8080}

    def test_timeframes_from_yaml(self, test_env_vars):
        registry = get_timeframes()
        assert list(registry) == ['24h', '7d']
        assert registry['7d'].label == '7 Dias'


class TestPollingValidation:

    @pytest.fixture
    def bad_polling_env(self, tmp_path, monkeypatch):
        import solmonitor.config as config_module

        config_file = tmp_path / 'bad.yaml'
        with open(config_file, 'w') as f:
            yaml.dump({
                'monitor': {'asset_id': 'bitcoin'},
                'polling': {'interval_ms': -5, 'history_refresh_interval_ms': 'soon'},
            }, f)
        monkeypatch.setenv('CONFIG_FILE', str(config_file))
        monkeypatch.setattr(config_module, '_config_instance', None)
        yield
        config_module._config_instance = None

    def test_invalid_values_fall_back(self, bad_polling_env):
        polling = get_polling_config()
        assert polling['interval_ms'] == 30000
        assert polling['history_refresh_interval_ms'] == 300000
        assert polling['fetch_timeout_seconds'] == 10.0

    def test_missing_timeframes_uses_builtin(self, bad_polling_env):
        assert get_asset_id() == 'bitcoin'
        assert get_timeframes() == TIMEFRAMES
        assert get_history_config()['max_live_points'] == 100
