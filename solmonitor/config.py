import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from dotenv import load_dotenv

from solmonitor.utils.timeframes import TIMEFRAMES, TimeframeConfig, build_registry

# Load environment variables from .env
load_dotenv(dotenv_path=os.path.join(os.path.dirname(os.path.dirname(__file__)), ".env"))

# Environment variables (secrets / process knobs)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CONFIG_FILE = os.getenv("CONFIG_FILE", "./configs/default.yaml")
COINGECKO_API_KEY = os.getenv("COINGECKO_API_KEY", "").strip()


class ConfigLoader:
    """Loads and validates YAML configuration with environment variable substitution."""

    def __init__(self, config_path: str):
        self.config_path = Path(config_path)
        self._config: Optional[Dict[str, Any]] = None
        self._load()

    def _load(self):
        """Load YAML config file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path, 'r', encoding='utf-8') as f:
            self._config = yaml.safe_load(f) or {}

        # Validate required sections
        required_sections = ['monitor', 'polling']
        for section in required_sections:
            if section not in self._config:
                raise ValueError(f"Missing required config section: {section}")

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get config value by dot-notation path.
        Example: config.get('monitor.asset_id') -> 'solana'
        """
        keys = key_path.split('.')
        value = self._config

        for key in keys:
            if isinstance(value, dict):
                value = value.get(key)
                if value is None:
                    return default
            else:
                return default

        # Handle environment variable substitution in strings
        if isinstance(value, str) and value.startswith('${') and value.endswith('}'):
            env_var = value[2:-1]
            return os.getenv(env_var, default)

        return value

    @property
    def raw(self) -> Dict[str, Any]:
        """Get raw config dict."""
        return self._config


# Global config instance (lazy-loaded)
_config_instance: Optional[ConfigLoader] = None


def get_config() -> ConfigLoader:
    """Get global config instance (singleton pattern)."""
    global _config_instance
    if _config_instance is None:
        _config_instance = ConfigLoader(os.getenv("CONFIG_FILE", CONFIG_FILE))
    return _config_instance


def reload_config():
    """Reload config from file (e.g. after CONFIG_FILE changed)."""
    global _config_instance
    _config_instance = ConfigLoader(os.getenv("CONFIG_FILE", CONFIG_FILE))


def _positive_int(value: Any, default: int) -> int:
    try:
        value = int(value)
    except (ValueError, TypeError):
        return default
    return value if value > 0 else default


def _positive_float(value: Any, default: float) -> float:
    try:
        value = float(value)
    except (ValueError, TypeError):
        return default
    return value if value > 0 else default


# Helper functions for common config access
def get_monitor_name() -> str:
    return get_config().get('monitor.name', 'Solana Monitor')


def get_monitor_version() -> str:
    return str(get_config().get('monitor.version', '1.0.0'))


def get_asset_id() -> str:
    return get_config().get('monitor.asset_id', 'solana')


def get_default_timeframe() -> str:
    return get_config().get('monitor.default_timeframe', '24h')


def is_multi_timeframe() -> bool:
    return bool(get_config().get('monitor.multi_timeframe', True))


def get_polling_config() -> Dict[str, Any]:
    """Get polling config with validation and safe defaults."""
    polling = get_config().get('polling', {})
    if not isinstance(polling, dict):
        polling = {}

    return {
        'interval_ms': _positive_int(polling.get('interval_ms'), 30000),
        'history_refresh_interval_ms': _positive_int(polling.get('history_refresh_interval_ms'), 300000),
        'fetch_timeout_seconds': _positive_float(polling.get('fetch_timeout_seconds'), 10.0),
    }


def get_history_config() -> Dict[str, Any]:
    return {
        'max_live_points': _positive_int(get_config().get('history.max_live_points'), 100),
    }


def get_api_config() -> Dict[str, Any]:
    """CoinGecko settings. API key comes from env when not set in YAML."""
    return {
        'base_url': get_config().get('api.base_url', 'https://api.coingecko.com/api/v3'),
        'vs_currency': get_config().get('api.vs_currency', 'usd'),
        'api_key': get_config().get('api.api_key') or COINGECKO_API_KEY or None,
    }


def get_dashboard_config() -> Dict[str, Any]:
    return {
        'enabled': bool(get_config().get('dashboard.enabled', True)),
        'host': get_config().get('dashboard.host', '0.0.0.0'),
        'port': _positive_int(get_config().get('dashboard.port'), 8080),
    }


def get_display_config() -> Dict[str, Any]:
    return {
        'timezone': get_config().get('display.timezone', 'America/Sao_Paulo'),
        'chart_label': get_config().get('display.chart_label', 'SOL/USD Price'),
    }


def get_timeframes() -> Dict[str, TimeframeConfig]:
    """Timeframe registry from YAML, or the built-in table when absent."""
    rows = get_config().get('timeframes')
    if not rows:
        return dict(TIMEFRAMES)
    return build_registry(rows)
