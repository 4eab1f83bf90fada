"""
CoinGecko REST API client (snapshot + historical market chart).
No retries here: the next polling tick is the retry.
"""
import asyncio
from typing import Any, Callable, Dict, List, Optional, Protocol

import aiohttp
from loguru import logger

from solmonitor.errors import MalformedPayloadError, NetworkError, UpstreamStatusError
from solmonitor.storage.models import PricePoint, Snapshot, now_ms

CG_BASE = "https://api.coingecko.com/api/v3"

# CoinGecko picks 5-minute data for days=1 and hourly for 2-90 days on its own;
# only hourly/daily can be forced through the `interval` param.
GRANULARITY_TO_INTERVAL = {
    "5min": None,
    "30min": None,
    "hourly": "hourly",
    "daily": "daily",
}


class PriceFetcher(Protocol):
    async def fetch_snapshot(self, asset_id: str) -> Snapshot:
        ...

    async def fetch_history(self, asset_id: str, lookback_days: float, granularity: str) -> List[PricePoint]:
        ...


def _dig(data: Dict, *path: str) -> Any:
    """Walk nested dicts, raising MalformedPayloadError on the first missing key."""
    value: Any = data
    for key in path:
        if not isinstance(value, dict) or value.get(key) is None:
            raise MalformedPayloadError(f"Missing field: {'.'.join(path)}")
        value = value[key]
    return value


def _number(data: Dict, *path: str) -> float:
    value = _dig(data, *path)
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise MalformedPayloadError(f"Field {'.'.join(path)} is not numeric: {value!r}") from e


def parse_snapshot(asset_id: str, data: Any, vs_currency: str = "usd",
                   timestamp: Optional[int] = None) -> Snapshot:
    """
    Convert a /coins/{id} payload into a Snapshot.

    Args:
        asset_id: CoinGecko coin id (e.g., "solana")
        data: Decoded JSON payload
        vs_currency: Quote currency key inside market_data
        timestamp: Sample time in ms (defaults to now, like the poller)

    Raises:
        MalformedPayloadError: If a required field is missing.
    """
    if not isinstance(data, dict):
        raise MalformedPayloadError(f"Expected object, got {type(data).__name__}")

    image = data.get("image")
    icon_url = image.get("large") if isinstance(image, dict) else None

    return Snapshot(
        asset_id=asset_id,
        price=_number(data, "market_data", "current_price", vs_currency),
        change_pct=_number(data, "market_data", "price_change_percentage_24h"),
        high_24h=_number(data, "market_data", "high_24h", vs_currency),
        low_24h=_number(data, "market_data", "low_24h", vs_currency),
        volume_24h=_number(data, "market_data", "total_volume", vs_currency),
        market_cap=_number(data, "market_data", "market_cap", vs_currency),
        icon_url=icon_url,
        timestamp=now_ms() if timestamp is None else timestamp,
    )


def parse_market_chart(data: Any) -> List[PricePoint]:
    """
    Convert a /market_chart payload into price points.

    Payload: {"prices": [[ts_ms, price], ...], ...}
    Upstream order is kept as-is.
    """
    if not isinstance(data, dict):
        raise MalformedPayloadError(f"Expected object, got {type(data).__name__}")

    prices = data.get("prices")
    if not isinstance(prices, list):
        raise MalformedPayloadError("Missing field: prices")

    points: List[PricePoint] = []
    for row in prices:
        if not isinstance(row, (list, tuple)) or len(row) < 2:
            raise MalformedPayloadError(f"Bad price row: {row!r}")
        try:
            points.append(PricePoint(timestamp=int(row[0]), price=float(row[1])))
        except (TypeError, ValueError) as e:
            raise MalformedPayloadError(f"Bad price row: {row!r}") from e
    return points


class CoinGeckoClient:
    """Async client for the public CoinGecko API."""

    def __init__(
        self,
        base_url: str = CG_BASE,
        vs_currency: str = "usd",
        api_key: Optional[str] = None,
        timeout: float = 10,
        session: Optional[aiohttp.ClientSession] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.base_url = base_url.rstrip("/")
        self.vs_currency = vs_currency
        self.api_key = api_key
        self.timeout = timeout
        self.clock = clock
        self._session = session
        self._owns_session = session is None

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["x-cg-demo-api-key"] = self.api_key
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    async def _get_json(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        url = f"{self.base_url}{path}"
        session = self._get_session()
        try:
            # Per request, so an injected session still carries the API key
            async with session.get(url, params=params, headers=self._headers()) as response:
                if response.status != 200:
                    raise UpstreamStatusError(response.status, url)
                try:
                    return await response.json()
                except (aiohttp.ContentTypeError, ValueError) as e:
                    raise MalformedPayloadError(f"Invalid JSON from {url}: {e}") from e
        except asyncio.TimeoutError as e:
            raise NetworkError(f"Timeout after {self.timeout}s: {url}") from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"Connection error: {url}: {e}") from e

    async def fetch_snapshot(self, asset_id: str) -> Snapshot:
        """GET /coins/{id} -> Snapshot"""
        data = await self._get_json(f"/coins/{asset_id}")
        snapshot = parse_snapshot(asset_id, data, self.vs_currency, timestamp=self.clock())
        logger.debug(f"Snapshot {asset_id}: price={snapshot.price} change={snapshot.change_pct}")
        return snapshot

    async def fetch_history(self, asset_id: str, lookback_days: float, granularity: str) -> List[PricePoint]:
        """GET /coins/{id}/market_chart -> ordered price points"""
        if granularity not in GRANULARITY_TO_INTERVAL:
            raise ValueError(f"Unknown granularity: {granularity}")

        days = int(lookback_days) if float(lookback_days).is_integer() else lookback_days
        params = {"vs_currency": self.vs_currency, "days": str(days)}
        interval = GRANULARITY_TO_INTERVAL[granularity]
        if interval:
            params["interval"] = interval

        data = await self._get_json(f"/coins/{asset_id}/market_chart", params=params)
        points = parse_market_chart(data)
        logger.debug(f"History {asset_id} days={days} granularity={granularity}: {len(points)} points")
        return points
