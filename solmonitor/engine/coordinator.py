"""
Refresh Coordinator - decides what is fetched, when, and keeps the chart
and display in sync with the in-memory history.

Runs entirely on one asyncio event loop. The only suspension points are the
fetch calls; every store write and selection change is synchronous.
"""
import asyncio
from typing import Dict, List, Mapping, Optional

from loguru import logger

from solmonitor.datafeeds.coingecko import PriceFetcher
from solmonitor.errors import NetworkError
from solmonitor.indicators.stats import Stats, project_stats
from solmonitor.notif.chart import ChartSink
from solmonitor.notif.display import DisplayBoard
from solmonitor.notif.events import (
    MSG_API_ERROR,
    MSG_CONNECTED,
    STATUS_CONNECTED,
    STATUS_ERROR,
    HistoryUnavailable,
    SnapshotUpdated,
    StatsUpdated,
    StatusChanged,
)
from solmonitor.storage.history import HistoryStore, LiveSeries
from solmonitor.storage.models import PricePoint, Snapshot
from solmonitor.utils.timeframes import DEFAULT_TIMEFRAME, TIMEFRAMES, TimeframeConfig, get_timeframe


class SnapshotState:
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class HistoryState:
    NOT_LOADED = "not_loaded"
    LOADED = "loaded"


class RefreshCoordinator:
    """
    Orchestrates initial load, periodic polling, timeframe switches and
    visibility-triggered refreshes.

    Two variants:
    - multi_timeframe=True: one fully-replaced series per timeframe
    - multi_timeframe=False: a single bounded live series seeded from the
      default timeframe and appended to on every snapshot
    """

    def __init__(
        self,
        fetcher: PriceFetcher,
        chart: ChartSink,
        display: DisplayBoard,
        timeframes: Optional[Mapping[str, TimeframeConfig]] = None,
        asset_id: str = "solana",
        default_timeframe: str = DEFAULT_TIMEFRAME,
        poll_interval_ms: int = 30_000,
        history_refresh_interval_ms: int = 300_000,
        max_live_history_points: int = 100,
        multi_timeframe: bool = True,
        fetch_timeout: Optional[float] = 10,
    ):
        self.fetcher = fetcher
        self.chart = chart
        self.display = display
        self.timeframes: Dict[str, TimeframeConfig] = dict(TIMEFRAMES if timeframes is None else timeframes)
        self.asset_id = asset_id
        self.poll_interval_ms = poll_interval_ms
        self.history_refresh_interval_ms = history_refresh_interval_ms
        self.multi_timeframe = multi_timeframe
        self.fetch_timeout = fetch_timeout

        self.current_timeframe = get_timeframe(default_timeframe, self.timeframes).key
        if not multi_timeframe:
            # Live variant tracks a single undifferentiated window
            self.timeframes = {self.current_timeframe: self.timeframes[self.current_timeframe]}
        self.store = HistoryStore()
        self.live = LiveSeries(max_live_history_points)
        self.status = SnapshotState.UNINITIALIZED
        self.last_snapshot: Optional[Snapshot] = None

        self.ticks_since_history_refresh = 0
        self.running = False
        # Live series takes one history load, later snapshots extend it
        self.live_seeded = False

        # One outstanding history fetch per timeframe key
        self._in_flight: Dict[str, asyncio.Task] = {}

    # ---- state queries ----

    def history_state(self, key: str) -> str:
        if self.multi_timeframe:
            loaded = self.store.is_loaded(key)
        else:
            loaded = self.live_seeded
        return HistoryState.LOADED if loaded else HistoryState.NOT_LOADED

    def series_for(self, key: str) -> List[PricePoint]:
        if self.multi_timeframe:
            return self.store.get(key)
        return self.live.points()

    def stats_for(self, key: str) -> Stats:
        return project_stats(self.series_for(key))

    def bootstrap_keys(self) -> List[str]:
        return list(self.timeframes)

    def history_refresh_enabled(self) -> bool:
        return self.multi_timeframe or not self.live_seeded

    # ---- fetch helpers ----

    async def _with_timeout(self, coro, what: str):
        if self.fetch_timeout is None:
            return await coro
        try:
            return await asyncio.wait_for(coro, self.fetch_timeout)
        except asyncio.TimeoutError as e:
            raise NetworkError(f"{what} timed out after {self.fetch_timeout}s") from e

    # ---- operations ----

    async def bootstrap(self) -> Dict[str, bool]:
        """
        Initial load: snapshot first, then every timeframe sequentially.

        Each subtask failure is logged and isolated from the others.

        Returns:
            Dict of timeframe key -> whether its history loaded
            Example: {"24h": True, "7d": False}
        """
        self.status = SnapshotState.LOADING
        logger.info(f"Bootstrapping {self.asset_id} (multi_timeframe={self.multi_timeframe})")

        try:
            await self.refresh_snapshot()
        except Exception as e:
            logger.error(f"Initial snapshot fetch failed for {self.asset_id}: {e}")

        results: Dict[str, bool] = {}
        for key in self.bootstrap_keys():
            try:
                await self.refresh_history(key)
                results[key] = True
            except Exception as e:
                logger.error(f"Initial history fetch failed for {self.asset_id} {key}: {e}")
                results[key] = False

        loaded = sum(results.values())
        logger.info(f"Bootstrap completed: {loaded}/{len(results)} timeframes loaded, status={self.status}")
        return results

    async def refresh_snapshot(self) -> Snapshot:
        """
        Fetch the current ticker.

        On failure the status goes to ERROR and the exception is re-raised,
        so manual callers can surface it.
        """
        try:
            snapshot = await self._with_timeout(self.fetcher.fetch_snapshot(self.asset_id), "Snapshot fetch")
        except Exception as e:
            self.status = SnapshotState.ERROR
            self.display.publish(StatusChanged(STATUS_ERROR, MSG_API_ERROR))
            logger.warning(f"Snapshot fetch failed for {self.asset_id}: {e}")
            raise

        self.last_snapshot = snapshot
        self.display.publish(SnapshotUpdated(
            price=snapshot.price,
            change_pct=snapshot.change_pct,
            high=snapshot.high_24h,
            low=snapshot.low_24h,
            volume=snapshot.volume_24h,
            market_cap=snapshot.market_cap,
            icon_url=snapshot.icon_url,
            timestamp=snapshot.timestamp,
        ))
        self.status = SnapshotState.READY
        self.display.publish(StatusChanged(STATUS_CONNECTED, MSG_CONNECTED))

        if not self.multi_timeframe:
            self.live.append(snapshot.to_point())
            self.render(self.current_timeframe)

        return snapshot

    async def refresh_history(self, key: str) -> List[PricePoint]:
        """
        Fetch and store history for one timeframe.

        If a fetch for the same key is already outstanding, wait for it
        instead of starting another one.
        """
        tf = get_timeframe(key, self.timeframes)

        if not self.history_refresh_enabled():
            logger.debug(f"Live series already seeded, skipping history fetch for {key}")
            return self.live.points()

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._load_history(tf))
            self._in_flight[key] = task
            task.add_done_callback(lambda t, k=key: self._forget_in_flight(k, t))
        else:
            logger.debug(f"History fetch for {key} already in flight, joining it")

        return await asyncio.shield(task)

    def _forget_in_flight(self, key: str, task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

    async def _load_history(self, tf: TimeframeConfig) -> List[PricePoint]:
        try:
            points = await self._with_timeout(
                self.fetcher.fetch_history(self.asset_id, tf.lookback_days, tf.sample_granularity),
                f"History fetch ({tf.key})",
            )
        except Exception as e:
            logger.warning(f"History fetch failed for {self.asset_id} {tf.key}: {e}")
            self.display.publish(HistoryUnavailable(tf.key, tf.label, str(e)))
            raise

        # Written under the key it was issued for, whatever is selected now
        if self.multi_timeframe:
            self.store.replace(tf.key, points)
        else:
            self.live.replace(points)
            self.live_seeded = True
        logger.info(f"History {self.asset_id} {tf.key}: {len(points)} points stored")

        if tf.key == self.current_timeframe:
            self.render(tf.key)
        return points

    async def switch_timeframe(self, key: str) -> None:
        """
        Select a timeframe. Fetches its history only if it was never loaded,
        otherwise renders from cache.

        Raises:
            ValueError: Unknown timeframe key
            PriceFeedError: The lazy fetch failed
        """
        get_timeframe(key, self.timeframes)
        self.current_timeframe = key
        logger.info(f"Timeframe switched to {key}")

        if self.history_state(key) == HistoryState.NOT_LOADED:
            # _load_history renders on success since key is now current
            await self.refresh_history(key)
            return

        self.render(key)

    async def manual_refresh(self) -> None:
        """User-requested refresh: snapshot then current history. Failures propagate."""
        await self.refresh_snapshot()
        if self.history_refresh_enabled():
            await self.refresh_history(self.current_timeframe)
        self.ticks_since_history_refresh = 0

    async def periodic_tick(self) -> None:
        """
        One polling tick. Always refreshes the snapshot; refreshes the current
        timeframe's history once history_refresh_interval_ms has elapsed.
        A seeded live series only grows from snapshots. Never raises.
        """
        try:
            await self.refresh_snapshot()
        except Exception as e:
            logger.error(f"Periodic snapshot refresh failed: {e}")

        if not self.history_refresh_enabled():
            return

        self.ticks_since_history_refresh += 1
        elapsed_ms = self.ticks_since_history_refresh * self.poll_interval_ms
        if elapsed_ms < self.history_refresh_interval_ms:
            return

        self.ticks_since_history_refresh = 0
        try:
            await self.refresh_history(self.current_timeframe)
        except Exception as e:
            logger.error(f"Periodic history refresh failed for {self.current_timeframe}: {e}")

    async def on_visible(self) -> bool:
        """
        UI became visible again: refresh everything shown, like a manual
        refresh, but log failures instead of raising.

        Returns:
            True if both the snapshot and the history refreshed
        """
        ok = True
        try:
            await self.refresh_snapshot()
        except Exception as e:
            logger.error(f"Snapshot refresh on visibility failed: {e}")
            ok = False

        if not self.history_refresh_enabled():
            return ok

        try:
            await self.refresh_history(self.current_timeframe)
            self.ticks_since_history_refresh = 0
        except Exception as e:
            logger.error(f"History refresh on visibility failed for {self.current_timeframe}: {e}")
            ok = False

        return ok

    # ---- rendering ----

    def render(self, key: str) -> None:
        """Push the series for key to the chart and its stats to the display."""
        tf = get_timeframe(key, self.timeframes)
        series = self.series_for(key)
        # Live series is tick-level data, shown on a minute axis
        axis_unit = tf.axis_unit if self.multi_timeframe else "minute"

        self.chart.render([p.timestamp for p in series], [p.price for p in series], axis_unit)

        stats = project_stats(series)
        self.display.publish(StatsUpdated(
            timeframe=tf.key,
            timeframe_label=tf.label,
            min=stats.min,
            max=stats.max,
            change_pct=stats.percent_change,
        ))

    # ---- loop ----

    async def run(self):
        """Main loop: sleep poll interval, tick, repeat until stop()."""
        self.running = True
        logger.info(f"Refresh loop started (every {self.poll_interval_ms} ms)")

        try:
            while self.running:
                await asyncio.sleep(self.poll_interval_ms / 1000)
                if not self.running:
                    break
                await self.periodic_tick()
        finally:
            self.running = False
            logger.info("Refresh loop stopped")

    async def stop(self):
        """Stop the refresh loop after the current tick."""
        logger.info("Stopping refresh loop...")
        self.running = False

    def state(self) -> Dict:
        return {
            "asset_id": self.asset_id,
            "status": self.status,
            "current_timeframe": self.current_timeframe,
            "multi_timeframe": self.multi_timeframe,
            "timeframes": {
                key: {"label": tf.label, "state": self.history_state(key)}
                for key, tf in self.timeframes.items()
            },
            "live_points": len(self.live),
            "ticks_since_history_refresh": self.ticks_since_history_refresh,
        }
