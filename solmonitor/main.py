import argparse
import asyncio
import json
import signal
from typing import Optional
from loguru import logger

from solmonitor.config import (
    LOG_LEVEL,
    get_api_config,
    get_asset_id,
    get_dashboard_config,
    get_default_timeframe,
    get_display_config,
    get_history_config,
    get_monitor_name,
    get_monitor_version,
    get_polling_config,
    get_timeframes,
    is_multi_timeframe,
)
from solmonitor.utils.logging import setup_logging
from solmonitor.datafeeds.coingecko import CoinGeckoClient
from solmonitor.engine.coordinator import RefreshCoordinator
from solmonitor.notif.chart import MemoryChartSink
from solmonitor.notif.display import DisplayBoard
from solmonitor.utils.dashboard import DashboardServer


# Global shutdown event
shutdown_event = asyncio.Event()


def signal_handler(sig, frame):
    """Handle SIGTERM and SIGINT for graceful shutdown."""
    logger.info(f"Received signal {sig}, initiating graceful shutdown...")
    shutdown_event.set()


def build_client() -> CoinGeckoClient:
    api_cfg = get_api_config()
    return CoinGeckoClient(
        base_url=api_cfg['base_url'],
        vs_currency=api_cfg['vs_currency'],
        api_key=api_cfg['api_key'],
        timeout=get_polling_config()['fetch_timeout_seconds'],
    )


def build_coordinator(
    client: CoinGeckoClient,
    chart: MemoryChartSink,
    display: DisplayBoard,
    simple: bool = False,
    timeframe: Optional[str] = None,
) -> RefreshCoordinator:
    """Wire a coordinator from the loaded configuration."""
    polling = get_polling_config()
    return RefreshCoordinator(
        fetcher=client,
        chart=chart,
        display=display,
        timeframes=get_timeframes(),
        asset_id=get_asset_id(),
        default_timeframe=timeframe or get_default_timeframe(),
        poll_interval_ms=polling['interval_ms'],
        history_refresh_interval_ms=polling['history_refresh_interval_ms'],
        max_live_history_points=get_history_config()['max_live_points'],
        multi_timeframe=is_multi_timeframe() and not simple,
        fetch_timeout=polling['fetch_timeout_seconds'],
    )


async def run_once(simple: bool, timeframe: Optional[str]) -> None:
    """Bootstrap once, print the display state and exit."""
    display_cfg = get_display_config()
    client = build_client()
    chart = MemoryChartSink(label=display_cfg['chart_label'])
    display = DisplayBoard(tz_name=display_cfg['timezone'])
    coordinator = build_coordinator(client, chart, display, simple=simple, timeframe=timeframe)

    try:
        results = await coordinator.bootstrap()
        logger.info(f"Bootstrap results: {results}")
        print(json.dumps(display.to_dict(), indent=2, ensure_ascii=False))
    finally:
        await client.close()


async def snapshot_test() -> None:
    client = build_client()
    try:
        snapshot = await client.fetch_snapshot(get_asset_id())
        logger.info(f"Snapshot: {snapshot}")
    finally:
        await client.close()


async def run_monitor(simple: bool = False, timeframe: Optional[str] = None, dashboard: bool = True):
    """
    Main runtime - bootstrap, then polling loop + dashboard until shutdown.
    """
    logger.info("=" * 60)
    logger.info(f"Starting {get_monitor_name()} v{get_monitor_version()}")
    logger.info("=" * 60)

    display_cfg = get_display_config()
    client = build_client()
    chart = MemoryChartSink(label=display_cfg['chart_label'])
    display = DisplayBoard(tz_name=display_cfg['timezone'])
    coordinator = build_coordinator(client, chart, display, simple=simple, timeframe=timeframe)

    await coordinator.bootstrap()

    tasks = [
        asyncio.create_task(coordinator.run(), name="RefreshLoop"),
        asyncio.create_task(shutdown_event.wait(), name="ShutdownWatcher"),
    ]

    dashboard_cfg = get_dashboard_config()
    if dashboard and dashboard_cfg['enabled']:
        server = DashboardServer(
            coordinator, display, chart,
            host=dashboard_cfg['host'], port=dashboard_cfg['port'],
        )
        tasks.append(asyncio.create_task(server.run(), name="Dashboard"))

    try:
        # Wait for shutdown signal (or a task dying)
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)

        logger.info("Shutdown signal received, stopping tasks...")
        await coordinator.stop()

        for task in pending:
            task.cancel()

        await asyncio.gather(*pending, return_exceptions=True)

    except Exception as e:
        logger.exception(f"Error in main runtime: {e}")

    finally:
        await client.close()
        logger.info("Shutdown sequence completed")


def main():
    parser = argparse.ArgumentParser(description="Live crypto price monitor")
    parser.add_argument("--once", action="store_true", help="Bootstrap once, print display state and exit")
    parser.add_argument("--snapshot-test", action="store_true", help="Fetch one snapshot and exit")
    parser.add_argument("--simple", action="store_true", help="Single bounded live series instead of per-timeframe history")
    parser.add_argument("--timeframe", default=None, help="Initial timeframe key (e.g. 24h, 7d)")
    parser.add_argument("--no-dashboard", action="store_true", help="Do not start the HTTP dashboard")
    args = parser.parse_args()

    one_shot = args.snapshot_test or args.once
    setup_logging(LOG_LEVEL, to_file=not one_shot)

    if args.snapshot_test:
        asyncio.run(snapshot_test())
        return

    if args.once:
        asyncio.run(run_once(args.simple, args.timeframe))
        return

    # Register signal handlers for graceful shutdown
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        asyncio.run(run_monitor(simple=args.simple, timeframe=args.timeframe, dashboard=not args.no_dashboard))
    except KeyboardInterrupt:
        logger.info("Received KeyboardInterrupt, shutting down...")
    except Exception as e:
        logger.exception(f"Unhandled exception in main: {e}")
    finally:
        logger.info("Monitor stopped")


if __name__ == "__main__":
    main()
