# -*- coding: utf-8 -*-
"""
HTTP dashboard surface.
Serves the current readouts and chart series, and takes the UI inputs
(manual refresh, timeframe selection, visibility restored).
"""
import asyncio
from datetime import datetime, timezone
from typing import Optional
from aiohttp import web
from loguru import logger

from solmonitor.engine.coordinator import RefreshCoordinator
from solmonitor.errors import PriceFeedError
from solmonitor.notif.chart import MemoryChartSink
from solmonitor.notif.display import DisplayBoard


class DashboardServer:
    """Small aiohttp app in front of the coordinator."""

    def __init__(
        self,
        coordinator: RefreshCoordinator,
        display: DisplayBoard,
        chart: MemoryChartSink,
        host: str = "0.0.0.0",
        port: int = 8080,
    ):
        self.coordinator = coordinator
        self.display = display
        self.chart = chart
        self.host = host
        self.port = port
        self.app = web.Application()
        self.runner: Optional[web.AppRunner] = None
        self.site: Optional[web.TCPSite] = None
        self.start_time = datetime.now(timezone.utc)

        # Setup routes
        self.app.router.add_get('/', self.index_handler)
        self.app.router.add_get('/health', self.health_handler)
        self.app.router.add_get('/status', self.status_handler)
        self.app.router.add_get('/chart', self.chart_handler)
        self.app.router.add_post('/refresh', self.refresh_handler)
        self.app.router.add_post('/timeframe/{key}', self.timeframe_handler)
        self.app.router.add_post('/visible', self.visible_handler)

    async def health_handler(self, request: web.Request) -> web.Response:
        """Returns 200 OK while the process is running."""
        return web.json_response({
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat()
        })

    async def status_handler(self, request: web.Request) -> web.Response:
        """Formatted readouts plus coordinator state."""
        uptime_seconds = (datetime.now(timezone.utc) - self.start_time).total_seconds()
        return web.json_response({
            "display": self.display.to_dict(),
            "monitor": self.coordinator.state(),
            "uptime_seconds": int(uptime_seconds),
        })

    async def chart_handler(self, request: web.Request) -> web.Response:
        return web.json_response(self.chart.to_dict())

    async def refresh_handler(self, request: web.Request) -> web.Response:
        """ManualRefreshRequested: failures are reported back to the caller."""
        try:
            await self.coordinator.manual_refresh()
        except PriceFeedError as e:
            logger.warning(f"Manual refresh failed: {e}")
            return web.json_response(
                {"ok": False, "message": f"Erro ao atualizar dados: {e}"}, status=502
            )
        return web.json_response({"ok": True, "message": "Dados atualizados com sucesso!"})

    async def timeframe_handler(self, request: web.Request) -> web.Response:
        """TimeframeSelected{key}"""
        key = request.match_info['key']
        try:
            await self.coordinator.switch_timeframe(key)
        except ValueError as e:
            return web.json_response({"ok": False, "message": str(e)}, status=404)
        except PriceFeedError as e:
            logger.warning(f"Timeframe switch to {key} failed: {e}")
            return web.json_response(
                {"ok": False, "message": f"Erro ao carregar {key}: {e}"}, status=502
            )
        return web.json_response({
            "ok": True,
            "timeframe": key,
            "stats": self.display.stats_for(key),
        })

    async def visible_handler(self, request: web.Request) -> web.Response:
        """VisibilityRestored"""
        ok = await self.coordinator.on_visible()
        return web.json_response({"ok": ok})

    async def index_handler(self, request: web.Request) -> web.Response:
        """Simple index page with links."""
        html = """
        <html>
        <head><title>Solana Monitor</title></head>
        <body>
            <h1>Solana Monitor</h1>
            <p>Endpoints:</p>
            <ul>
                <li><a href="/health">/health</a> - Simple health check (200 OK)</li>
                <li><a href="/status">/status</a> - Current price, stats and status</li>
                <li><a href="/chart">/chart</a> - Last rendered chart series</li>
                <li>POST /refresh - Manual refresh</li>
                <li>POST /timeframe/{key} - Switch timeframe</li>
                <li>POST /visible - Page became visible again</li>
            </ul>
        </body>
        </html>
        """
        return web.Response(text=html, content_type='text/html')

    async def start(self):
        """Start the dashboard server."""
        try:
            self.runner = web.AppRunner(self.app)
            await self.runner.setup()
            self.site = web.TCPSite(self.runner, self.host, self.port)
            await self.site.start()
            logger.info(f"Dashboard started on http://{self.host}:{self.port}")
        except Exception as e:
            logger.error(f"Failed to start dashboard: {e}")

    async def stop(self):
        """Stop the dashboard server."""
        if self.site:
            await self.site.stop()
        if self.runner:
            await self.runner.cleanup()
        logger.info("Dashboard stopped")

    async def run(self):
        """Run dashboard server (keeps running until cancelled)."""
        await self.start()
        try:
            # Keep running until cancelled
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            await self.stop()
            raise
