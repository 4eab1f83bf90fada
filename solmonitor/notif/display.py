# -*- coding: utf-8 -*-
"""
Display surface: turns coordinator events into formatted readouts.
Holds only the latest value of each readout.
"""
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from solmonitor.notif.events import (
    DisplayEvent,
    HistoryUnavailable,
    SnapshotUpdated,
    StatsUpdated,
    StatusChanged,
)
from solmonitor.notif.formatter import (
    DEFAULT_TIMEZONE,
    UNAVAILABLE,
    change_direction,
    format_change,
    format_datetime,
    format_money_short,
    format_price,
)

Listener = Callable[[DisplayEvent], None]


class DisplayBoard:
    """Latest formatted state of the monitor, fed by publish()."""

    def __init__(self, tz_name: str = DEFAULT_TIMEZONE):
        self.tz_name = tz_name
        self.status: Optional[str] = None
        self.status_message = "Carregando..."
        self.readouts: Dict[str, Any] = {}
        self.stats: Dict[str, Dict[str, Any]] = {}
        self.history_errors: Dict[str, str] = {}
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def publish(self, event: DisplayEvent) -> None:
        if isinstance(event, StatusChanged):
            self.status = event.status
            self.status_message = event.message
        elif isinstance(event, SnapshotUpdated):
            self._apply_snapshot(event)
        elif isinstance(event, StatsUpdated):
            self._apply_stats(event)
        elif isinstance(event, HistoryUnavailable):
            self.history_errors[event.timeframe] = event.message
        else:
            raise TypeError(f"Unknown display event: {type(event).__name__}")

        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:
                logger.exception(f"Display listener failed on {type(event).__name__}: {e}")

    def _apply_snapshot(self, event: SnapshotUpdated) -> None:
        self.readouts = {
            "price": format_price(event.price),
            "change": format_change(event.change_pct),
            "change_direction": change_direction(event.change_pct),
            "high_24h": format_price(event.high),
            "low_24h": format_price(event.low),
            "volume_24h": format_money_short(event.volume),
            "market_cap": format_money_short(event.market_cap),
            "icon_url": event.icon_url,
            "last_update": format_datetime(event.timestamp, self.tz_name),
        }

    def _apply_stats(self, event: StatsUpdated) -> None:
        self.history_errors.pop(event.timeframe, None)
        self.stats[event.timeframe] = {
            "label": event.timeframe_label,
            "min": format_price(event.min),
            "max": format_price(event.max),
            "change": format_change(event.change_pct),
            "change_direction": change_direction(event.change_pct),
            "available": event.change_pct is not None,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "status_message": self.status_message,
            "readouts": dict(self.readouts),
            "stats": {k: dict(v) for k, v in self.stats.items()},
            "history_errors": dict(self.history_errors),
        }

    def stats_for(self, timeframe: str) -> Dict[str, Any]:
        if timeframe in self.stats:
            return self.stats[timeframe]
        return {
            "label": timeframe,
            "min": UNAVAILABLE,
            "max": UNAVAILABLE,
            "change": UNAVAILABLE,
            "change_direction": "neutral",
            "available": False,
        }
