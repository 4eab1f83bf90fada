# -*- coding: utf-8 -*-
"""
Events published by the coordinator to the display surface.
"""
from dataclasses import dataclass
from typing import Optional, Union

STATUS_CONNECTED = "connected"
STATUS_ERROR = "error"

# User-facing status messages
MSG_CONNECTED = "Conectado"
MSG_API_ERROR = "Erro na API"


@dataclass(frozen=True)
class StatusChanged:
    status: str  # STATUS_CONNECTED | STATUS_ERROR
    message: str


@dataclass(frozen=True)
class SnapshotUpdated:
    price: float
    change_pct: float
    high: float
    low: float
    volume: float
    market_cap: float
    icon_url: Optional[str]
    timestamp: int


@dataclass(frozen=True)
class StatsUpdated:
    timeframe: str
    timeframe_label: str
    min: Optional[float]
    max: Optional[float]
    change_pct: Optional[float]


@dataclass(frozen=True)
class HistoryUnavailable:
    """A timeframe's history fetch failed; its chart region shows an error."""
    timeframe: str
    timeframe_label: str
    message: str


DisplayEvent = Union[StatusChanged, SnapshotUpdated, StatsUpdated, HistoryUnavailable]
