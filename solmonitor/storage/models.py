# -*- coding: utf-8 -*-
"""
In-memory data model: price samples and ticker snapshots.
Nothing here is persisted.
"""
import time
from dataclasses import dataclass
from typing import Optional


def now_ms() -> int:
    """Current wall clock as epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class PricePoint:
    """One price sample. timestamp is epoch millis."""
    timestamp: int
    price: float


@dataclass(frozen=True)
class Snapshot:
    """
    Latest full-ticker data for the tracked asset.

    Only lives long enough to update the display and (simple variant)
    to be appended to the live series as one PricePoint.
    """
    asset_id: str
    price: float
    change_pct: float
    high_24h: float
    low_24h: float
    volume_24h: float
    market_cap: float
    icon_url: Optional[str]
    timestamp: int

    def to_point(self) -> PricePoint:
        return PricePoint(timestamp=self.timestamp, price=self.price)
