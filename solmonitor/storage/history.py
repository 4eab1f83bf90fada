# -*- coding: utf-8 -*-
"""
In-memory price history.

HistoryStore keeps one series per timeframe, fully replaced on each fetch.
LiveSeries is the single bounded rolling window fed by snapshot polling.
"""
from collections import deque
from typing import Deque, Dict, Iterable, List

from solmonitor.storage.models import PricePoint


class HistoryStore:
    """
    Per-timeframe price series.

    A key is present only after a successful fetch for it; an empty
    result from get() means "not loaded yet".
    """

    def __init__(self):
        self._series: Dict[str, List[PricePoint]] = {}

    def replace(self, key: str, points: Iterable[PricePoint]) -> None:
        """Overwrite the series for key. No merge with the previous window."""
        self._series[key] = list(points)

    def get(self, key: str) -> List[PricePoint]:
        # Copy so callers cannot mutate the stored window
        return list(self._series.get(key, []))

    def is_loaded(self, key: str) -> bool:
        return bool(self._series.get(key))

    def loaded_keys(self) -> List[str]:
        return [key for key, series in self._series.items() if series]

    def __len__(self) -> int:
        return len(self._series)


class LiveSeries:
    """Bounded FIFO of price samples (oldest evicted first)."""

    def __init__(self, max_points: int = 100):
        if max_points < 1:
            raise ValueError("max_points must be >= 1")
        self.max_points = max_points
        self._points: Deque[PricePoint] = deque(maxlen=max_points)

    def append(self, point: PricePoint) -> None:
        self._points.append(point)

    def replace(self, points: Iterable[PricePoint]) -> None:
        """Seed from a history fetch, keeping only the newest max_points."""
        self._points = deque(points, maxlen=self.max_points)

    def points(self) -> List[PricePoint]:
        return list(self._points)

    def __len__(self) -> int:
        return len(self._points)
