# -*- coding: utf-8 -*-
"""
Summary statistics over a price series (min/max/first/last/% change).
Pure functions: no network, no state.
"""
from dataclasses import dataclass
from typing import Optional, Sequence

from solmonitor.errors import DivisionGuardError
from solmonitor.storage.models import PricePoint


@dataclass(frozen=True)
class Stats:
    """Stats for one series. Every field is None when unavailable."""
    min: Optional[float] = None
    max: Optional[float] = None
    first: Optional[float] = None
    last: Optional[float] = None
    percent_change: Optional[float] = None

    @property
    def available(self) -> bool:
        return self.percent_change is not None

    @classmethod
    def unavailable(cls) -> "Stats":
        return cls()


def percent_change(first: float, last: float) -> float:
    """
    (last - first) / first * 100

    Raises:
        DivisionGuardError: If first is zero.
    """
    if first == 0:
        raise DivisionGuardError("Cannot compute percent change from a zero baseline")
    return (last - first) / first * 100


def project_stats(series: Sequence[PricePoint]) -> Stats:
    """
    Derive display stats from a series.

    Args:
        series: Price points in timestamp order

    Returns:
        Stats with all fields set, or Stats.unavailable() for an empty
        series or a zero first price.
    """
    if not series:
        return Stats.unavailable()

    prices = [p.price for p in series]
    first = prices[0]
    last = prices[-1]

    try:
        change = percent_change(first, last)
    except DivisionGuardError:
        return Stats.unavailable()

    return Stats(
        min=min(prices),
        max=max(prices),
        first=first,
        last=last,
        percent_change=change,
    )
