# -*- coding: utf-8 -*-
"""
Chart sinks. A sink receives a full series and replaces whatever it showed before.
"""
from typing import Any, Dict, List, Optional, Protocol, Sequence

from loguru import logger


class ChartSink(Protocol):
    def render(self, timestamps: Sequence[int], values: Sequence[float], axis_unit: str) -> None:
        ...


class MemoryChartSink:
    """
    Keeps the last rendered series so the dashboard can serve it.
    Re-render is a full replace; no history is retained.
    """

    def __init__(self, label: str = "SOL/USD Price"):
        self.label = label
        self.timestamps: List[int] = []
        self.values: List[float] = []
        self.axis_unit: Optional[str] = None
        self.render_count = 0

    def render(self, timestamps: Sequence[int], values: Sequence[float], axis_unit: str) -> None:
        if len(timestamps) != len(values):
            raise ValueError(
                f"timestamps/values length mismatch: {len(timestamps)} != {len(values)}"
            )
        self.timestamps = list(timestamps)
        self.values = list(values)
        self.axis_unit = axis_unit
        self.render_count += 1
        logger.debug(f"Chart rendered: {len(self.values)} points (unit={axis_unit})")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "axis_unit": self.axis_unit,
            "labels": self.timestamps,
            "data": self.values,
            "points": len(self.values),
        }
