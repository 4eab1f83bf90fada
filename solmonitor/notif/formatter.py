# -*- coding: utf-8 -*-
"""
Display formatting utilities.
Handles currency, percentage, large-number abbreviation and local time.
"""
from datetime import datetime, timezone
from typing import Optional
import pytz

DEFAULT_TIMEZONE = "America/Sao_Paulo"
UNAVAILABLE = "Indisponível"


def format_price(price: Optional[float]) -> str:
    """
    Format price with thousands separator and 2 decimals: $1,234.56

    Args:
        price: Price value (e.g., 1234.56)

    Returns:
        Formatted string, or UNAVAILABLE for None
    """
    if price is None:
        return UNAVAILABLE
    return f"${price:,.2f}"


def format_change(value: Optional[float]) -> str:
    """
    Format a percent change with explicit sign: +2.50% / -1.00%

    Args:
        value: Percentage value (e.g., 2.5 for 2.5%)
    """
    if value is None:
        return UNAVAILABLE
    return f"{value:+.2f}%"


def change_direction(value: Optional[float]) -> str:
    """CSS-ish class for a change value ('positive' includes zero)."""
    if value is None:
        return "neutral"
    return "positive" if value >= 0 else "negative"


def format_large_number(num: float) -> str:
    """
    Abbreviate large numbers: 1.23T, 4.56B, 7.89M, 1.00K

    Args:
        num: Value (volume, market cap)
    """
    if num >= 1e12:
        return f"{num / 1e12:.2f}T"
    if num >= 1e9:
        return f"{num / 1e9:.2f}B"
    if num >= 1e6:
        return f"{num / 1e6:.2f}M"
    if num >= 1e3:
        return f"{num / 1e3:.2f}K"
    return f"{num:.2f}"


def format_money_short(num: Optional[float]) -> str:
    if num is None:
        return UNAVAILABLE
    return f"${format_large_number(num)}"


def format_datetime(timestamp_ms: int, tz_name: str = DEFAULT_TIMEZONE) -> str:
    """
    Format epoch millis in the display timezone: 11/11/2025 11:30:05

    Args:
        timestamp_ms: Unix timestamp in milliseconds
        tz_name: pytz timezone name
    """
    dt = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    dt = dt.astimezone(pytz.timezone(tz_name))
    return dt.strftime("%d/%m/%Y %H:%M:%S")
