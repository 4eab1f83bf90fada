# -*- coding: utf-8 -*-
"""
Error taxonomy for the price feed.
Network code raises these; the coordinator decides whether to log or propagate.
"""
from typing import Optional


class PriceFeedError(Exception):
    """Base class for every failure coming from the price API."""


class NetworkError(PriceFeedError):
    """Transport failure (connection refused, DNS, timeout...)."""


class UpstreamStatusError(PriceFeedError):
    """API answered with a non-2xx HTTP status."""

    def __init__(self, code: int, url: Optional[str] = None):
        self.code = code
        self.url = url
        message = f"API retornou status {code}"
        if url:
            message = f"{message} ({url})"
        super().__init__(message)


class MalformedPayloadError(PriceFeedError):
    """Payload is missing expected fields or has the wrong shape."""


class DivisionGuardError(ArithmeticError):
    """Stats requested on an empty or zero-baseline series. Never leaves indicators.stats."""
