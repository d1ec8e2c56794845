"""Core abstractions for market data providers."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Any, Optional

from premium_advisor.models import OptionChain, Quote


class ProviderError(Exception):
    """Base exception raised for provider related failures."""

    kind = "unavailable"


class NotConfigured(ProviderError):
    """Raised when a provider has no credentials or is switched off."""

    kind = "not_configured"


class RateLimited(ProviderError):
    """Raised when a provider reports rate limiting errors."""

    kind = "rate_limited"


class ProviderTimeout(ProviderError):
    """Raised when a provider call exceeds its time budget."""

    kind = "timeout"


class DataNotFound(ProviderError):
    """Raised when the symbol or its options are absent from a provider."""

    kind = "not_found"


class ProviderUnavailable(ProviderError):
    """Raised for network, HTTP and payload failures that fit no other category."""

    kind = "unavailable"


class MarketDataProvider(ABC):
    """Abstract base class for fetching quotes and option chains.

    Implementations either return complete data or raise a ``ProviderError``
    subclass; they never hand back partially populated results.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human readable provider name."""

    @abstractmethod
    def get_quote(self, symbol: str) -> Quote:
        """Return the current quote for ``symbol``."""

    @abstractmethod
    def get_option_chain(self, symbol: str, spot: float) -> OptionChain:
        """Return listed calls and puts for ``symbol``.

        ``spot`` is the already resolved underlying price; providers may use it
        to narrow the expirations or strikes they download.
        """


def is_valid_price(value: Any) -> bool:
    """Check if a value represents a usable positive price."""

    if value in (None, ""):
        return False
    try:
        price_val = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(price_val) and price_val > 0


def to_float(value: Any, default: float = 0.0) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    return result if math.isfinite(result) else default


def to_count(value: Any) -> Optional[int]:
    """Coerce volume / open interest, keeping ``None`` for unknown values."""

    if value is None:
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(result):
        return None
    return max(0, int(result))


def normalize_iv(value: Any) -> Optional[float]:
    """Return implied volatility within (0, 2], otherwise ``None``."""

    iv = to_float(value, default=0.0)
    if 0 < iv <= 2:
        return iv
    return None


__all__ = [
    "DataNotFound",
    "MarketDataProvider",
    "NotConfigured",
    "ProviderError",
    "ProviderTimeout",
    "ProviderUnavailable",
    "RateLimited",
    "is_valid_price",
    "normalize_iv",
    "to_count",
    "to_float",
]
