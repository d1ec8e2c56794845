"""Adapter implementations for external market data providers."""

from __future__ import annotations

from importlib import import_module
from typing import Any, Dict, Type

from .base import (
    DataNotFound,
    MarketDataProvider,
    NotConfigured,
    ProviderError,
    ProviderTimeout,
    ProviderUnavailable,
    RateLimited,
)
from .synthetic import SyntheticQuoteGenerator

_ADAPTER_REGISTRY: Dict[str, str] = {
    "tradier": "premium_advisor.adapters.tradier:TradierProvider",
    "polygon": "premium_advisor.adapters.polygon:PolygonProvider",
    "yfinance": "premium_advisor.adapters.yfinance:YFinanceProvider",
    "synthetic": "premium_advisor.adapters.synthetic:SyntheticQuoteGenerator",
}


def create_adapter(provider: str, **settings: Any) -> MarketDataProvider:
    """Instantiate a market data provider by name.

    Args:
        provider: The name of the provider to load (case insensitive).
        **settings: Keyword arguments forwarded to the provider constructor.

    Returns:
        An instance of the requested provider implementation.

    Raises:
        KeyError: If the provider name is unknown.
    """

    normalized = provider.strip().lower()
    try:
        dotted_path = _ADAPTER_REGISTRY[normalized]
    except KeyError as exc:
        raise KeyError(f"Unknown market data provider: {provider}") from exc

    module_name, class_name = dotted_path.split(":", 1)
    module = import_module(module_name)
    adapter_cls: Type[MarketDataProvider] = getattr(module, class_name)
    return adapter_cls(**settings)


__all__ = [
    "DataNotFound",
    "MarketDataProvider",
    "NotConfigured",
    "ProviderError",
    "ProviderTimeout",
    "ProviderUnavailable",
    "RateLimited",
    "SyntheticQuoteGenerator",
    "create_adapter",
]
