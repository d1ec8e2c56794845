"""Configuration helpers for the engine, API and CLI."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, List, Optional

from premium_advisor.adapters import MarketDataProvider, SyntheticQuoteGenerator, create_adapter

from .loader import AppSettings, get_settings, reset_settings_cache


def build_providers(settings: AppSettings) -> List[MarketDataProvider]:
    """Instantiate the live providers in configured priority order."""

    providers: List[MarketDataProvider] = []
    for name in settings.providers.order:
        if name == "synthetic":
            continue
        try:
            providers.append(create_adapter(name, **settings.providers.settings_for(name)))
        except KeyError as exc:
            raise ValueError(f"Unsupported market data provider: {name}") from exc
    return providers


def build_fallback(
    settings: AppSettings, clock: Optional[Callable[[], datetime]] = None
) -> Optional[SyntheticQuoteGenerator]:
    """Return the synthetic generator unless it is switched off."""

    if not settings.providers.include_synthetic:
        return None
    return SyntheticQuoteGenerator(
        risk_free_rate=settings.pricing.risk_free_rate,
        min_premium=settings.pricing.min_premium,
        seed_bucket_seconds=settings.synthetic.seed_bucket_seconds,
        clock=clock,
    )


__all__ = [
    "AppSettings",
    "build_fallback",
    "build_providers",
    "get_settings",
    "reset_settings_cache",
]
