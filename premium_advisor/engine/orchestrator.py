"""Ordered multi-provider fetch cascade.

Each request walks the provider list in priority order. A provider that
raises (or does not answer within the timeout) is recorded and skipped; the
same provider is never retried within one request. The synthetic generator,
when enabled, is the final and infallible step.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from premium_advisor.adapters.base import MarketDataProvider, ProviderError, ProviderTimeout, ProviderUnavailable
from premium_advisor.adapters.synthetic import SyntheticQuoteGenerator
from premium_advisor.models import OptionChain, ProviderAttempt, Quote

from .cache import ResultCache
from .errors import AllSourcesExhausted

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Sourced:
    """Value fetched by the cascade plus the trail of attempts behind it."""

    value: Any
    source_name: str
    attempts: Tuple[ProviderAttempt, ...] = ()
    cached: bool = False


class DataSourceOrchestrator:
    """Try providers in order until one returns a quote or an option chain."""

    def __init__(
        self,
        providers: Sequence[MarketDataProvider],
        *,
        fallback: Optional[SyntheticQuoteGenerator] = None,
        timeout_seconds: float = 10.0,
        quote_cache: Optional[ResultCache] = None,
    ) -> None:
        self._providers: List[MarketDataProvider] = list(providers)
        self._fallback = fallback
        self._timeout = timeout_seconds
        self._quote_cache = quote_cache

    @property
    def providers(self) -> List[MarketDataProvider]:
        return list(self._providers)

    @property
    def fallback(self) -> Optional[SyntheticQuoteGenerator]:
        return self._fallback

    def describe(self) -> Dict[str, Any]:
        """Provider priority and fallback status for diagnostics."""

        return {
            "priority": [provider.name for provider in self._providers],
            "synthetic_fallback": self._fallback is not None,
            "timeout_seconds": self._timeout,
            "quote_cache_ttl_seconds": self._quote_cache.ttl_seconds if self._quote_cache else None,
        }

    async def get_quote(self, symbol: str) -> Sourced:
        cache_key = f"quote:{symbol}"
        if self._quote_cache is not None:
            cached = self._quote_cache.get(cache_key)
            if cached is not None:
                logger.debug(f"Quote cache hit for {symbol} ({cached.source_name})")
                return Sourced(value=cached, source_name=cached.source_name, cached=True)

        sourced = await self._cascade(
            "quote",
            symbol,
            lambda provider: provider.get_quote(symbol),
            lambda generator: generator.get_quote(symbol),
        )
        if self._quote_cache is not None:
            self._quote_cache.set(cache_key, sourced.value)
        return sourced

    async def get_option_chain(self, symbol: str, quote: Quote) -> Sourced:
        spot = quote.current_price
        return await self._cascade(
            "option_chain",
            symbol,
            lambda provider: provider.get_option_chain(symbol, spot),
            lambda generator: generator.get_option_chain(symbol, spot),
        )

    def synthetic_chain(self, symbol: str, quote: Quote) -> Optional[OptionChain]:
        """Ladder chain around ``quote`` when live chains held nothing usable."""

        if self._fallback is None:
            return None
        return self._fallback.get_option_chain(symbol, quote.current_price)

    async def _cascade(
        self,
        operation: str,
        symbol: str,
        call: Callable[[MarketDataProvider], T],
        fallback_call: Callable[[SyntheticQuoteGenerator], T],
    ) -> Sourced:
        attempts: List[ProviderAttempt] = []
        for provider in self._providers:
            started = time.perf_counter()
            try:
                value = await asyncio.wait_for(asyncio.to_thread(call, provider), timeout=self._timeout)
            except asyncio.TimeoutError:
                error: ProviderError = ProviderTimeout(f"no answer within {self._timeout:g}s")
            except ProviderError as exc:
                error = exc
            except Exception as exc:
                logger.warning(f"{provider.name} raised an unexpected error for {symbol} {operation}", exc_info=True)
                error = ProviderUnavailable(f"unexpected {type(exc).__name__}: {exc}")
            else:
                attempts.append(self._attempt(provider.name, operation, "ok", None, started))
                return Sourced(value=value, source_name=provider.name, attempts=tuple(attempts))

            attempts.append(self._attempt(provider.name, operation, error.kind, str(error), started))
            self._log_skip(provider.name, symbol, operation, error, attempts[-1].elapsed_ms)

        if self._fallback is None:
            raise AllSourcesExhausted(f"No provider could supply {operation} for {symbol}", attempts)

        started = time.perf_counter()
        value = fallback_call(self._fallback)
        attempts.append(self._attempt(self._fallback.name, operation, "ok", None, started))
        return Sourced(value=value, source_name=self._fallback.name, attempts=tuple(attempts))

    @staticmethod
    def _attempt(provider: str, operation: str, outcome: str, message: Optional[str], started: float) -> ProviderAttempt:
        return ProviderAttempt(
            provider=provider,
            operation=operation,
            outcome=outcome,
            message=message,
            elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
        )

    @staticmethod
    def _log_skip(provider: str, symbol: str, operation: str, error: ProviderError, elapsed_ms: float) -> None:
        if error.kind == "not_configured":
            logger.debug(f"Skipping {provider} for {symbol} {operation}: not configured")
        elif error.kind == "timeout":
            logger.info(f"{provider} timed out after {elapsed_ms:.0f}ms for {symbol} {operation}")
        else:
            logger.info(f"{provider} failed {symbol} {operation} ({error.kind}): {error}")


__all__ = ["DataSourceOrchestrator", "Sourced"]
