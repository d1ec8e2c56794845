"""Analysis engine: validation, cache, data cascade, filtering and pricing."""

from __future__ import annotations

import asyncio
import hashlib
import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np

from premium_advisor.adapters.synthetic import REFERENCE_PRICES
from premium_advisor.config import AppSettings, build_fallback, build_providers, get_settings
from premium_advisor.math.probability import risk_metrics
from premium_advisor.models import (
    AnalysisRequest,
    AnalysisResult,
    ProviderAttempt,
    QuoteResult,
    RiskTolerance,
    SourceInfo,
    Strategy,
    SupportedSymbol,
    SupportedSymbols,
)

from .builder import RecommendationBuilder
from .cache import ResultCache
from .errors import InvalidRiskTolerance, InvalidStrategy, InvalidSymbol
from .filter import StrategyFilter
from .orchestrator import DataSourceOrchestrator

logger = logging.getLogger(__name__)

SYMBOL_PATTERN = re.compile(r"^[A-Z0-9.-]{1,10}$")


def parse_symbol(symbol: Any) -> str:
    normalized = str(symbol or "").strip().upper()
    if not SYMBOL_PATTERN.match(normalized):
        raise InvalidSymbol(f"Invalid symbol: {symbol!r}")
    return normalized


def parse_request(symbol: Any, strategy: Any, risk_tolerance: Any) -> AnalysisRequest:
    """Validate raw caller input without touching the network."""

    normalized = parse_symbol(symbol)

    try:
        parsed_strategy = Strategy(str(strategy or "").strip().lower())
    except ValueError as exc:
        supported = ", ".join(item.value for item in Strategy)
        raise InvalidStrategy(f"Unsupported strategy {strategy!r}; expected one of {supported}") from exc

    try:
        parsed_risk = RiskTolerance(str(risk_tolerance or "").strip().lower())
    except ValueError as exc:
        supported = ", ".join(item.value for item in RiskTolerance)
        raise InvalidRiskTolerance(f"Unsupported risk tolerance {risk_tolerance!r}; expected one of {supported}") from exc

    return AnalysisRequest(symbol=normalized, strategy=parsed_strategy, risk_tolerance=parsed_risk)


def describe_fallback(attempts: Sequence[ProviderAttempt], notes: Sequence[str] = ()) -> Optional[str]:
    """Human readable summary of skipped providers, or None when nothing was skipped."""

    failures = [attempt for attempt in attempts if not attempt.succeeded]
    reasons = [
        f"{attempt.provider} {attempt.operation}: {attempt.outcome}" + (f" ({attempt.message})" if attempt.message else "")
        for attempt in failures
        if attempt.outcome != "not_configured"
    ]
    if failures and not reasons:
        reasons.append("no live providers configured")
    reasons.extend(notes)
    return "; ".join(reasons) or None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnalysisEngine:
    """Owns the provider cascade and the result cache; one instance per process."""

    def __init__(
        self,
        orchestrator: DataSourceOrchestrator,
        *,
        analysis_cache: Optional[ResultCache] = None,
        strategy_filter: Optional[StrategyFilter] = None,
        builder: Optional[RecommendationBuilder] = None,
        clock: Optional[Callable[[], datetime]] = None,
        seed_bucket_seconds: int = 1800,
    ) -> None:
        self.orchestrator = orchestrator
        self.cache = analysis_cache if analysis_cache is not None else ResultCache(ttl_seconds=1800)
        self.strategy_filter = strategy_filter or StrategyFilter()
        self.builder = builder or RecommendationBuilder()
        self._clock = clock or _utcnow
        self._seed_bucket_seconds = max(0, int(seed_bucket_seconds))

    @classmethod
    def from_settings(
        cls,
        settings: Optional[AppSettings] = None,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "AnalysisEngine":
        settings = settings or get_settings()
        orchestrator = DataSourceOrchestrator(
            build_providers(settings),
            fallback=build_fallback(settings, clock=clock),
            timeout_seconds=settings.providers.timeout_seconds,
            quote_cache=ResultCache(ttl_seconds=settings.cache.quote_ttl_seconds),
        )
        return cls(
            orchestrator,
            analysis_cache=ResultCache(ttl_seconds=settings.cache.analysis_ttl_seconds),
            strategy_filter=StrategyFilter(
                max_candidates=settings.filter.max_candidates,
                min_days=settings.filter.min_days,
                max_days=settings.filter.max_days,
            ),
            builder=RecommendationBuilder(
                risk_free_rate=settings.pricing.risk_free_rate,
                default_volatility=settings.pricing.default_volatility,
                min_premium=settings.pricing.min_premium,
            ),
            clock=clock,
            seed_bucket_seconds=settings.synthetic.seed_bucket_seconds,
        )

    def _rng_for(self, request: AnalysisRequest) -> np.random.Generator:
        bucket = 0
        if self._seed_bucket_seconds:
            bucket = int(self._clock().timestamp() // self._seed_bucket_seconds)
        digest = hashlib.sha256(f"{request.fingerprint()}:{bucket}".encode("utf-8")).digest()
        return np.random.default_rng(int.from_bytes(digest[:8], "big"))

    async def analyze(self, symbol: Any, strategy: Any, risk_tolerance: Any) -> AnalysisResult:
        """Recommend contracts to sell for ``strategy`` on ``symbol``.

        Raises ``InvalidRequest`` subclasses for bad input and
        ``AllSourcesExhausted`` only when no provider (synthetic included)
        could supply a quote or a chain.
        """

        request = parse_request(symbol, strategy, risk_tolerance)
        cache_key = request.fingerprint()
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Analysis cache hit for {request.symbol} {request.strategy.value}")
            return cached

        quote_sourced = await self.orchestrator.get_quote(request.symbol)
        quote = quote_sourced.value
        spot = quote.current_price
        chain_sourced = await self.orchestrator.get_option_chain(request.symbol, quote)
        chain = chain_sourced.value
        options_source = chain_sourced.source_name
        today = self._clock().date()

        notes: List[str] = []
        contracts = self.strategy_filter.select(chain, spot, request.strategy, request.risk_tolerance, today)
        if not contracts and not chain.synthetic:
            notes.append(
                f"{chain.source_name} had no liquid {request.strategy.option_type.value} contracts in the strike band"
            )
            fallback_chain = self.orchestrator.synthetic_chain(request.symbol, quote)
            if fallback_chain is not None:
                chain = fallback_chain
                options_source = fallback_chain.source_name
                contracts = self.strategy_filter.select(chain, spot, request.strategy, request.risk_tolerance, today)

        rng = self._rng_for(request)
        recommendations = tuple(
            self.builder.build(
                contract,
                spot,
                request.strategy,
                today,
                options_source,
                synthetic=chain.synthetic,
                rng=rng,
            )
            for contract in contracts
        )

        attempts = quote_sourced.attempts + chain_sourced.attempts
        result = AnalysisResult(
            symbol=request.symbol,
            strategy=request.strategy,
            risk_tolerance=request.risk_tolerance,
            current_price=spot,
            quote=quote,
            recommendations=recommendations,
            risk_metrics=risk_metrics(recommendations, rng),
            source_info=SourceInfo(
                price_source=quote_sourced.source_name,
                options_source=options_source,
                fallback_reason=describe_fallback(attempts, notes),
                attempts=attempts,
            ),
            timestamp=self._clock(),
        )

        self.cache.set(cache_key, result)
        logger.info(
            f"Analyzed {request.symbol} {request.strategy.value}/{request.risk_tolerance.value}: "
            f"{len(recommendations)} recommendations (price: {quote_sourced.source_name}, options: {options_source})"
        )
        return result

    def analyze_sync(self, symbol: Any, strategy: Any, risk_tolerance: Any) -> AnalysisResult:
        """Blocking wrapper for callers without an event loop."""

        return asyncio.run(self.analyze(symbol, strategy, risk_tolerance))

    async def lookup_quote(self, symbol: Any) -> QuoteResult:
        """Current quote for ``symbol`` from the first provider that answers."""

        normalized = parse_symbol(symbol)
        sourced = await self.orchestrator.get_quote(normalized)
        return QuoteResult(
            symbol=normalized,
            quote=sourced.value,
            price_source=sourced.source_name,
            fallback_reason=describe_fallback(sourced.attempts),
            attempts=sourced.attempts,
            cached=sourced.cached,
        )

    def lookup_quote_sync(self, symbol: Any) -> QuoteResult:
        return asyncio.run(self.lookup_quote(symbol))

    @staticmethod
    def supported_symbols() -> SupportedSymbols:
        return SupportedSymbols(
            symbols=tuple(
                SupportedSymbol(symbol=symbol, reference_price=price, category=category)
                for symbol, (price, category) in sorted(REFERENCE_PRICES.items())
            )
        )

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("Analysis cache cleared.")

    def describe(self) -> Dict[str, Any]:
        status = self.orchestrator.describe()
        status["analysis_cache_ttl_seconds"] = self.cache.ttl_seconds
        return status


__all__ = ["AnalysisEngine", "describe_fallback", "parse_request", "parse_symbol"]
