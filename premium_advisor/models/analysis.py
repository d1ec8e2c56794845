from __future__ import annotations

import hashlib
from datetime import date, datetime
from enum import Enum
from typing import Optional, Tuple

from pydantic import Field

from .option import MarketModel, OptionGreeks, OptionType, Quote


class Strategy(str, Enum):
    CASH_SECURED_PUT = "cash-secured-put"
    COVERED_CALL = "covered-call"

    @property
    def option_type(self) -> OptionType:
        """Option leg sold by the strategy."""

        if self is Strategy.CASH_SECURED_PUT:
            return OptionType.PUT
        return OptionType.CALL


class RiskTolerance(str, Enum):
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


class AnalysisRequest(MarketModel):
    """Validated analysis input, also used as the result cache key."""

    symbol: str
    strategy: Strategy
    risk_tolerance: RiskTolerance

    def fingerprint(self) -> str:
        raw = f"{self.symbol}|{self.strategy.value}|{self.risk_tolerance.value}"
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()


class Recommendation(MarketModel):
    """A sellable contract priced and scored for the requested strategy."""

    option_type: OptionType
    contract_symbol: Optional[str] = None
    strike: float
    expiration: date
    days_to_expiration: int
    premium: float = Field(ge=0)
    bid: Optional[float] = None
    ask: Optional[float] = None
    last_price: Optional[float] = None
    volume: Optional[int] = None
    open_interest: Optional[int] = None
    implied_volatility: Optional[float] = None
    greeks: Optional[OptionGreeks] = None
    probability: float = Field(ge=0, le=1)
    max_profit: float
    max_loss: float = Field(ge=0)
    breakeven: float
    annualized_return: float
    source_name: str


class RiskMetrics(MarketModel):
    max_drawdown: float = 0.0
    sharpe_ratio: float = 0.0
    win_rate: float = 0.0


class ProviderAttempt(MarketModel):
    """Outcome of asking one provider for one piece of data."""

    provider: str
    operation: str
    outcome: str
    message: Optional[str] = None
    elapsed_ms: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.outcome == "ok"


class SourceInfo(MarketModel):
    """Which providers supplied the price and the options, and why others were skipped."""

    price_source: str
    options_source: str
    fallback_reason: Optional[str] = None
    attempts: Tuple[ProviderAttempt, ...] = ()


class AnalysisResult(MarketModel):
    symbol: str
    strategy: Strategy
    risk_tolerance: RiskTolerance
    current_price: float
    quote: Quote
    recommendations: Tuple[Recommendation, ...] = ()
    risk_metrics: RiskMetrics = Field(default_factory=RiskMetrics)
    source_info: SourceInfo
    timestamp: datetime


class QuoteResult(MarketModel):
    """Quote lookup outcome, including the providers skipped on the way."""

    symbol: str
    quote: Quote
    price_source: str
    fallback_reason: Optional[str] = None
    attempts: Tuple[ProviderAttempt, ...] = ()
    cached: bool = False


class SupportedSymbol(MarketModel):
    symbol: str
    reference_price: float
    category: str


class SupportedSymbols(MarketModel):
    """Symbols with tuned synthetic profiles; any other symbol is still accepted."""

    symbols: Tuple[SupportedSymbol, ...] = ()


__all__ = [
    "AnalysisRequest",
    "AnalysisResult",
    "ProviderAttempt",
    "QuoteResult",
    "Recommendation",
    "RiskMetrics",
    "RiskTolerance",
    "SourceInfo",
    "Strategy",
    "SupportedSymbol",
    "SupportedSymbols",
]
