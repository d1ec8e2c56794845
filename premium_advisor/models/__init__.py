from .analysis import (
    AnalysisRequest,
    AnalysisResult,
    ProviderAttempt,
    QuoteResult,
    Recommendation,
    RiskMetrics,
    RiskTolerance,
    SourceInfo,
    Strategy,
    SupportedSymbol,
    SupportedSymbols,
)
from .option import OptionChain, OptionContract, OptionGreeks, OptionType, Quote
from .serialization import serialize_analysis_result, serialize_quote_result, serialize_recommendation

__all__ = [
    "AnalysisRequest",
    "AnalysisResult",
    "OptionChain",
    "OptionContract",
    "OptionGreeks",
    "OptionType",
    "ProviderAttempt",
    "Quote",
    "QuoteResult",
    "Recommendation",
    "RiskMetrics",
    "RiskTolerance",
    "SourceInfo",
    "Strategy",
    "SupportedSymbol",
    "SupportedSymbols",
    "serialize_analysis_result",
    "serialize_quote_result",
    "serialize_recommendation",
]
