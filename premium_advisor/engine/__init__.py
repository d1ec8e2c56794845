from .builder import RecommendationBuilder
from .cache import ResultCache
from .errors import (
    AllSourcesExhausted,
    AnalysisError,
    InvalidRequest,
    InvalidRiskTolerance,
    InvalidStrategy,
    InvalidSymbol,
)
from .filter import StrategyFilter
from .orchestrator import DataSourceOrchestrator, Sourced
from .service import AnalysisEngine, parse_request, parse_symbol

__all__ = [
    "AllSourcesExhausted",
    "AnalysisEngine",
    "AnalysisError",
    "DataSourceOrchestrator",
    "InvalidRequest",
    "InvalidRiskTolerance",
    "InvalidStrategy",
    "InvalidSymbol",
    "RecommendationBuilder",
    "ResultCache",
    "Sourced",
    "StrategyFilter",
    "parse_request",
    "parse_symbol",
]
