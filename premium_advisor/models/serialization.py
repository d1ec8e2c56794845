"""Serialization helpers shared between the API and the CLI."""

from __future__ import annotations

from typing import Any, Dict

from .analysis import AnalysisResult, QuoteResult, Recommendation


def serialize_recommendation(recommendation: Recommendation) -> Dict[str, Any]:
    """Return a JSON-compatible representation of a recommendation."""

    return recommendation.model_dump(mode="json", by_alias=True)


def serialize_analysis_result(result: AnalysisResult) -> Dict[str, Any]:
    """Return a JSON-compatible payload for a completed analysis."""

    return result.model_dump(mode="json", by_alias=True)


def serialize_quote_result(result: QuoteResult) -> Dict[str, Any]:
    return result.model_dump(mode="json", by_alias=True)


__all__ = [
    "serialize_analysis_result",
    "serialize_quote_result",
    "serialize_recommendation",
]
