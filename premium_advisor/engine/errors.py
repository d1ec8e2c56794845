"""Errors surfaced to callers of the analysis engine."""

from __future__ import annotations

from typing import Sequence

from premium_advisor.models import ProviderAttempt


class AnalysisError(Exception):
    """Base exception for analysis failures visible to the caller."""


class InvalidRequest(AnalysisError, ValueError):
    """Raised before any network I/O when the request itself is malformed."""


class InvalidSymbol(InvalidRequest):
    pass


class InvalidStrategy(InvalidRequest):
    pass


class InvalidRiskTolerance(InvalidRequest):
    pass


class AllSourcesExhausted(AnalysisError):
    """Raised when every configured provider failed and no synthetic fallback is enabled."""

    def __init__(self, message: str, attempts: Sequence[ProviderAttempt] = ()) -> None:
        super().__init__(message)
        self.attempts = tuple(attempts)


__all__ = [
    "AllSourcesExhausted",
    "AnalysisError",
    "InvalidRequest",
    "InvalidRiskTolerance",
    "InvalidStrategy",
    "InvalidSymbol",
]
