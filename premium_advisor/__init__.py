"""Options-selling advisor: cash-secured put and covered call recommendations."""

from __future__ import annotations

from typing import Any

__version__ = "0.1.0"


def create_engine(*args: Any, **kwargs: Any):  # pragma: no cover - thin wrapper
    """Lazily import and build an ``AnalysisEngine`` from settings."""

    from .engine import AnalysisEngine

    return AnalysisEngine.from_settings(*args, **kwargs)


__all__ = ["__version__", "create_engine"]
