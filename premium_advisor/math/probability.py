"""Probability heuristics for short option positions."""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from premium_advisor.models import OptionType, Recommendation, RiskMetrics

# (moneyness threshold, base probability) checked top-down; the last entry is the floor.
MONEYNESS_BUCKETS = (
    (1.05, 0.30),
    (1.02, 0.50),
    (0.98, 0.65),
    (0.95, 0.75),
)
OUT_OF_MONEY_PROBABILITY = 0.85
JITTER_WIDTH = 0.10
PROBABILITY_FLOOR = 0.20
PROBABILITY_CEILING = 0.95


def moneyness(strike: float, spot: float, option_type: OptionType) -> float:
    """Spot/strike for calls, strike/spot for puts; above 1 means in the money."""

    if option_type is OptionType.CALL:
        return spot / strike
    return strike / spot


def base_probability(strike: float, spot: float, option_type: OptionType) -> float:
    ratio = moneyness(strike, spot, option_type)
    for threshold, probability in MONEYNESS_BUCKETS:
        if ratio > threshold:
            return probability
    return OUT_OF_MONEY_PROBABILITY


def success_probability(
    strike: float,
    spot: float,
    option_type: OptionType,
    rng: Optional[np.random.Generator] = None,
) -> float:
    """Probability that the short option expires worthless.

    Bucketed by moneyness, nudged by up to +/-0.05 when a generator is
    supplied, and clamped to [0.20, 0.95]. Deeper in the money never scores
    higher than shallower.
    """

    probability = base_probability(strike, spot, option_type)
    if rng is not None:
        probability += (rng.random() - 0.5) * JITTER_WIDTH
    return max(PROBABILITY_FLOOR, min(PROBABILITY_CEILING, probability))


def risk_metrics(recommendations: Sequence[Recommendation], rng: np.random.Generator) -> RiskMetrics:
    """Portfolio-level summary shown next to the recommendations."""

    if not recommendations:
        return RiskMetrics()

    win_rate = sum(rec.probability for rec in recommendations) / len(recommendations)
    return RiskMetrics(
        max_drawdown=round(0.15 + rng.random() * 0.1, 4),
        sharpe_ratio=round(1.0 + rng.random() * 0.5, 4),
        win_rate=round(win_rate, 4),
    )


__all__ = [
    "MONEYNESS_BUCKETS",
    "base_probability",
    "moneyness",
    "risk_metrics",
    "success_probability",
]
