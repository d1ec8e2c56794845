from .pricing import (
    CONTRACT_MULTIPLIER,
    Payoff,
    annualized_return,
    black_scholes_premium,
    norm_cdf,
    payoff_for,
    round_to_strike_increment,
)
from .probability import risk_metrics, success_probability

__all__ = [
    "CONTRACT_MULTIPLIER",
    "Payoff",
    "annualized_return",
    "black_scholes_premium",
    "norm_cdf",
    "payoff_for",
    "risk_metrics",
    "round_to_strike_increment",
    "success_probability",
]
