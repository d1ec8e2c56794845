"""Black-Scholes pricing and strategy payoff formulas.

Everything here is a pure function of its inputs. The cumulative normal uses
the Abramowitz-Stegun 7.1.26 rational approximation rather than ``math.erf`` so
that premiums are reproducible across environments and match the values the
advisor has always quoted.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from premium_advisor.models import OptionType, Strategy

CONTRACT_MULTIPLIER = 100

_A1 = 0.254829592
_A2 = -0.284496736
_A3 = 1.421413741
_A4 = -1.453152027
_A5 = 1.061405429
_P = 0.3275911


def norm_cdf(x: float) -> float:
    """Standard normal CDF via the Abramowitz-Stegun approximation (|error| < 1.5e-7)."""

    sign = 1.0 if x >= 0 else -1.0
    z = abs(x) / math.sqrt(2.0)
    t = 1.0 / (1.0 + _P * z)
    y = 1.0 - (((((_A5 * t + _A4) * t) + _A3) * t + _A2) * t + _A1) * t * math.exp(-z * z)
    return 0.5 * (1.0 + sign * y)


def black_scholes_premium(
    option_type: OptionType,
    spot: float,
    strike: float,
    time_to_expiry_years: float,
    volatility: float,
    risk_free_rate: float,
) -> float:
    """European option value under Black-Scholes.

    Returns 0 for an expired option (``time_to_expiry_years <= 0``) and for
    degenerate inputs that would make ``d1`` undefined.
    """

    if time_to_expiry_years <= 0 or spot <= 0 or strike <= 0 or volatility <= 0:
        return 0.0

    sqrt_t = math.sqrt(time_to_expiry_years)
    d1 = (
        math.log(spot / strike) + (risk_free_rate + 0.5 * volatility * volatility) * time_to_expiry_years
    ) / (volatility * sqrt_t)
    d2 = d1 - volatility * sqrt_t
    discounted_strike = strike * math.exp(-risk_free_rate * time_to_expiry_years)

    if option_type is OptionType.CALL:
        return spot * norm_cdf(d1) - discounted_strike * norm_cdf(d2)
    return discounted_strike * norm_cdf(-d2) - spot * norm_cdf(-d1)


def strike_increment(price: float) -> float:
    """Listed strike spacing around ``price``."""

    if price < 5:
        return 0.25
    if price < 25:
        return 0.5
    if price < 200:
        return 1.0
    return 5.0


def round_to_strike_increment(price: float) -> float:
    """Round a raw price to the nearest listed strike increment (half up)."""

    increment = strike_increment(price)
    return math.floor(price / increment + 0.5) * increment


def next_strike_above(price: float) -> float:
    """Smallest listed strike strictly above ``price``."""

    increment = strike_increment(price)
    return round((math.floor(price / increment) + 1) * increment, 2)


def next_strike_below(price: float) -> float:
    """Largest listed strike strictly below ``price``; may be zero or negative."""

    increment = strike_increment(price)
    return round((math.ceil(price / increment) - 1) * increment, 2)


@dataclass(frozen=True)
class Payoff:
    """Per-contract outcome of selling one option for a strategy."""

    max_profit: float
    max_loss: float
    breakeven: float
    annualized_return: float


def annualized_return(premium: float, basis: float, days_to_expiry: int) -> float:
    if basis <= 0:
        return 0.0
    days = max(1, days_to_expiry)
    return (premium / basis) * (365 / days)


def _cash_secured_put(strike: float, spot: float, premium: float, days: int) -> Payoff:
    return Payoff(
        max_profit=premium * CONTRACT_MULTIPLIER,
        max_loss=max(0.0, (strike - premium) * CONTRACT_MULTIPLIER),
        breakeven=strike - premium,
        annualized_return=annualized_return(premium, strike, days),
    )


def _covered_call(strike: float, spot: float, premium: float, days: int) -> Payoff:
    return Payoff(
        max_profit=(strike - spot + premium) * CONTRACT_MULTIPLIER,
        max_loss=spot * CONTRACT_MULTIPLIER,
        breakeven=spot - premium,
        annualized_return=annualized_return(premium, spot, days),
    )


_PAYOFFS = {
    Strategy.CASH_SECURED_PUT: _cash_secured_put,
    Strategy.COVERED_CALL: _covered_call,
}


def payoff_for(strategy: Strategy, strike: float, spot: float, premium: float, days_to_expiry: int) -> Payoff:
    """Return max profit/loss, breakeven and annualized yield for ``strategy``."""

    return _PAYOFFS[strategy](strike, spot, premium, days_to_expiry)


__all__ = [
    "CONTRACT_MULTIPLIER",
    "Payoff",
    "annualized_return",
    "black_scholes_premium",
    "norm_cdf",
    "payoff_for",
    "next_strike_above",
    "next_strike_below",
    "round_to_strike_increment",
    "strike_increment",
]
