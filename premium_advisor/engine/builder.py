"""Turn selected contracts into priced recommendations."""

from __future__ import annotations

from datetime import date
from typing import Optional

import numpy as np

from premium_advisor.math.pricing import black_scholes_premium, payoff_for
from premium_advisor.math.probability import success_probability
from premium_advisor.models import OptionContract, Recommendation, Strategy

QUOTE_SPREAD = 0.05


class RecommendationBuilder:
    """Combine a contract with pricing model outputs into a ``Recommendation``."""

    def __init__(
        self,
        *,
        risk_free_rate: float = 0.05,
        default_volatility: float = 0.25,
        min_premium: float = 0.05,
    ) -> None:
        self.risk_free_rate = risk_free_rate
        self.default_volatility = default_volatility
        self.min_premium = min_premium

    def theoretical_premium(self, contract: OptionContract, spot: float, days: int) -> float:
        volatility = contract.implied_volatility or self.default_volatility
        return black_scholes_premium(
            contract.option_type, spot, contract.strike, days / 365, volatility, self.risk_free_rate
        )

    def market_premium(self, contract: OptionContract, spot: float, days: int) -> float:
        """Mid when both sides are quoted, then last trade, then Black-Scholes."""

        if contract.bid > 0 and contract.ask > 0:
            return (contract.bid + contract.ask) / 2
        if contract.last_price > 0:
            return contract.last_price
        return self.theoretical_premium(contract, spot, days)

    def build(
        self,
        contract: OptionContract,
        spot: float,
        strategy: Strategy,
        today: date,
        source_name: str,
        *,
        synthetic: bool = False,
        rng: Optional[np.random.Generator] = None,
    ) -> Recommendation:
        days = contract.days_to_expiration(today)
        if synthetic:
            raw_premium = contract.last_price or self.theoretical_premium(contract, spot, days)
            raw_premium = max(self.min_premium, raw_premium)
        else:
            raw_premium = self.market_premium(contract, spot, days)
        premium = round(max(0.0, raw_premium), 2)

        payoff = payoff_for(strategy, contract.strike, spot, premium, days)
        bid = contract.bid if contract.bid > 0 else round(premium * (1 - QUOTE_SPREAD), 2)
        ask = contract.ask if contract.ask > 0 else round(premium * (1 + QUOTE_SPREAD), 2)

        return Recommendation(
            option_type=contract.option_type,
            contract_symbol=contract.contract_symbol or None,
            strike=contract.strike,
            expiration=contract.expiration_date,
            days_to_expiration=days,
            premium=premium,
            bid=bid,
            ask=ask,
            last_price=contract.last_price or None,
            volume=contract.volume,
            open_interest=contract.open_interest,
            implied_volatility=contract.implied_volatility,
            greeks=contract.greeks,
            probability=round(success_probability(contract.strike, spot, contract.option_type, rng), 4),
            max_profit=round(payoff.max_profit, 2),
            max_loss=round(payoff.max_loss, 2),
            breakeven=round(payoff.breakeven, 2),
            annualized_return=round(payoff.annualized_return, 4),
            source_name=source_name,
        )


__all__ = ["RecommendationBuilder"]
