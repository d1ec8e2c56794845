"""Contract selection for the supported option-selling strategies."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, List

from premium_advisor.models import OptionChain, OptionContract, RiskTolerance, Strategy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StrikeBand:
    """Open interval of strikes, expressed as multiples of spot."""

    lower: float
    upper: float

    def contains(self, strike: float, spot: float) -> bool:
        return self.lower * spot < strike < self.upper * spot


STRIKE_BANDS: Dict[Strategy, StrikeBand] = {
    Strategy.CASH_SECURED_PUT: StrikeBand(0.85, 0.98),
    Strategy.COVERED_CALL: StrikeBand(1.02, 1.15),
}


class StrategyFilter:
    """Pick a bounded, liquidity-ranked set of contracts for a strategy."""

    def __init__(self, *, max_candidates: int = 10, min_days: int = 7, max_days: int = 90) -> None:
        self.max_candidates = max_candidates
        self.min_days = min_days
        self.max_days = max_days

    def select(
        self,
        chain: OptionChain,
        spot: float,
        strategy: Strategy,
        risk_tolerance: RiskTolerance,
        today: date,
    ) -> List[OptionContract]:
        contracts = chain.contracts(strategy.option_type)
        if chain.synthetic:
            # Generated ladders are already strategy shaped; keep their order.
            return list(contracts)

        band = STRIKE_BANDS[strategy]
        in_band = [
            contract
            for contract in contracts
            if band.contains(contract.strike, spot)
            and self.min_days <= contract.days_to_expiration(today) <= self.max_days
        ]
        liquid = [contract for contract in in_band if self._is_liquid(contract)]
        ranked = sorted(liquid, key=lambda contract: contract.activity, reverse=True)[: self.max_candidates]

        logger.debug(
            f"{chain.source_name} {chain.symbol} {strategy.value}/{risk_tolerance.value}: "
            f"{len(contracts)} listed, {len(in_band)} in band, {len(ranked)} selected"
        )
        return ranked

    @staticmethod
    def _is_liquid(contract: OptionContract) -> bool:
        # Only enforced when the provider reports activity at all.
        if contract.volume is None and contract.open_interest is None:
            return True
        return (contract.volume or 0) > 0 or (contract.open_interest or 0) > 0


__all__ = ["STRIKE_BANDS", "StrategyFilter", "StrikeBand"]
