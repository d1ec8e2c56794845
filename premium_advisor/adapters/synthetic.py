"""Deterministic synthetic market data used when every live provider fails.

Prices and chains are generated from a seed derived from the symbol and a
time bucket, so identical requests inside one bucket produce identical data.
The category tables below are tunable policy, not market facts.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from premium_advisor.math.pricing import (
    black_scholes_premium,
    next_strike_above,
    next_strike_below,
    round_to_strike_increment,
)
from premium_advisor.models import OptionChain, OptionContract, OptionType, Quote

from .base import MarketDataProvider

logger = logging.getLogger(__name__)

SOURCE_NAME = "Smart Simulation"

PUT_STRIKE_RATIOS = (0.97, 0.95, 0.92, 0.90, 0.88)
CALL_STRIKE_RATIOS = (1.03, 1.05, 1.08, 1.10, 1.12)
EXPIRATION_DAYS = (30, 37, 44, 51, 58)

REFERENCE_PRICES: Dict[str, Tuple[float, str]] = {
    "AAPL": (227.16, "large_cap_tech"),
    "MSFT": (421.33, "large_cap_tech"),
    "GOOGL": (166.85, "large_cap_tech"),
    "GOOG": (168.22, "large_cap_tech"),
    "AMZN": (186.40, "large_cap_tech"),
    "TSLA": (218.80, "large_cap_tech"),
    "NVDA": (128.45, "large_cap_tech"),
    "META": (512.20, "large_cap_tech"),
    "NFLX": (485.30, "large_cap_tech"),
    "AMD": (153.89, "large_cap_tech"),
    "JPM": (242.31, "financial"),
    "BAC": (42.85, "financial"),
    "WFC": (63.47, "financial"),
    "GS": (521.34, "financial"),
    "MS": (117.23, "financial"),
    "JNJ": (156.78, "healthcare"),
    "PFE": (28.94, "healthcare"),
    "UNH": (592.45, "healthcare"),
    "ABBV": (178.56, "healthcare"),
    "KO": (63.45, "consumer"),
    "PEP": (167.89, "consumer"),
    "WMT": (85.67, "consumer"),
    "MCD": (289.56, "consumer"),
    "NIO": (4.85, "chinese_stock"),
    "BABA": (88.92, "chinese_stock"),
    "JD": (25.34, "chinese_stock"),
    "BIDU": (86.45, "chinese_stock"),
    "PDD": (127.89, "chinese_stock"),
    "XPEV": (9.23, "chinese_stock"),
    "LI": (18.67, "chinese_stock"),
    "BILI": (15.34, "chinese_stock"),
    "COIN": (145.67, "growth_stock"),
    "PLTR": (26.78, "growth_stock"),
    "RBLX": (41.23, "growth_stock"),
    "SNOW": (134.56, "growth_stock"),
    "SPY": (567.89, "etf"),
    "QQQ": (489.45, "etf"),
    "IWM": (234.56, "etf"),
    "VTI": (278.90, "etf"),
}

# Daily price jitter half-width by category.
PRICE_VOLATILITY: Dict[str, float] = {
    "large_cap_tech": 0.02,
    "large_cap": 0.015,
    "financial": 0.025,
    "healthcare": 0.02,
    "consumer": 0.018,
    "chinese_stock": 0.06,
    "growth_stock": 0.05,
    "small_cap": 0.08,
    "mid_cap": 0.03,
    "etf": 0.012,
    "special": 0.04,
    "value_stock": 0.025,
}

# Centre of the implied volatility band; the drawn value lands in [0.8x, 1.2x].
IMPLIED_VOLATILITY: Dict[str, float] = {
    "large_cap_tech": 0.25,
    "large_cap": 0.20,
    "financial": 0.28,
    "healthcare": 0.22,
    "consumer": 0.20,
    "chinese_stock": 0.45,
    "growth_stock": 0.40,
    "small_cap": 0.50,
    "mid_cap": 0.30,
    "etf": 0.15,
    "special": 0.35,
    "value_stock": 0.25,
}

DEFAULT_CATEGORY = "mid_cap"
NYSE_SYMBOLS = frozenset({"NIO", "BABA", "JD", "BIDU", "PDD", "XPEV", "LI", "BILI", "WB", "YMM"})
NASDAQ_SYMBOLS = frozenset({"AAPL", "MSFT", "GOOGL", "GOOG", "AMZN", "TSLA", "NVDA", "META"})


def symbol_hash(symbol: str) -> int:
    """Absolute value of the 32-bit ``h = 31*h + c`` string hash."""

    value = 0
    for char in symbol:
        value = (value * 31 + ord(char)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return abs(value)


@dataclass(frozen=True)
class SymbolProfile:
    base_price: float
    category: str


def profile_symbol(symbol: str) -> SymbolProfile:
    """Stable base price and category for ``symbol``."""

    if symbol in REFERENCE_PRICES:
        price, category = REFERENCE_PRICES[symbol]
        return SymbolProfile(base_price=price, category=category)

    hashed = symbol_hash(symbol)
    if len(symbol) <= 2:
        category = ("large_cap", "etf")[hashed % 2]
        low, high = 100.0, 500.0
    elif len(symbol) >= 5:
        category = "small_cap"
        low, high = 5.0, 50.0
    elif any(char.isdigit() for char in symbol):
        category = "special"
        low, high = 10.0, 100.0
    else:
        category = ("mid_cap", "growth_stock", "value_stock")[hashed % 3]
        low, high = 30.0, 300.0

    estimated = low + ((hashed % 10000) / 10000) * (high - low)
    return SymbolProfile(base_price=round(estimated, 2), category=category)


def price_volatility(category: str, price: float) -> float:
    volatility = PRICE_VOLATILITY.get(category, 0.03)
    if price < 5:
        volatility *= 1.5
    elif price > 500:
        volatility *= 0.8
    return volatility


def exchange_for(symbol: str) -> str:
    if symbol in NYSE_SYMBOLS:
        return "NYSE"
    if symbol in NASDAQ_SYMBOLS:
        return "NASDAQ"
    return "NYSE" if len(symbol) <= 3 else "NASDAQ"


def contract_symbol(symbol: str, expiration, option_type: OptionType, strike: float) -> str:
    """OCC style identifier, e.g. ``AAPL251121P00220000``."""

    return f"{symbol}{expiration:%y%m%d}{option_type.value[0]}{int(round(strike * 1000)):08d}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SyntheticQuoteGenerator(MarketDataProvider):
    """Invent a plausible quote and option chain for any symbol. Never fails."""

    def __init__(
        self,
        *,
        risk_free_rate: float = 0.05,
        min_premium: float = 0.05,
        seed_bucket_seconds: int = 1800,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._risk_free_rate = risk_free_rate
        self._min_premium = min_premium
        self._seed_bucket_seconds = max(0, int(seed_bucket_seconds))
        self._clock = clock or _utcnow

    @property
    def name(self) -> str:
        return SOURCE_NAME

    def seed_for(self, symbol: str, purpose: str) -> int:
        """Deterministic seed for ``symbol`` within the current time bucket."""

        bucket = 0
        if self._seed_bucket_seconds:
            bucket = int(self._clock().timestamp() // self._seed_bucket_seconds)
        digest = hashlib.sha256(f"{symbol}:{bucket}:{purpose}".encode("utf-8")).digest()
        return int.from_bytes(digest[:8], "big")

    def rng_for(self, symbol: str, purpose: str) -> np.random.Generator:
        return np.random.default_rng(self.seed_for(symbol, purpose))

    def get_quote(self, symbol: str) -> Quote:
        profile = profile_symbol(symbol)
        rng = self.rng_for(symbol, "quote")
        swing = price_volatility(profile.category, profile.base_price)
        price = profile.base_price * (1 + (rng.random() - 0.5) * swing * 2)
        previous_close = price * (0.995 + rng.random() * 0.01)
        logger.debug(f"Synthetic quote for {symbol}: {price:.2f} ({profile.category})")

        return Quote(
            symbol=symbol,
            current_price=round(price, 2),
            previous_close=round(previous_close, 2),
            currency="USD",
            exchange=exchange_for(symbol),
            timestamp=self._clock(),
            source_name=SOURCE_NAME,
            category=profile.category,
        )

    def implied_volatility(self, category: str, rng: np.random.Generator) -> float:
        iv = IMPLIED_VOLATILITY.get(category, IMPLIED_VOLATILITY[DEFAULT_CATEGORY])
        iv *= 0.8 + rng.random() * 0.4
        return max(0.10, min(0.80, iv))

    def get_option_chain(self, symbol: str, spot: float) -> OptionChain:
        profile = profile_symbol(symbol)
        rng = self.rng_for(symbol, "chain")
        now = self._clock()

        puts = self._ladder(symbol, spot, OptionType.PUT, PUT_STRIKE_RATIOS, profile.category, rng, now)
        calls = self._ladder(symbol, spot, OptionType.CALL, CALL_STRIKE_RATIOS, profile.category, rng, now)

        return OptionChain(
            symbol=symbol,
            calls=tuple(calls),
            puts=tuple(puts),
            timestamp=now,
            source_name=SOURCE_NAME,
            synthetic=True,
        )

    def _ladder(
        self,
        symbol: str,
        spot: float,
        option_type: OptionType,
        ratios: Tuple[float, ...],
        category: str,
        rng: np.random.Generator,
        now: datetime,
    ) -> List[OptionContract]:
        if option_type is OptionType.PUT:
            volume_range, interest_range = (100, 1100), (500, 5500)
        else:
            volume_range, interest_range = (50, 850), (200, 3200)

        contracts: List[OptionContract] = []
        # Every strike stays out of the money and moves away from spot.
        bound = spot
        for ratio, days in zip(ratios, EXPIRATION_DAYS):
            strike = round_to_strike_increment(spot * ratio)
            if option_type is OptionType.CALL and strike <= bound:
                strike = next_strike_above(bound)
            elif option_type is OptionType.PUT and strike >= bound:
                strike = next_strike_below(bound)
            if strike <= 0:
                logger.debug(f"Synthetic {option_type.value} ladder for {symbol} stops at spot {spot}")
                break
            bound = strike

            expiration = (now + timedelta(days=days)).date()
            volatility = self.implied_volatility(category, rng)
            theoretical = black_scholes_premium(
                option_type, spot, strike, days / 365, volatility, self._risk_free_rate
            )
            premium = round(max(self._min_premium, theoretical), 2)

            contracts.append(
                OptionContract(
                    contract_symbol=contract_symbol(symbol, expiration, option_type, strike),
                    option_type=option_type,
                    strike=strike,
                    expiration_date=expiration,
                    bid=round(premium * 0.95, 2),
                    ask=round(premium * 1.05, 2),
                    last_price=premium,
                    volume=int(rng.integers(*volume_range)),
                    open_interest=int(rng.integers(*interest_range)),
                    implied_volatility=round(volatility, 4),
                )
            )
        return contracts


__all__ = [
    "CALL_STRIKE_RATIOS",
    "EXPIRATION_DAYS",
    "PUT_STRIKE_RATIOS",
    "REFERENCE_PRICES",
    "SOURCE_NAME",
    "SymbolProfile",
    "SyntheticQuoteGenerator",
    "profile_symbol",
    "symbol_hash",
]
