"""Shared fakes and builders for the test suite."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from premium_advisor.adapters.base import MarketDataProvider
from premium_advisor.models import OptionChain, OptionContract, OptionType, Quote

FIXED_NOW = datetime(2026, 1, 5, 15, 0, tzinfo=timezone.utc)


class FakeProvider(MarketDataProvider):
    """Scripted provider: returns the given values or raises the given errors."""

    def __init__(self, name: str, quote=None, chain=None) -> None:
        self._name = name
        self.quote = quote
        self.chain = chain
        self.calls: List[str] = []

    @property
    def name(self) -> str:
        return self._name

    def get_quote(self, symbol: str) -> Quote:
        self.calls.append(f"quote:{symbol}")
        if isinstance(self.quote, BaseException):
            raise self.quote
        if callable(self.quote):
            return self.quote(symbol)
        return self.quote

    def get_option_chain(self, symbol: str, spot: float) -> OptionChain:
        self.calls.append(f"chain:{symbol}")
        if isinstance(self.chain, BaseException):
            raise self.chain
        if callable(self.chain):
            return self.chain(symbol, spot)
        return self.chain


def make_quote(symbol: str = "AAPL", price: float = 100.0, source: str = "Live") -> Quote:
    return Quote(symbol=symbol, current_price=price, timestamp=FIXED_NOW, source_name=source)


def make_contract(
    option_type: OptionType = OptionType.PUT,
    strike: float = 95.0,
    days: int = 30,
    *,
    bid: float = 1.0,
    ask: float = 1.2,
    last: float = 1.1,
    volume: Optional[int] = 100,
    open_interest: Optional[int] = 500,
    iv: Optional[float] = 0.3,
    today: date = FIXED_NOW.date(),
) -> OptionContract:
    expiration = today + timedelta(days=days)
    return OptionContract(
        contract_symbol=f"AAPL{expiration:%y%m%d}{option_type.value[0]}{int(strike * 1000):08d}",
        option_type=option_type,
        strike=strike,
        expiration_date=expiration,
        bid=bid,
        ask=ask,
        last_price=last,
        volume=volume,
        open_interest=open_interest,
        implied_volatility=iv,
    )


def make_chain(calls=(), puts=(), *, symbol: str = "AAPL", source: str = "Live", synthetic: bool = False) -> OptionChain:
    return OptionChain(
        symbol=symbol,
        calls=tuple(calls),
        puts=tuple(puts),
        timestamp=FIXED_NOW,
        source_name=source,
        synthetic=synthetic,
    )


class MutableClock:
    """Monotonic clock stand-in that tests advance by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
