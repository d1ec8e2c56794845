from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class OptionType(str, Enum):
    CALL = "CALL"
    PUT = "PUT"


class MarketModel(BaseModel):
    """Immutable base for market data records exchanged with providers."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class Quote(MarketModel):
    """Underlying price snapshot returned by a provider."""

    symbol: str
    current_price: float = Field(gt=0)
    previous_close: Optional[float] = None
    currency: str = "USD"
    exchange: Optional[str] = None
    timestamp: datetime
    source_name: str
    category: Optional[str] = None


class OptionGreeks(MarketModel):
    """Provider supplied Greeks, passed through untouched."""

    delta: Optional[float] = None
    gamma: Optional[float] = None
    theta: Optional[float] = None
    vega: Optional[float] = None
    rho: Optional[float] = None


class OptionContract(MarketModel):
    """Single listed option as normalized by an adapter."""

    contract_symbol: str
    option_type: OptionType
    strike: float = Field(gt=0)
    expiration_date: date
    bid: float = 0.0
    ask: float = 0.0
    last_price: float = 0.0
    volume: Optional[int] = Field(default=None, ge=0)
    open_interest: Optional[int] = Field(default=None, ge=0)
    implied_volatility: Optional[float] = Field(default=None, gt=0, le=2)
    greeks: Optional[OptionGreeks] = None

    @field_validator("expiration_date", mode="before")
    @classmethod
    def parse_expiration(cls, value: Any) -> date:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            return datetime.strptime(value[:10], "%Y-%m-%d").date()
        raise ValueError("Unsupported expiration format")

    @field_validator("bid", "ask", "last_price", mode="before")
    @classmethod
    def coerce_price(cls, value: Any) -> float:
        return float(value or 0.0)

    def days_to_expiration(self, today: date) -> int:
        return (self.expiration_date - today).days

    @property
    def activity(self) -> int:
        return (self.volume or 0) + (self.open_interest or 0)


class OptionChain(MarketModel):
    """Calls and puts listed for an underlying by a single provider."""

    symbol: str
    calls: Tuple[OptionContract, ...] = ()
    puts: Tuple[OptionContract, ...] = ()
    timestamp: datetime
    source_name: str
    synthetic: bool = False

    def contracts(self, option_type: OptionType) -> Tuple[OptionContract, ...]:
        return self.calls if option_type is OptionType.CALL else self.puts

    @property
    def is_empty(self) -> bool:
        return not self.calls and not self.puts


__all__ = [
    "MarketModel",
    "OptionChain",
    "OptionContract",
    "OptionGreeks",
    "OptionType",
    "Quote",
]
