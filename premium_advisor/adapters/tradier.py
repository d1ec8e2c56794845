"""Tradier brokerage market data adapter."""

from __future__ import annotations

import logging
import os
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import requests
from pydantic import ValidationError

from premium_advisor.models import OptionChain, OptionContract, OptionGreeks, OptionType, Quote

from .base import (
    DataNotFound,
    MarketDataProvider,
    NotConfigured,
    ProviderUnavailable,
    is_valid_price,
    normalize_iv,
    to_count,
    to_float,
)
from .http import get_json

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.tradier.com"
MIN_EXPIRATION_DAYS = 7
MAX_EXPIRATION_DAYS = 90


def _as_list(value: Any) -> List[Any]:
    # Tradier collapses single element arrays into a bare object.
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


class TradierProvider(MarketDataProvider):
    """Quotes and option chains (with Greeks) from Tradier's brokerage API.

    Expected environment variables:
        * ``TRADIER_API_KEY`` - Authentication token for the Tradier API.
        * ``TRADIER_BASE_URL`` - Optional base URL override for sandbox vs production.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
        max_expirations: int = 4,
        today: Optional[Callable[[], date]] = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else os.getenv("TRADIER_API_KEY", "")
        self._base_url = (base_url or os.getenv("TRADIER_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")
        self._session = session or requests.Session()
        self._timeout = timeout
        self._max_expirations = max(1, max_expirations)
        self._today = today or (lambda: datetime.now(timezone.utc).date())

    @property
    def name(self) -> str:
        return "Tradier"

    def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        if not self._api_key:
            raise NotConfigured("TRADIER_API_KEY is not set")
        return get_json(
            self._session,
            f"{self._base_url}{path}",
            provider=self.name,
            params=params,
            headers={"Authorization": f"Bearer {self._api_key}", "Accept": "application/json"},
            timeout=self._timeout,
        )

    def get_quote(self, symbol: str) -> Quote:
        payload = self._get("/v1/markets/quotes", {"symbols": symbol})
        quotes = payload.get("quotes") or {}
        if "unmatched_symbols" in quotes:
            raise DataNotFound(f"Tradier does not list {symbol}")

        matches = [item for item in _as_list(quotes.get("quote")) if item.get("symbol") == symbol]
        if not matches:
            raise DataNotFound(f"Tradier returned no quote for {symbol}")
        raw = matches[0]

        price = raw.get("last")
        if not is_valid_price(price):
            price = raw.get("prevclose")
        if not is_valid_price(price):
            raise ProviderUnavailable(f"Tradier quote for {symbol} has no usable price")

        timestamp = datetime.now(timezone.utc)
        trade_date = raw.get("trade_date")
        if trade_date:
            try:
                timestamp = datetime.fromtimestamp(int(trade_date) / 1000, tz=timezone.utc)
            except (TypeError, ValueError, OverflowError, OSError):
                pass

        return Quote(
            symbol=symbol,
            current_price=float(price),
            previous_close=to_float(raw.get("prevclose")) or None,
            currency="USD",
            exchange=raw.get("exch"),
            timestamp=timestamp,
            source_name=self.name,
        )

    def get_expirations(self, symbol: str) -> List[date]:
        payload = self._get("/v1/markets/options/expirations", {"symbol": symbol})
        raw_dates = _as_list((payload.get("expirations") or {}).get("date"))
        parsed: List[date] = []
        for raw in raw_dates:
            try:
                parsed.append(datetime.strptime(str(raw), "%Y-%m-%d").date())
            except ValueError:
                continue
        return parsed

    def get_option_chain(self, symbol: str, spot: float) -> OptionChain:
        today = self._today()
        expirations = [
            expiry
            for expiry in self.get_expirations(symbol)
            if MIN_EXPIRATION_DAYS <= (expiry - today).days <= MAX_EXPIRATION_DAYS
        ][: self._max_expirations]
        if not expirations:
            raise DataNotFound(f"Tradier lists no expirations for {symbol} in the next {MAX_EXPIRATION_DAYS} days")

        calls: List[OptionContract] = []
        puts: List[OptionContract] = []
        rejected: Optional[ValidationError] = None
        for expiry in expirations:
            payload = self._get(
                "/v1/markets/options/chains",
                {"symbol": symbol, "expiration": expiry.isoformat(), "greeks": "true"},
            )
            for raw in _as_list((payload.get("options") or {}).get("option")):
                try:
                    contract = self._parse_contract(raw)
                except ValidationError as exc:
                    logger.debug(f"Skipping malformed Tradier contract {raw.get('symbol')!r}: {exc}")
                    rejected = exc
                    continue
                if contract is None:
                    continue
                (calls if contract.option_type is OptionType.CALL else puts).append(contract)

        if not calls and not puts:
            if rejected is not None:
                raise ProviderUnavailable(f"Tradier returned only malformed contracts for {symbol}") from rejected
            raise DataNotFound(f"Tradier returned an empty chain for {symbol}")

        logger.debug(f"Tradier chain for {symbol}: {len(calls)} calls, {len(puts)} puts")
        return OptionChain(
            symbol=symbol,
            calls=tuple(calls),
            puts=tuple(puts),
            timestamp=datetime.now(timezone.utc),
            source_name=self.name,
        )

    def _parse_contract(self, raw: Dict[str, Any]) -> Optional[OptionContract]:
        option_type = str(raw.get("option_type", "")).upper()
        if option_type not in ("CALL", "PUT") or not is_valid_price(raw.get("strike")):
            return None

        greeks_raw = raw.get("greeks") or {}
        greeks = None
        if greeks_raw:
            greeks = OptionGreeks(
                delta=greeks_raw.get("delta"),
                gamma=greeks_raw.get("gamma"),
                theta=greeks_raw.get("theta"),
                vega=greeks_raw.get("vega"),
                rho=greeks_raw.get("rho"),
            )

        return OptionContract(
            contract_symbol=str(raw.get("symbol", "")),
            option_type=OptionType(option_type),
            strike=float(raw["strike"]),
            expiration_date=raw.get("expiration_date"),
            bid=to_float(raw.get("bid")),
            ask=to_float(raw.get("ask")),
            last_price=to_float(raw.get("last")),
            volume=to_count(raw.get("volume")),
            open_interest=to_count(raw.get("open_interest")),
            implied_volatility=normalize_iv(greeks_raw.get("mid_iv")),
            greeks=greeks,
        )


__all__ = ["TradierProvider"]
