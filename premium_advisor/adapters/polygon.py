"""Polygon.io reference-data adapter."""

from __future__ import annotations

import logging
import os
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

import requests
from pydantic import ValidationError

from premium_advisor.models import OptionChain, OptionContract, OptionType, Quote

from .base import DataNotFound, MarketDataProvider, NotConfigured, ProviderUnavailable, is_valid_price
from .http import get_json

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.polygon.io"
PLACEHOLDER_KEYS = frozenset({"", "your_polygon_api_key_here"})


class PolygonProvider(MarketDataProvider):
    """Previous-close quotes and listed contracts from Polygon.io.

    The basic plan carries no option quotes, so contracts come back without
    bid/ask, volume, open interest or implied volatility and are priced
    theoretically downstream.

    Expected environment variables:
        * ``POLYGON_API_KEY`` - API key used to authenticate requests.
        * ``POLYGON_BASE_URL`` - Optional override for the Polygon REST endpoint.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 15.0,
        max_days: int = 90,
        contract_limit: int = 1000,
        today: Optional[Callable[[], date]] = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else os.getenv("POLYGON_API_KEY", "")
        self._base_url = (base_url or os.getenv("POLYGON_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")
        self._session = session or requests.Session()
        self._timeout = timeout
        self._max_days = max_days
        self._contract_limit = contract_limit
        self._today = today or (lambda: datetime.now(timezone.utc).date())

    @property
    def name(self) -> str:
        return "Polygon.io"

    def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        if self._api_key in PLACEHOLDER_KEYS:
            raise NotConfigured("POLYGON_API_KEY is not set")
        return get_json(
            self._session,
            f"{self._base_url}{path}",
            provider=self.name,
            params={**params, "apiKey": self._api_key},
            timeout=self._timeout,
        )

    def get_quote(self, symbol: str) -> Quote:
        payload = self._get(f"/v2/aggs/ticker/{symbol}/prev", {"adjusted": "true"})
        results = payload.get("results") or []
        if not results:
            raise DataNotFound(f"Polygon.io has no aggregates for {symbol}")

        bar = results[0]
        close = bar.get("c")
        if not is_valid_price(close):
            raise ProviderUnavailable(f"Polygon.io aggregate for {symbol} has no close")

        timestamp = datetime.now(timezone.utc)
        if bar.get("t"):
            timestamp = datetime.fromtimestamp(int(bar["t"]) / 1000, tz=timezone.utc)

        return Quote(
            symbol=symbol,
            current_price=float(close),
            previous_close=float(close),
            currency="USD",
            exchange="NASDAQ/NYSE",
            timestamp=timestamp,
            source_name=self.name,
        )

    def get_option_chain(self, symbol: str, spot: float) -> OptionChain:
        today = self._today()
        payload = self._get(
            "/v3/reference/options/contracts",
            {
                "underlying_ticker": symbol,
                "expiration_date.gte": (today + timedelta(days=1)).isoformat(),
                "expiration_date.lte": (today + timedelta(days=self._max_days)).isoformat(),
                "limit": self._contract_limit,
            },
        )

        calls: List[OptionContract] = []
        puts: List[OptionContract] = []
        rejected: Optional[ValidationError] = None
        for raw in payload.get("results") or []:
            contract_type = str(raw.get("contract_type", "")).upper()
            if contract_type not in ("CALL", "PUT") or not is_valid_price(raw.get("strike_price")):
                continue
            try:
                contract = OptionContract(
                    contract_symbol=str(raw.get("ticker", "")),
                    option_type=OptionType(contract_type),
                    strike=float(raw["strike_price"]),
                    expiration_date=raw.get("expiration_date"),
                )
            except ValidationError as exc:
                logger.debug(f"Skipping malformed Polygon.io contract {raw.get('ticker')!r}: {exc}")
                rejected = exc
                continue
            (calls if contract.option_type is OptionType.CALL else puts).append(contract)

        if not calls and not puts:
            if rejected is not None:
                raise ProviderUnavailable(f"Polygon.io returned only malformed contracts for {symbol}") from rejected
            raise DataNotFound(f"Polygon.io lists no option contracts for {symbol}")

        return OptionChain(
            symbol=symbol,
            calls=tuple(calls),
            puts=tuple(puts),
            timestamp=datetime.now(timezone.utc),
            source_name=self.name,
        )


__all__ = ["PolygonProvider"]
