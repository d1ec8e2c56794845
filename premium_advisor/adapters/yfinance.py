"""Adapter implementation backed by the public yfinance client."""

from __future__ import annotations

import logging
import random
import time
from datetime import date, datetime, timezone
from typing import Any, Callable, List, NamedTuple, Optional

import pandas as pd
import yfinance as yf

from premium_advisor.models import OptionChain, OptionContract, OptionType, Quote

from .base import (
    DataNotFound,
    MarketDataProvider,
    ProviderError,
    ProviderUnavailable,
    RateLimited,
    is_valid_price,
    normalize_iv,
    to_count,
    to_float,
)

logger = logging.getLogger(__name__)

MIN_EXPIRATION_DAYS = 7
MAX_EXPIRATION_DAYS = 90


class PriceInfo(NamedTuple):
    """Container for price data with metadata for quality tracking."""

    price: float
    timestamp: datetime
    source: str
    previous_close: Optional[float] = None


def _is_rate_limit(exc: Exception) -> bool:
    message = str(exc).lower()
    return "rate limit" in message or "too many requests" in message or "429" in message


class YFinanceProvider(MarketDataProvider):
    """Fetch quotes and option chains from Yahoo Finance via yfinance."""

    def __init__(
        self,
        ticker_factory: Callable[[str], yf.Ticker] | None = None,
        max_retries: int = 2,
        base_delay: float = 0.75,
        max_delay: float = 4.0,
        jitter: float = 0.3,
        max_expirations: int = 4,
        today: Optional[Callable[[], date]] = None,
    ) -> None:
        self._ticker_factory = ticker_factory or yf.Ticker
        self._max_retries = max(1, max_retries)
        self._base_delay = base_delay
        self._max_delay = max_delay
        self._jitter = jitter
        self._max_expirations = max(1, max_expirations)
        self._today = today or (lambda: datetime.now(timezone.utc).date())

    @property
    def name(self) -> str:
        return "Yahoo Finance"

    def get_quote(self, symbol: str) -> Quote:
        ticker = self._ticker_factory(symbol)
        price_info = self._extract_price(ticker)
        if price_info is None:
            raise DataNotFound(f"Yahoo Finance has no price for {symbol}")

        return Quote(
            symbol=symbol,
            current_price=price_info.price,
            previous_close=price_info.previous_close,
            currency="USD",
            exchange=None,
            timestamp=price_info.timestamp,
            source_name=self.name,
        )

    def get_expirations(self, symbol: str, ticker: Any = None) -> List[date]:
        ticker = ticker if ticker is not None else self._ticker_factory(symbol)
        expirations = self._retry(lambda: ticker.options, context=f"fetch expirations for {symbol}")
        parsed: List[date] = []
        for raw in expirations or ():
            try:
                parsed.append(datetime.strptime(raw, "%Y-%m-%d").date())
            except ValueError:
                continue
        return parsed

    def get_option_chain(self, symbol: str, spot: float) -> OptionChain:
        ticker = self._ticker_factory(symbol)
        today = self._today()
        expirations = [
            expiry
            for expiry in self.get_expirations(symbol, ticker)
            if MIN_EXPIRATION_DAYS <= (expiry - today).days <= MAX_EXPIRATION_DAYS
        ][: self._max_expirations]
        if not expirations:
            raise DataNotFound(f"Yahoo Finance lists no expirations for {symbol} in the next {MAX_EXPIRATION_DAYS} days")

        calls: List[OptionContract] = []
        puts: List[OptionContract] = []
        for expiry in expirations:
            expiration_str = expiry.strftime("%Y-%m-%d")
            option_chain = self._retry(
                lambda: ticker.option_chain(expiration_str),
                context=f"fetch options chain for {symbol} {expiration_str}",
            )
            calls.extend(self._parse_frame(getattr(option_chain, "calls", None), OptionType.CALL, expiry))
            puts.extend(self._parse_frame(getattr(option_chain, "puts", None), OptionType.PUT, expiry))

        if not calls and not puts:
            raise DataNotFound(f"Yahoo Finance returned an empty chain for {symbol}")

        logger.debug(f"Yahoo Finance chain for {symbol}: {len(calls)} calls, {len(puts)} puts across {len(expirations)} expirations")
        return OptionChain(
            symbol=symbol,
            calls=tuple(calls),
            puts=tuple(puts),
            timestamp=datetime.now(timezone.utc),
            source_name=self.name,
        )

    def _parse_frame(self, frame: Optional[pd.DataFrame], option_type: OptionType, expiry: date) -> List[OptionContract]:
        if frame is None or frame.empty:
            return []

        contracts: List[OptionContract] = []
        for row in frame.to_dict("records"):
            if not is_valid_price(row.get("strike")):
                continue
            contracts.append(
                OptionContract(
                    contract_symbol=str(row.get("contractSymbol", "")),
                    option_type=option_type,
                    strike=float(row["strike"]),
                    expiration_date=expiry,
                    bid=to_float(row.get("bid")),
                    ask=to_float(row.get("ask")),
                    last_price=to_float(row.get("lastPrice")),
                    volume=to_count(row.get("volume")),
                    open_interest=to_count(row.get("openInterest")),
                    implied_volatility=normalize_iv(row.get("impliedVolatility")),
                )
            )
        return contracts

    def _retry(self, operation: Callable[[], Any], context: str) -> Any:
        last_error: Exception | None = None
        for attempt in range(self._max_retries):
            try:
                return operation()
            except Exception as exc:  # yfinance raises generic errors
                last_error = exc
                if _is_rate_limit(exc):
                    raise RateLimited(f"Yahoo Finance rate limited while trying to {context}") from exc
                if attempt == self._max_retries - 1:
                    break
                self._apply_backoff(attempt)

        raise ProviderUnavailable(f"Failed to {context}: {last_error}") from last_error

    def _apply_backoff(self, attempt: int) -> None:
        delay = min(self._max_delay, self._base_delay * (1 + attempt))
        delay += random.uniform(0, self._jitter)
        time.sleep(delay)

    def _extract_price(self, ticker: yf.Ticker) -> PriceInfo | None:
        """
        Return the most up-to-date underlying price with its timestamp and source.

        Tries fast_info, then 1-minute intraday bars, then the info dict.
        Rate limiting aborts the search; other failures fall through to the
        next source.
        """
        fetch_time = datetime.now(timezone.utc)
        previous_close: Optional[float] = None

        # Priority 1: fast_info (real-time or near real-time)
        try:
            fast_info = self._retry(lambda: getattr(ticker, "fast_info", {}), context="fetch fast price info")
            getter = getattr(fast_info, "get", None)
            if getter is not None:
                for key in ("previous_close", "previousClose"):
                    if is_valid_price(getter(key)):
                        previous_close = float(getter(key))
                        break
                for key in ("last_price", "lastPrice", "regular_market_price", "regularMarketPrice"):
                    value = getter(key)
                    if is_valid_price(value):
                        return PriceInfo(float(value), fetch_time, f"fast_info.{key}", previous_close)
        except RateLimited:
            raise
        except ProviderError:
            pass

        # Priority 2: Intraday history (1-minute bars)
        try:
            history = self._retry(
                lambda: ticker.history(period="1d", interval="1m"),
                context="fetch intraday price history",
            )
            if isinstance(history, pd.DataFrame) and not history.empty:
                last_close = history["Close"].dropna()
                if not last_close.empty:
                    last_timestamp = last_close.index[-1]
                    if last_timestamp.tzinfo is None:
                        last_timestamp = last_timestamp.tz_localize("America/New_York")
                    last_timestamp = last_timestamp.tz_convert(timezone.utc).to_pydatetime()

                    # Only use if reasonably fresh (within 15 minutes during market hours)
                    if (fetch_time - last_timestamp).total_seconds() < 900:
                        return PriceInfo(float(last_close.iloc[-1]), last_timestamp, "intraday_1m", previous_close)
        except RateLimited:
            raise
        except ProviderError:
            pass

        # Priority 3: info dict (may be cached/stale)
        info = self._retry(lambda: ticker.info, context="fetch price metadata")
        if not isinstance(info, dict):
            return None

        if previous_close is None and is_valid_price(info.get("previousClose")):
            previous_close = float(info["previousClose"])

        for key in ("currentPrice", "regularMarketPrice"):
            value = info.get(key)
            if is_valid_price(value):
                price_timestamp = fetch_time
                market_time = info.get("regularMarketTime")
                if market_time:
                    try:
                        price_timestamp = datetime.fromtimestamp(market_time, tz=timezone.utc)
                    except (TypeError, ValueError, OSError):
                        price_timestamp = fetch_time
                return PriceInfo(float(value), price_timestamp, f"info.{key}", previous_close)

        if previous_close is not None:
            return PriceInfo(previous_close, fetch_time, "info.previousClose_STALE", previous_close)
        return None


__all__ = ["YFinanceProvider"]
