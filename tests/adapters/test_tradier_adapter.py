from __future__ import annotations

from datetime import date
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import requests
from pydantic import ValidationError

from premium_advisor.adapters.base import (
    DataNotFound,
    NotConfigured,
    ProviderTimeout,
    ProviderUnavailable,
    RateLimited,
)
from premium_advisor.adapters.tradier import TradierProvider
from premium_advisor.models import OptionType

TODAY = date(2026, 1, 5)


def make_response(payload, status_code=200):
    return SimpleNamespace(status_code=status_code, json=lambda: payload)


def route(responses):
    """Session stub answering by URL path suffix."""

    session = MagicMock()

    def _get(url, params=None, headers=None, timeout=None):
        for suffix, response in responses.items():
            if url.endswith(suffix):
                return response(params) if callable(response) else response
        raise AssertionError(f"unexpected url {url}")

    session.get.side_effect = _get
    return session


def make_provider(session, **kwargs) -> TradierProvider:
    return TradierProvider(api_key="token", session=session, today=lambda: TODAY, **kwargs)


def test_missing_key_is_not_configured(monkeypatch):
    monkeypatch.delenv("TRADIER_API_KEY", raising=False)
    session = MagicMock()

    provider = TradierProvider(session=session)

    with pytest.raises(NotConfigured):
        provider.get_quote("AAPL")
    session.get.assert_not_called()


def test_key_and_base_url_from_environment(monkeypatch):
    monkeypatch.setenv("TRADIER_API_KEY", "env-token")
    monkeypatch.setenv("TRADIER_BASE_URL", "https://sandbox.tradier.com/")
    session = route({"/v1/markets/quotes": make_response({"quotes": {"quote": {"symbol": "AAPL", "last": 200.0}}})})

    TradierProvider(session=session).get_quote("AAPL")

    url = session.get.call_args.args[0]
    headers = session.get.call_args.kwargs["headers"]
    assert url == "https://sandbox.tradier.com/v1/markets/quotes"
    assert headers["Authorization"] == "Bearer env-token"


def test_quote_parsing():
    payload = {
        "quotes": {
            "quote": {
                "symbol": "AAPL",
                "last": 227.5,
                "prevclose": 225.0,
                "exch": "Q",
                "trade_date": 1767625200000,
            }
        }
    }
    quote = make_provider(route({"/v1/markets/quotes": make_response(payload)})).get_quote("AAPL")

    assert quote.current_price == 227.5
    assert quote.previous_close == 225.0
    assert quote.exchange == "Q"
    assert quote.source_name == "Tradier"
    assert quote.timestamp.year == 2026


def test_quote_falls_back_to_previous_close():
    payload = {"quotes": {"quote": [{"symbol": "AAPL", "last": None, "prevclose": 225.0}]}}
    quote = make_provider(route({"/v1/markets/quotes": make_response(payload)})).get_quote("AAPL")

    assert quote.current_price == 225.0


def test_unmatched_symbol_is_not_found():
    payload = {"quotes": {"unmatched_symbols": {"symbol": "NOPE"}}}
    provider = make_provider(route({"/v1/markets/quotes": make_response(payload)}))

    with pytest.raises(DataNotFound):
        provider.get_quote("NOPE")


@pytest.mark.parametrize(
    "status,error",
    [
        (401, NotConfigured),
        (403, NotConfigured),
        (404, DataNotFound),
        (429, RateLimited),
        (500, ProviderUnavailable),
    ],
)
def test_http_status_mapping(status, error):
    provider = make_provider(route({"/v1/markets/quotes": make_response({}, status_code=status)}))

    with pytest.raises(error):
        provider.get_quote("AAPL")


def test_transport_errors_are_mapped():
    session = MagicMock()
    session.get.side_effect = requests.Timeout("slow")
    with pytest.raises(ProviderTimeout):
        make_provider(session).get_quote("AAPL")

    session.get.side_effect = requests.ConnectionError("refused")
    with pytest.raises(ProviderUnavailable):
        make_provider(session).get_quote("AAPL")


def test_non_json_body_is_unavailable():
    def broken():
        raise ValueError("no json")

    session = route({"/v1/markets/quotes": SimpleNamespace(status_code=200, json=broken)})

    with pytest.raises(ProviderUnavailable):
        make_provider(session).get_quote("AAPL")


def _chain_response(params):
    expiry = params["expiration"]
    return make_response(
        {
            "options": {
                "option": [
                    {
                        "symbol": f"AAPL{expiry}P",
                        "option_type": "put",
                        "strike": 210.0,
                        "expiration_date": expiry,
                        "bid": 2.1,
                        "ask": 2.3,
                        "last": 2.2,
                        "volume": 120,
                        "open_interest": 900,
                        "greeks": {"delta": -0.25, "gamma": 0.01, "theta": -0.05, "vega": 0.2, "mid_iv": 0.27},
                    },
                    {
                        "symbol": f"AAPL{expiry}C",
                        "option_type": "call",
                        "strike": 240.0,
                        "expiration_date": expiry,
                        "bid": 1.5,
                        "ask": 1.7,
                        "last": None,
                        "volume": None,
                        "open_interest": 40,
                        "greeks": None,
                    },
                    {"symbol": "bad", "option_type": "put", "strike": 0},
                ]
            }
        }
    )


def test_chain_filters_expirations_and_parses_greeks():
    expirations = {"expirations": {"date": ["2026-01-09", "2026-01-16", "2026-02-20", "2026-06-18"]}}
    session = route(
        {
            "/v1/markets/options/expirations": make_response(expirations),
            "/v1/markets/options/chains": _chain_response,
        }
    )

    chain = make_provider(session).get_option_chain("AAPL", 227.0)

    requested = [
        call.kwargs["params"]["expiration"]
        for call in session.get.call_args_list
        if call.args[0].endswith("/chains")
    ]
    assert requested == ["2026-01-16", "2026-02-20"]
    assert all(call.kwargs["params"].get("greeks") == "true" for call in session.get.call_args_list if call.args[0].endswith("/chains"))

    assert len(chain.puts) == 2
    assert len(chain.calls) == 2
    put = chain.puts[0]
    assert put.option_type is OptionType.PUT
    assert put.implied_volatility == pytest.approx(0.27)
    assert put.greeks.delta == pytest.approx(-0.25)
    assert put.greeks.rho is None

    call = chain.calls[0]
    assert call.last_price == 0.0
    assert call.volume is None
    assert call.open_interest == 40
    assert call.greeks is None
    assert call.implied_volatility is None


def test_chain_respects_max_expirations():
    expirations = {"expirations": {"date": ["2026-01-16", "2026-01-23", "2026-01-30", "2026-02-06"]}}
    session = route(
        {
            "/v1/markets/options/expirations": make_response(expirations),
            "/v1/markets/options/chains": _chain_response,
        }
    )

    chain = make_provider(session, max_expirations=2).get_option_chain("AAPL", 227.0)

    assert {contract.expiration_date for contract in chain.puts} == {date(2026, 1, 16), date(2026, 1, 23)}


def test_chain_single_expiration_object():
    session = route(
        {
            "/v1/markets/options/expirations": make_response({"expirations": {"date": "2026-01-16"}}),
            "/v1/markets/options/chains": _chain_response,
        }
    )

    chain = make_provider(session).get_option_chain("AAPL", 227.0)

    assert len(chain.puts) == 1


def test_chain_without_expirations():
    session = route({"/v1/markets/options/expirations": make_response({"expirations": None})})

    with pytest.raises(DataNotFound):
        make_provider(session).get_option_chain("AAPL", 227.0)


def test_empty_chain_is_not_found():
    session = route(
        {
            "/v1/markets/options/expirations": make_response({"expirations": {"date": ["2026-01-16"]}}),
            "/v1/markets/options/chains": make_response({"options": None}),
        }
    )

    with pytest.raises(DataNotFound):
        make_provider(session).get_option_chain("AAPL", 227.0)


def _rows_response(rows):
    return make_response({"options": {"option": rows}})


GOOD_PUT = {
    "symbol": "AAPL260116P00210000",
    "option_type": "put",
    "strike": 210.0,
    "expiration_date": "2026-01-16",
    "bid": 2.1,
    "ask": 2.3,
}


@pytest.mark.parametrize(
    "bad_row",
    [
        {"symbol": "AAPL-NODATE", "option_type": "put", "strike": 205.0, "expiration_date": None},
        {"symbol": "AAPL-BADDATE", "option_type": "call", "strike": 240.0, "expiration_date": "soon"},
        {
            "symbol": "AAPL-BADGREEKS",
            "option_type": "put",
            "strike": 200.0,
            "expiration_date": "2026-01-16",
            "greeks": {"delta": "n/a", "mid_iv": 0.3},
        },
    ],
)
def test_chain_skips_malformed_rows(bad_row):
    session = route(
        {
            "/v1/markets/options/expirations": make_response({"expirations": {"date": ["2026-01-16"]}}),
            "/v1/markets/options/chains": _rows_response([GOOD_PUT, bad_row]),
        }
    )

    chain = make_provider(session).get_option_chain("AAPL", 227.0)

    assert [contract.contract_symbol for contract in chain.puts] == ["AAPL260116P00210000"]
    assert chain.calls == ()


def test_chain_with_only_malformed_rows_is_unavailable():
    bad_row = {"symbol": "AAPL-NODATE", "option_type": "put", "strike": 205.0, "expiration_date": None}
    session = route(
        {
            "/v1/markets/options/expirations": make_response({"expirations": {"date": ["2026-01-16"]}}),
            "/v1/markets/options/chains": _rows_response([bad_row]),
        }
    )

    with pytest.raises(ProviderUnavailable) as excinfo:
        make_provider(session).get_option_chain("AAPL", 227.0)

    assert isinstance(excinfo.value.__cause__, ValidationError)
