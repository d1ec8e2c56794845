from __future__ import annotations

from datetime import date
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from premium_advisor.adapters.base import DataNotFound, NotConfigured, ProviderUnavailable, RateLimited
from premium_advisor.adapters.polygon import PolygonProvider

TODAY = date(2026, 1, 5)


def make_session(payload, status_code=200):
    session = MagicMock()
    session.get.return_value = SimpleNamespace(status_code=status_code, json=lambda: payload)
    return session


def make_provider(session, **kwargs) -> PolygonProvider:
    return PolygonProvider(api_key="key", session=session, today=lambda: TODAY, **kwargs)


@pytest.mark.parametrize("api_key", ["", "your_polygon_api_key_here"])
def test_placeholder_keys_are_not_configured(api_key):
    session = MagicMock()

    with pytest.raises(NotConfigured):
        PolygonProvider(api_key=api_key, session=session).get_quote("AAPL")
    session.get.assert_not_called()


def test_quote_from_previous_aggregate():
    session = make_session({"results": [{"c": 226.4, "t": 1767571200000}]})

    quote = make_provider(session).get_quote("AAPL")

    assert quote.current_price == pytest.approx(226.4)
    assert quote.previous_close == pytest.approx(226.4)
    assert quote.source_name == "Polygon.io"
    assert session.get.call_args.args[0].endswith("/v2/aggs/ticker/AAPL/prev")
    assert session.get.call_args.kwargs["params"]["apiKey"] == "key"


def test_quote_without_results():
    with pytest.raises(DataNotFound):
        make_provider(make_session({"results": []})).get_quote("AAPL")


def test_rate_limit_status():
    with pytest.raises(RateLimited):
        make_provider(make_session({}, status_code=429)).get_quote("AAPL")


def test_chain_lists_contracts_without_quotes():
    payload = {
        "results": [
            {"ticker": "O:AAPL260220P00210000", "contract_type": "put", "strike_price": 210, "expiration_date": "2026-02-20"},
            {"ticker": "O:AAPL260220C00240000", "contract_type": "call", "strike_price": 240, "expiration_date": "2026-02-20"},
            {"ticker": "O:AAPL260220X", "contract_type": "other", "strike_price": 240, "expiration_date": "2026-02-20"},
        ]
    }
    session = make_session(payload)

    chain = make_provider(session).get_option_chain("AAPL", 227.0)

    params = session.get.call_args.kwargs["params"]
    assert params["underlying_ticker"] == "AAPL"
    assert params["expiration_date.gte"] == "2026-01-06"
    assert params["expiration_date.lte"] == "2026-04-05"

    assert len(chain.puts) == 1 and len(chain.calls) == 1
    put = chain.puts[0]
    assert put.strike == 210.0
    assert put.expiration_date == date(2026, 2, 20)
    assert put.bid == put.ask == put.last_price == 0.0
    assert put.volume is None and put.open_interest is None
    assert put.implied_volatility is None


def test_empty_chain_is_not_found():
    with pytest.raises(DataNotFound):
        make_provider(make_session({"results": []})).get_option_chain("AAPL", 227.0)


def test_chain_skips_malformed_contracts():
    payload = {
        "results": [
            {"ticker": "O:AAPL260220P00210000", "contract_type": "put", "strike_price": 210, "expiration_date": "2026-02-20"},
            {"ticker": "O:AAPL-NODATE", "contract_type": "put", "strike_price": 205, "expiration_date": None},
            {"ticker": "O:AAPL-BADDATE", "contract_type": "call", "strike_price": 240, "expiration_date": "20260220"},
        ]
    }

    chain = make_provider(make_session(payload)).get_option_chain("AAPL", 227.0)

    assert [contract.contract_symbol for contract in chain.puts] == ["O:AAPL260220P00210000"]
    assert chain.calls == ()


def test_chain_with_only_malformed_contracts_is_unavailable():
    payload = {"results": [{"ticker": "O:AAPL-NODATE", "contract_type": "put", "strike_price": 205}]}

    with pytest.raises(ProviderUnavailable) as excinfo:
        make_provider(make_session(payload)).get_option_chain("AAPL", 227.0)

    assert isinstance(excinfo.value.__cause__, ValidationError)
