import itertools
from datetime import date, datetime, timedelta, timezone

import pytest

from premium_advisor.adapters.synthetic import (
    CALL_STRIKE_RATIOS,
    EXPIRATION_DAYS,
    PUT_STRIKE_RATIOS,
    REFERENCE_PRICES,
    SOURCE_NAME,
    SyntheticQuoteGenerator,
    contract_symbol,
    exchange_for,
    price_volatility,
    profile_symbol,
    symbol_hash,
)
from premium_advisor.models import OptionType

NOW = datetime(2026, 1, 5, 15, 0, tzinfo=timezone.utc)


@pytest.fixture
def generator():
    return SyntheticQuoteGenerator(clock=lambda: NOW)


def test_symbol_hash_matches_java_string_hash():
    assert symbol_hash("A") == 65
    assert symbol_hash("AB") == 2081
    assert symbol_hash("ZZZZ") == 2770560


def test_symbol_hash_wraps_to_32_bits():
    value = symbol_hash("SOMEVERYLONGTICKERNAME")
    assert 0 <= value <= 2**31


def test_profile_uses_reference_table():
    profile = profile_symbol("AAPL")
    assert profile.base_price == 227.16
    assert profile.category == "large_cap_tech"


@pytest.mark.parametrize(
    "symbol,category,low,high",
    [
        ("ZZZZ", "mid_cap", 30, 300),
        ("AB", "etf", 100, 500),
        ("ABCDE", "small_cap", 5, 50),
        ("AB1C", "special", 10, 100),
    ],
)
def test_profile_heuristics(symbol, category, low, high):
    profile = profile_symbol(symbol)
    assert profile.category == category
    assert low <= profile.base_price <= high


def test_unknown_symbol_profile_is_stable():
    assert profile_symbol("ZZZZ").base_price == 45.12
    assert profile_symbol("ZZZZ") == profile_symbol("ZZZZ")


def test_price_volatility_adjustments():
    assert price_volatility("mid_cap", 45.0) == pytest.approx(0.03)
    assert price_volatility("mid_cap", 4.0) == pytest.approx(0.045)
    assert price_volatility("etf", 600.0) == pytest.approx(0.012 * 0.8)
    assert price_volatility("unlisted", 45.0) == pytest.approx(0.03)


def test_exchange_assignment():
    assert exchange_for("NIO") == "NYSE"
    assert exchange_for("AAPL") == "NASDAQ"
    assert exchange_for("KO") == "NYSE"
    assert exchange_for("ZZZZ") == "NASDAQ"


def test_contract_symbol_format():
    assert contract_symbol("AAPL", date(2026, 2, 4), OptionType.PUT, 220.0) == "AAPL260204P00220000"
    assert contract_symbol("NIO", date(2026, 2, 4), OptionType.CALL, 4.75) == "NIO260204C00004750"


def test_quote_is_deterministic_within_bucket(generator):
    first = generator.get_quote("ZZZZ")
    second = SyntheticQuoteGenerator(clock=lambda: NOW + timedelta(minutes=5)).get_quote("ZZZZ")

    assert first.current_price == second.current_price
    assert first.previous_close == second.previous_close


def test_quote_stays_within_category_swing(generator):
    quote = generator.get_quote("ZZZZ")

    assert 45.12 * 0.97 <= quote.current_price <= 45.12 * 1.03
    assert quote.current_price * 0.99 <= quote.previous_close <= quote.current_price * 1.01
    assert quote.source_name == SOURCE_NAME
    assert quote.category == "mid_cap"
    assert quote.exchange == "NASDAQ"
    assert quote.timestamp == NOW


def test_seed_changes_with_bucket():
    early = SyntheticQuoteGenerator(clock=lambda: NOW)
    later = SyntheticQuoteGenerator(clock=lambda: NOW + timedelta(hours=2))

    assert early.seed_for("AAPL", "quote") != later.seed_for("AAPL", "quote")
    assert early.seed_for("AAPL", "quote") != early.seed_for("AAPL", "chain")


def test_zero_bucket_disables_time_component():
    early = SyntheticQuoteGenerator(seed_bucket_seconds=0, clock=lambda: NOW)
    later = SyntheticQuoteGenerator(seed_bucket_seconds=0, clock=lambda: NOW + timedelta(days=3))

    assert early.seed_for("AAPL", "quote") == later.seed_for("AAPL", "quote")


def test_ladder_layout(generator):
    chain = generator.get_option_chain("AAPL", 227.16)

    assert chain.synthetic
    assert chain.source_name == SOURCE_NAME
    assert len(chain.puts) == len(PUT_STRIKE_RATIOS) == 5
    assert len(chain.calls) == len(CALL_STRIKE_RATIOS) == 5

    assert [c.strike for c in chain.puts] == [220.0, 215.0, 210.0, 205.0, 200.0]
    assert [c.strike for c in chain.calls] == [235.0, 240.0, 245.0, 250.0, 255.0]

    expected_dates = [NOW.date() + timedelta(days=days) for days in EXPIRATION_DAYS]
    assert [c.expiration_date for c in chain.puts] == expected_dates
    assert [c.expiration_date for c in chain.calls] == expected_dates
    assert chain.puts[0].contract_symbol == "AAPL260204P00220000"


def test_ladder_contract_values(generator):
    chain = generator.get_option_chain("AAPL", 227.16)

    for contract in chain.puts + chain.calls:
        assert contract.last_price >= 0.05
        assert contract.bid <= contract.last_price <= contract.ask
        assert 0.20 <= contract.implied_volatility <= 0.30

    for put in chain.puts:
        assert 100 <= put.volume < 1100
        assert 500 <= put.open_interest < 5500
    for call in chain.calls:
        assert 50 <= call.volume < 850
        assert 200 <= call.open_interest < 3200


def test_ladder_is_deterministic(generator):
    first = generator.get_option_chain("AAPL", 227.16)
    second = SyntheticQuoteGenerator(clock=lambda: NOW).get_option_chain("AAPL", 227.16)

    assert first == second


def test_cheap_underlying_uses_quarter_strikes(generator):
    chain = generator.get_option_chain("NIO", 4.85)

    assert [c.strike for c in chain.puts] == [4.75, 4.5, 4.25, 4.0, 3.75]
    assert all(c.last_price >= 0.05 for c in chain.calls)


def _assert_ladder_shape(chain, spot):
    call_strikes = [c.strike for c in chain.calls]
    put_strikes = [c.strike for c in chain.puts]

    assert len(call_strikes) == 5
    assert len(put_strikes) == 5
    assert all(strike > spot for strike in call_strikes)
    assert all(strike < spot for strike in put_strikes)
    assert all(nearer < further for nearer, further in zip(call_strikes, call_strikes[1:]))
    assert all(nearer > further for nearer, further in zip(put_strikes, put_strikes[1:]))


@pytest.mark.parametrize("spot", [5.0, 5.01, 4.99, 9.8, 24.9, 25.0, 48.31, 47.92, 199.5, 200.0])
def test_ladder_stays_out_of_the_money_near_increment_edges(generator, spot):
    _assert_ladder_shape(generator.get_option_chain("ABCDE", spot), spot)


def test_ladder_shape_for_cheap_unknown_symbols(generator):
    symbols = ["AAA" + "".join(pair) for pair in itertools.product("ABCDEFGHIJKLMNOPQRSTUVWXYZ", repeat=2)]

    for symbol in symbols:
        spot = generator.get_quote(symbol).current_price
        _assert_ladder_shape(generator.get_option_chain(symbol, spot), spot)


def test_ladder_shape_for_cheap_reference_symbols(generator):
    cheap = sorted(symbol for symbol, (price, _) in REFERENCE_PRICES.items() if price < 50)

    assert {"BAC", "RBLX", "NIO"} <= set(cheap)
    for symbol in cheap:
        spot = generator.get_quote(symbol).current_price
        _assert_ladder_shape(generator.get_option_chain(symbol, spot), spot)


def test_ladder_stops_before_non_positive_strikes(generator):
    chain = generator.get_option_chain("ABCDE", 0.4)

    assert [c.strike for c in chain.puts] == [0.25]
    assert all(c.strike > 0.4 for c in chain.calls)
