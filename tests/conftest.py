import pytest
from support import FIXED_NOW

from premium_advisor.adapters.synthetic import SyntheticQuoteGenerator
from premium_advisor.config import reset_settings_cache


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def synthetic(fixed_clock):
    return SyntheticQuoteGenerator(clock=fixed_clock)


@pytest.fixture(autouse=True)
def _fresh_settings():
    reset_settings_cache()
    yield
    reset_settings_cache()
