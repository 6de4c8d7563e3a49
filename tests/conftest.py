"""Pytest configuration and fixtures."""

import pytest

from marketbar.cache import QuoteCache, StalenessPolicy
from marketbar.models import Instrument, Kind, Thresholds


@pytest.fixture
def thresholds():
    return Thresholds(critdown=-10.0, down=0.0, wayup=5.0)


@pytest.fixture
def policy():
    """60s max age for both kinds, 120s at the weekend, and it is never the weekend."""
    return StalenessPolicy(
        equity_max_age=60,
        equity_weekend_max_age=120,
        crypto_max_age=60,
        is_weekend=lambda ts: False,
    )


@pytest.fixture
def cache(policy):
    return QuoteCache(policy)


@pytest.fixture
def aapl():
    return Instrument(identifier="AAPL", kind=Kind.EQUITY)


@pytest.fixture
def btc():
    return Instrument(identifier="XXBTZEUR", kind=Kind.CRYPTO, label="BTC")
