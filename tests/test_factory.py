"""Tests for the fetcher factory."""

import os
from unittest.mock import patch

import pytest

from marketbar.config import parse_config
from marketbar.errors import ConfigError
from marketbar.factory import create_fetchers
from marketbar.kraken_client import KrakenFetcher
from marketbar.models import Kind
from marketbar.simulator import SimulatedFetcher
from marketbar.tiingo_client import TiingoFetcher


def _config(**overrides):
    data = {
        "rotation_seconds": 10,
        "thresholds": {"critdown": -5.0, "down": 0.0, "wayup": 5.0},
        "stock": {"tickers": ["AAPL"], "cache_max_age": 60, "weekend_cache_max_age": 600},
        "crypto": {"trade_pairs": ["XXBTZEUR"], "chart_interval": 240, "cache_max_age": 60},
    }
    data.update(overrides)
    return parse_config(data)


class TestFactory:
    """Tests for create_fetchers."""

    def test_live_fetchers_when_api_key_set(self):
        """With a key, equities use Tiingo and crypto uses Kraken."""
        config = _config()
        with patch.dict(os.environ, {"TIINGO_API_KEY": "test-key"}, clear=True):
            fetchers = create_fetchers(config, config.instruments())

        assert isinstance(fetchers[Kind.EQUITY], TiingoFetcher)
        assert isinstance(fetchers[Kind.CRYPTO], KrakenFetcher)

    def test_tiingo_receives_api_key(self):
        """The API key is passed on stripped of whitespace."""
        config = _config()
        with patch.dict(os.environ, {"TIINGO_API_KEY": "  test-key-123  "}, clear=True):
            fetchers = create_fetchers(config, config.instruments())

        assert fetchers[Kind.EQUITY]._api_key == "test-key-123"

    def test_kraken_receives_chart_interval(self):
        """Kraken gets the configured chart interval."""
        config = _config()
        with patch.dict(os.environ, {}, clear=True):
            fetchers = create_fetchers(config, config.instruments(Kind.CRYPTO))

        assert fetchers[Kind.CRYPTO]._interval == 240

    def test_missing_api_key_is_config_error(self):
        """Live equities need TIINGO_API_KEY."""
        config = _config()
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ConfigError, match="TIINGO_API_KEY"):
                create_fetchers(config, config.instruments())

    def test_whitespace_api_key_is_config_error(self):
        """A blank key counts as missing."""
        config = _config()
        with patch.dict(os.environ, {"TIINGO_API_KEY": "   "}, clear=True):
            with pytest.raises(ConfigError):
                create_fetchers(config, config.instruments())

    def test_crypto_only_needs_no_key(self):
        """Crypto-only runs do not need a Tiingo key."""
        config = _config()
        with patch.dict(os.environ, {}, clear=True):
            fetchers = create_fetchers(config, config.instruments(Kind.CRYPTO))

        assert set(fetchers) == {Kind.CRYPTO}

    def test_simulate_flag(self):
        """The simulate argument shares one simulator across kinds."""
        config = _config()
        with patch.dict(os.environ, {}, clear=True):
            fetchers = create_fetchers(config, config.instruments(), simulate=True)

        assert isinstance(fetchers[Kind.EQUITY], SimulatedFetcher)
        assert fetchers[Kind.EQUITY] is fetchers[Kind.CRYPTO]

    def test_simulate_from_config(self):
        """simulate = true in config also selects the simulator."""
        config = _config(simulate=True)
        with patch.dict(os.environ, {}, clear=True):
            fetchers = create_fetchers(config, config.instruments())

        assert all(isinstance(f, SimulatedFetcher) for f in fetchers.values())
