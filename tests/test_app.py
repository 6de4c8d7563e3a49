"""Tests for the MarketBar engine."""

import pytest
from fakes import FakeFetcher

from marketbar.app import MarketBar
from marketbar.config import parse_config
from marketbar.errors import ConfigError
from marketbar.models import Kind
from marketbar.ticker import TickerBuffer


def _config(with_ticker=False):
    data = {
        "rotation_seconds": 10,
        "timezone": "UTC",
        "thresholds": {"critdown": -5.0, "down": 0.0, "wayup": 5.0},
        "stock": {"tickers": ["AAPL", "MSFT"], "cache_max_age": 60, "weekend_cache_max_age": 600},
        "crypto": {
            "trade_pairs": ["XXBTZEUR"],
            "trade_signs": ["₿"],
            "chart_interval": 60,
            "cache_max_age": 60,
        },
    }
    if with_ticker:
        data["ticker"] = {"window_size": 20, "separator": " | ", "refresh_seconds": 30}
    return parse_config(data)


def _bar(fetcher, with_ticker=False, clock=lambda: 0.0):
    config = _config(with_ticker)
    fetchers = {Kind.EQUITY: fetcher, Kind.CRYPTO: fetcher}
    return MarketBar(config, config.instruments(), fetchers, clock=clock)


@pytest.mark.asyncio
class TestStatusLine:
    """Tests for MarketBar.status_line()."""

    async def test_rotation_selects_instrument(self):
        """Each rotation slot shows its instrument with the right band."""
        fetcher = FakeFetcher({"AAPL": (110.0, 100.0), "MSFT": (99.0, 100.0), "XXBTZEUR": (50.0, 100.0)})
        bar = _bar(fetcher)

        first = await bar.status_line(5.0)
        second = await bar.status_line(15.0)
        third = await bar.status_line(25.0)
        wrapped = await bar.status_line(35.0)

        assert first.text == "AAPL $110.00 (10.00%)"
        assert first.css_class == "wayup"
        assert second.text == "MSFT $99.00 (-1.00%)"
        assert second.css_class == "down"
        assert third.text == "₿ €50.00 (-50.00%)"
        assert third.css_class == "critdown"
        assert wrapped.text.startswith("AAPL")

    async def test_uses_clock_when_now_omitted(self):
        """Without an explicit now, the injected clock picks the slot."""
        fetcher = FakeFetcher()
        bar = _bar(fetcher, clock=lambda: 12.0)
        line = await bar.status_line()
        assert line.text.startswith("MSFT")

    async def test_cache_reused_within_max_age(self):
        """Revisiting an instrument within max age does not refetch."""
        fetcher = FakeFetcher()
        bar = _bar(fetcher)
        await bar.status_line(1.0)
        await bar.status_line(11.0)  # next slot: MSFT
        await bar.status_line(61.0)  # AAPL again, 60s after fetch
        assert fetcher.calls == ["AAPL", "MSFT", "AAPL"]

        await bar.status_line(62.0)
        assert fetcher.calls.count("AAPL") == 2

    async def test_failure_without_cache_is_degraded_line(self):
        """No data at all renders an n/a line instead of raising."""
        fetcher = FakeFetcher()
        fetcher.failing.add("AAPL")
        bar = _bar(fetcher)
        line = await bar.status_line(0.0)
        assert line.text == "AAPL n/a"
        assert line.css_class == "down"
        assert "boom AAPL" in line.tooltip

    async def test_failure_with_cache_serves_stale(self):
        """A failed refetch still renders the cached price."""
        fetcher = FakeFetcher({"AAPL": (105.0, 100.0)})
        bar = _bar(fetcher)
        await bar.status_line(0.0)
        fetcher.failing.add("AAPL")

        line = await bar.status_line(90.0)  # stale, refetch fails
        assert line.text == "AAPL $105.00 (5.00%)"
        assert "Cache Age: 90 seconds" in line.tooltip

    async def test_aclose_closes_shared_fetcher_once(self):
        """One fetcher serving both kinds is closed once."""
        fetcher = FakeFetcher()
        bar = _bar(fetcher)
        await bar.aclose()
        assert fetcher.closed == 1

    async def test_aclose_closes_every_fetcher(self):
        """Separate fetchers per kind are all closed."""
        equity, crypto = FakeFetcher(), FakeFetcher()
        config = _config()
        bar = MarketBar(config, config.instruments(), {Kind.EQUITY: equity, Kind.CRYPTO: crypto})
        await bar.aclose()
        assert equity.closed == crypto.closed == 1


class TestTickerBufferFactory:
    def test_ticker_buffer_uses_ticker_section(self):
        """The buffer takes its settings from [ticker]."""
        bar = _bar(FakeFetcher(), with_ticker=True)
        buffer = bar.ticker_buffer()
        assert isinstance(buffer, TickerBuffer)
        assert buffer.window_size == 20

    def test_ticker_buffer_requires_ticker_section(self):
        """Without [ticker] no buffer can be built."""
        bar = _bar(FakeFetcher())
        with pytest.raises(ConfigError, match="Ticker configuration missing"):
            bar.ticker_buffer()

    def test_from_config_simulated(self):
        """Kind filter and simulate flag are applied when building from config."""
        bar = MarketBar.from_config(_config(), kind=Kind.CRYPTO, simulate=True)
        assert [inst.identifier for inst in bar.instruments] == ["XXBTZEUR"]
