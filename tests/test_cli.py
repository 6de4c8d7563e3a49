"""Tests for the command-line entry point."""

import json

import pytest

from marketbar.cli import build_parser, main
from marketbar.models import Band, Kind

CONFIG = """
rotation_seconds = 10

[thresholds]
critdown = -5.0
down = 0.0
wayup = 5.0

[stock]
tickers = ["AAPL"]
cache_max_age = 300
weekend_cache_max_age = 43200

[crypto]
trade_pairs = ["XXBTZEUR"]
trade_signs = ["BTC"]
chart_interval = 60
cache_max_age = 60
"""


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(CONFIG, encoding="utf-8")
    return path


class TestParser:
    def test_defaults(self):
        """No arguments: default config path, single-shot, all kinds, live data."""
        args = build_parser().parse_args([])
        assert args.config == "config.toml"
        assert not args.continuous
        assert not args.ticker
        assert args.kind is None
        assert not args.simulate

    def test_kind_flags(self):
        """--stock and --crypto select one kind."""
        assert build_parser().parse_args(["--stock"]).kind is Kind.EQUITY
        assert build_parser().parse_args(["--crypto"]).kind is Kind.CRYPTO

    def test_modes_are_exclusive(self):
        """--continuous and --ticker cannot be combined."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--continuous", "--ticker"])

    def test_kinds_are_exclusive(self):
        """--stock and --crypto cannot be combined."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--stock", "--crypto"])


class TestMain:
    def test_single_line_simulated(self, config_path, capsys):
        """Single-shot mode prints exactly one JSON line."""
        assert main([str(config_path), "--simulate", "--stock"]) == 0

        out = capsys.readouterr().out
        assert out.endswith("\n")
        assert len(out.splitlines()) == 1
        payload = json.loads(out)
        assert set(payload) == {"text", "tooltip", "class"}
        assert payload["text"].startswith("AAPL $")
        assert payload["class"] in {band.value for band in Band}

    def test_crypto_only_simulated(self, config_path, capsys):
        """--crypto shows the configured trade sign."""
        assert main([str(config_path), "--simulate", "--crypto"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["text"].startswith("BTC €")

    def test_missing_config_file(self, tmp_path, capsys):
        """An unreadable config exits 1 with no output."""
        assert main([str(tmp_path / "nope.toml")]) == 1
        assert capsys.readouterr().out == ""

    def test_invalid_config(self, tmp_path, capsys):
        """An invalid config exits 1 with no output."""
        path = tmp_path / "bad.toml"
        path.write_text("rotation_seconds = 0\n", encoding="utf-8")
        assert main([str(path), "--simulate"]) == 1
        assert capsys.readouterr().out == ""

    def test_ticker_without_section(self, config_path, capsys):
        """--ticker without a [ticker] section exits 1."""
        assert main([str(config_path), "--ticker", "--simulate"]) == 1
        assert capsys.readouterr().out == ""

    def test_missing_api_key(self, config_path, monkeypatch, capsys):
        """Live equities without TIINGO_API_KEY exit 1."""
        monkeypatch.delenv("TIINGO_API_KEY", raising=False)
        monkeypatch.chdir(config_path.parent)  # no .env.local here
        assert main([str(config_path), "--stock"]) == 1
        assert capsys.readouterr().out == ""
