"""TOML configuration for marketbar.

Example ``config.toml``::

    rotation_seconds = 10
    timezone = "America/New_York"   # optional, default local time

    [thresholds]
    critdown = -5.0
    down = 0.0
    wayup = 5.0
    # up_color / wayup_color / down_color / waydown_color optional

    [stock]
    tickers = ["AAPL", "MSFT"]
    cache_max_age = 300
    weekend_cache_max_age = 3600

    [crypto]
    trade_pairs = ["XXBTZEUR", "XETHZEUR"]
    trade_signs = ["₿", "Ξ"]
    chart_interval = 60
    cache_max_age = 60

    [ticker]
    window_size = 40
    separator = " - "
    refresh_seconds = 300

API keys are not part of this file; see ``factory.create_fetchers``.
"""

from __future__ import annotations

import functools
import tomllib
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .cache import StalenessPolicy, is_weekend
from .errors import ConfigError
from .models import BandColors, Instrument, Kind, Thresholds

DEFAULT_CONFIG_PATH = "config.toml"

_COLOR_KEYS = {
    "waydown_color": "critdown",
    "down_color": "down",
    "up_color": "up",
    "wayup_color": "wayup",
}


@dataclass(frozen=True, slots=True)
class StockConfig:
    tickers: tuple[str, ...]
    cache_max_age: float  # weekdays
    weekend_cache_max_age: float
    currency: str = "$"


@dataclass(frozen=True, slots=True)
class CryptoConfig:
    trade_pairs: tuple[str, ...]
    trade_signs: tuple[str, ...]  # positional display labels, may be shorter than trade_pairs
    chart_interval: int  # OHLC candle interval in minutes
    cache_max_age: float
    currency: str = "€"


@dataclass(frozen=True, slots=True)
class TickerConfig:
    window_size: int  # visible characters
    separator: str
    refresh_seconds: float


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Validated configuration. One instance per process."""

    rotation_seconds: float
    thresholds: Thresholds
    stock: StockConfig | None = None
    crypto: CryptoConfig | None = None
    ticker: TickerConfig | None = None
    timezone: tzinfo | None = None  # None = local time
    simulate: bool = False

    def instruments(self, kind: Kind | None = None) -> list[Instrument]:
        """Ordered instruments (equities first, then crypto), optionally one kind only.

        Raises ConfigError if the selection is empty.
        """
        result: list[Instrument] = []
        if self.stock is not None and kind in (None, Kind.EQUITY):
            result.extend(
                Instrument(identifier=ticker, kind=Kind.EQUITY, position=i)
                for i, ticker in enumerate(self.stock.tickers)
            )
        if self.crypto is not None and kind in (None, Kind.CRYPTO):
            signs = self.crypto.trade_signs
            result.extend(
                Instrument(
                    identifier=pair,
                    kind=Kind.CRYPTO,
                    label=signs[i] if i < len(signs) else "",
                    position=i,
                )
                for i, pair in enumerate(self.crypto.trade_pairs)
            )
        if not result:
            if kind is None:
                raise ConfigError("No instruments defined in the configuration")
            raise ConfigError(f"No {kind.value} instruments defined in the configuration")
        return result

    def require_ticker(self) -> TickerConfig:
        if self.ticker is None:
            raise ConfigError("Ticker configuration missing. Add a [ticker] section to the config file")
        return self.ticker

    def staleness_policy(self) -> StalenessPolicy:
        return StalenessPolicy(
            equity_max_age=self.stock.cache_max_age if self.stock else 0.0,
            equity_weekend_max_age=self.stock.weekend_cache_max_age if self.stock else 0.0,
            crypto_max_age=self.crypto.cache_max_age if self.crypto else 0.0,
            is_weekend=functools.partial(is_weekend, tz=self.timezone),
        )

    def currencies(self) -> dict[Kind, str]:
        result: dict[Kind, str] = {}
        if self.stock is not None:
            result[Kind.EQUITY] = self.stock.currency
        if self.crypto is not None:
            result[Kind.CRYPTO] = self.crypto.currency
        return result


def load_config(path: str | Path = DEFAULT_CONFIG_PATH) -> AppConfig:
    """Read and validate a TOML config file. Raises ConfigError on any problem."""
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"Could not read config file '{path}': {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Could not parse config file '{path}': {e}") from e
    return parse_config(data)


def parse_config(data: dict[str, Any]) -> AppConfig:
    """Validate an already-parsed TOML document."""
    rotation = _number(data, "rotation_seconds", "")
    if rotation <= 0:
        raise ConfigError("rotation_seconds must be positive")

    config = AppConfig(
        rotation_seconds=rotation,
        thresholds=_parse_thresholds(_table(data, "thresholds", required=True)),
        stock=_parse_stock(_table(data, "stock")),
        crypto=_parse_crypto(_table(data, "crypto")),
        ticker=_parse_ticker(_table(data, "ticker")),
        timezone=_parse_timezone(data.get("timezone")),
        simulate=_bool(data, "simulate", default=False),
    )
    config.instruments()  # at least one instrument overall
    return config


# --- Section parsers ---


def _parse_thresholds(table: dict[str, Any]) -> Thresholds:
    critdown = _number(table, "critdown", "thresholds")
    down = _number(table, "down", "thresholds")
    wayup = _number(table, "wayup", "thresholds")
    if not critdown < down < wayup:
        raise ConfigError(
            f"thresholds must satisfy critdown < down < wayup (got {critdown}, {down}, {wayup})"
        )
    overrides = {
        band: _string(table, key, "thresholds")
        for key, band in _COLOR_KEYS.items()
        if key in table
    }
    return Thresholds(critdown=critdown, down=down, wayup=wayup, colors=BandColors(**overrides))


def _parse_stock(table: dict[str, Any] | None) -> StockConfig | None:
    if table is None:
        return None
    return StockConfig(
        tickers=_string_list(table, "tickers", "stock"),
        cache_max_age=_age(table, "cache_max_age", "stock"),
        weekend_cache_max_age=_age(table, "weekend_cache_max_age", "stock"),
        currency=_string(table, "currency", "stock", default="$"),
    )


def _parse_crypto(table: dict[str, Any] | None) -> CryptoConfig | None:
    if table is None:
        return None
    interval = _number(table, "chart_interval", "crypto")
    if interval <= 0 or interval != int(interval):
        raise ConfigError("crypto.chart_interval must be a positive whole number of minutes")
    return CryptoConfig(
        trade_pairs=_string_list(table, "trade_pairs", "crypto"),
        trade_signs=_string_list(table, "trade_signs", "crypto", default=()),
        chart_interval=int(interval),
        cache_max_age=_age(table, "cache_max_age", "crypto"),
        currency=_string(table, "currency", "crypto", default="€"),
    )


def _parse_ticker(table: dict[str, Any] | None) -> TickerConfig | None:
    if table is None:
        return None
    window = _number(table, "window_size", "ticker")
    if window <= 0 or window != int(window):
        raise ConfigError("ticker.window_size must be a positive integer")
    refresh = _number(table, "refresh_seconds", "ticker")
    if refresh <= 0:
        raise ConfigError("ticker.refresh_seconds must be positive")
    return TickerConfig(
        window_size=int(window),
        separator=_string(table, "separator", "ticker"),
        refresh_seconds=refresh,
    )


def _parse_timezone(name: Any) -> tzinfo | None:
    if name is None:
        return None
    if not isinstance(name, str):
        raise ConfigError("timezone must be a string such as 'Europe/Berlin'")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"Unknown timezone {name!r}") from e


# --- Field helpers ---

_MISSING = object()


def _where(section: str, key: str) -> str:
    return f"{section}.{key}" if section else key


def _table(data: dict[str, Any], key: str, required: bool = False) -> dict[str, Any] | None:
    value = data.get(key)
    if value is None:
        if required:
            raise ConfigError(f"Missing required [{key}] section")
        return None
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a table")
    return value


def _number(table: dict[str, Any], key: str, section: str) -> float:
    if key not in table:
        raise ConfigError(f"Missing required setting {_where(section, key)}")
    value = table[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{_where(section, key)} must be a number, got {value!r}")
    return float(value)


def _age(table: dict[str, Any], key: str, section: str) -> float:
    value = _number(table, key, section)
    if value < 0:
        raise ConfigError(f"{_where(section, key)} must not be negative")
    return value


def _string(table: dict[str, Any], key: str, section: str, default: Any = _MISSING) -> str:
    if key not in table:
        if default is _MISSING:
            raise ConfigError(f"Missing required setting {_where(section, key)}")
        return default
    value = table[key]
    if not isinstance(value, str):
        raise ConfigError(f"{_where(section, key)} must be a string, got {value!r}")
    return value


def _string_list(
    table: dict[str, Any], key: str, section: str, default: Any = _MISSING
) -> tuple[str, ...]:
    if key not in table:
        if default is _MISSING:
            raise ConfigError(f"Missing required setting {_where(section, key)}")
        return tuple(default)
    value = table[key]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{_where(section, key)} must be a list of strings")
    return tuple(value)


def _bool(table: dict[str, Any], key: str, default: bool) -> bool:
    value = table.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"{key} must be true or false")
    return value
