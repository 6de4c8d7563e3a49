"""Render quotes as status-bar lines (text / tooltip / class)."""

from __future__ import annotations

from .models import Band, CacheEntry, Instrument, Kind, StatusLine

DEFAULT_CURRENCIES: dict[Kind, str] = {
    Kind.EQUITY: "$",
    Kind.CRYPTO: "€",
}

TICKER_CLASS = "ticker"
TICKER_TOOLTIP = "Market ticker"
ERROR_CLASS = Band.DOWN.value


def _cache_tooltip(entry: CacheEntry, now: float) -> str:
    return f"Cache Age: {entry.age(now):.0f} seconds (Max allowed: {entry.max_age:.0f} seconds)"


def _pct_str(pct: float | None) -> str:
    return "NA" if pct is None else f"{pct:.2f}"


def format_quote(
    instrument: Instrument,
    entry: CacheEntry,
    band: Band,
    now: float,
    currency: str | None = None,
) -> StatusLine:
    """Status line for one instrument. Wording differs for equities and crypto."""
    symbol = currency if currency is not None else DEFAULT_CURRENCIES[instrument.kind]
    price = f"{entry.point.current_price:.2f}"
    pct = _pct_str(entry.point.change_percent)
    text = f"{instrument.display_name} {symbol}{price} ({pct}%)"

    if instrument.kind is Kind.EQUITY:
        tooltip = _cache_tooltip(entry, now)
    else:
        # Crypto labels are often bare signs, so the tooltip names the pair
        tooltip = f"{instrument.identifier} {symbol}{price} ({pct}%)\n{_cache_tooltip(entry, now)}"
    return StatusLine(text=text, tooltip=tooltip, css_class=band.value)


def format_error(instrument: Instrument, error: Exception) -> StatusLine:
    """Degraded line for an instrument that has no data at all."""
    return StatusLine(
        text=f"{instrument.display_name} n/a",
        tooltip=f"Error fetching {instrument.identifier}: {error}",
        css_class=ERROR_CLASS,
    )


def format_ticker(window_markup: str) -> StatusLine:
    """Wrap a ticker window as a status line with the fixed ``ticker`` class."""
    return StatusLine(text=window_markup, tooltip=TICKER_TOOLTIP, css_class=TICKER_CLASS)
