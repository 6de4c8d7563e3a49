"""Scrolling ticker: a ring of coloured text viewed through a fixed-width window.

The buffer is never rotated or re-concatenated per tick. Each character has a
position in a conceptual ring; a window is ``window_size`` positions starting
at the scroll offset, taken modulo the ring length. Runs of characters with
the same colour are wrapped in one span:

    <span color='#00FF00'><b>AAPL $190.50 (2.34%)</b></span> - <span ...

Lifecycle:
    buffer = TickerBuffer(instruments, cache, fetchers, thresholds, ...)
    await buffer.refresh(now)             # initializing -> steady
    line = buffer.tick()                  # once per second
    if buffer.needs_refresh(now): ...     # every refresh_seconds, in background
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum

from .cache import QuoteCache
from .classifier import classify
from .errors import FetchError
from .formatter import format_quote
from .interface import QuoteFetcher
from .models import Instrument, Kind, Thresholds

logger = logging.getLogger(__name__)

NO_DATA_TEXT = "No market data available"

_ESCAPES = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        "'": "&apos;",
        '"': "&quot;",
    }
)


def escape_markup(text: str) -> str:
    """Escape markup-sensitive characters so ticker text cannot inject tags."""
    return text.translate(_ESCAPES)


def _open_span(color: str) -> str:
    return f"<span color='{color}'><b>"


_CLOSE_SPAN = "</b></span>"


@dataclass(frozen=True, slots=True)
class TickerContent:
    """Plain ring text plus a parallel colour per character (None = uncoloured)."""

    text: str
    colors: tuple[str | None, ...]

    def __post_init__(self) -> None:
        if len(self.text) != len(self.colors):
            raise ValueError("text and colors must have the same length")

    @classmethod
    def from_segments(
        cls, segments: Sequence[tuple[str, str | None]], separator: str
    ) -> TickerContent:
        """Join (text, colour) segments with an uncoloured separator.

        A separator is also appended after the last segment so that when the
        window wraps, the last and first segments are still separated.
        """
        text_parts: list[str] = []
        colors: list[str | None] = []
        for segment_text, color in segments:
            text_parts.append(segment_text)
            colors.extend([color] * len(segment_text))
            text_parts.append(separator)
            colors.extend([None] * len(separator))
        return cls(text="".join(text_parts), colors=tuple(colors))

    def __len__(self) -> int:
        return len(self.text)

    def window_plain(self, offset: int, window_size: int) -> str:
        """``window_size`` characters starting at ``offset``, wrapping around the ring."""
        n = len(self.text)
        if n == 0:
            return ""
        return "".join(self.text[(offset + i) % n] for i in range(window_size))

    def window_markup(self, offset: int, window_size: int) -> str:
        """Same window as :meth:`window_plain`, with colour spans and escaping."""
        n = len(self.text)
        if n == 0:
            return ""
        parts: list[str] = []
        current: str | None = None
        for i in range(window_size):
            pos = (offset + i) % n
            color = self.colors[pos]
            if color != current:
                if current is not None:
                    parts.append(_CLOSE_SPAN)
                if color is not None:
                    parts.append(_open_span(color))
                current = color
            parts.append(escape_markup(self.text[pos]))
        if current is not None:
            parts.append(_CLOSE_SPAN)
        return "".join(parts)


class TickerState(str, Enum):
    INITIALIZING = "initializing"
    STEADY = "steady"


class TickerBuffer:
    """Owns the ticker ring content, scroll offset and refresh timestamp.

    Refreshes look up every instrument through the shared QuoteCache
    concurrently (one task per instrument) and swap the new content in as a
    single assignment, so a tick never sees a half-built ring.
    """

    def __init__(
        self,
        instruments: Sequence[Instrument],
        cache: QuoteCache,
        fetchers: Mapping[Kind, QuoteFetcher],
        thresholds: Thresholds,
        window_size: int,
        separator: str,
        refresh_seconds: float,
        currencies: Mapping[Kind, str] | None = None,
    ) -> None:
        if window_size <= 0:
            raise ValueError("window_size must be positive")
        self._instruments = list(instruments)
        self._cache = cache
        self._fetchers = fetchers
        self._thresholds = thresholds
        self._window = window_size
        self._separator = separator
        self._refresh_seconds = refresh_seconds
        self._currencies = dict(currencies or {})

        self._content = TickerContent(text="", colors=())
        self._offset = 0
        self._last_refresh: float | None = None
        self._state = TickerState.INITIALIZING

    # --- Public API ---

    @property
    def state(self) -> TickerState:
        return self._state

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def content(self) -> TickerContent:
        return self._content

    @property
    def window_size(self) -> int:
        return self._window

    @property
    def last_refresh(self) -> float | None:
        return self._last_refresh

    def needs_refresh(self, now: float) -> bool:
        """True before the first refresh and once ``refresh_seconds`` have elapsed."""
        if self._last_refresh is None:
            return True
        return now - self._last_refresh >= self._refresh_seconds

    async def refresh(self, now: float) -> None:
        """Fetch every instrument via the cache and rebuild the ring.

        Instruments whose lookup fails are left out of this cycle and retried
        on the next refresh. If nothing could be fetched, a fixed notice is
        shown instead.
        """
        results = await asyncio.gather(
            *(self._segment(inst, now) for inst in self._instruments)
        )
        segments = [seg for seg in results if seg is not None]
        if not segments:
            logger.warning("Ticker refresh produced no data for %d instruments", len(self._instruments))
            segments = [(NO_DATA_TEXT, None)]

        content = TickerContent.from_segments(segments, self._separator)
        self._content = content
        self._offset %= len(content)
        self._last_refresh = now
        self._state = TickerState.STEADY
        logger.debug(
            "Ticker refreshed: %d/%d instruments, %d chars",
            len(results) - results.count(None),
            len(self._instruments),
            len(content),
        )

    def tick(self) -> str:
        """Return the window markup at the current offset, then advance by one."""
        if self._state is TickerState.INITIALIZING:
            raise RuntimeError("refresh() must complete before the first tick")
        window = self._content.window_markup(self._offset, self._window)
        self._offset = (self._offset + 1) % len(self._content)
        return window

    # --- Internals ---

    async def _segment(self, instrument: Instrument, now: float) -> tuple[str, str | None] | None:
        fetcher = self._fetchers[instrument.kind]
        try:
            entry = await self._cache.get_or_fetch(instrument, now, fetcher.fetch)
        except FetchError as e:
            logger.warning("Ticker: omitting %s this cycle: %s", instrument.identifier, e)
            return None
        band = classify(entry.point.change_percent, self._thresholds)
        line = format_quote(
            instrument, entry, band, now, currency=self._currencies.get(instrument.kind)
        )
        return line.text, self._thresholds.colors.for_band(band)
