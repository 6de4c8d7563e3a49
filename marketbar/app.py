"""Engine tying the cache, rotation and formatting together."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping, Sequence

from .cache import QuoteCache
from .classifier import classify
from .config import AppConfig
from .errors import FetchError
from .factory import create_fetchers
from .formatter import format_error, format_quote
from .interface import QuoteFetcher
from .models import Instrument, Kind, StatusLine
from .rotation import RotationScheduler
from .ticker import TickerBuffer

logger = logging.getLogger(__name__)


class MarketBar:
    """Process-scoped owner of the quote cache, scheduler and fetchers.

    Usage:
        bar = MarketBar.from_config(config, kind=None, simulate=False)
        line = await bar.status_line()
        # ...
        await bar.aclose()
    """

    def __init__(
        self,
        config: AppConfig,
        instruments: Sequence[Instrument],
        fetchers: Mapping[Kind, QuoteFetcher],
        cache: QuoteCache | None = None,
        scheduler: RotationScheduler | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._instruments = list(instruments)
        self._fetchers = fetchers
        self._cache = cache or QuoteCache(config.staleness_policy())
        self._scheduler = scheduler or RotationScheduler(config.rotation_seconds)
        self._clock = clock

    @classmethod
    def from_config(
        cls, config: AppConfig, kind: Kind | None = None, simulate: bool = False
    ) -> MarketBar:
        """Build the engine for the instruments selected by ``kind`` (None = all).

        Raises ConfigError if the selection is empty or a required API key is missing.
        """
        instruments = config.instruments(kind)
        fetchers = create_fetchers(config, instruments, simulate=simulate)
        return cls(config, instruments, fetchers)

    @property
    def instruments(self) -> list[Instrument]:
        return list(self._instruments)

    @property
    def cache(self) -> QuoteCache:
        return self._cache

    @property
    def scheduler(self) -> RotationScheduler:
        return self._scheduler

    @property
    def clock(self) -> Callable[[], float]:
        return self._clock

    async def status_line(self, now: float | None = None) -> StatusLine:
        """Status line for the instrument whose rotation slot contains ``now``.

        Never raises FetchError: an instrument without any data renders as a
        degraded line instead.
        """
        if now is None:
            now = self._clock()
        instrument = self._scheduler.select(self._instruments, now)
        fetcher = self._fetchers[instrument.kind]
        try:
            entry = await self._cache.get_or_fetch(instrument, now, fetcher.fetch)
        except FetchError as e:
            logger.error("No data for %s: %s", instrument.identifier, e)
            return format_error(instrument, e)

        band = classify(entry.point.change_percent, self._config.thresholds)
        return format_quote(
            instrument,
            entry,
            band,
            now,
            currency=self._config.currencies().get(instrument.kind),
        )

    def ticker_buffer(self) -> TickerBuffer:
        """New ticker buffer over every selected instrument. Requires a [ticker] section."""
        ticker = self._config.require_ticker()
        return TickerBuffer(
            instruments=self._instruments,
            cache=self._cache,
            fetchers=self._fetchers,
            thresholds=self._config.thresholds,
            window_size=ticker.window_size,
            separator=ticker.separator,
            refresh_seconds=ticker.refresh_seconds,
            currencies=self._config.currencies(),
        )

    async def aclose(self) -> None:
        """Close every fetcher (a shared fetcher is closed once)."""
        for fetcher in {id(f): f for f in self._fetchers.values()}.values():
            await fetcher.aclose()
