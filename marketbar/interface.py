"""Abstract interface for quote fetchers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .models import Instrument, PricePoint


class QuoteFetcher(ABC):
    """Contract for market data providers.

    Fetchers are called by the QuoteCache only when its entry for an
    instrument is missing or stale; nothing else calls them directly.

    Lifecycle:
        fetcher = TiingoFetcher(api_key)
        point = await fetcher.fetch(instrument)
        # ... process runs ...
        await fetcher.aclose()
    """

    @abstractmethod
    async def fetch(self, instrument: Instrument) -> PricePoint:
        """Return the current and reference price for one instrument.

        Raises FetchError on transport/API failure and FormatError when the
        response does not have the expected shape.
        """

    async def aclose(self) -> None:
        """Release network resources. Safe to call multiple times."""
