"""Kraken public API client for crypto quotes."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

import httpx

from .errors import FetchError, FormatError
from .interface import QuoteFetcher
from .models import Instrument, PricePoint

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86_400


class KrakenFetcher(QuoteFetcher):
    """QuoteFetcher backed by Kraken's public Ticker and OHLC endpoints.

    Current price: ``result[pair].p[0]`` from /Ticker (today's volume-weighted
    average). Reference price: the close of the last OHLC candle at least 24h
    old, so the percentage reads as a rolling day-over-day change. If no candle
    is old enough, the current price is used and the change reads as 0%.
    """

    BASE_URL = "https://api.kraken.com/0/public"

    def __init__(
        self,
        chart_interval: int,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._interval = chart_interval
        self._client = client
        self._timeout = timeout
        self._clock = clock

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-initialize HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch(self, instrument: Instrument) -> PricePoint:
        pair = instrument.identifier
        requests = [
            asyncio.ensure_future(self._get(pair, "Ticker", {"pair": pair})),
            asyncio.ensure_future(self._get(pair, "OHLC", {"pair": pair, "interval": self._interval})),
        ]
        try:
            ticker_result, ohlc_result = await asyncio.gather(*requests)
        except BaseException:
            # One request failed (or we were cancelled); the other is no longer needed
            for request in requests:
                request.cancel()
            raise

        try:
            current = float(self._pair_data(pair, ticker_result)["p"][0])
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise FormatError(
                f"Could not retrieve current price for crypto pair {pair}", identifier=pair
            ) from e

        candles = self._pair_data(pair, ohlc_result)
        if not isinstance(candles, list):
            raise FormatError(
                f"Could not retrieve OHLC candles array for pair {pair}", identifier=pair
            )
        reference = self._yesterday_close(candles, self._clock() - SECONDS_PER_DAY)
        if reference is None:
            logger.debug("No candle older than 24h for %s, using current price", pair)
            reference = current
        return PricePoint(current_price=current, reference_price=reference)

    # --- Internal ---

    async def _get(self, pair: str, endpoint: str, params: dict[str, Any]) -> Any:
        """GET one public endpoint and return its ``result`` object."""
        try:
            response = await self.client.get(
                f"{self.BASE_URL}/{endpoint}",
                params=params,
                headers={"Accept": "application/json"},
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(f"Request to Kraken {endpoint} failed for pair {pair}: {e}", identifier=pair) from e

        if not response.is_success:
            raise FetchError(
                f"Failed to fetch {endpoint} data from Kraken for pair {pair}: "
                f"HTTP status {response.status_code}",
                identifier=pair,
            )
        try:
            data = response.json()
        except ValueError as e:
            raise FormatError(f"Kraken {endpoint} returned non-JSON for pair {pair}", identifier=pair) from e

        if not isinstance(data, dict):
            raise FormatError(f"Unexpected Kraken {endpoint} response for pair {pair}", identifier=pair)
        errors = data.get("error") or []
        if errors:
            raise FetchError(f"Kraken {endpoint} error for pair {pair}: {', '.join(map(str, errors))}", identifier=pair)
        result = data.get("result")
        if not isinstance(result, dict):
            raise FormatError(f"Kraken {endpoint} response for pair {pair} has no result", identifier=pair)
        return result

    @staticmethod
    def _pair_data(pair: str, result: dict[str, Any]) -> Any:
        """Entry for ``pair`` in a result object.

        Kraken answers under its canonical pair name (XBTEUR -> XXBTZEUR); when
        the requested name is absent, the single non-``last`` key is used.
        """
        if pair in result:
            return result[pair]
        keys = [k for k in result if k != "last"]
        if len(keys) == 1:
            return result[keys[0]]
        raise FormatError(f"Pair {pair} missing from Kraken response", identifier=pair)

    @staticmethod
    def _yesterday_close(candles: list[Any], cutoff: float) -> float | None:
        """Close of the latest candle with timestamp <= cutoff.

        Candle layout: [time, open, high, low, close, vwap, volume, count].
        Malformed candles are skipped.
        """
        close: float | None = None
        for candle in candles:
            try:
                ts = int(candle[0])
                if ts <= cutoff:
                    close = float(candle[4])
            except (IndexError, TypeError, ValueError):
                continue
        return close
