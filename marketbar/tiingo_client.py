"""Tiingo IEX API client for equity quotes."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .errors import FetchError, FormatError
from .interface import QuoteFetcher
from .models import Instrument, PricePoint

logger = logging.getLogger(__name__)


def _as_float(value: Any, field_name: str, ticker: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise FormatError(
            f"Invalid {field_name} field for ticker {ticker}: {value!r}", identifier=ticker
        )
    return float(value)


class TiingoFetcher(QuoteFetcher):
    """QuoteFetcher backed by GET https://api.tiingo.com/iex/{ticker}.

    The response is a one-element array; ``tngoLast`` is the current price and
    ``prevClose`` the previous session close used as reference.

    Rate limits (free tier): 50 req/hour, so the cache max age should be a
    few minutes on weekdays and much longer at the weekend.
    """

    BASE_URL = "https://api.tiingo.com/iex"

    def __init__(
        self,
        api_key: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._api_key = api_key
        self._client = client
        self._timeout = timeout

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-initialize HTTP client (one pool reused for every request)."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch(self, instrument: Instrument) -> PricePoint:
        ticker = instrument.identifier
        try:
            response = await self.client.get(
                f"{self.BASE_URL}/{ticker}",
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Token {self._api_key}",
                },
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(f"Request to Tiingo failed for ticker {ticker}: {e}", identifier=ticker) from e

        if not response.is_success:
            raise FetchError(
                f"Failed to fetch data from Tiingo for ticker {ticker}: HTTP status {response.status_code}",
                identifier=ticker,
            )
        try:
            data = response.json()
        except ValueError as e:
            raise FormatError(f"Tiingo returned non-JSON for ticker {ticker}", identifier=ticker) from e

        return self._parse(ticker, data)

    @staticmethod
    def _parse(ticker: str, data: Any) -> PricePoint:
        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            raise FormatError(
                f"Invalid API response for ticker {ticker}: missing array element",
                identifier=ticker,
            )
        first = data[0]
        last_price = _as_float(first.get("tngoLast"), "tngoLast", ticker)
        prev_close = _as_float(first.get("prevClose"), "prevClose", ticker)
        if prev_close == 0:
            raise FormatError(
                f"Previous close is zero for ticker {ticker}, cannot calculate percentage change",
                identifier=ticker,
            )
        logger.debug("Tiingo %s: last=%.2f prevClose=%.2f", ticker, last_price, prev_close)
        return PricePoint(current_price=last_price, reference_price=prev_close)
