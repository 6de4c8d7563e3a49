"""Factory for creating quote fetchers."""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence

from .config import AppConfig
from .errors import ConfigError
from .interface import QuoteFetcher
from .models import Instrument, Kind

logger = logging.getLogger(__name__)


def create_fetchers(
    config: AppConfig,
    instruments: Sequence[Instrument],
    simulate: bool = False,
) -> dict[Kind, QuoteFetcher]:
    """Create one fetcher per instrument kind in use.

    - simulate (CLI flag or ``simulate = true`` in config) -> SimulatedFetcher
      for every kind (no network, no API keys)
    - otherwise equities -> TiingoFetcher (TIINGO_API_KEY must be set and non-empty)
      and crypto -> KrakenFetcher (public API, no key)

    Returned fetchers are unopened; their HTTP clients are created on first use.
    Caller must await ``fetcher.aclose()`` for each one.
    """
    kinds = {inst.kind for inst in instruments}

    if simulate or config.simulate:
        from .simulator import SimulatedFetcher

        logger.info("Quote source: GBM simulator")
        sim = SimulatedFetcher(instruments)
        return {kind: sim for kind in kinds}

    fetchers: dict[Kind, QuoteFetcher] = {}
    if Kind.EQUITY in kinds:
        api_key = os.environ.get("TIINGO_API_KEY", "").strip()
        if not api_key:
            raise ConfigError(
                "TIINGO_API_KEY environment variable not set. Please set it with your Tiingo API key."
            )
        from .tiingo_client import TiingoFetcher

        logger.info("Equity quote source: Tiingo IEX")
        fetchers[Kind.EQUITY] = TiingoFetcher(api_key=api_key)

    if Kind.CRYPTO in kinds:
        from .kraken_client import KrakenFetcher

        if config.crypto is None:
            raise ConfigError("Crypto configuration missing")
        logger.info("Crypto quote source: Kraken")
        fetchers[Kind.CRYPTO] = KrakenFetcher(chart_interval=config.crypto.chart_interval)

    return fetchers
