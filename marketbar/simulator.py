"""GBM-based quote simulator for running without API keys."""

from __future__ import annotations

import logging
import math
import random
import time
from collections.abc import Callable, Sequence

import numpy as np

from .errors import FetchError
from .interface import QuoteFetcher
from .models import Instrument, Kind, PricePoint
from .seed_prices import (
    CROSS_KIND_CORR,
    DEFAULT_CRYPTO_PARAMS,
    DEFAULT_PARAMS,
    INTRA_CRYPTO_CORR,
    INTRA_EQUITY_CORR,
    SEED_PRICES,
    TICKER_PARAMS,
)

logger = logging.getLogger(__name__)


class GBMSimulator:
    """Geometric Brownian Motion simulator for correlated prices.

    Math:
        S(t+dt) = S(t) * exp((mu - sigma^2/2) * dt + sigma * sqrt(dt) * Z)

    Where:
        S(t)   = current price
        mu     = annualized drift (expected return)
        sigma  = annualized volatility
        dt     = elapsed wall-clock time as a fraction of a year
        Z      = correlated standard normal random variable

    Each instrument also keeps its seed price, which serves as the simulated
    reference close.
    """

    SECONDS_PER_YEAR = 365 * 24 * 3600

    def __init__(
        self,
        instruments: Sequence[Instrument],
        event_probability: float = 0.001,
    ) -> None:
        self._event_prob = event_probability

        self._keys: list[str] = []
        self._kinds: dict[str, Kind] = {}
        self._prices: dict[str, float] = {}
        self._seeds: dict[str, float] = {}
        self._params: dict[str, dict[str, float]] = {}

        # Cholesky decomposition of the correlation matrix (for correlated moves)
        self._cholesky: np.ndarray | None = None

        for instrument in instruments:
            self._add_internal(instrument)
        self._rebuild_cholesky()

    # --- Public API ---

    def step(self, elapsed_seconds: float) -> dict[str, float]:
        """Advance every instrument by ``elapsed_seconds``. Returns {identifier: new_price}."""
        n = len(self._keys)
        if n == 0 or elapsed_seconds <= 0:
            return {key: round(price, 2) for key, price in self._prices.items()}

        dt = elapsed_seconds / self.SECONDS_PER_YEAR
        z_independent = np.random.standard_normal(n)
        if self._cholesky is not None:
            z_correlated = self._cholesky @ z_independent
        else:
            z_correlated = z_independent

        result: dict[str, float] = {}
        for i, key in enumerate(self._keys):
            mu = self._params[key]["mu"]
            sigma = self._params[key]["sigma"]

            drift = (mu - 0.5 * sigma**2) * dt
            diffusion = sigma * math.sqrt(dt) * z_correlated[i]
            self._prices[key] *= math.exp(drift + diffusion)

            # Random event: occasional 2-5% jump so bands other than "up" show up
            if random.random() < self._event_prob:
                shock_magnitude = random.uniform(0.02, 0.05)
                shock_sign = random.choice([-1, 1])
                self._prices[key] *= 1 + shock_magnitude * shock_sign
                logger.debug(
                    "Random event on %s: %.1f%% %s",
                    key,
                    shock_magnitude * 100,
                    "up" if shock_sign > 0 else "down",
                )

            result[key] = round(self._prices[key], 2)
        return result

    def get_price(self, identifier: str) -> float | None:
        """Current price for an instrument, or None if not simulated."""
        return self._prices.get(identifier)

    def get_reference(self, identifier: str) -> float | None:
        """Seed price for an instrument, or None if not simulated."""
        return self._seeds.get(identifier)

    # --- Internals ---

    def _add_internal(self, instrument: Instrument) -> None:
        key = instrument.identifier
        if key in self._prices:
            return
        self._keys.append(key)
        self._kinds[key] = instrument.kind
        seed = SEED_PRICES.get(key, random.uniform(50.0, 300.0))
        self._seeds[key] = seed
        self._prices[key] = seed
        default = DEFAULT_CRYPTO_PARAMS if instrument.kind is Kind.CRYPTO else DEFAULT_PARAMS
        self._params[key] = TICKER_PARAMS.get(key, dict(default))

    def _rebuild_cholesky(self) -> None:
        """Rebuild the Cholesky decomposition of the correlation matrix. O(n^2), n is small."""
        n = len(self._keys)
        if n <= 1:
            self._cholesky = None
            return

        corr = np.eye(n)
        for i in range(n):
            for j in range(i + 1, n):
                rho = self._pairwise_correlation(self._kinds[self._keys[i]], self._kinds[self._keys[j]])
                corr[i, j] = rho
                corr[j, i] = rho

        self._cholesky = np.linalg.cholesky(corr)

    @staticmethod
    def _pairwise_correlation(k1: Kind, k2: Kind) -> float:
        """Correlation between two instruments based on their kinds.

          - Equity with equity: 0.5
          - Crypto with crypto: 0.7
          - Equity with crypto: 0.2
        """
        if k1 is not k2:
            return CROSS_KIND_CORR
        if k1 is Kind.CRYPTO:
            return INTRA_CRYPTO_CORR
        return INTRA_EQUITY_CORR


class SimulatedFetcher(QuoteFetcher):
    """QuoteFetcher backed by the GBM simulator.

    Each fetch advances the whole simulation by the wall-clock time elapsed
    since the previous fetch, then reports the instrument's price against its
    seed price.
    """

    def __init__(
        self,
        instruments: Sequence[Instrument],
        event_probability: float = 0.001,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._sim = GBMSimulator(instruments, event_probability=event_probability)
        self._clock = clock
        self._last_step = clock()

    async def fetch(self, instrument: Instrument) -> PricePoint:
        now = self._clock()
        self._sim.step(now - self._last_step)
        self._last_step = max(self._last_step, now)

        price = self._sim.get_price(instrument.identifier)
        reference = self._sim.get_reference(instrument.identifier)
        if price is None or reference is None:
            raise FetchError(f"{instrument.identifier} is not simulated", identifier=instrument.identifier)
        return PricePoint(current_price=round(price, 2), reference_price=reference, timestamp=now)
