"""In-memory quote cache with per-kind staleness and fetch coalescing."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from datetime import datetime, tzinfo

from .errors import FetchError
from .models import CacheEntry, Instrument, Kind, PricePoint

logger = logging.getLogger(__name__)

FetchFn = Callable[[Instrument], Awaitable[PricePoint]]


def is_weekend(timestamp: float, tz: tzinfo | None = None) -> bool:
    """True if ``timestamp`` falls on Saturday or Sunday in ``tz`` (local time if None)."""
    return datetime.fromtimestamp(timestamp, tz).weekday() >= 5


@dataclass(frozen=True, slots=True)
class StalenessPolicy:
    """Maximum cache ages in seconds.

    Equity markets close at the weekend, so equities get a separate (usually
    longer) max age on Saturday and Sunday. Crypto trades around the clock and
    uses one value every day.
    """

    equity_max_age: float
    equity_weekend_max_age: float
    crypto_max_age: float
    is_weekend: Callable[[float], bool] = is_weekend

    def max_age(self, kind: Kind, now: float) -> float:
        if kind is Kind.CRYPTO:
            return self.crypto_max_age
        if self.is_weekend(now):
            return self.equity_weekend_max_age
        return self.equity_max_age


class QuoteCache:
    """Latest fetched quote for each instrument, at most one entry per key.

    Readers: single-shot status output and the ticker refresh task.
    A lock per key ensures a stale key is fetched once even when several
    lookups race for it; lookups for different keys do not block each other.
    Lookups that queued behind a fetch reuse its outcome, failure included,
    instead of fetching again.
    """

    def __init__(self, policy: StalenessPolicy) -> None:
        self._policy = policy
        self._entries: dict[tuple[Kind, str], CacheEntry] = {}
        self._locks: dict[tuple[Kind, str], asyncio.Lock] = {}
        # Completed fetch attempts per key, and the error of the latest one if it failed
        self._attempts: dict[tuple[Kind, str], int] = {}
        self._errors: dict[tuple[Kind, str], FetchError] = {}

    @property
    def policy(self) -> StalenessPolicy:
        return self._policy

    async def get_or_fetch(
        self, instrument: Instrument, now: float, fetch_fn: FetchFn
    ) -> CacheEntry:
        """Return a fresh entry for ``instrument``, fetching it if missing or stale.

        If the fetch fails and an older entry exists, the older entry is
        returned (its age shows how stale it is). Without any entry the
        FetchError propagates.
        """
        key = instrument.key
        lock = self._locks.setdefault(key, asyncio.Lock())
        attempts_seen = self._attempts.get(key, 0)
        async with lock:
            max_age = self._policy.max_age(instrument.kind, now)
            entry = self._entries.get(key)
            if entry is not None:
                entry = replace(entry, max_age=max_age)
                if not entry.is_stale(now):
                    logger.debug("Cache hit for %s (age %.0fs)", instrument.identifier, entry.age(now))
                    return entry

            if self._attempts.get(key, 0) != attempts_seen:
                # Another lookup fetched this key while we waited for the lock
                error = self._errors.get(key)
                if error is not None:
                    return self._stale_or_raise(instrument, entry, now, error)
                if entry is not None:
                    return entry

            logger.debug("Cache miss for %s, fetching", instrument.identifier)
            try:
                point = await fetch_fn(instrument)
            except FetchError as e:
                self._record_attempt(key, e)
                return self._stale_or_raise(instrument, entry, now, e)

            self._record_attempt(key, None)
            entry = CacheEntry(point=point, fetched_at=now, max_age=max_age)
            self._entries[key] = entry
            return entry

    def get(self, instrument: Instrument) -> CacheEntry | None:
        """Cached entry for an instrument regardless of age, or None."""
        return self._entries.get(instrument.key)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, instrument: Instrument) -> bool:
        return instrument.key in self._entries

    # --- Internals ---

    def _record_attempt(self, key: tuple[Kind, str], error: FetchError | None) -> None:
        self._attempts[key] = self._attempts.get(key, 0) + 1
        if error is None:
            self._errors.pop(key, None)
        else:
            self._errors[key] = error

    @staticmethod
    def _stale_or_raise(
        instrument: Instrument, entry: CacheEntry | None, now: float, error: FetchError
    ) -> CacheEntry:
        if entry is None:
            raise error
        logger.warning(
            "Fetch failed for %s, serving stale data (age %.0fs): %s",
            instrument.identifier,
            entry.age(now),
            error,
        )
        return entry
