"""Exception hierarchy for marketbar.

Callers catch the specific failure mode instead of bare ``Exception``:

    ConfigError   - invalid or missing settings; fatal before any output
    FetchError    - upstream API / network failure; recoverable from cache
    FormatError   - upstream returned an unexpected shape; handled as FetchError
"""

from __future__ import annotations


class MarketBarError(Exception):
    """Base error for all marketbar subsystems."""


class ConfigError(MarketBarError):
    """Invalid or missing configuration value."""


class FetchError(MarketBarError):
    """Upstream API or network failure for one instrument."""

    def __init__(self, message: str, *, identifier: str = "") -> None:
        self.identifier = identifier
        super().__init__(message)


class FormatError(FetchError):
    """Upstream response did not have the expected shape (e.g. non-numeric price)."""
