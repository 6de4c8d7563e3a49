"""Market price status line for status bars.

Public API:
    Instrument, PricePoint, CacheEntry, Thresholds, Band, StatusLine - data models
    classify            - Percentage change -> severity band
    QuoteCache          - In-memory per-instrument cache with fetch coalescing
    RotationScheduler   - Wall-clock rotation through instruments
    TickerBuffer        - Scrolling ticker ring and window renderer
    QuoteFetcher        - Abstract interface for quote providers
    MarketBar           - Engine combining the pieces above
    load_config         - TOML configuration loader
"""

from .app import MarketBar
from .cache import QuoteCache, StalenessPolicy
from .classifier import classify
from .config import AppConfig, load_config
from .errors import ConfigError, FetchError, FormatError, MarketBarError
from .interface import QuoteFetcher
from .models import Band, CacheEntry, Instrument, Kind, PricePoint, StatusLine, Thresholds
from .rotation import RotationScheduler, current_index
from .ticker import TickerBuffer

__all__ = [
    "AppConfig",
    "Band",
    "CacheEntry",
    "ConfigError",
    "FetchError",
    "FormatError",
    "Instrument",
    "Kind",
    "MarketBar",
    "MarketBarError",
    "PricePoint",
    "QuoteCache",
    "QuoteFetcher",
    "RotationScheduler",
    "StalenessPolicy",
    "StatusLine",
    "Thresholds",
    "TickerBuffer",
    "classify",
    "current_index",
    "load_config",
]
