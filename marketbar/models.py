"""Data models for market data."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from enum import Enum


class Kind(str, Enum):
    """Instrument kind. Each kind has its own fetcher and staleness rules."""

    EQUITY = "equity"
    CRYPTO = "crypto"


class Band(str, Enum):
    """Severity band for a percentage change. Values double as CSS classes."""

    CRITDOWN = "critdown"
    DOWN = "down"
    UP = "up"
    WAYUP = "wayup"


@dataclass(frozen=True, slots=True)
class Instrument:
    """One tracked equity ticker or crypto trade pair."""

    identifier: str
    kind: Kind
    label: str = ""
    position: int = 0

    @property
    def display_name(self) -> str:
        """Label (e.g. a currency sign) if configured, otherwise the identifier."""
        return self.label or self.identifier

    @property
    def key(self) -> tuple[Kind, str]:
        """Cache key. Kind is included so a stock and a pair can share a symbol."""
        return (self.kind, self.identifier)


@dataclass(frozen=True, slots=True)
class PricePoint:
    """Current price plus the reference close it is compared against."""

    current_price: float
    reference_price: float
    timestamp: float = field(default_factory=time.time)  # Unix seconds

    @property
    def change_percent(self) -> float | None:
        """Percentage change from the reference price, or None if the reference is zero."""
        if self.reference_price == 0:
            return None
        return (self.current_price - self.reference_price) / self.reference_price * 100


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """A fetched PricePoint and the staleness metadata it was served with."""

    point: PricePoint
    fetched_at: float
    max_age: float

    def age(self, now: float) -> float:
        return max(0.0, now - self.fetched_at)

    def is_stale(self, now: float) -> bool:
        return now - self.fetched_at > self.max_age


@dataclass(frozen=True, slots=True)
class BandColors:
    """Hex colours used for ticker segments, one per band."""

    critdown: str = "#800000"
    down: str = "#FF0000"
    up: str = "#00FF00"
    wayup: str = "#008000"

    def for_band(self, band: Band) -> str:
        return getattr(self, band.value)


@dataclass(frozen=True, slots=True)
class Thresholds:
    """Band boundaries shared by every instrument: critdown < down < wayup."""

    critdown: float
    down: float
    wayup: float
    colors: BandColors = field(default_factory=BandColors)


@dataclass(frozen=True, slots=True)
class StatusLine:
    """One emission for the status bar."""

    text: str
    tooltip: str
    css_class: str

    def to_dict(self) -> dict[str, str]:
        return {"text": self.text, "tooltip": self.tooltip, "class": self.css_class}

    def to_json(self) -> str:
        """Serialize to a single JSON line (no embedded newlines)."""
        return json.dumps(self.to_dict(), ensure_ascii=False)
