"""Time-sliced rotation through the configured instruments."""

from __future__ import annotations

import math
from collections.abc import Sequence

from .models import Instrument


def current_index(
    list_len: int,
    rotation_seconds: float,
    now: float,
    start_epoch: float = 0.0,
) -> int:
    """Index of the active instrument at ``now``.

    Depends only on its arguments, so two invocations at the same ``now`` pick
    the same instrument.
    """
    if list_len <= 0:
        raise ValueError("list_len must be positive")
    if rotation_seconds <= 0:
        raise ValueError("rotation_seconds must be positive")
    slot = math.floor((now - start_epoch) / rotation_seconds)
    return slot % list_len


class RotationScheduler:
    """Selects the current instrument from a list using wall-clock slots.

    Holds no counter: every call recomputes from ``now`` and the epoch.
    """

    def __init__(self, rotation_seconds: float, start_epoch: float = 0.0) -> None:
        if rotation_seconds <= 0:
            raise ValueError("rotation_seconds must be positive")
        self._rotation = rotation_seconds
        self._epoch = start_epoch

    @property
    def rotation_seconds(self) -> float:
        return self._rotation

    def index(self, list_len: int, now: float) -> int:
        return current_index(list_len, self._rotation, now, self._epoch)

    def select(self, instruments: Sequence[Instrument], now: float) -> Instrument:
        """Return the instrument whose slot contains ``now``."""
        return instruments[self.index(len(instruments), now)]

    def seconds_until_next(self, now: float) -> float:
        """Time remaining until the next slot boundary (always > 0)."""
        elapsed = (now - self._epoch) % self._rotation
        return self._rotation - elapsed
