"""Severity band classification."""

from __future__ import annotations

import math

from .models import Band, Thresholds


def classify(pct: float | None, thresholds: Thresholds) -> Band:
    """Map a percentage change onto a band.

    Intervals:
        pct < critdown            -> critdown
        critdown <= pct < down    -> down
        down <= pct <= wayup      -> up
        pct > wayup               -> wayup

    An undefined change (None or NaN) is reported as ``up`` so a status line
    never fails on a degenerate reference price.
    """
    if pct is None or math.isnan(pct):
        return Band.UP
    if pct < thresholds.down:
        if pct < thresholds.critdown:
            return Band.CRITDOWN
        return Band.DOWN
    if pct > thresholds.wayup:
        return Band.WAYUP
    return Band.UP
