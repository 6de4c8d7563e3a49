"""Tests for band classification."""

import math

import pytest

from marketbar.classifier import classify
from marketbar.models import Band, Thresholds


class TestClassify:
    """Unit tests for classify()."""

    @pytest.mark.parametrize(
        "pct, expected",
        [
            (2.34, Band.UP),
            (-12.0, Band.CRITDOWN),
            (6.0, Band.WAYUP),
            (-3.0, Band.DOWN),
        ],
    )
    def test_reference_scenario(self, thresholds, pct, expected):
        """Thresholds {-10, 0, 5}: the four documented example changes."""
        assert classify(pct, thresholds) is expected

    def test_exactly_critdown_is_down(self, thresholds):
        """A change equal to critdown is down, not critdown."""
        assert classify(-10.0, thresholds) is Band.DOWN

    def test_exactly_down_is_up(self, thresholds):
        """A change of precisely 0% is not a loss."""
        assert classify(0.0, thresholds) is Band.UP

    def test_exactly_wayup_is_up(self, thresholds):
        """A change equal to wayup is up, not wayup."""
        assert classify(5.0, thresholds) is Band.UP

    def test_just_around_boundaries(self, thresholds):
        """Values just past each threshold switch band."""
        assert classify(-10.0001, thresholds) is Band.CRITDOWN
        assert classify(-0.0001, thresholds) is Band.DOWN
        assert classify(5.0001, thresholds) is Band.WAYUP

    def test_nan_falls_back_to_up(self, thresholds):
        """NaN is treated as no change."""
        assert classify(math.nan, thresholds) is Band.UP

    def test_none_falls_back_to_up(self, thresholds):
        """An undefined change is treated as no change."""
        assert classify(None, thresholds) is Band.UP

    def test_infinities(self, thresholds):
        """Infinite changes land in the outer bands."""
        assert classify(-math.inf, thresholds) is Band.CRITDOWN
        assert classify(math.inf, thresholds) is Band.WAYUP

    def test_nonzero_down_threshold(self):
        """The down threshold need not be zero."""
        t = Thresholds(critdown=-5.0, down=-1.0, wayup=3.0)
        assert classify(-0.5, t) is Band.UP
        assert classify(-1.0, t) is Band.UP
        assert classify(-1.5, t) is Band.DOWN

    def test_bands_partition_the_line(self, thresholds):
        """Every value maps to exactly the band of the interval it lies in."""
        for i in range(-300, 301):
            pct = i / 10
            band = classify(pct, thresholds)
            if pct < -10:
                assert band is Band.CRITDOWN
            elif pct < 0:
                assert band is Band.DOWN
            elif pct <= 5:
                assert band is Band.UP
            else:
                assert band is Band.WAYUP
