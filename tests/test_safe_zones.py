"""Tests for safe-zone merging, ratios and rescaling."""

import itertools
import math

import pytest

from src.smartcrop.geometry import Dimension, Rect
from src.smartcrop.safe_zones import (
    SafeZoneSet,
    apply_downscale_limit,
    canvas_ratio,
    limits_downscale,
    merge,
    object_ratio,
    potential,
    scale_zones,
)

ZONES = [
    Rect(10, 40, 60, 90),
    Rect(100, 5, 140, 30),
    Rect(0, 70, 20, 200),
    Rect(55, 55, 56, 56),
]


class TestMerge:
    """Tests for merge."""

    def test_empty_is_none(self):
        assert merge([]) is None

    def test_envelope(self):
        assert merge(ZONES) == Rect(0, 5, 140, 200)

    def test_single_zone_is_itself(self):
        assert merge([ZONES[0]]) == ZONES[0]

    @pytest.mark.parametrize("order", list(itertools.permutations(range(len(ZONES)))))
    def test_order_independent(self, order):
        assert merge([ZONES[i] for i in order]) == merge(ZONES)

    def test_envelope_is_clamped_to_origin(self):
        zones = [Rect(-30, -10, 40, 50), Rect(20, 20, 90, 70)]

        assert merge(zones) == Rect(0, 0, 90, 70)

    def test_zone_entirely_outside_collapses(self):
        """A zone past the top-left corner leaves a zero-size envelope."""

        envelope = merge([Rect(-20, -20, -5, -5)])

        assert envelope == Rect(0, 0, 0, 0)
        assert object_ratio(Dimension(100, 100), envelope) == math.inf


class TestRatios:
    def test_object_ratio_takes_tighter_axis(self):
        image = Dimension(1000, 800)
        envelope = Rect(0, 0, 250, 400)

        assert object_ratio(image, envelope) == pytest.approx(2.0)

    def test_object_ratio_of_degenerate_envelope(self):
        assert object_ratio(Dimension(100, 100), Rect(5, 5, 5, 55)) == pytest.approx(2.0)
        assert math.isinf(object_ratio(Dimension(100, 100), Rect(5, 5, 5, 5)))

    def test_canvas_ratio(self):
        assert canvas_ratio(Dimension(1000, 1000), Dimension(500, 250)) == pytest.approx(2.0)

    @pytest.mark.parametrize(
        "obj,cnv,expected",
        [
            (2.0, 2.0, True),
            (1.31, 1.31, True),
            (1.3, 2.0, False),
            (2.0, 1.3, False),
            (1.3, 1.3, False),
            (1.0, 5.0, False),
            (5.0, 1.0, False),
        ],
    )
    def test_limit_needs_both_ratios_strictly_above(self, obj, cnv, expected):
        assert limits_downscale(obj, cnv, 1.3) is expected


class TestScaleZones:
    @pytest.mark.parametrize("ratio", [0.25, 0.65, 1.3, 3.7])
    def test_round_trip(self, ratio):
        restored = scale_zones(scale_zones(ZONES, ratio), 1 / ratio)

        for original, back in zip(ZONES, restored):
            assert back.as_tuple() == pytest.approx(original.as_tuple())


class TestSafeZoneSet:
    """Tests for the dimension-keyed zone cache."""

    def test_base_entry(self):
        zone_set = SafeZoneSet(Dimension(200, 100), ZONES[:1])

        assert zone_set.base == (ZONES[0],)
        assert Dimension(200, 100) in zone_set
        assert bool(zone_set) is True

    def test_empty_set_is_falsy(self):
        assert not SafeZoneSet(Dimension(10, 10))

    def test_zones_for_derives_and_caches(self):
        zone_set = SafeZoneSet(Dimension(200, 100), [Rect(10, 10, 50, 30)])

        derived = zone_set.zones_for(Dimension(100, 25))

        assert derived == (Rect(5, 2, 25, 8),)
        assert Dimension(100, 25) in zone_set
        assert zone_set.zones_for(Dimension(100, 25)) is derived
        assert len(zone_set) == 2

    def test_rescale_is_uniform_and_unrounded(self):
        zone_set = SafeZoneSet(Dimension(1000, 1000), [Rect(3, 5, 7, 9)])

        zones = zone_set.rescale(Dimension(650, 650), 0.65)

        assert zones[0].as_tuple() == pytest.approx((1.95, 3.25, 4.55, 5.85))
        assert zone_set.zones_for(Dimension(650, 650)) is zones


class TestApplyDownscaleLimit:
    """Tests for the downscale-limiting heuristic."""

    def test_both_ratios_two_enlarges_by_exactly_one_point_three(self):
        image = Dimension(1000, 1000)
        zone = Rect(250, 250, 750, 750)
        zone_set = SafeZoneSet(image, [zone])
        target = Dimension(500, 500)
        resize = Dimension(500, 500)

        assert object_ratio(image, merge([zone])) == pytest.approx(2.0)
        assert canvas_ratio(image, target) == pytest.approx(2.0)

        new_resize = apply_downscale_limit(zone_set, target, resize, 1.3)

        assert new_resize == Dimension(650, 650)
        rescaled = zone_set.zones_for(new_resize)[0]
        at_old_resize = zone.scale(resize.width / image.width)
        assert rescaled.as_tuple() == pytest.approx(
            tuple(v * 1.3 for v in at_old_resize.as_tuple())
        )
        assert rescaled.as_tuple() == pytest.approx((162.5, 162.5, 487.5, 487.5))

    def test_large_zone_keeps_resize(self):
        image = Dimension(1000, 1000)
        zone_set = SafeZoneSet(image, [Rect(0, 0, 900, 900)])

        result = apply_downscale_limit(zone_set, Dimension(500, 500), Dimension(500, 500))

        assert result == Dimension(500, 500)
        assert len(zone_set) == 1

    def test_small_canvas_ratio_keeps_resize(self):
        image = Dimension(1000, 1000)
        zone_set = SafeZoneSet(image, [Rect(400, 400, 500, 500)])

        result = apply_downscale_limit(zone_set, Dimension(900, 900), Dimension(900, 900))

        assert result == Dimension(900, 900)

    def test_no_zones_keeps_resize(self):
        zone_set = SafeZoneSet(Dimension(1000, 1000))

        assert apply_downscale_limit(
            zone_set, Dimension(100, 100), Dimension(100, 100)
        ) == Dimension(100, 100)


class TestPotential:
    zones = (Rect(10, 20, 40, 30),)

    def test_vertical_band_through_zone_is_zone_width(self):
        assert potential(self.zones, 25, 35, vertical=True) == 30

    def test_horizontal_band_through_zone_is_zone_height(self):
        assert potential(self.zones, 0, 11, vertical=False) == 10

    def test_band_outside_zone_is_zero(self):
        assert potential(self.zones, 31, 60, vertical=True) == 0
        assert potential(self.zones, 41, 60, vertical=False) == 0

    def test_bounds_are_inclusive(self):
        assert potential(self.zones, 30, 31, vertical=True) == 30

    def test_largest_zone_wins(self):
        zones = self.zones + (Rect(0, 0, 100, 25),)

        assert potential(zones, 22, 23, vertical=True) == 100
