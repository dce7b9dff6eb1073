"""Tests for CropPlanner."""

import logging

import pytest
from PIL import Image

from src.smartcrop.errors import (
    DetectorUnavailable,
    ExternalPrimitiveFailure,
    InvalidDimensions,
)
from src.smartcrop.geometry import Rect
from src.smartcrop.planner import CropPlan, CropPlanner, NoZones, crop, plan_crop
from src.smartcrop.timing import Stopwatch


class StaticZones:
    """Provider returning a fixed list and counting calls."""

    def __init__(self, zones):
        self.zones = list(zones)
        self.calls = 0

    def detect(self, source):
        self.calls += 1
        return list(self.zones)


class BrokenDetector:
    def detect(self, source):
        raise DetectorUnavailable("no cascades")


class TestPlanCrop:
    """Tests for plan_crop."""

    def test_square_to_wide_target(self, solid_rgb):
        """1000x1000 to 500x250 resizes to 500x500 and keeps the top band."""
        plan = plan_crop(solid_rgb(1000, 1000), 500, 250)

        assert plan == CropPlan(
            resize_width=500,
            resize_height=500,
            offset_x=0,
            offset_y=0,
            target_width=500,
            target_height=250,
        )
        assert plan.crop_box == (0, 0, 500, 250)

    def test_offsets_fit_inside_resized_image(self, noise):
        image = noise(640, 480).convert("RGB")

        plan = CropPlanner().plan_crop(image, 200, 300)

        assert plan.resize_size.as_tuple() == (400, 300)
        assert plan.offset_y == 0
        assert 0 <= plan.offset_x <= 200

    def test_busy_region_is_kept(self):
        image = Image.new("RGB", (600, 200), (0, 0, 0))
        for x in range(420, 600, 6):
            image.paste((255, 255, 255), (x, 0, x + 3, 200))

        plan = CropPlanner().plan_crop(image, 200, 200, salient_zones=[])

        assert plan.offset_x >= 350

    def test_image_is_not_modified(self, noise):
        image = noise(300, 200)
        before = image.tobytes()

        CropPlanner().plan_crop(image, 100, 100)

        assert image.size == (300, 200)
        assert image.tobytes() == before

    @pytest.mark.parametrize("size", [(0, 10), (10, 0), (-5, 5)])
    def test_invalid_target_fails_before_detection(self, solid_rgb, size):
        provider = StaticZones([])

        with pytest.raises(InvalidDimensions):
            CropPlanner(provider=provider).plan_crop(solid_rgb(50, 50), *size)
        assert provider.calls == 0

    def test_explicit_zones_skip_provider(self, solid_rgb):
        provider = StaticZones([Rect(0, 0, 10, 10)])

        CropPlanner(provider=provider).plan_crop(solid_rgb(100, 100), 50, 50, salient_zones=[])

        assert provider.calls == 0


class TestSafeZones:
    """Planning with salient regions."""

    def test_downscale_limit_enlarges_resize(self, noise):
        image = noise(1000, 1000).convert("RGB")
        zone = Rect(250, 250, 750, 750)

        plan = CropPlanner().plan_crop(image, 500, 500, salient_zones=[zone])

        assert plan.resize_size.as_tuple() == (650, 650)
        scaled = zone.scale(0.65)
        assert plan.offset_x <= scaled.left and plan.offset_x + 500 >= scaled.right
        assert plan.offset_y <= scaled.top and plan.offset_y + 500 >= scaled.bottom

    def test_zone_pulls_crop_towards_it(self, solid_rgb):
        image = solid_rgb(400, 100)
        zone = Rect(300, 0, 380, 100)

        plan = CropPlanner().plan_crop(image, 100, 100, salient_zones=[zone])

        assert plan.resize_size.as_tuple() == (400, 100)
        assert plan.offset_x <= 300
        assert plan.offset_x + 100 >= 380

    def test_full_image_zone_terminates(self, noise):
        image = noise(300, 600).convert("RGB")

        plan = CropPlanner().plan_crop(image, 300, 300, salient_zones=[Rect(0, 0, 300, 600)])

        assert plan.resize_size.as_tuple() == (300, 600)
        assert 0 <= plan.offset_y <= 300

    def test_provider_zones_are_used(self, solid_rgb):
        provider = StaticZones([Rect(300, 0, 380, 100)])

        plan = CropPlanner(provider=provider).plan_crop(solid_rgb(400, 100), 100, 100)

        assert provider.calls == 1
        assert plan.offset_x == 300

    def test_unavailable_detector_degrades(self, solid_rgb, caplog):
        image = solid_rgb(400, 100)

        with caplog.at_level(logging.WARNING):
            plan = CropPlanner(provider=BrokenDetector()).plan_crop(image, 100, 100)

        assert plan == CropPlanner(provider=NoZones()).plan_crop(image, 100, 100)
        assert "unavailable" in caplog.text

    def test_crashing_provider_degrades(self, solid_rgb, caplog):
        class Crashing:
            def detect(self, source):
                raise RuntimeError("backend crashed")

        image = solid_rgb(400, 100)

        with caplog.at_level(logging.WARNING):
            plan = CropPlanner(provider=Crashing()).plan_crop(image, 100, 100)

        assert plan == CropPlanner(provider=NoZones()).plan_crop(image, 100, 100)
        assert "Crashing failed: backend crashed" in caplog.text

    def test_crashing_provider_still_crops(self, noise):
        class Crashing:
            def detect(self, source):
                raise KeyError("model")

        result = CropPlanner(provider=Crashing()).crop(noise(200, 120), 60, 60)

        assert result.size == (60, 60)


class TestCrop:
    """Tests for crop."""

    def test_output_has_target_size(self, noise):
        image = noise(800, 600).convert("RGB")

        result = crop(image, 300, 200)

        assert result.size == (300, 200)
        assert image.size == (800, 600)

    def test_output_matches_plan(self, noise):
        image = noise(500, 300).convert("RGB")
        planner = CropPlanner()
        plan = planner.plan_crop(image, 150, 150)

        expected = image.resize(plan.resize_size.as_tuple(), Image.BICUBIC).crop(plan.crop_box)

        assert planner.crop(image, 150, 150).tobytes() == expected.tobytes()

    def test_debug_draws_zones(self, solid_rgb):
        provider = StaticZones([Rect(50, 50, 150, 150)])
        planner = CropPlanner(provider=provider, debug=True)

        result = planner.crop(solid_rgb(200, 200), 200, 200)

        assert result.getpixel((50, 50)) == (255, 255, 0)
        assert result.getpixel((100, 100)) == (0, 0, 0)

    def test_debug_off_draws_nothing(self, solid_rgb):
        provider = StaticZones([Rect(50, 50, 150, 150)])

        result = CropPlanner(provider=provider).crop(solid_rgb(200, 200), 200, 200)

        assert result.getcolors() == [(200 * 200, (0, 0, 0))]

    def test_primitive_failure_aborts(self, solid_rgb, monkeypatch):
        def fail(self, *args, **kwargs):
            raise OSError("decoder exploded")

        monkeypatch.setattr(Image.Image, "resize", fail)

        with pytest.raises(ExternalPrimitiveFailure):
            CropPlanner().crop(solid_rgb(100, 100), 50, 50)


class TestStopwatch:
    def test_phases_are_logged(self, solid_rgb, caplog):
        ticks = iter([0.0, 0.5, 1.25])
        stopwatch = Stopwatch(clock=lambda: next(ticks))

        with caplog.at_level(logging.DEBUG, logger="src.smartcrop.planner"):
            CropPlanner(stopwatch=stopwatch).plan_crop(solid_rgb(100, 100), 50, 50)

        assert "measure image done after 500.0ms" in caplog.text
        assert "slicing done after 1250.0ms" in caplog.text
