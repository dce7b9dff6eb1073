"""Crop planning: resize target, safe zones and per-axis offsets.

``CropPlanner.plan_crop`` is a pure computation over the given image and
zones; ``CropPlanner.crop`` applies the resulting plan and returns a new image.
Where the safe zones come from is decided by the provider the planner is
built with (``NoZones`` or ``detector.DetectorBacked``).
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple

from PIL import Image

from config import CONFIG, Tuning
from . import primitives
from .errors import DetectorUnavailable
from .geometry import Dimension, Rect, safe_resize_dimensions
from .overlay import draw_safe_zones
from .safe_zones import SafeZoneSet, apply_downscale_limit
from .slicer import Axis, slice_axis, slice_factor_for
from .timing import Stopwatch

logger = logging.getLogger(__name__)


class SalientRegionProvider(Protocol):
    def detect(self, source: Any) -> List[Rect]:
        """Return salient regions in the source image's pixel coordinates."""


class NoZones:
    """Provider for plain entropy cropping."""

    def detect(self, source: Any) -> List[Rect]:
        return []


@dataclass(frozen=True)
class CropPlan:
    """Everything needed to turn the source image into the output."""

    resize_width: int
    resize_height: int
    offset_x: int
    offset_y: int
    target_width: int
    target_height: int

    @property
    def resize_size(self) -> Dimension:
        return Dimension(self.resize_width, self.resize_height)

    @property
    def crop_box(self) -> Tuple[int, int, int, int]:
        return (
            self.offset_x,
            self.offset_y,
            self.offset_x + self.target_width,
            self.offset_y + self.target_height,
        )

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


class CropPlanner:
    """Content-aware resize-and-crop.

    Parameters
    ----------
    provider
        Source of salient regions used by ``crop``; ``NoZones`` by default.
    tuning
        Heuristic constants; defaults to ``CONFIG.tuning``.
    stopwatch
        Optional timer; when given, phase timings are logged at DEBUG.
    debug
        Draw the safe zones onto the output of ``crop``.
    resample
        Resampling method for the resize step.
    """

    def __init__(
        self,
        provider: Optional[SalientRegionProvider] = None,
        tuning: Optional[Tuning] = None,
        stopwatch: Optional[Stopwatch] = None,
        debug: bool = False,
        resample: str = CONFIG.behavior.resample,
    ) -> None:
        self.provider = provider or NoZones()
        self.tuning = tuning or CONFIG.tuning
        self.stopwatch = stopwatch
        self.debug = debug
        self.resample = resample

    def _mark(self, phase: str) -> None:
        if self.stopwatch is not None:
            logger.debug("%s done after %s", phase, self.stopwatch.mark())

    def salient_zones(self, image: Image.Image) -> List[Rect]:
        """Ask the provider for zones, falling back to none if it is unavailable or fails."""

        try:
            return list(self.provider.detect(image))
        except DetectorUnavailable as err:
            logger.warning("Salient region detection unavailable: %s", err)
        except Exception as err:
            logger.warning(
                "Salient region provider %s failed: %s", type(self.provider).__name__, err
            )
        return []

    def _plan(
        self,
        image: Image.Image,
        target_width: int,
        target_height: int,
        zones: Iterable[Rect],
    ) -> Tuple[CropPlan, SafeZoneSet]:
        target = Dimension(target_width, target_height).validate("target")
        source = primitives.geometry(image).validate("source")
        if self.stopwatch is not None:
            self.stopwatch.start()

        resize = safe_resize_dimensions(source, target)
        zone_set = SafeZoneSet(source, zones)
        if zone_set:
            resize = apply_downscale_limit(
                zone_set, target, resize, self.tuning.object_ratio_limit
            )
        logger.debug(
            "resize %dx%d -> %dx%d for target %dx%d",
            source.width,
            source.height,
            resize.width,
            resize.height,
            target.width,
            target.height,
        )

        resized = primitives.resize(image, resize.width, resize.height, self.resample)
        try:
            measure = primitives.measure_image(resized, self.tuning)
        finally:
            resized.close()
        self._mark("measure image")

        try:
            working_zones = zone_set.zones_for(resize) if zone_set else ()
            factor = slice_factor_for(measure, self.tuning)
            offset_x = slice_axis(
                measure, target.width, Axis.HORIZONTAL, working_zones, factor, self.tuning
            )
            offset_y = slice_axis(
                measure, target.height, Axis.VERTICAL, working_zones, factor, self.tuning
            )
        finally:
            measure.close()
        self._mark("slicing")

        plan = CropPlan(
            resize_width=resize.width,
            resize_height=resize.height,
            offset_x=offset_x,
            offset_y=offset_y,
            target_width=target.width,
            target_height=target.height,
        )
        return plan, zone_set

    def plan_crop(
        self,
        image: Image.Image,
        target_width: int,
        target_height: int,
        salient_zones: Optional[Iterable[Rect]] = None,
    ) -> CropPlan:
        """Plan a crop of ``image`` to ``target_width`` x ``target_height``.

        Parameters
        ----------
        image
            Source image at its natural size; not modified.
        target_width, target_height
            Output size in pixels.
        salient_zones
            Safe zones in ``image`` coordinates. When None the provider is asked.

        Returns
        -------
        CropPlan
            Resize dimensions and crop offsets.
        """

        if salient_zones is None:
            Dimension(target_width, target_height).validate("target")
            salient_zones = self.salient_zones(image)
        plan, _ = self._plan(image, target_width, target_height, salient_zones)
        return plan

    def crop(self, image: Image.Image, target_width: int, target_height: int) -> Image.Image:
        """Resize and crop ``image`` to exactly the target size.

        Returns a new image; ``image`` itself is left as it was.
        """

        Dimension(target_width, target_height).validate("target")
        zones = self.salient_zones(image)
        plan, zone_set = self._plan(image, target_width, target_height, zones)

        resized = primitives.resize(
            image, plan.resize_width, plan.resize_height, self.resample
        )
        if self.debug and zone_set:
            with_overlay = draw_safe_zones(resized, zone_set.zones_for(plan.resize_size))
            resized.close()
            resized = with_overlay
        try:
            return primitives.crop(
                resized, plan.target_width, plan.target_height, plan.offset_x, plan.offset_y
            )
        finally:
            resized.close()


def plan_crop(
    image: Image.Image,
    target_width: int,
    target_height: int,
    salient_zones: Optional[Iterable[Rect]] = None,
) -> CropPlan:
    """Plan with a default planner; see ``CropPlanner.plan_crop``."""

    return CropPlanner().plan_crop(image, target_width, target_height, salient_zones)


def crop(
    image: Image.Image,
    target_width: int,
    target_height: int,
    provider: Optional[SalientRegionProvider] = None,
) -> Image.Image:
    return CropPlanner(provider=provider).crop(image, target_width, target_height)
