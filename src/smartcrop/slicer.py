"""Per-axis bisection search for the crop offset.

The window ``[top, bottom)`` starts at the full extent of one axis and is
narrowed from either end, one slice at a time, until it matches the target
size. Slices touching a safe zone are protected by their potential; otherwise
the slice with less entropy is discarded.
"""

from __future__ import annotations

import enum
import logging
import math
from typing import Iterator, Optional, Sequence, Tuple

from PIL import Image

from config import CONFIG, Tuning
from . import primitives
from .entropy import color_entropy, grayscale_entropy
from .errors import InvalidDimensions
from .geometry import Rect
from .safe_zones import potential

logger = logging.getLogger(__name__)


class Axis(enum.Enum):
    HORIZONTAL = "h"
    VERTICAL = "v"


def slice_factor_for(image: Image.Image, tuning: Tuning = CONFIG.tuning) -> int:
    """Slice step multiplier: larger for portrait images."""

    if primitives.geometry(image).is_portrait:
        return tuning.portrait_slice_factor
    return 1


def _slice_entropy(image: Image.Image) -> float:
    if image.mode == "L":
        return grayscale_entropy(image)
    return color_entropy(image)


class Slicer:
    """Bisection search along one axis of a measure image.

    Parameters
    ----------
    image
        Measure image (edge-enhanced, grayscale, thresholded, blurred).
    target_size
        Size the window must shrink to along ``axis``.
    axis
        ``Axis.HORIZONTAL`` searches the x offset, ``Axis.VERTICAL`` the y offset.
    zones
        Safe zones valid at the measure image's size.
    slice_factor
        Orientation multiplier for the initial slice step.
    tuning
        Heuristic constants; defaults to ``CONFIG.tuning``.
    """

    def __init__(
        self,
        image: Image.Image,
        target_size: int,
        axis: Axis,
        zones: Sequence[Rect] = (),
        slice_factor: int = 1,
        tuning: Optional[Tuning] = None,
    ) -> None:
        self.image = image
        self.axis = axis
        self.zones = tuple(zones)
        self.slice_factor = slice_factor
        self.tuning = tuning or CONFIG.tuning

        size = primitives.geometry(image)
        if axis is Axis.HORIZONTAL:
            self.original_size, self.cross_size = size.width, size.height
        else:
            self.original_size, self.cross_size = size.height, size.width
        self.target_size = int(target_size)

        if self.target_size <= 0 or self.original_size < self.target_size:
            raise InvalidDimensions(
                f"Cannot slice {self.original_size}px down to {self.target_size}px"
            )

    @property
    def vertical(self) -> bool:
        return self.axis is Axis.VERTICAL

    def initial_step(self) -> int:
        ratio = self.original_size / self.target_size
        return int(math.ceil(ratio * self.tuning.slice_scale)) * self.slice_factor

    def _band(self, start: int, size: int) -> Image.Image:
        if self.vertical:
            return primitives.crop(self.image, self.cross_size, size, 0, start)
        return primitives.crop(self.image, size, self.cross_size, start, 0)

    def _should_cut_a(
        self, a_slice: Image.Image, b_slice: Image.Image, pot_a: float, pot_b: float
    ) -> bool:
        can_cut_a = pot_a <= 0
        can_cut_b = pot_b <= 0

        # Neither side is free: force one open if its potential is much lower.
        if not can_cut_a and not can_cut_b:
            ratio = self.tuning.potential_ratio
            if pot_a * ratio < pot_b:
                can_cut_a = True
            elif pot_a > pot_b * ratio:
                can_cut_b = True

        if can_cut_a != can_cut_b:
            return can_cut_a
        # Keep the busier slice; ties discard B.
        return _slice_entropy(a_slice) < _slice_entropy(b_slice)

    def windows(self) -> Iterator[Tuple[int, int]]:
        """Yield the ``(top, bottom)`` window after every cut."""

        top, bottom = 0, self.original_size
        step = self.initial_step()
        a_slice: Optional[Image.Image] = None
        b_slice: Optional[Image.Image] = None

        try:
            while bottom - top > self.target_size:
                step = min(bottom - top - self.target_size, step)

                if a_slice is None:
                    a_slice = self._band(top, step)
                if b_slice is None:
                    b_slice = self._band(bottom - step, step)

                pot_a = potential(self.zones, top, top + step, self.vertical)
                pot_b = potential(self.zones, bottom - step, bottom, self.vertical)

                if self._should_cut_a(a_slice, b_slice, pot_a, pot_b):
                    top += step
                    a_slice.close()
                    a_slice = None
                else:
                    bottom -= step
                    b_slice.close()
                    b_slice = None
                yield top, bottom
        finally:
            for band in (a_slice, b_slice):
                if band is not None:
                    band.close()

    def offset(self) -> int:
        top = 0
        for top, _ in self.windows():
            pass
        logger.debug("%s offset: %d", self.axis.name.lower(), top)
        return top


def slice_axis(
    image: Image.Image,
    target_size: int,
    axis: Axis,
    zones: Sequence[Rect] = (),
    slice_factor: int = 1,
    tuning: Optional[Tuning] = None,
) -> int:
    """Return the offset along ``axis`` that keeps the most interesting band."""

    return Slicer(image, target_size, axis, zones, slice_factor, tuning).offset()
