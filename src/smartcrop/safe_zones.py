"""Safe-zone aggregation and rescaling.

Safe zones are rectangles that must stay visible in the final crop. They are
produced once at the image's natural size and then rescaled, never
re-detected, whenever the planner works at another size.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, Iterator, Optional, Sequence, Tuple

from .geometry import Dimension, Rect

logger = logging.getLogger(__name__)

Zones = Tuple[Rect, ...]


def merge(zones: Iterable[Rect]) -> Optional[Rect]:
    """Return the envelope of ``zones``, or None when there are none.

    Parameters
    ----------
    zones
        Safe zones in a common coordinate space.

    Returns
    -------
    Rect or None
        Smallest rectangle containing every zone, with left/top clamped at 0.
    """

    zones = list(zones)
    if not zones:
        return None
    left = max(0, min(z.left for z in zones))
    top = max(0, min(z.top for z in zones))
    return Rect(
        left=left,
        top=top,
        right=max(left, max(z.right for z in zones)),
        bottom=max(top, max(z.bottom for z in zones)),
    )


def _ratio(numerator: float, denominator: float) -> float:
    if denominator <= 0:
        return math.inf
    return numerator / denominator


def object_ratio(image: Dimension, envelope: Rect) -> float:
    """How many times the envelope fits into the image, on the tighter axis."""

    return min(
        _ratio(image.width, envelope.width),
        _ratio(image.height, envelope.height),
    )


def canvas_ratio(image: Dimension, target: Dimension) -> float:
    """How many times the target fits into the image, on the tighter axis."""

    return min(image.width / target.width, image.height / target.height)


def limits_downscale(obj_ratio: float, cnv_ratio: float, limit: float = 1.3) -> bool:
    # Both ratios strictly above the limit.
    return obj_ratio > limit and cnv_ratio > limit


def limited_resize(resize: Dimension, limit: float = 1.3) -> Dimension:
    return Dimension(
        width=int(round(resize.width * limit)),
        height=int(round(resize.height * limit)),
    )


def scale_zones(zones: Iterable[Rect], ratio: float) -> Zones:
    """Uniformly rescale every zone by ``ratio``."""

    return tuple(zone.scale(ratio) for zone in zones)


class SafeZoneSet:
    """Safe zones keyed by the image size they are valid at.

    One instance belongs to a single planning call. The base entry holds the
    zones at the image's natural size; other entries are cached rescales.

    Parameters
    ----------
    base_size
        Size of the image the zones were detected on.
    zones
        Zones in ``base_size`` pixel coordinates.
    """

    def __init__(self, base_size: Dimension, zones: Iterable[Rect] = ()) -> None:
        self.base_size = base_size
        self._entries: Dict[Dimension, Zones] = {base_size: tuple(zones)}

    def __contains__(self, size: Dimension) -> bool:
        return size in self._entries

    def __iter__(self) -> Iterator[Dimension]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries[self.base_size])

    @property
    def base(self) -> Zones:
        return self._entries[self.base_size]

    def envelope(self) -> Optional[Rect]:
        return merge(self.base)

    def rescale(self, size: Dimension, ratio: float) -> Zones:
        """Store the base zones scaled uniformly by ``ratio`` under ``size``."""

        zones = scale_zones(self.base, ratio)
        self._entries[size] = zones
        return zones

    def zones_for(self, size: Dimension) -> Zones:
        """Zones valid at ``size``, derived from the base entry if missing.

        Derived entries use independent x/y ratios and whole-pixel rounding.
        """

        if size in self._entries:
            return self._entries[size]

        x_ratio = size.width / self.base_size.width
        y_ratio = size.height / self.base_size.height
        zones = tuple(
            Rect(
                left=round(zone.left * x_ratio),
                top=round(zone.top * y_ratio),
                right=round(zone.right * x_ratio),
                bottom=round(zone.bottom * y_ratio),
            )
            for zone in self.base
        )
        self._entries[size] = zones
        return zones


def apply_downscale_limit(
    zone_set: SafeZoneSet,
    target: Dimension,
    resize: Dimension,
    limit: float = 1.3,
) -> Dimension:
    """Enlarge ``resize`` when the safe area would be shrunk too far.

    Parameters
    ----------
    zone_set
        Zones at the image's natural size.
    target
        Requested output size.
    resize
        Safe-resize dimensions computed for ``target``.
    limit
        Threshold for both ratios and enlargement factor.

    Returns
    -------
    Dimension
        Either ``resize`` unchanged or ``resize`` scaled by ``limit``. In the
        latter case ``zone_set`` gains an entry for the new size.
    """

    envelope = zone_set.envelope()
    if envelope is None:
        return resize

    image = zone_set.base_size
    obj = object_ratio(image, envelope)
    cnv = canvas_ratio(image, target)
    logger.debug("object ratio %.3f, canvas ratio %.3f", obj, cnv)

    if not limits_downscale(obj, cnv, limit):
        return resize

    new_resize = limited_resize(resize, limit)
    zone_set.rescale(new_resize, new_resize.width / image.width)
    logger.debug(
        "limiting downscale: %dx%d -> %dx%d",
        resize.width,
        resize.height,
        new_resize.width,
        new_resize.height,
    )
    return new_resize


def potential(
    zones: Sequence[Rect], start: int, end: int, vertical: bool
) -> float:
    """Largest cross-axis extent of any zone covering ``[start, end)``.

    ``vertical`` bands are rows, so coverage is tested on top/bottom and the
    extent is the zone width; otherwise columns and zone height.
    """

    best = 0
    for i in range(int(start), int(end)):
        for zone in zones:
            if vertical:
                if zone.top <= i <= zone.bottom:
                    best = max(best, zone.right - zone.left)
            elif zone.left <= i <= zone.right:
                best = max(best, zone.bottom - zone.top)
    return best
