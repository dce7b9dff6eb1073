"""Debug overlay drawing safe zones onto an image."""

from __future__ import annotations

from typing import Iterable

from PIL import Image, ImageDraw

from .geometry import Rect


def draw_safe_zones(
    image: Image.Image,
    zones: Iterable[Rect],
    color: str = "yellow",
    width: int = 1,
) -> Image.Image:
    """Return a copy of ``image`` with every zone outlined.

    Parameters
    ----------
    image
        Image the zones are expressed in.
    zones
        Safe zones in ``image`` pixel coordinates.
    color
        Outline color understood by Pillow.
    width
        Outline width in pixels.

    Returns
    -------
    Image.Image
        New RGB image; ``image`` is left untouched.
    """

    canvas = image.convert("RGB")
    draw = ImageDraw.Draw(canvas)
    for zone in zones:
        draw.rectangle(
            [zone.left, zone.top, zone.right, zone.bottom],
            outline=color,
            width=width,
        )
    return canvas
