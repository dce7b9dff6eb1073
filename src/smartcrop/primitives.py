"""Pillow-backed image primitives.

The planner never touches pixels directly; everything it needs from an image
library goes through the functions in this module. Pillow operations return
new images, so ``resize``, ``crop`` and the filters leave their input intact.
Any Pillow or OS error is re-raised as ``ExternalPrimitiveFailure``.
"""

from __future__ import annotations

import functools
from typing import Callable, List, Tuple, TypeVar, cast

from PIL import Image, ImageFilter

from .errors import ExternalPrimitiveFailure, InvalidDimensions
from .geometry import Dimension

F = TypeVar("F", bound=Callable)

# 5x5 Laplacian used when an edge radius above 1 is requested.
_EDGE_KERNEL_5 = ImageFilter.Kernel(
    (5, 5), [-1] * 12 + [24] + [-1] * 12, scale=1, offset=0
)


def _primitive(func: F) -> F:
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except InvalidDimensions:
            raise
        except (OSError, ValueError, TypeError, MemoryError) as err:
            raise ExternalPrimitiveFailure(f"{func.__name__} failed: {err}") from err

    return cast(F, wrapper)


def map_resample(name: str) -> int:
    """Map a resample name to a Pillow constant.

    Parameters
    ----------
    name
        One of 'nearest', 'bilinear', 'bicubic', 'lanczos'.

    Returns
    -------
    int
        Pillow resampling constant.
    """

    name_lower = (name or "").lower()
    if name_lower == "nearest":
        return Image.NEAREST
    if name_lower == "bilinear":
        return Image.BILINEAR
    if name_lower == "lanczos":
        return Image.LANCZOS
    return Image.BICUBIC


def geometry(image: Image.Image) -> Dimension:
    width, height = image.size
    return Dimension(width=width, height=height)


@_primitive
def load(path) -> Image.Image:
    """Open an image and force its pixels to be read."""

    image = Image.open(path)
    image.load()
    return image


@_primitive
def resize(
    image: Image.Image, width: int, height: int, filter_kind: str = "bicubic"
) -> Image.Image:
    Dimension(width, height).validate("resize target")
    return image.resize((width, height), map_resample(filter_kind))


@_primitive
def crop(image: Image.Image, width: int, height: int, x: int, y: int) -> Image.Image:
    """Cut a ``width`` x ``height`` window at ``(x, y)``.

    The window is clipped to the image bounds instead of being padded.
    """

    Dimension(width, height).validate("crop size")
    img_w, img_h = image.size
    left = max(0, min(int(x), img_w))
    top = max(0, min(int(y), img_h))
    box = (left, top, min(img_w, left + int(width)), min(img_h, top + int(height)))
    return image.crop(box)


@_primitive
def clone(image: Image.Image) -> Image.Image:
    return image.copy()


@_primitive
def edge_enhance(image: Image.Image, radius: int = 1) -> Image.Image:
    if image.mode not in ("L", "RGB"):
        image = image.convert("RGB")
    if radius <= 1:
        return image.filter(ImageFilter.FIND_EDGES)
    return image.filter(_EDGE_KERNEL_5)


@_primitive
def to_grayscale(image: Image.Image) -> Image.Image:
    if image.mode == "L":
        return image.copy()
    return image.convert("L")


@_primitive
def black_threshold(image: Image.Image, level: int) -> Image.Image:
    """Turn every channel value darker than ``level`` to pitch black."""

    return image.point(lambda v: 0 if v < level else v)


@_primitive
def blur(image: Image.Image, radius: int, sigma: float) -> Image.Image:
    """Gaussian blur.

    Pillow sizes the kernel from ``sigma`` alone; ``radius`` of 0 disables the
    blur, matching ImageMagick's "no blur" convention.
    """

    if radius <= 0 or sigma <= 0:
        return image.copy()
    return image.filter(ImageFilter.GaussianBlur(radius=sigma))


@_primitive
def histogram(image: Image.Image) -> List[Tuple[object, int]]:
    """Return ``(value, count)`` pairs for every value present in ``image``.

    Values are ints for single-channel images and tuples otherwise.
    """

    width, height = image.size
    colors = image.getcolors(maxcolors=max(1, width * height))
    if not colors:
        return []
    return [(value, count) for count, value in colors]


def color_components(value) -> Tuple[int, int, int]:
    """Split a histogram value into ``(r, g, b)``."""

    if isinstance(value, (int, float)):
        return (int(value), int(value), int(value))
    r, g, b = value[:3]
    return (r, g, b)


def measure_image(image: Image.Image, tuning) -> Image.Image:
    """Build the edge/grayscale/threshold/blur image used for entropy.

    Intermediate images are closed as soon as the next step has run.
    """

    steps = (
        lambda img: edge_enhance(img, tuning.edge_radius),
        to_grayscale,
        lambda img: black_threshold(img, tuning.black_threshold),
        lambda img: blur(img, tuning.blur_radius, tuning.blur_sigma),
    )
    current = image
    try:
        for step in steps:
            result = step(current)
            if current is not image:
                current.close()
            current = result
    except ExternalPrimitiveFailure:
        if current is not image:
            current.close()
        raise
    return current
