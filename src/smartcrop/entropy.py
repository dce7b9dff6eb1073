"""Entropy of pixel-value histograms.

Entropy is used as a proxy for visual interest: a band of the measure image
with many distinct edge intensities scores higher than a flat one.
"""

from __future__ import annotations

import math
from collections import defaultdict
from typing import Callable, Dict, Iterable, Mapping, Tuple, Union

from PIL import Image

from . import primitives
from .errors import InvalidDimensions

Histogram = Union[Mapping[int, int], Iterable[Tuple[object, int]]]


def _counts(histogram: Histogram) -> Iterable[int]:
    if isinstance(histogram, Mapping):
        return histogram.values()
    return (count for _, count in histogram)


def entropy(histogram: Histogram, area: int) -> float:
    """Shannon entropy (base 2) of a histogram over ``area`` pixels.

    Parameters
    ----------
    histogram
        Mapping of value to pixel count, or ``(value, count)`` pairs.
    area
        Total number of pixels the histogram was taken from.

    Returns
    -------
    float
        Non-negative entropy; 0.0 for a single-valued histogram.
    """

    if area <= 0:
        raise InvalidDimensions(f"Entropy needs a positive area, got {area}")

    value = 0.0
    for count in _counts(histogram):
        if count <= 0:
            continue
        p = count / area
        value += p * math.log2(p)
    # value is 0.0 or negative
    return -value if value else 0.0


def luma(r: float, g: float, b: float) -> float:
    """YUV weighted greyscale value."""

    return r * 0.299 + g * 0.587 + b * 0.114


def grayscale_histogram(
    pairs: Iterable[Tuple[object, int]],
    components: Callable[[object], Tuple[int, int, int]] = primitives.color_components,
) -> Dict[int, int]:
    """Fold a color histogram into rounded-luma buckets."""

    buckets: Dict[int, int] = defaultdict(int)
    for value, count in pairs:
        r, g, b = components(value)
        buckets[int(round(luma(r, g, b)))] += count
    return dict(buckets)


def grayscale_entropy(image: Image.Image) -> float:
    """Entropy of an image that is already single-channel."""

    return entropy(primitives.histogram(image), primitives.geometry(image).area)


def color_entropy(image: Image.Image) -> float:
    """Entropy of a color image, measured on its luma histogram."""

    histogram = grayscale_histogram(primitives.histogram(image))
    return entropy(histogram, primitives.geometry(image).area)
