"""Dimensions, rectangles and the safe-resize calculator.

A "safe" resize keeps the source aspect ratio and never shrinks the image
below the requested target on either axis, so that the following crop only
has to trim one dimension.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union

from .errors import InvalidDimensions

Number = Union[int, float]


@dataclass(frozen=True)
class Dimension:
    """Image size in pixels."""

    width: int
    height: int

    @property
    def aspect(self) -> float:
        return float(self.width) / float(self.height)

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def is_portrait(self) -> bool:
        return self.width < self.height

    def as_tuple(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def validate(self, label: str = "dimension") -> "Dimension":
        """Raise ``InvalidDimensions`` unless both sides are positive."""

        if self.width <= 0 or self.height <= 0:
            raise InvalidDimensions(
                f"{label} must be positive, got {self.width}x{self.height}"
            )
        return self


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in image coordinates.

    Used both for safe zones and for crop windows. Coordinates become floats
    once a zone list has been rescaled. Zones may start left of or above the
    image; ``safe_zones.merge`` clamps the envelope to the image origin.
    """

    left: Number
    top: Number
    right: Number
    bottom: Number

    def __post_init__(self) -> None:
        if self.left > self.right or self.top > self.bottom:
            raise InvalidDimensions(f"Inverted rectangle: {self}")

    @property
    def width(self) -> Number:
        return self.right - self.left

    @property
    def height(self) -> Number:
        return self.bottom - self.top

    def scale(self, ratio: float) -> "Rect":
        """Multiply every coordinate by ``ratio``."""

        return self.scale_xy(ratio, ratio)

    def scale_xy(self, x_ratio: float, y_ratio: float) -> "Rect":
        return Rect(
            left=self.left * x_ratio,
            top=self.top * y_ratio,
            right=self.right * x_ratio,
            bottom=self.bottom * y_ratio,
        )

    def as_tuple(self) -> Tuple[Number, Number, Number, Number]:
        return (self.left, self.top, self.right, self.bottom)


def safe_resize_dimensions(source: Dimension, target: Dimension) -> Dimension:
    """Compute the size to resize to before cropping.

    The result keeps the aspect ratio of ``source`` and is at least as large as
    ``target`` in both axes, so no content is lost by the resize itself.

    Parameters
    ----------
    source
        Current image size.
    target
        Requested output size.

    Returns
    -------
    Dimension
        Resize target; one side equals the matching ``target`` side.
    """

    source.validate("source")
    target.validate("target")

    if source.aspect < target.aspect:
        scale = source.width / target.width
    else:
        scale = source.height / target.height

    return Dimension(
        width=int(round(source.width / scale)),
        height=int(round(source.height / scale)),
    )
