"""Exceptions raised by the crop planner and its collaborators."""

from __future__ import annotations


class SmartCropError(Exception):
    """Base class for all cropping errors."""


class InvalidDimensions(SmartCropError, ValueError):
    """A source, target or slice size is not strictly positive."""


class DetectorUnavailable(SmartCropError):
    """The salient-region detector is missing or failed.

    The planner treats this as non-fatal and continues without safe zones.
    """


class ExternalPrimitiveFailure(SmartCropError):
    """An image primitive (resize, crop, filter, histogram) failed.

    The image passed to the failing call should be considered unusable; reload
    it before retrying.
    """
