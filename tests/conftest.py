"""Shared fixtures: small in-memory images."""

import numpy as np
import pytest
from PIL import Image


def noise_image(width, height, seed=0):
    """Grayscale image of uniformly random pixel values."""
    rng = np.random.default_rng(seed)
    return Image.fromarray(rng.integers(0, 256, size=(height, width), dtype=np.uint8))


def banded_image(width, height, band_top, band_bottom, seed=0):
    """Black grayscale image with a noisy horizontal band ``[band_top, band_bottom)``."""
    pixels = np.zeros((height, width), dtype=np.uint8)
    rng = np.random.default_rng(seed)
    pixels[band_top:band_bottom, :] = rng.integers(
        0, 256, size=(band_bottom - band_top, width), dtype=np.uint8
    )
    return Image.fromarray(pixels)


@pytest.fixture
def solid_rgb():
    """Factory for flat RGB images."""

    def make(width, height, color=(0, 0, 0)):
        return Image.new("RGB", (width, height), color)

    return make


@pytest.fixture
def noise():
    return noise_image


@pytest.fixture
def banded():
    return banded_image
