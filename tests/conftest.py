"""
Pytest fixtures for PixelStag tests
"""

import numpy as np
import pytest

from pixelstag import ColorModel, Image


@pytest.fixture
def gradient_image() -> Image:
    """A 16x8 RGB float image with a horizontal red and a vertical green ramp."""
    pixels = np.zeros((8, 16, 3), dtype=np.float32)
    pixels[:, :, 0] = np.linspace(0.0, 1.0, 16)[np.newaxis, :]
    pixels[:, :, 1] = np.linspace(0.0, 1.0, 8)[:, np.newaxis]
    pixels[:, :, 2] = 0.25
    return Image(pixels, ColorModel.RGB)


@pytest.fixture
def noise_image() -> Image:
    """A 12x10 RGBA 8 bit image with reproducible random content."""
    rng = np.random.default_rng(42)
    return Image(rng.integers(0, 256, size=(10, 12, 4), dtype=np.uint8), ColorModel.RGBA)


@pytest.fixture
def second_image() -> Image:
    """A 16x8 RGB float image filled with 0.5."""
    return Image(np.full((8, 16, 3), 0.5, dtype=np.float32), ColorModel.RGB)
