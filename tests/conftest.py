"""Shared fixtures for the filmlook test suite."""

import numpy as np
import pytest

from filmlook.core.contracts import RasterImage, EffectParameters
from filmlook.pipeline.engine import FilmPipeline


def rgba8(r=128, g=128, b=128, a=255, h=100, w=100):
    frame = np.zeros((h, w, 4), dtype=np.uint8)
    frame[:, :, 0] = r
    frame[:, :, 1] = g
    frame[:, :, 2] = b
    frame[:, :, 3] = a
    return frame


def solid(value, h=100, w=100):
    """Opaque gray RasterImage with a float level."""
    return RasterImage.filled(w, h, (value, value, value, 1.0))


@pytest.fixture
def pipeline():
    return FilmPipeline()


@pytest.fixture
def identity():
    return EffectParameters()


@pytest.fixture
def mid_gray_buffer():
    return rgba8(128, 128, 128)


@pytest.fixture
def mid_gray(mid_gray_buffer):
    return RasterImage.from_rgba8(mid_gray_buffer)


@pytest.fixture
def black():
    return solid(0.0)


@pytest.fixture
def gradient():
    """Horizontal 0..1 gray ramp, 64 x 256."""
    ramp = np.linspace(0.0, 1.0, 256, dtype=np.float32)
    pixels = np.ones((64, 256, 4), dtype=np.float32)
    pixels[:, :, :3] = ramp[np.newaxis, :, np.newaxis]
    return RasterImage(pixels)


@pytest.fixture
def white_line():
    """Black 100 x 100 image with a one-pixel white column at x = 50."""
    buffer = rgba8(0, 0, 0)
    buffer[:, 50, :3] = 255
    return RasterImage.from_rgba8(buffer)


@pytest.fixture
def bright_square():
    """Black 100 x 100 image with a light (0.9) 20 x 20 square in the middle."""
    pixels = np.zeros((100, 100, 4), dtype=np.float32)
    pixels[:, :, 3] = 1.0
    pixels[40:60, 40:60, :3] = 0.9
    return RasterImage(pixels)


@pytest.fixture
def random_image():
    rng = np.random.default_rng(7)
    buffer = rng.integers(0, 256, (48, 64, 4), dtype=np.uint8)
    buffer[:, :, 3] = 255
    return RasterImage.from_rgba8(buffer)
