"""
Procedural Noise Synthesis.

Three generators:
- uniform_noise: per-pixel uniform noise in all four channels, alpha
  included. Unseeded unless a Generator is passed in.
- gray_noise: one uniform draw per pixel replicated to R, G and B.
- dot_field: an infinite integer-hash lattice, translated and
  pixellated, so the same seed always yields the same dots.
"""

from __future__ import annotations

import math
from typing import Optional
import numpy as np
from numpy.typing import NDArray

from filmlook.core.contracts import RasterImage


# 64-bit mixing constants (murmur3 finalizer + per-axis primes)
_PRIME_X = np.uint64(0x9E3779B97F4A7C15)
_PRIME_Y = np.uint64(0xC2B2AE3D27D4EB4F)
_MIX_1 = np.uint64(0xFF51AFD7ED558CCD)
_MIX_2 = np.uint64(0xC4CEB9FE1A85EC53)
_SHIFT = np.uint64(33)
_MANTISSA_SHIFT = np.uint64(11)
_UNIT = 1.0 / float(1 << 53)


def uniform_noise(
    width: int,
    height: int,
    rng: Optional[np.random.Generator] = None,
) -> RasterImage:
    """RGBA noise, straight channels independent and uniform in [0, 1)."""
    rng = rng or np.random.default_rng()
    straight = rng.random((height, width, 4), dtype=np.float32)
    return RasterImage(RasterImage.premultiply(straight))


def gray_noise(side: int, rng: np.random.Generator) -> RasterImage:
    """Opaque side x side gray noise (R = G = B, uniform in [0, 1))."""
    values = rng.random((side, side), dtype=np.float32)
    pixels = np.empty((side, side, 4), dtype=np.float32)
    pixels[:, :, 0] = values
    pixels[:, :, 1] = values
    pixels[:, :, 2] = values
    pixels[:, :, 3] = 1.0
    return RasterImage(pixels)


def _seed_key(seed: float) -> np.uint64:
    return np.array([seed], dtype=np.float64).view(np.uint64)[0]


def lattice_values(
    cells_x: NDArray[np.int64],
    cells_y: NDArray[np.int64],
    seed: float,
) -> NDArray[np.float64]:
    """
    Uniform [0, 1) value for each integer lattice cell.

    Stateless: the value depends only on (cell_x, cell_y, seed).
    """
    hx = np.ascontiguousarray(cells_x, dtype=np.int64).view(np.uint64)
    hy = np.ascontiguousarray(cells_y, dtype=np.int64).view(np.uint64)

    h = (hx * _PRIME_X) ^ (hy * _PRIME_Y) ^ _seed_key(seed)
    h = h ^ (h >> _SHIFT)
    h = h * _MIX_1
    h = h ^ (h >> _SHIFT)
    h = h * _MIX_2
    h = h ^ (h >> _SHIFT)
    return (h >> _MANTISSA_SHIFT).astype(np.float64) * _UNIT


def dot_field(width: int, height: int, seed: float, scale: float) -> NDArray[np.float32]:
    """
    Seeded dot pattern covering a width x height extent.

    The lattice is translated by (sin(seed) * width, cos(seed) * height)
    and then pixellated into scale x scale blocks, each block taking
    the lattice value under its center.

    Returns:
        (H, W) float32 values in [0, 1)
    """
    tx = math.sin(seed) * width
    ty = math.cos(seed) * height

    cols = _block_centers(width, scale) - tx
    rows = _block_centers(height, scale) - ty

    cells_x = np.floor(cols).astype(np.int64)
    cells_y = np.floor(rows).astype(np.int64)
    grid_x, grid_y = np.meshgrid(cells_x, cells_y)
    return lattice_values(grid_x, grid_y, seed).astype(np.float32)


def _block_centers(length: int, scale: float) -> NDArray[np.float64]:
    centers = np.arange(length, dtype=np.float64) + 0.5
    return (np.floor(centers / scale) + 0.5) * scale
