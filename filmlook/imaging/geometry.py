"""
Geometric Primitives.

Every function here returns an image with the same extent as its
input. Operations that would naturally grow the canvas (blur,
translation) work on a larger buffer and crop back.
"""

from __future__ import annotations

import math
from typing import Optional, Tuple
import numpy as np
from numpy.typing import NDArray
import cv2

from filmlook.core.contracts import RasterImage
from filmlook.imaging.color import luminance


# Kernel half-width in standard deviations
BLUR_EXTENT_SIGMAS = 3.0

# Default radius of the luminance sharpen kernel
SHARPEN_RADIUS = 1.69


def crop(pixels: NDArray, x: int, y: int, width: int, height: int) -> NDArray:
    """Crop an (H, W, ...) array to a rectangle."""
    return pixels[y:y + height, x:x + width]


def translate(image: RasterImage, dx: float, dy: float = 0.0) -> RasterImage:
    """
    Shift image content by (dx, dy) pixels within its own extent.

    Content moved out of the extent is discarded; uncovered area is
    transparent. Sub-pixel offsets are resampled bilinearly.
    """
    if image.is_empty:
        return image

    matrix = np.float32([[1, 0, dx], [0, 1, dy]])
    shifted = cv2.warpAffine(
        np.ascontiguousarray(image.pixels),
        matrix,
        (image.width, image.height),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=(0, 0, 0, 0),
    )
    return image.with_pixels(shifted)


def blur_array(array: NDArray[np.float32], sigma: float) -> NDArray[np.float32]:
    """
    Gaussian blur of an (H, W) or (H, W, C) float array.

    The buffer is grown by the kernel half-width with edge-clamped
    pixels, blurred, then cropped back to the input size.
    """
    h, w = array.shape[:2]
    pad = max(1, int(math.ceil(BLUR_EXTENT_SIGMAS * sigma)))

    grown = cv2.copyMakeBorder(
        np.ascontiguousarray(array, dtype=np.float32),
        pad, pad, pad, pad,
        cv2.BORDER_REPLICATE,
    )
    blurred = cv2.GaussianBlur(grown, (0, 0), sigmaX=sigma, sigmaY=sigma)
    return crop(blurred, pad, pad, w, h)


def gaussian_blur(image: RasterImage, radius: float) -> Optional[RasterImage]:
    """
    Gaussian blur with sigma = radius, cropped to the original extent.

    Returns:
        Blurred image, or None for an empty image or non-positive radius
    """
    if image.is_empty or radius <= 0:
        return None

    return image.with_pixels(blur_array(image.pixels, radius))


def pixellate(
    image: RasterImage,
    scale: float,
    center: Optional[Tuple[float, float]] = None,
) -> Optional[RasterImage]:
    """
    Replace each scale x scale block with the color at its center.

    The block grid is aligned so that block edges pass through center.
    Sample points outside the extent are clamped to the nearest edge.
    """
    if image.is_empty or scale <= 0:
        return None

    cx, cy = center if center is not None else image.center
    rows = _block_samples(image.height, cy, scale)
    cols = _block_samples(image.width, cx, scale)
    return image.with_pixels(image.pixels[rows[:, np.newaxis], cols[np.newaxis, :]])


def _block_samples(length: int, origin: float, scale: float) -> NDArray[np.intp]:
    """Source index of the block center covering each pixel along one axis."""
    centers = np.arange(length, dtype=np.float64) + 0.5
    block = np.floor((centers - origin) / scale)
    sample = origin + (block + 0.5) * scale
    return np.clip(np.floor(sample), 0, length - 1).astype(np.intp)


def sharpen_luminance(
    image: RasterImage,
    sharpness: float,
    radius: float = SHARPEN_RADIUS,
) -> Optional[RasterImage]:
    """
    Unsharp mask applied to luminance detail only.

    The high-pass luminance (luma minus blurred luma) is added to every
    color channel, so hue is preserved.
    """
    if image.is_empty:
        return None

    straight = image.unpremultiplied()
    luma = luminance(straight[:, :, :3])
    detail = luma - blur_array(luma, radius)

    straight[:, :, :3] += np.float32(sharpness) * detail[:, :, np.newaxis]
    return image.with_pixels(RasterImage.premultiply(straight))


def vignette_mask(width: int, height: int, intensity: float, radius: float) -> NDArray[np.float32]:
    """
    Multiplicative darkening mask.

    d is the distance from the center over the half-diagonal (1.0 at
    the corners). Darkening ramps in smoothly from d = 1 - radius / 2
    to full intensity at the corners.
    """
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float32)
    cx, cy = width / 2.0, height / 2.0
    half_diagonal = max(math.hypot(cx, cy), 1e-6)
    d = np.sqrt((xs + 0.5 - cx) ** 2 + (ys + 0.5 - cy) ** 2) / half_diagonal

    start = 1.0 - min(radius, 2.0) / 2.0
    t = np.clip((d - start) / max(1.0 - start, 1e-6), 0.0, 1.0)
    ramp = t * t * (3.0 - 2.0 * t)
    return (1.0 - intensity * ramp).astype(np.float32)


def vignette(image: RasterImage, intensity: float, radius: float) -> Optional[RasterImage]:
    """Radial darkening toward the corners."""
    if image.is_empty:
        return None

    mask = vignette_mask(image.width, image.height, intensity, radius)
    pixels = image.pixels.copy()
    pixels[:, :, :3] *= mask[:, :, np.newaxis]
    return image.with_pixels(pixels)


def upscale_nearest(array: NDArray, factor: float) -> NDArray:
    """Nearest-neighbour upscale of a square (N, N, ...) array by factor."""
    side = int(math.ceil(array.shape[0] * factor))
    return cv2.resize(
        np.ascontiguousarray(array),
        (side, side),
        interpolation=cv2.INTER_NEAREST,
    )
