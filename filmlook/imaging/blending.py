"""
Compositing and Blend Modes.

All inputs and outputs are premultiplied. Separable blend modes use
the standard premultiplied form:

    co = cs * (1 - ab) + cb * (1 - as) + as * ab * B(Cb, Cs)
    ao = as + ab * (1 - as)

where cs/cb are premultiplied and Cs/Cb straight colors.
"""

from __future__ import annotations

from typing import Callable
import numpy as np
from numpy.typing import NDArray

from filmlook.core.contracts import RasterImage
from filmlook.imaging.color import luminance


BlendFunction = Callable[[NDArray[np.float32], NDArray[np.float32]], NDArray[np.float32]]


def _check_extents(source: RasterImage, background: RasterImage):
    if source.pixels.shape != background.pixels.shape:
        raise ValueError(
            f"Cannot composite {source.extent} over {background.extent}"
        )


def maximum(source: RasterImage, background: RasterImage) -> RasterImage:
    """Per-channel maximum, alpha included."""
    _check_extents(source, background)
    return background.with_pixels(np.maximum(source.pixels, background.pixels))


def addition(source: RasterImage, background: RasterImage) -> RasterImage:
    """Per-channel sum, clamped to [0, 1]."""
    _check_extents(source, background)
    return background.with_pixels(np.clip(source.pixels + background.pixels, 0.0, 1.0))


def source_over(source: RasterImage, background: RasterImage) -> RasterImage:
    """Porter-Duff source-over."""
    _check_extents(source, background)
    inverse_alpha = 1.0 - source.pixels[:, :, 3:4]
    return background.with_pixels(source.pixels + background.pixels * inverse_alpha)


def blend_with_mask(
    source: RasterImage,
    background: RasterImage,
    mask: RasterImage,
) -> RasterImage:
    """
    Mask-weighted mix: mask luminance selects source, its complement background.
    """
    _check_extents(source, background)
    _check_extents(mask, background)
    weight = np.clip(luminance(mask.pixels[:, :, :3]), 0.0, 1.0)[:, :, np.newaxis]
    return background.with_pixels(
        source.pixels * weight + background.pixels * (1.0 - weight)
    )


def _separable_blend(source: RasterImage, background: RasterImage, blend: BlendFunction) -> RasterImage:
    _check_extents(source, background)
    cs, cb = source.pixels[:, :, :3], background.pixels[:, :, :3]
    a_s, a_b = source.pixels[:, :, 3:4], background.pixels[:, :, 3:4]

    straight_s = source.unpremultiplied()[:, :, :3]
    straight_b = background.unpremultiplied()[:, :, :3]

    color = cs * (1.0 - a_b) + cb * (1.0 - a_s) + a_s * a_b * blend(straight_b, straight_s)
    alpha = a_s + a_b * (1.0 - a_s)
    return background.with_pixels(np.concatenate([color, alpha], axis=2))


def _screen(cb: NDArray[np.float32], cs: NDArray[np.float32]) -> NDArray[np.float32]:
    return cb + cs - cb * cs


def _overlay(cb: NDArray[np.float32], cs: NDArray[np.float32]) -> NDArray[np.float32]:
    return np.where(
        cb <= 0.5,
        2.0 * cb * cs,
        1.0 - 2.0 * (1.0 - cb) * (1.0 - cs),
    )


def screen(source: RasterImage, background: RasterImage) -> RasterImage:
    """Screen blend: lightens, black source is neutral."""
    return _separable_blend(source, background, _screen)


def overlay(source: RasterImage, background: RasterImage) -> RasterImage:
    """Overlay blend: multiply in background shadows, screen in highlights."""
    return _separable_blend(source, background, _overlay)
