"""
Blur and Grain Stages.
"""

from __future__ import annotations

from typing import Optional

from filmlook.core.contracts import RasterImage, EffectParameters
from filmlook.imaging import blending, color, geometry, noise


def apply_blur(image: RasterImage, params: EffectParameters, seed: float) -> Optional[RasterImage]:
    """Gaussian blur, radius = blur, cropped back to the input extent."""
    return geometry.gaussian_blur(image, radius=params.blur)


def apply_grain(image: RasterImage, params: EffectParameters, seed: float) -> Optional[RasterImage]:
    """
    Full-frame uniform noise laid source-over the image.

    The noise ignores the seed, so grain is fresh every call. Grain
    scales the noise color only; every noise pixel keeps its own
    random coverage.
    """
    if image.is_empty:
        return None

    grain = params.grain
    layer = color.color_matrix(
        noise.uniform_noise(image.width, image.height),
        r_vector=(grain, 0, 0, 0),
        g_vector=(0, grain, 0, 0),
        b_vector=(0, 0, grain, 0),
    )
    return blending.source_over(layer, image)
