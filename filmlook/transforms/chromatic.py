"""
Chromatic Aberration Stage.

Splits the image into red, green and blue layers, pushes red and blue
apart along x, and recombines the layers with maximum compositing.
"""

from __future__ import annotations

from typing import Optional
from loguru import logger

from filmlook.core.contracts import RasterImage, EffectParameters
from filmlook.imaging import blending, color, geometry


RED_ONLY = dict(
    r_vector=(1, 0, 0, 0), g_vector=(0, 0, 0, 0), b_vector=(0, 0, 0, 0), a_vector=(0, 0, 0, 1),
)
GREEN_ONLY = dict(
    r_vector=(0, 0, 0, 0), g_vector=(0, 1, 0, 0), b_vector=(0, 0, 0, 0), a_vector=(0, 0, 0, 1),
)
BLUE_ONLY = dict(
    r_vector=(0, 0, 0, 0), g_vector=(0, 0, 0, 0), b_vector=(0, 0, 1, 0), a_vector=(0, 0, 0, 1),
)

# Max compositing brightens; pull it back down
CORRECTIVE_BRIGHTNESS = -0.1
CORRECTIVE_CONTRAST = 1.1


def extract_channel(image: RasterImage, channel: str) -> Optional[RasterImage]:
    """Single-channel layer ("red", "green" or "blue"), alpha kept."""
    vectors = {"red": RED_ONLY, "green": GREEN_ONLY, "blue": BLUE_ONLY}.get(channel)
    if vectors is None or image.is_empty:
        return None
    return color.color_matrix(image, **vectors)


def apply_chromatic_aberration(
    image: RasterImage,
    params: EffectParameters,
    seed: float,
) -> Optional[RasterImage]:
    """
    Offset red by +offset and blue by -offset pixels, green stays put.

    All three layers come from the same input image.
    """
    offset = params.chromatic_aberration

    red = extract_channel(image, "red")
    green = extract_channel(image, "green")
    blue = extract_channel(image, "blue")
    if red is None or green is None or blue is None:
        logger.debug("Chromatic aberration: channel extraction failed")
        return None

    red = geometry.translate(red, offset, 0.0)
    blue = geometry.translate(blue, -offset, 0.0)

    combined = blending.maximum(red, green)
    combined = blending.maximum(blue, combined)

    return color.color_controls(
        combined,
        brightness=CORRECTIVE_BRIGHTNESS,
        contrast=CORRECTIVE_CONTRAST,
        saturation=1.0,
    )
