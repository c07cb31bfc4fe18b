"""
Sparkle Stage.

Turns the brightest areas into pixellated, sharpened glints:

1. Threshold base luminance into a highlight mask
2. Soften the mask with a small blur
3. Boost brightness / contrast / saturation of base
4. Pixellate the boosted image around the image center
5. Sharpen luminance (falls back to the unsharpened blocks)
6. Blend the blocks over base through the mask
7. Screen the masked result over base
"""

from __future__ import annotations

from typing import Optional
from loguru import logger

from filmlook.core.contracts import RasterImage, EffectParameters
from filmlook.imaging import blending, color, geometry


MIN_THRESHOLD = 0.7
HIGHLIGHT_CONTRAST = 1.8
HIGHLIGHT_SATURATION = 1.2


def sparkle_threshold(sparkle: float) -> float:
    return max(MIN_THRESHOLD, 1.0 - sparkle * 0.2)


def apply_sparkle(image: RasterImage, params: EffectParameters, seed: float) -> Optional[RasterImage]:
    """
    Masked, pixellated highlight accent built entirely from the input image.
    """
    sparkle = params.sparkle
    base = image

    if base.is_empty:
        return None

    threshold = color.color_threshold(base, sparkle_threshold(sparkle))

    mask = geometry.gaussian_blur(threshold, radius=2.0 + sparkle * 2.0)
    if mask is None:
        logger.debug("Sparkle: mask blur produced no image")
        return None

    highlights = color.color_controls(
        base,
        brightness=sparkle * 0.7,
        contrast=HIGHLIGHT_CONTRAST,
        saturation=HIGHLIGHT_SATURATION,
    )

    blocks = geometry.pixellate(highlights, scale=10.0 + sparkle * 30.0, center=highlights.center)
    if blocks is None:
        logger.debug("Sparkle: pixellate produced no image")
        return None

    sharpened = geometry.sharpen_luminance(blocks, sharpness=sparkle * 0.5)
    if sharpened is None:
        sharpened = blocks

    masked = blending.blend_with_mask(sharpened, base, mask)
    return blending.screen(masked, base)
