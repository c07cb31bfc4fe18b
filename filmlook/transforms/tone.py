"""
Tone Stages.

- Color & tone: brightness / contrast / saturation, then white balance
- Vignette: radial corner darkening
- Sepia: warm monochrome toning
"""

from __future__ import annotations

from typing import Optional

from filmlook.core.contracts import RasterImage, EffectParameters
from filmlook.imaging import color, geometry


# Kelvin / tint units per slider unit
TEMPERATURE_RANGE_K = 1000.0
TINT_RANGE = 500.0


def source_neutral(params: EffectParameters):
    """Neutral point the white balance shifts away from."""
    reference_k, reference_tint = color.REFERENCE_NEUTRAL
    return (
        reference_k + TEMPERATURE_RANGE_K * params.temperature,
        reference_tint + TINT_RANGE * params.tint,
    )


def apply_color_and_tone(
    image: RasterImage,
    params: EffectParameters,
    seed: float,
) -> Optional[RasterImage]:
    """
    Fused tone adjustment followed by the white-balance shift.

    Runs for every invocation, identity included. If the white balance
    cannot be computed the tone-adjusted image is still returned.
    """
    toned = color.color_controls(
        image,
        brightness=params.brightness,
        contrast=params.contrast,
        saturation=params.saturation,
    )

    balanced = color.temperature_and_tint(
        toned,
        neutral=source_neutral(params),
        target_neutral=color.REFERENCE_NEUTRAL,
    )
    return balanced if balanced is not None else toned


def apply_vignette(image: RasterImage, params: EffectParameters, seed: float) -> Optional[RasterImage]:
    return geometry.vignette(image, intensity=params.vignette, radius=params.vignette * 2.0)


def apply_sepia(image: RasterImage, params: EffectParameters, seed: float) -> Optional[RasterImage]:
    return color.sepia_tone(image, intensity=params.sepia)
