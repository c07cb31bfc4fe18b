"""
Film Look Transforms.

Every stage transform has the same signature:

    transform(image, params, seed) -> Optional[RasterImage]

and returns None when it cannot produce a result. Gating and
ordering live in filmlook.pipeline.stages.

To add a new stage:
1. Write the transform in this package
2. Add a Stage descriptor to DEFAULT_STAGES in pipeline/stages.py
"""

from .tone import apply_color_and_tone, apply_vignette, apply_sepia
from .chromatic import apply_chromatic_aberration
from .blur import apply_blur, apply_grain
from .sparkle import apply_sparkle
from .noise import apply_mono_noise, apply_color_noise, apply_dust_noise

__all__ = [
    "apply_color_and_tone",
    "apply_chromatic_aberration",
    "apply_blur",
    "apply_grain",
    "apply_vignette",
    "apply_sepia",
    "apply_sparkle",
    "apply_mono_noise",
    "apply_color_noise",
    "apply_dust_noise",
]
