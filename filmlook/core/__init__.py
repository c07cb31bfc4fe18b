"""
Core data contracts for the film look pipeline.

Pipeline execution order (NEVER REORDER):
1. Color & tone (unconditional)
2. Chromatic aberration
3. Blur
4. Grain
5. Vignette
6. Sepia
7. Sparkle
8. Noise chain (mono -> color -> dust)
9. Terminal conversion
"""

from .contracts import (
    RasterImage,
    EffectParameters,
    ParameterSpec,
    PARAMETER_SPECS,
    StageStatus,
    StageReport,
    PipelineOutput,
    ConversionError,
)
from .seed import SeedClock, derived_seeds, seeded_rng
