"""
filmlook: Film Look Filter Pipeline

Applies a configurable chain of film-simulation effects (tone, white balance,
chromatic aberration, blur, grain, vignette, sepia, sparkle, procedural noise)
to still captures and live video frames.

The engine is a pure function of (image, parameters, seed):
1. The caller owns the seed and advances it once per frame / parameter change
2. Every stage is gated by its controlling parameter
3. Stage failures are recovered locally; only terminal conversion can fail
4. Output extent always equals input extent
"""

__version__ = "0.1.0"
__author__ = "filmlook contributors"

from filmlook.core.contracts import (
    RasterImage,
    EffectParameters,
    PipelineOutput,
    StageStatus,
)
from filmlook.core.seed import SeedClock, derived_seeds
from filmlook.pipeline.engine import FilmPipeline

__all__ = [
    "RasterImage",
    "EffectParameters",
    "PipelineOutput",
    "StageStatus",
    "SeedClock",
    "derived_seeds",
    "FilmPipeline",
]
