"""
Stage Registry.

The filter graph is an explicit ordered list of descriptors. Each
descriptor pairs a gate (is this stage active for these parameters?)
with a transform (image, params, seed) -> Optional[RasterImage].
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, List, Tuple

from filmlook.core.contracts import RasterImage, EffectParameters
from filmlook.transforms import (
    apply_color_and_tone,
    apply_chromatic_aberration,
    apply_blur,
    apply_grain,
    apply_vignette,
    apply_sepia,
    apply_sparkle,
    apply_mono_noise,
    apply_color_noise,
    apply_dust_noise,
)


Gate = Callable[[EffectParameters], bool]
Transform = Callable[[RasterImage, EffectParameters, float], Optional[RasterImage]]


@dataclass(frozen=True)
class Stage:
    """One gated transform in the pipeline."""
    name: str
    gate: Gate
    transform: Transform

    def is_active(self, params: EffectParameters) -> bool:
        return bool(self.gate(params))


def always(params: EffectParameters) -> bool:
    return True


def any_noise(params: EffectParameters) -> bool:
    return params.mono_noise > 0 or params.color_noise > 0 or params.dust_noise > 0


# Order is part of the contract (NEVER REORDER)
DEFAULT_STAGES: Tuple[Stage, ...] = (
    Stage("color_and_tone", always, apply_color_and_tone),
    Stage("chromatic_aberration", lambda p: p.chromatic_aberration > 0, apply_chromatic_aberration),
    Stage("blur", lambda p: p.blur > 0, apply_blur),
    Stage("grain", lambda p: p.grain > 0, apply_grain),
    Stage("vignette", lambda p: p.vignette > 0, apply_vignette),
    Stage("sepia", lambda p: p.sepia > 0, apply_sepia),
    Stage("sparkle", lambda p: p.sparkle > 0, apply_sparkle),
    Stage("mono_noise", lambda p: any_noise(p) and p.mono_noise > 0, apply_mono_noise),
    Stage("color_noise", lambda p: any_noise(p) and p.color_noise > 0, apply_color_noise),
    Stage("dust_noise", lambda p: any_noise(p) and p.dust_noise > 0, apply_dust_noise),
)

STAGES = {stage.name: stage for stage in DEFAULT_STAGES}


def get_stage(name: str) -> Stage:
    """
    Get a stage descriptor by name.

    Raises:
        ValueError: If the stage name is not registered
    """
    if name not in STAGES:
        available = ", ".join(STAGES.keys())
        raise ValueError(f"Unknown stage '{name}'. Available: {available}")
    return STAGES[name]


def list_stages() -> List[str]:
    """Stage names in execution order."""
    return [stage.name for stage in DEFAULT_STAGES]
