"""
Core data contracts for the film look pipeline.

All components must adhere to these contracts for:
- Immutable, extent-preserving image flow
- Deterministic behavior for a given (image, parameters, seed)
- Explicit fail-soft reporting
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace as dc_replace
from enum import Enum
from typing import Optional, List, Dict, Any, Tuple, Mapping
import re
import numpy as np
from numpy.typing import NDArray


# ============================================================
# RASTER IMAGE
# ============================================================

@dataclass(frozen=True)
class RasterImage:
    """
    A 2D buffer of RGBA pixels with a rectangular extent.

    Pixels are float32 (H x W x 4), normalized to [0, 1], with
    PREMULTIPLIED alpha. Intermediate results may leave [0, 1];
    only terminal conversion clamps.

    The pixel array is read-only. Stages build new images instead
    of mutating their inputs.
    """
    pixels: NDArray[np.float32]
    origin: Tuple[int, int] = (0, 0)

    def __post_init__(self):
        pixels = self.pixels
        if not isinstance(pixels, np.ndarray) or pixels.ndim != 3 or pixels.shape[2] != 4:
            shape = getattr(pixels, "shape", None)
            raise ValueError(f"RasterImage expects an (H, W, 4) array, got {shape}")

        if pixels.dtype != np.float32 or pixels.flags.writeable:
            pixels = np.array(pixels, dtype=np.float32)
            pixels.setflags(write=False)
            object.__setattr__(self, "pixels", pixels)

    # ------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------

    @classmethod
    def from_rgba8(cls, rgba: NDArray[np.uint8], origin: Tuple[int, int] = (0, 0)) -> RasterImage:
        """Build from a straight-alpha uint8 RGBA buffer (H x W x 4)."""
        if rgba.ndim != 3 or rgba.shape[2] != 4:
            raise ValueError(f"Expected (H, W, 4) uint8 buffer, got {rgba.shape}")

        straight = rgba.astype(np.float32) / 255.0
        alpha = straight[:, :, 3:4]
        premultiplied = np.concatenate([straight[:, :, :3] * alpha, alpha], axis=2)
        return cls(premultiplied, origin)

    @classmethod
    def from_rgb8(cls, rgb: NDArray[np.uint8], origin: Tuple[int, int] = (0, 0)) -> RasterImage:
        """Build an opaque image from a uint8 RGB buffer (H x W x 3)."""
        if rgb.ndim != 3 or rgb.shape[2] != 3:
            raise ValueError(f"Expected (H, W, 3) uint8 buffer, got {rgb.shape}")

        h, w = rgb.shape[:2]
        pixels = np.empty((h, w, 4), dtype=np.float32)
        pixels[:, :, :3] = rgb.astype(np.float32) / 255.0
        pixels[:, :, 3] = 1.0
        return cls(pixels, origin)

    @classmethod
    def filled(
        cls,
        width: int,
        height: int,
        rgba: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 1.0),
    ) -> RasterImage:
        """Uniform image of a straight-alpha color."""
        r, g, b, a = rgba
        pixels = np.empty((height, width, 4), dtype=np.float32)
        pixels[:, :] = (r * a, g * a, b * a, a)
        return cls(pixels)

    def with_pixels(self, pixels: NDArray[np.float32]) -> RasterImage:
        """New image with the same origin."""
        return RasterImage(pixels, self.origin)

    # ------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def extent(self) -> Tuple[int, int, int, int]:
        """(x, y, width, height)"""
        return (self.origin[0], self.origin[1], self.width, self.height)

    @property
    def center(self) -> Tuple[float, float]:
        return (self.width / 2.0, self.height / 2.0)

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    # ------------------------------------------------------------
    # Channel views
    # ------------------------------------------------------------

    @property
    def alpha(self) -> NDArray[np.float32]:
        return self.pixels[:, :, 3]

    def unpremultiplied(self) -> NDArray[np.float32]:
        """Straight-alpha RGBA copy (transparent pixels get zero color)."""
        alpha = self.pixels[:, :, 3:4]
        safe = np.where(alpha > 0, alpha, 1.0)
        rgb = np.where(alpha > 0, self.pixels[:, :, :3] / safe, 0.0)
        return np.concatenate([rgb, alpha], axis=2).astype(np.float32)

    @staticmethod
    def premultiply(straight: NDArray[np.float32]) -> NDArray[np.float32]:
        alpha = straight[:, :, 3:4]
        return np.concatenate([straight[:, :, :3] * alpha, alpha], axis=2).astype(np.float32)


# ============================================================
# EFFECT PARAMETERS
# ============================================================

@dataclass(frozen=True)
class ParameterSpec:
    """Declared range and default for one slider."""
    minimum: float
    maximum: float
    default: float
    title: str

    def clamp(self, value: float) -> float:
        return float(min(max(value, self.minimum), self.maximum))


PARAMETER_SPECS: Dict[str, ParameterSpec] = {
    "brightness": ParameterSpec(-1.0, 1.0, 0.0, "Brightness"),
    "contrast": ParameterSpec(0.5, 1.5, 1.0, "Contrast"),
    "saturation": ParameterSpec(0.0, 2.0, 1.0, "Saturation"),
    "temperature": ParameterSpec(-1.0, 1.0, 0.0, "Temperature"),
    "tint": ParameterSpec(-1.0, 1.0, 0.0, "Tint"),
    "grain": ParameterSpec(0.0, 1.0, 0.0, "Grain"),
    "vignette": ParameterSpec(0.0, 1.0, 0.0, "Vignette"),
    "sepia": ParameterSpec(0.0, 1.0, 0.0, "Sepia"),
    "chromatic_aberration": ParameterSpec(0.0, 10.0, 0.0, "Chromatic Aberration"),
    "blur": ParameterSpec(0.0, 20.0, 0.0, "Blur"),
    "sparkle": ParameterSpec(0.0, 1.0, 0.0, "Sparkle"),
    "mono_noise": ParameterSpec(0.0, 1.0, 0.0, "Mono Noise"),
    "color_noise": ParameterSpec(0.0, 1.0, 0.0, "Color Noise"),
    "dust_noise": ParameterSpec(0.0, 1.0, 0.0, "Dust & Scratches"),
}


def _snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def _parse_sliders(values: Mapping[str, Any]) -> Dict[str, float]:
    kwargs: Dict[str, float] = {}
    for key, value in values.items():
        name = _snake_case(key)
        if name not in PARAMETER_SPECS:
            available = ", ".join(PARAMETER_SPECS)
            raise ValueError(f"Unknown parameter '{key}'. Available: {available}")
        try:
            kwargs[name] = float(value)
        except (TypeError, ValueError):
            raise ValueError(f"Parameter '{key}' must be numeric, got {value!r}") from None
    return kwargs


@dataclass(frozen=True)
class EffectParameters:
    """
    Immutable snapshot of the 14 effect sliders.

    Every default is the identity value for its stage, so
    EffectParameters() leaves an image unchanged.
    """
    brightness: float = 0.0  # [-1, 1]
    contrast: float = 1.0  # [0.5, 1.5]
    saturation: float = 1.0  # [0, 2]
    temperature: float = 0.0  # [-1, 1], mapped to +-1000 K
    tint: float = 0.0  # [-1, 1], mapped to +-500
    grain: float = 0.0  # [0, 1]
    vignette: float = 0.0  # [0, 1]
    sepia: float = 0.0  # [0, 1]
    chromatic_aberration: float = 0.0  # [0, 10] pixels
    blur: float = 0.0  # [0, 20] pixels
    sparkle: float = 0.0  # [0, 1]
    mono_noise: float = 0.0  # [0, 1]
    color_noise: float = 0.0  # [0, 1]
    dust_noise: float = 0.0  # [0, 1]

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> EffectParameters:
        """
        Build from a dict of slider values.

        Accepts snake_case or camelCase keys ("dustNoise" == "dust_noise").

        Raises:
            ValueError: On an unknown parameter name or non-numeric value
        """
        return cls(**_parse_sliders(values))

    def updated(self, values: Mapping[str, Any]) -> EffectParameters:
        """Copy with only the named sliders changed (same key rules as from_mapping)."""
        return dc_replace(self, **_parse_sliders(values))

    def as_dict(self) -> Dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def replace(self, **changes: float) -> EffectParameters:
        return dc_replace(self, **changes)

    def clamped(self) -> EffectParameters:
        """Copy with every slider clamped to its declared range."""
        return EffectParameters(**{
            name: PARAMETER_SPECS[name].clamp(value)
            for name, value in self.as_dict().items()
        })

    def is_identity(self) -> bool:
        return all(
            value == PARAMETER_SPECS[name].default
            for name, value in self.as_dict().items()
        )


# ============================================================
# RESULT TYPES
# ============================================================

class StageStatus(Enum):
    """Outcome of one stage within an invocation."""
    APPLIED = "applied"
    BYPASSED = "bypassed"  # gate closed, parameter at identity
    SKIPPED = "skipped"  # could not produce a result, input passed through


@dataclass
class StageReport:
    """What happened to one stage."""
    name: str
    status: StageStatus
    duration_ms: float = 0.0
    reason: Optional[str] = None


class ConversionError(RuntimeError):
    """Terminal conversion could not produce a pixel buffer."""


@dataclass
class PipelineOutput:
    """
    Final output from a single pipeline invocation.
    """
    seed: float

    # Output (None when terminal conversion failed)
    image: Optional[RasterImage] = None
    buffer: Optional[NDArray[np.uint8]] = None  # H x W x 4, straight alpha

    # Bookkeeping
    frame_id: int = 0
    stages: List[StageReport] = field(default_factory=list)
    total_latency_ms: float = 0.0

    # If terminal conversion fails
    success: bool = True
    error_message: Optional[str] = None

    @property
    def applied_stages(self) -> List[str]:
        return [s.name for s in self.stages if s.status is StageStatus.APPLIED]

    @property
    def skipped_stages(self) -> List[str]:
        return [s.name for s in self.stages if s.status is StageStatus.SKIPPED]
