"""
Color and Tone Primitives.

All color math runs on straight (unpremultiplied) color and the
result is premultiplied again, so alpha is never altered by a tone
change unless a matrix asks for it.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple
import numpy as np
from numpy.typing import NDArray

from filmlook.core.contracts import RasterImage


# Rec. 709 luma weights
LUMA_WEIGHTS = np.array([0.2125, 0.7154, 0.0721], dtype=np.float32)

SEPIA_MATRIX = np.array([
    [0.393, 0.769, 0.189],
    [0.349, 0.686, 0.168],
    [0.272, 0.534, 0.131],
], dtype=np.float32)

# Linear sRGB from CIE XYZ (D65)
XYZ_TO_RGB = np.array([
    [3.2404542, -1.5371385, -0.4985314],
    [-0.9692660, 1.8760108, 0.0415560],
    [0.0556434, -0.2040259, 1.0572252],
], dtype=np.float64)

REFERENCE_NEUTRAL = (6500.0, 0.0)
TINT_SCALE = 3000.0

# Smallest channel of a shifted white relative to its largest
GAMUT_MARGIN = 0.25
GAMUT_SEARCH_STEPS = 40


def luminance(rgb: NDArray[np.float32]) -> NDArray[np.float32]:
    """Rec. 709 luminance of an (..., 3) array."""
    return (rgb[..., :3] @ LUMA_WEIGHTS).astype(np.float32)


def color_matrix(
    image: RasterImage,
    r_vector: Sequence[float] = (1, 0, 0, 0),
    g_vector: Sequence[float] = (0, 1, 0, 0),
    b_vector: Sequence[float] = (0, 0, 1, 0),
    a_vector: Sequence[float] = (0, 0, 0, 1),
    bias: Sequence[float] = (0, 0, 0, 0),
) -> RasterImage:
    """
    Multiply straight RGBA by a 4x4 matrix given as output-channel rows.

    Each vector holds the (r, g, b, a) weights of one output channel.
    """
    straight = image.unpremultiplied()
    matrix = np.array([r_vector, g_vector, b_vector, a_vector], dtype=np.float32)
    out = straight @ matrix.T + np.asarray(bias, dtype=np.float32)
    return image.with_pixels(RasterImage.premultiply(out.astype(np.float32)))


def color_controls(
    image: RasterImage,
    brightness: float = 0.0,
    contrast: float = 1.0,
    saturation: float = 1.0,
) -> RasterImage:
    """
    Fused brightness / contrast / saturation adjustment.

    Order: additive brightness, contrast about mid-gray, saturation
    toward luminance.
    """
    straight = image.unpremultiplied()
    rgb = straight[:, :, :3]

    rgb = rgb + np.float32(brightness)
    rgb = (rgb - np.float32(0.5)) * np.float32(contrast) + np.float32(0.5)

    luma = luminance(rgb)[:, :, np.newaxis]
    rgb = luma + (rgb - luma) * np.float32(saturation)

    out = np.concatenate([rgb, straight[:, :, 3:4]], axis=2).astype(np.float32)
    return image.with_pixels(RasterImage.premultiply(out))


# ============================================================
# WHITE BALANCE
# ============================================================

def planckian_xy(temperature_k: float) -> Tuple[float, float]:
    """
    CIE 1931 xy of a blackbody (Kim et al. cubic fit).

    Valid for 1667 K - 25000 K; inputs are clamped to that range.
    """
    t = float(np.clip(temperature_k, 1667.0, 25000.0))

    if t <= 4000.0:
        x = -0.2661239e9 / t**3 - 0.2343589e6 / t**2 + 0.8776956e3 / t + 0.179910
    else:
        x = -3.0258469e9 / t**3 + 2.1070379e6 / t**2 + 0.2226347e3 / t + 0.240390

    if t <= 2222.0:
        y = -1.1063814 * x**3 - 1.34811020 * x**2 + 2.18555832 * x - 0.20219683
    elif t <= 4000.0:
        y = -0.9549476 * x**3 - 1.37418593 * x**2 + 2.09137015 * x - 0.16748867
    else:
        y = 3.0817580 * x**3 - 5.87338670 * x**2 + 3.75112997 * x - 0.37001483

    return x, y


def _xy_to_uv(x: float, y: float) -> Tuple[float, float]:
    d = -2.0 * x + 12.0 * y + 3.0
    return 4.0 * x / d, 6.0 * y / d


def _uv_to_xy(u: float, v: float) -> Tuple[float, float]:
    d = 2.0 * u - 8.0 * v + 4.0
    return 3.0 * u / d, 2.0 * v / d


def neutral_xy(temperature_k: float, tint: float) -> Tuple[float, float]:
    """
    Chromaticity of a (temperature, tint) neutral point.

    Tint moves the point off the Planckian locus along its normal in
    CIE 1960 uv, tint / 3000 uv units per tint unit. Shifts that would
    push the white outside the RGB gamut stop at the gamut edge, so the
    neutral moves continuously and saturates at extreme tint.
    """
    x, y = planckian_xy(temperature_k)
    if tint == 0.0:
        return x, y

    u, v = _xy_to_uv(x, y)
    u0, v0 = _xy_to_uv(*planckian_xy(temperature_k - 1.0))
    u1, v1 = _xy_to_uv(*planckian_xy(temperature_k + 1.0))
    du, dv = u1 - u0, v1 - v0
    norm = np.hypot(du, dv)
    if norm == 0.0:
        return x, y

    offset = tint / TINT_SCALE
    nu, nv = -dv / norm, du / norm

    def shifted(fraction: float) -> Tuple[float, float]:
        return _uv_to_xy(u + nu * offset * fraction, v + nv * offset * fraction)

    if _in_gamut(white_rgb(*shifted(1.0))):
        return shifted(1.0)

    # Largest shift along the normal that keeps the white inside the gamut
    inside, outside = 0.0, 1.0
    for _ in range(GAMUT_SEARCH_STEPS):
        middle = (inside + outside) / 2.0
        if _in_gamut(white_rgb(*shifted(middle))):
            inside = middle
        else:
            outside = middle
    return shifted(inside)


def white_rgb(x: float, y: float) -> NDArray[np.float64]:
    """Linear RGB of a unit-luminance white with chromaticity (x, y)."""
    xyz = np.array([x / y, 1.0, (1.0 - x - y) / y], dtype=np.float64)
    return XYZ_TO_RGB @ xyz


def _in_gamut(rgb: NDArray[np.float64]) -> bool:
    return bool(
        np.all(np.isfinite(rgb))
        and rgb.max() > 0
        and rgb.min() >= GAMUT_MARGIN * rgb.max()
    )


def white_balance_gains(
    neutral: Tuple[float, float],
    target_neutral: Tuple[float, float] = REFERENCE_NEUTRAL,
) -> Optional[NDArray[np.float32]]:
    """
    Per-channel gains that map the source neutral onto the target neutral.

    Returns:
        (3,) gains, or None when either neutral falls outside the RGB gamut
    """
    if neutral == target_neutral:
        return np.ones(3, dtype=np.float32)

    source = white_rgb(*neutral_xy(*neutral))
    target = white_rgb(*neutral_xy(*target_neutral))

    if not (np.all(np.isfinite(source)) and np.all(source > 0) and np.all(target > 0)):
        return None

    return (target / source).astype(np.float32)


def temperature_and_tint(
    image: RasterImage,
    neutral: Tuple[float, float],
    target_neutral: Tuple[float, float] = REFERENCE_NEUTRAL,
) -> Optional[RasterImage]:
    """
    White-balance shift from a source neutral to a target neutral.

    Args:
        image: Input image
        neutral: Source (temperature K, tint)
        target_neutral: Target (temperature K, tint)

    Returns:
        Adjusted image, or None when the gains cannot be computed
    """
    gains = white_balance_gains(neutral, target_neutral)
    if gains is None:
        return None

    pixels = image.pixels.copy()
    pixels[:, :, :3] *= gains  # gains commute with premultiplication
    return image.with_pixels(pixels)


def sepia_tone(image: RasterImage, intensity: float) -> RasterImage:
    """Mix the classic sepia matrix with the original by intensity."""
    straight = image.unpremultiplied()
    rgb = straight[:, :, :3]
    toned = rgb @ SEPIA_MATRIX.T
    rgb = rgb + (toned - rgb) * np.float32(intensity)

    out = np.concatenate([rgb, straight[:, :, 3:4]], axis=2).astype(np.float32)
    return image.with_pixels(RasterImage.premultiply(out))


def color_threshold(image: RasterImage, threshold: float) -> RasterImage:
    """
    Binarize on luminance of straight color.

    Pixels brighter than the threshold become opaque white, all
    others opaque black.
    """
    straight = image.unpremultiplied()
    passed = (luminance(straight[:, :, :3]) > threshold).astype(np.float32)

    out = np.empty(image.pixels.shape, dtype=np.float32)
    out[:, :, 0] = passed
    out[:, :, 1] = passed
    out[:, :, 2] = passed
    out[:, :, 3] = 1.0
    return image.with_pixels(out)
