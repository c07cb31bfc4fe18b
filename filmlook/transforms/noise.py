"""
Film Noise Stages.

Mono and dust noise are generated on a reduced square of side
min(width, height) / 4 and upscaled with nearest-neighbour sampling.
Color noise is built from three seeded dot fields, one per channel.

Sub-stage order: mono -> color -> dust.
"""

from __future__ import annotations

from typing import Optional
import numpy as np
from loguru import logger

from filmlook.core.contracts import RasterImage, EffectParameters
from filmlook.core.seed import derived_seeds, seeded_rng
from filmlook.imaging import blending, color, geometry, noise


REDUCTION = 4

MONO_ALPHA = 0.05
COLOR_GAIN = 0.2

# Independent generator streams per noise type
MONO_STREAM = 1
DUST_STREAM = 3

LUMINANCE_COLLAPSE = dict(
    r_vector=(1 / 3, 1 / 3, 1 / 3, 0),
    g_vector=(1 / 3, 1 / 3, 1 / 3, 0),
    b_vector=(1 / 3, 1 / 3, 1 / 3, 0),
)


def reduced_side(image: RasterImage) -> int:
    """Side of the reduced noise square (0 when the image is too small)."""
    return int(min(image.width, image.height) / REDUCTION)


def reduced_luminance_noise(
    image: RasterImage,
    seed: float,
    stream: int,
    alpha: float = 1.0,
) -> Optional[RasterImage]:
    """
    Seeded gray noise upscaled to cover the extent, luminance-collapsed
    with the given alpha (opaque by default). Not yet cropped.
    """
    side = reduced_side(image)
    if side < 1:
        logger.debug(f"Image {image.width}x{image.height} too small for reduced noise")
        return None

    small = noise.gray_noise(side, seeded_rng(seed, stream))
    factor = max(image.width, image.height) / side
    upscaled = RasterImage(geometry.upscale_nearest(small.pixels, factor))

    return color.color_matrix(upscaled, a_vector=(0, 0, 0, alpha), **LUMINANCE_COLLAPSE)


def _crop_to(layer: RasterImage, image: RasterImage) -> RasterImage:
    return image.with_pixels(geometry.crop(layer.pixels, 0, 0, image.width, image.height))


def apply_mono_noise(image: RasterImage, params: EffectParameters, seed: float) -> Optional[RasterImage]:
    """Faint luminance noise, overlay-blended."""
    layer = reduced_luminance_noise(image, seed, MONO_STREAM, params.mono_noise * MONO_ALPHA)
    if layer is None:
        return None
    return blending.overlay(_crop_to(layer, image), image)


def apply_dust_noise(image: RasterImage, params: EffectParameters, seed: float) -> Optional[RasterImage]:
    """
    Sparse white specks: noise above 0.99 - dust * 0.01 survives,
    screen-blended so only the specks lighten the image. The threshold
    yields opaque specks, so the noise layer stays opaque here.
    """
    dust = params.dust_noise
    layer = reduced_luminance_noise(image, seed, DUST_STREAM)
    if layer is None:
        return None

    specks = color.color_threshold(layer, 0.99 - dust * 0.01)
    return blending.screen(_crop_to(specks, image), image)


def color_dot_layer(
    width: int,
    height: int,
    seed: float,
    scale: float,
    channel: int,
    gain: float,
) -> RasterImage:
    """Opaque layer with one seeded dot field in a single color channel."""
    pixels = np.zeros((height, width, 4), dtype=np.float32)
    pixels[:, :, channel] = noise.dot_field(width, height, seed, scale) * np.float32(gain)
    pixels[:, :, 3] = 1.0
    return RasterImage(pixels)


def apply_color_noise(image: RasterImage, params: EffectParameters, seed: float) -> Optional[RasterImage]:
    """
    Additive red, green and blue dots, each from its own derived seed.

    The seed moves the dot lattice every frame, so the pattern crawls
    over time while staying reproducible for a given seed.
    """
    if image.is_empty:
        return None

    amount = params.color_noise
    scale = 5.0 + amount * 5.0
    gain = amount * COLOR_GAIN

    red_seed, green_seed, blue_seed = derived_seeds(seed)
    red = color_dot_layer(image.width, image.height, red_seed, scale, 0, gain)
    green = color_dot_layer(image.width, image.height, green_seed, scale, 1, gain)
    blue = color_dot_layer(image.width, image.height, blue_seed, scale, 2, gain)

    dots = blending.addition(green, red)
    dots = blending.addition(blue, dots)
    return blending.addition(image.with_pixels(dots.pixels), image)
