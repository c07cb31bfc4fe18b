"""Tests for the individual stage transforms."""

import numpy as np
import pytest

from filmlook.core.contracts import RasterImage, EffectParameters
from filmlook.imaging import color
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
from filmlook.transforms.chromatic import extract_channel
from filmlook.transforms.noise import (
    DUST_STREAM,
    MONO_STREAM,
    reduced_luminance_noise,
    reduced_side,
)
from filmlook.transforms.sparkle import sparkle_threshold
from filmlook.transforms.tone import source_neutral

from conftest import solid

SEED = 4.2


class TestColorAndTone:

    def test_identity_at_defaults(self, random_image, identity):
        result = apply_color_and_tone(random_image, identity, SEED)
        assert np.allclose(result.pixels, random_image.pixels, atol=1e-6)

    def test_source_neutral_mapping(self):
        assert source_neutral(EffectParameters()) == (6500.0, 0.0)
        assert source_neutral(EffectParameters(temperature=1.0, tint=-1.0)) == (7500.0, -500.0)

    def test_brightness_lifts(self):
        result = apply_color_and_tone(solid(0.3, 8, 8), EffectParameters(brightness=0.2), SEED)
        assert result.pixels[0, 0, 0] == pytest.approx(0.5, abs=1e-5)

    def test_warm_temperature(self):
        result = apply_color_and_tone(solid(0.5, 8, 8), EffectParameters(temperature=1.0), SEED)
        r, _, b = result.pixels[0, 0, :3]
        assert r > b

    @pytest.mark.parametrize("temperature", [-1.0, 0.0, 1.0])
    def test_white_balance_applies_across_tint_range(self, temperature):
        image = solid(0.5, 8, 8)
        for tint in (-1.0, -0.6, -0.2, 0.2, 0.6, 0.8, 0.9, 1.0):
            params = EffectParameters(temperature=temperature, tint=tint)
            toned = color.color_controls(image)
            result = apply_color_and_tone(image, params, SEED)
            assert not np.allclose(result.pixels, toned.pixels, atol=1e-3)
            assert np.all(result.pixels[:, :, :3] < 2.5)

    def test_tint_saturates_instead_of_resetting(self):
        image = solid(0.5, 8, 8)
        greens = [
            apply_color_and_tone(image, EffectParameters(tint=t), SEED).pixels[0, 0, 1]
            for t in (0.7, 0.8, 0.9, 1.0)
        ]
        assert greens[0] <= greens[1] + 1e-6
        assert greens[2] == pytest.approx(greens[3], rel=1e-5)
        assert greens[3] > 0.5


class TestChromaticAberration:

    def test_channel_extraction(self, random_image):
        red = extract_channel(random_image, "red")
        assert np.all(red.pixels[:, :, 1:3] == 0.0)
        assert np.allclose(red.pixels[:, :, 0], random_image.pixels[:, :, 0], atol=1e-6)
        assert extract_channel(random_image, "alpha") is None

    def test_peaks_move_apart(self, white_line):
        result = apply_chromatic_aberration(
            white_line, EffectParameters(chromatic_aberration=3.0), SEED
        )
        assert result.extent == white_line.extent
        row = result.pixels[50]
        assert int(np.argmax(row[:, 0])) == 53
        assert int(np.argmax(row[:, 1])) == 50
        assert int(np.argmax(row[:, 2])) == 47


class TestBlurAndGrain:

    def test_blur_keeps_extent(self, random_image):
        result = apply_blur(random_image, EffectParameters(blur=8.0), SEED)
        assert result.extent == random_image.extent
        assert result.pixels.std() < random_image.pixels.std()

    def test_grain_changes_image(self, mid_gray):
        result = apply_grain(mid_gray, EffectParameters(grain=0.5), SEED)
        assert result.extent == mid_gray.extent
        assert not np.allclose(result.pixels, mid_gray.pixels)
        assert np.allclose(result.alpha, 1.0)

    def test_grain_scales_noise_color_only(self, mid_gray):
        """Each pixel mixes image and grain-scaled noise by the noise's own coverage."""
        grain = 0.25
        result = apply_grain(mid_gray, EffectParameters(grain=grain), SEED)
        image = float(mid_gray.pixels[0, 0, 0])
        rgb = result.pixels[:, :, :3]
        assert np.all(rgb >= -1e-6)
        assert np.all(rgb <= max(image, grain) + 1e-6)
        # E[noise * grain * alpha] + image * (1 - E[alpha])
        assert rgb.mean() == pytest.approx(grain * 0.25 + image * 0.5, abs=0.02)

    def test_grain_ignores_seed(self, mid_gray):
        params = EffectParameters(grain=0.5)
        a = apply_grain(mid_gray, params, SEED)
        b = apply_grain(mid_gray, params, SEED)
        assert not np.array_equal(a.pixels, b.pixels)


class TestVignetteAndSepia:

    def test_vignette(self):
        image = solid(0.8, 60, 80)
        result = apply_vignette(image, EffectParameters(vignette=0.8), SEED)
        assert result.pixels[0, 0, 0] < result.pixels[30, 40, 0]

    def test_sepia(self):
        result = apply_sepia(solid(0.5, 8, 8), EffectParameters(sepia=1.0), SEED)
        r, g, b = result.pixels[0, 0, :3]
        assert r > g > b


class TestSparkle:

    def test_threshold(self):
        assert sparkle_threshold(0.1) == pytest.approx(0.98)
        assert sparkle_threshold(1.0) == pytest.approx(0.8)
        assert sparkle_threshold(10.0) == 0.7

    def test_dark_image_unchanged(self, black):
        result = apply_sparkle(black, EffectParameters(sparkle=1.0), SEED)
        assert np.array_equal(result.pixels, black.pixels)

    def test_highlights_change(self, bright_square):
        result = apply_sparkle(bright_square, EffectParameters(sparkle=1.0), SEED)
        assert result.extent == bright_square.extent
        inside = (slice(45, 55), slice(45, 55))
        assert not np.allclose(result.pixels[inside], bright_square.pixels[inside])
        assert np.array_equal(result.pixels[0:10, 0:10], bright_square.pixels[0:10, 0:10])


class TestNoise:

    def test_reduced_side(self):
        assert reduced_side(solid(0.5, 100, 200)) == 25
        assert reduced_side(solid(0.5, 3, 3)) == 0

    def test_mono_noise_reproducible(self, mid_gray):
        params = EffectParameters(mono_noise=1.0)
        a = apply_mono_noise(mid_gray, params, SEED)
        b = apply_mono_noise(mid_gray, params, SEED)
        assert np.array_equal(a.pixels, b.pixels)
        assert not np.allclose(a.pixels, mid_gray.pixels)

    def test_mono_noise_is_faint(self, mid_gray):
        result = apply_mono_noise(mid_gray, EffectParameters(mono_noise=1.0), SEED)
        assert np.max(np.abs(result.pixels - mid_gray.pixels)) < 0.06

    def test_mono_noise_non_square(self):
        image = solid(0.5, 40, 100)
        result = apply_mono_noise(image, EffectParameters(mono_noise=1.0), SEED)
        assert result.extent == image.extent

    def test_tiny_image_skips(self):
        assert apply_mono_noise(solid(0.5, 3, 3), EffectParameters(mono_noise=1.0), SEED) is None
        assert apply_dust_noise(solid(0.5, 3, 3), EffectParameters(dust_noise=1.0), SEED) is None

    def test_color_noise_only_adds(self, mid_gray):
        result = apply_color_noise(mid_gray, EffectParameters(color_noise=1.0), SEED)
        assert np.all(result.pixels >= mid_gray.pixels - 1e-6)
        assert np.any(result.pixels[:, :, :3] > mid_gray.pixels[:, :, :3] + 0.01)

    def test_color_noise_reproducible(self, mid_gray):
        params = EffectParameters(color_noise=0.5)
        a = apply_color_noise(mid_gray, params, SEED)
        b = apply_color_noise(mid_gray, params, SEED)
        c = apply_color_noise(mid_gray, params, SEED + 0.2)
        assert np.array_equal(a.pixels, b.pixels)
        assert not np.array_equal(a.pixels, c.pixels)

    def test_dust_specks_are_white(self, black):
        result = apply_dust_noise(black, EffectParameters(dust_noise=1.0), SEED)
        rgb = result.pixels[:, :, :3]
        lit = rgb > 0.0
        assert np.any(lit)
        assert np.allclose(rgb[lit], 1.0)

    def test_dust_reproducible(self, black):
        params = EffectParameters(dust_noise=1.0)
        a = apply_dust_noise(black, params, SEED)
        b = apply_dust_noise(black, params, SEED)
        assert np.array_equal(a.pixels, b.pixels)

    def test_noise_layer_alpha(self, black):
        dust_layer = reduced_luminance_noise(black, SEED, DUST_STREAM)
        mono_layer = reduced_luminance_noise(black, SEED, MONO_STREAM, 0.05)
        assert np.all(dust_layer.alpha == 1.0)
        assert np.allclose(mono_layer.alpha, 0.05)

    def test_dust_amount_only_moves_threshold(self, black):
        light = apply_dust_noise(black, EffectParameters(dust_noise=0.5), SEED)
        heavy = apply_dust_noise(black, EffectParameters(dust_noise=1.0), SEED)
        light_specks = light.pixels[:, :, 0] > 0.0
        heavy_specks = heavy.pixels[:, :, 0] > 0.0
        assert np.all(heavy_specks[light_specks])
        assert heavy_specks.sum() >= light_specks.sum()
        assert np.all(heavy.alpha == 1.0)
