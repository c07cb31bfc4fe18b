"""
Pipeline Engine.

Executes the film look stages in strict order:

1. Color & tone (always)
2. Chromatic aberration
3. Blur
4. Grain
5. Vignette
6. Sepia
7. Sparkle
8. Mono noise -> color noise -> dust noise
9. Terminal conversion to a uint8 RGBA buffer

Stages that cannot produce a result are skipped and the running image
passes through unchanged. Only terminal conversion can fail the whole
invocation.
"""

from __future__ import annotations

import time
from typing import Optional, Sequence
import numpy as np
from numpy.typing import NDArray
from loguru import logger

from filmlook.core.contracts import (
    RasterImage,
    EffectParameters,
    PipelineOutput,
    StageReport,
    StageStatus,
    ConversionError,
)
from filmlook.pipeline.stages import Stage, DEFAULT_STAGES


def clamp_to_unit(image: RasterImage) -> RasterImage:
    """Working image clamped to [0, 1], premultiplied color never above alpha."""
    pixels = np.clip(image.pixels, 0.0, 1.0)
    pixels[:, :, :3] = np.minimum(pixels[:, :, :3], pixels[:, :, 3:4])
    return image.with_pixels(pixels)


def to_rgba8(image: RasterImage) -> NDArray[np.uint8]:
    """
    Convert a working image to a straight-alpha uint8 RGBA buffer.

    Raises:
        ConversionError: For zero-area images or non-finite pixels
    """
    if image.is_empty:
        raise ConversionError(f"Cannot convert zero-area image {image.extent}")

    if not np.all(np.isfinite(image.pixels)):
        raise ConversionError("Image contains non-finite pixel values")

    straight = clamp_to_unit(image).unpremultiplied()
    return np.rint(np.clip(straight, 0.0, 1.0) * 255.0).astype(np.uint8)


class FilmPipeline:
    """
    Stateless film look engine.

    Guarantees:
    - Stage order is NEVER reordered
    - Output extent equals input extent
    - No exception escapes process(); failures become reports
    """

    def __init__(self, stages: Optional[Sequence[Stage]] = None):
        """
        Initialize the engine.

        Args:
            stages: Ordered stage descriptors (defaults to DEFAULT_STAGES)
        """
        self.stages = tuple(stages) if stages is not None else DEFAULT_STAGES

    def process(
        self,
        image: RasterImage,
        params: EffectParameters,
        seed: float,
        frame_id: int = 0,
    ) -> PipelineOutput:
        """
        Run every stage over one image.

        Args:
            image: Input image (never modified)
            params: Effect parameters (clamped to their ranges on entry)
            seed: Caller-owned seed for the seeded noise stages
            frame_id: Caller bookkeeping, copied to the output

        Returns:
            PipelineOutput; success is False only if terminal conversion failed
        """
        pipeline_start = time.perf_counter()
        params = params.clamped()

        current = image
        reports = []

        for stage in self.stages:
            report = StageReport(name=stage.name, status=StageStatus.BYPASSED)
            reports.append(report)

            if image.is_empty:
                report.status = StageStatus.SKIPPED
                report.reason = "zero-area image"
                continue

            if not stage.is_active(params):
                continue

            stage_start = time.perf_counter()
            result = self._run_stage(stage, current, params, seed, report)
            report.duration_ms = (time.perf_counter() - stage_start) * 1000

            if result is not None:
                current = result

        try:
            buffer = to_rgba8(current)
        except ConversionError as e:
            logger.warning(f"Frame {frame_id}: no output produced ({e})")
            return PipelineOutput(
                seed=seed,
                frame_id=frame_id,
                stages=reports,
                total_latency_ms=(time.perf_counter() - pipeline_start) * 1000,
                success=False,
                error_message=str(e),
            )

        output_image = clamp_to_unit(current)
        total_ms = (time.perf_counter() - pipeline_start) * 1000
        logger.debug(
            f"Frame {frame_id}: {len([r for r in reports if r.status is StageStatus.APPLIED])} "
            f"stages applied in {total_ms:.1f}ms (seed {seed:.3f})"
        )

        return PipelineOutput(
            seed=seed,
            image=output_image,
            buffer=buffer,
            frame_id=frame_id,
            stages=reports,
            total_latency_ms=total_ms,
        )

    def render(self, image: RasterImage, params: EffectParameters, seed: float) -> Optional[NDArray[np.uint8]]:
        """Buffer-only convenience: the RGBA buffer, or None when no output was produced."""
        return self.process(image, params, seed).buffer

    def _run_stage(
        self,
        stage: Stage,
        current: RasterImage,
        params: EffectParameters,
        seed: float,
        report: StageReport,
    ) -> Optional[RasterImage]:
        """Run one transform, turning every failure into a skip."""
        try:
            result = stage.transform(current, params, seed)
        except Exception as e:
            logger.error(f"Stage '{stage.name}' failed: {e}")
            report.status = StageStatus.SKIPPED
            report.reason = str(e)
            return None

        if result is None:
            logger.warning(f"Stage '{stage.name}' produced no image, passing input through")
            report.status = StageStatus.SKIPPED
            report.reason = "no result"
            return None

        if result.extent != current.extent:
            logger.warning(
                f"Stage '{stage.name}' changed extent {current.extent} -> {result.extent}, discarding"
            )
            report.status = StageStatus.SKIPPED
            report.reason = "extent changed"
            return None

        report.status = StageStatus.APPLIED
        return result
