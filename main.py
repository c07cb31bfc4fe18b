#!/usr/bin/env python3
"""
filmlook: film look filter pipeline

Main entry point for rendering stills and videos through the pipeline.

Usage:
    python main.py still INPUT OUTPUT [--preset NAME] [--set key=value ...] [--seed S]
    python main.py video INPUT OUTPUT [--preset NAME] [--set key=value ...] [--max-frames N]
    python main.py presets

Examples:
    python main.py still photo.jpg out.png --preset FILM
    python main.py still photo.jpg out.png --set grain=0.5 --set vignette=0.4
    python main.py video clip.mp4 out.mp4 --preset DUSTY --log-level DEBUG
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import cv2
import numpy as np
from loguru import logger

from filmlook.capture.video_file import VideoFileSource, VideoFileWriter
from filmlook.config import AppConfig, load_config, PRESETS
from filmlook.core.contracts import RasterImage, EffectParameters, PARAMETER_SPECS
from filmlook.core.seed import SeedClock
from filmlook.pipeline.engine import FilmPipeline
from filmlook.pipeline.live import LivePreview


# ============================================================
# LOGGING CONFIGURATION
# ============================================================

def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None):
    """Configure logging."""
    logger.remove()  # Remove default handler

    # Console output with colors
    logger.add(
        sys.stderr,
        level=log_level,
        format="<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{module}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>",
        colorize=True,
    )

    # File output
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {module}:{line} | {message}",
            rotation="10 MB",
            retention="7 days",
        )


# ============================================================
# IMAGE I/O
# ============================================================

def read_image(path: str) -> Optional[RasterImage]:
    """Decode an image file to a RasterImage (None if unreadable)."""
    frame = cv2.imread(path, cv2.IMREAD_UNCHANGED)
    if frame is None:
        return None

    if frame.dtype != np.uint8:
        # 16-bit PNG / TIFF
        frame = (frame / 257).astype(np.uint8)

    if frame.ndim == 2:
        return RasterImage.from_rgb8(cv2.cvtColor(frame, cv2.COLOR_GRAY2RGB))
    if frame.shape[2] == 4:
        return RasterImage.from_rgba8(cv2.cvtColor(frame, cv2.COLOR_BGRA2RGBA))
    return RasterImage.from_rgb8(cv2.cvtColor(frame, cv2.COLOR_BGR2RGB))


def write_image(path: str, buffer: np.ndarray) -> bool:
    """Encode an RGBA buffer; opaque images are written without alpha."""
    if np.all(buffer[:, :, 3] == 255):
        frame = cv2.cvtColor(buffer, cv2.COLOR_RGBA2BGR)
    else:
        frame = cv2.cvtColor(buffer, cv2.COLOR_RGBA2BGRA)

    Path(path).parent.mkdir(parents=True, exist_ok=True)
    try:
        return bool(cv2.imwrite(path, frame))
    except cv2.error as e:
        logger.error(f"Failed to encode {path}: {e}")
        return False


# ============================================================
# PARAMETERS
# ============================================================

def parse_overrides(items: List[str]) -> dict:
    """Parse repeated key=value arguments."""
    overrides = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected key=value, got '{item}'")
        overrides[key.strip()] = value.strip()
    return overrides


def resolve_parameters(config: AppConfig, preset: Optional[str], overrides: List[str]) -> EffectParameters:
    """Preset (or the configured default) with command-line overrides applied."""
    params = config.resolve_preset(preset)
    if overrides:
        params = params.updated(parse_overrides(overrides))
    return params


# ============================================================
# COMMANDS
# ============================================================

def run_still(args: argparse.Namespace, config: AppConfig) -> int:
    image = read_image(args.input)
    if image is None:
        logger.error(f"Could not read image: {args.input}")
        return 1

    params = resolve_parameters(config, args.preset, args.set)
    seed = args.seed if args.seed is not None else config.initial_seed
    logger.info(f"Rendering {args.input} ({image.width}x{image.height}) with seed {seed:.3f}")

    output = FilmPipeline().process(image, params, seed)
    if not output.success:
        logger.error(f"No output produced: {output.error_message}")
        return 1

    for name in output.skipped_stages:
        logger.warning(f"Stage skipped: {name}")

    if not write_image(args.output, output.buffer):
        logger.error(f"Failed to write image: {args.output}")
        return 1

    logger.info(
        f"Wrote {args.output} in {output.total_latency_ms:.1f}ms "
        f"(applied: {', '.join(output.applied_stages) or 'none'})"
    )
    return 0


def run_video(args: argparse.Namespace, config: AppConfig) -> int:
    params = resolve_parameters(config, args.preset, args.set)
    initial = args.seed if args.seed is not None else config.initial_seed
    clock = SeedClock(initial, config.seed_step_min, config.seed_step_max)

    source = VideoFileSource(args.input, max_frames=args.max_frames)
    if not source.start():
        return 1

    writer = VideoFileWriter(args.output, source.fps, (source.width, source.height), config.video_codec)
    if not writer.open():
        source.stop()
        return 1

    preview = LivePreview(
        params=params,
        seed_clock=clock,
        queue_size=config.queue_size,
        profile_interval=config.profile_interval,
    )

    failed = 0
    try:
        for _, image in source.frames():
            output = preview.render(image)
            if output.success:
                writer.write(output.buffer)
            else:
                failed += 1
    finally:
        writer.close()
        source.stop()

    if writer.written_count == 0:
        logger.error(f"No frames written from {args.input}")
        return 1

    if failed:
        logger.warning(f"{failed} frames produced no output")
    logger.info(f"Rendered {writer.written_count} frames, final seed {clock.value:.3f}")
    return 0


def run_presets(args: argparse.Namespace, config: AppConfig) -> int:
    presets = dict(PRESETS)
    presets.update(config.presets)

    print("Presets:")
    for name, params in presets.items():
        changed = {
            key: value for key, value in params.as_dict().items()
            if value != PARAMETER_SPECS[key].default
        }
        detail = ", ".join(f"{key}={value:g}" for key, value in changed.items()) or "identity"
        print(f"  {name:<10} {detail}")

    print()
    print("Parameters:")
    for name, spec in PARAMETER_SPECS.items():
        print(f"  {name:<22} [{spec.minimum:g}, {spec.maximum:g}] default {spec.default:g}  ({spec.title})")
    return 0


# ============================================================
# ENTRY POINT
# ============================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="filmlook",
        description="Film look filter pipeline for stills and video",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to configuration file",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: from config, INFO)",
    )

    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Log file path (default: from config)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (("still", "Render a single image"), ("video", "Render a video file")):
        command = commands.add_parser(name, help=help_text)
        command.add_argument("input", help="Input file")
        command.add_argument("output", help="Output file")
        command.add_argument("--preset", "-p", type=str, default=None, help="Parameter preset")
        command.add_argument(
            "--set", "-s",
            action="append",
            default=[],
            metavar="KEY=VALUE",
            help="Override one parameter (repeatable)",
        )
        command.add_argument("--seed", type=float, default=None, help="Noise seed")
        if name == "video":
            command.add_argument("--max-frames", type=int, default=0, help="Stop after N frames (0 = all)")

    commands.add_parser("presets", help="List presets and parameter ranges")
    return parser


COMMANDS = {
    "still": run_still,
    "video": run_video,
    "presets": run_presets,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except (ValueError, OSError) as e:
        parser.error(f"Invalid config: {e}")

    setup_logging(args.log_level or config.log_level, args.log_file or config.log_file)

    try:
        return COMMANDS[args.command](args, config)
    except ValueError as e:
        logger.error(str(e))
        return 2


if __name__ == "__main__":
    sys.exit(main())
