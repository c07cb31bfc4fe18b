"""
Configuration module for filmlook.

This module contains application settings and parameter presets.
Settings are read from YAML (config/settings.yaml by default).

To add a new preset:
1. Add an entry to PRESETS with the sliders it changes
2. Or declare it under `presets:` in settings.yaml
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from loguru import logger

from filmlook.core.contracts import EffectParameters


DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "settings.yaml"


# === PARAMETER PRESETS ===
# Each preset only lists the sliders it moves away from identity
PRESETS: Dict[str, EffectParameters] = {
    "NEUTRAL": EffectParameters(),
    "FILM": EffectParameters(
        contrast=1.1,
        saturation=0.9,
        temperature=0.2,
        grain=0.3,
        vignette=0.3,
        mono_noise=0.5,
    ),
    "VINTAGE": EffectParameters(
        brightness=0.05,
        contrast=0.9,
        saturation=0.7,
        temperature=0.4,
        tint=0.1,
        vignette=0.5,
        sepia=0.6,
        dust_noise=0.5,
    ),
    "DUSTY": EffectParameters(
        contrast=1.05,
        saturation=0.8,
        grain=0.2,
        mono_noise=0.7,
        color_noise=0.3,
        dust_noise=1.0,
    ),
    "DREAMY": EffectParameters(
        brightness=0.05,
        contrast=0.9,
        saturation=1.2,
        tint=0.2,
        chromatic_aberration=3.0,
        blur=2.0,
        sparkle=0.6,
    ),
}

# Default preset
ACTIVE_PRESET = "NEUTRAL"


def get_preset(name: str, extra: Optional[Mapping[str, EffectParameters]] = None) -> EffectParameters:
    """
    Look up a preset by name (case-insensitive).

    Args:
        name: Preset name
        extra: Additional presets checked before the built-in ones

    Raises:
        ValueError: If no preset has that name
    """
    available = dict(PRESETS)
    if extra:
        available.update(extra)

    key = name.upper()
    if key not in available:
        raise ValueError(f"Unknown preset '{name}'. Available: {', '.join(available)}")
    return available[key]


@dataclass
class AppConfig:
    """Application settings.

    Attributes:
        log_level: Console log level
        log_file: Rotating log file path (None disables the file sink)
        initial_seed: Starting value of the caller-owned seed
        seed_step_min: Smallest seed increment per frame
        seed_step_max: Largest seed increment per frame
        queue_size: Pending frames kept by the live worker
        profile_interval: Seconds between profiler log lines
        video_codec: FourCC used when encoding video
        preset: Preset applied when the CLI names none
        presets: Presets declared in the settings file
    """
    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # Seed
    initial_seed: float = 0.0
    seed_step_min: float = 0.1
    seed_step_max: float = 0.3

    # Live worker
    queue_size: int = 2
    profile_interval: float = 2.0

    # Video
    video_codec: str = "mp4v"

    # Parameters
    preset: str = ACTIVE_PRESET
    presets: Dict[str, EffectParameters] = field(default_factory=dict)

    def __post_init__(self):
        if self.seed_step_min > self.seed_step_max:
            raise ValueError(
                f"seed_step_min {self.seed_step_min} exceeds seed_step_max {self.seed_step_max}"
            )
        if self.queue_size < 1:
            raise ValueError(f"queue_size must be at least 1, got {self.queue_size}")

    def resolve_preset(self, name: Optional[str] = None) -> EffectParameters:
        """Preset by name, or the configured default preset."""
        return get_preset(name or self.preset, self.presets)


# Section / key in settings.yaml -> AppConfig field
_YAML_KEYS = {
    ("logging", "level"): "log_level",
    ("logging", "file"): "log_file",
    ("seed", "initial"): "initial_seed",
    ("seed", "step_min"): "seed_step_min",
    ("seed", "step_max"): "seed_step_max",
    ("live", "queue_size"): "queue_size",
    ("live", "profile_interval"): "profile_interval",
    ("video", "codec"): "video_codec",
}


def config_from_dict(data: Mapping[str, Any]) -> AppConfig:
    """
    Build an AppConfig from a parsed settings mapping.

    Unknown sections and keys are ignored with a warning.

    Raises:
        ValueError: On malformed presets or inconsistent values
    """
    kwargs: Dict[str, Any] = {}
    known_sections = {section for section, _ in _YAML_KEYS} | {"preset", "presets"}

    for section, values in data.items():
        if section not in known_sections:
            logger.warning(f"Ignoring unknown config section '{section}'")
            continue
        if section in ("preset", "presets"):
            continue
        if not isinstance(values, Mapping):
            raise ValueError(f"Config section '{section}' must be a mapping")

        for key, value in values.items():
            name = _YAML_KEYS.get((section, key))
            if name is None:
                logger.warning(f"Ignoring unknown config key '{section}.{key}'")
                continue
            kwargs[name] = value

    if "preset" in data:
        kwargs["preset"] = str(data["preset"]).upper()

    declared = data.get("presets") or {}
    if not isinstance(declared, Mapping):
        raise ValueError("Config section 'presets' must be a mapping of preset names")

    presets: Dict[str, EffectParameters] = {}
    for name, sliders in declared.items():
        sliders = sliders or {}
        if not isinstance(sliders, Mapping):
            raise ValueError(f"Preset '{name}' must be a mapping of slider values")
        presets[str(name).upper()] = EffectParameters.from_mapping(sliders)
    kwargs["presets"] = presets

    valid = {f.name for f in fields(AppConfig)}
    return AppConfig(**{k: v for k, v in kwargs.items() if k in valid})


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load configuration from file.

    Falls back to config/settings.yaml, then to defaults.

    Args:
        config_path: Explicit settings file

    Returns:
        AppConfig with all settings
    """
    if config_path and Path(config_path).exists():
        path = Path(config_path)
    elif DEFAULT_CONFIG_PATH.exists():
        if config_path:
            logger.warning(f"Config file {config_path} not found, using {DEFAULT_CONFIG_PATH}")
        path = DEFAULT_CONFIG_PATH
    else:
        if config_path:
            logger.warning(f"Config file {config_path} not found, using defaults")
        return AppConfig()

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, Mapping):
        raise ValueError(f"Config file {path} must contain a mapping")

    logger.debug(f"Loaded config from {path}")
    return config_from_dict(data)
