"""
Pipeline orchestration.

- engine: the stateless FilmPipeline and terminal conversion
- stages: the ordered stage descriptors
- live: per-frame caller that owns the seed and the worker thread
"""

from .engine import FilmPipeline, to_rgba8
from .stages import Stage, DEFAULT_STAGES, get_stage, list_stages

__all__ = [
    "FilmPipeline",
    "to_rgba8",
    "Stage",
    "DEFAULT_STAGES",
    "get_stage",
    "list_stages",
]
