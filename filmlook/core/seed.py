"""
Random seed ownership.

The seed is the only temporal input of the pipeline. It is owned by
the caller and advanced at exactly one update point per frame and per
parameter change; the engine only ever receives it by value.
"""

from __future__ import annotations

import threading
from typing import Optional, Tuple
import numpy as np
from loguru import logger


# Offsets that decorrelate the three color-noise channels
CHANNEL_SEED_OFFSETS = (0.0, 1000.0, 2000.0)


def derived_seeds(seed: float) -> Tuple[float, float, float]:
    """Red, green and blue noise seeds for one invocation."""
    return tuple(seed + offset for offset in CHANNEL_SEED_OFFSETS)


def seeded_rng(seed: float, stream: int = 0) -> np.random.Generator:
    """
    Deterministic numpy Generator for a float seed.

    The raw bits of the float64 seed plus a stream id form the entropy,
    so nearby seeds give unrelated sequences and the same seed always
    gives the same sequence.
    """
    bits = int(np.array([seed], dtype=np.float64).view(np.uint64)[0])
    return np.random.default_rng(np.random.SeedSequence([bits, stream]))


class SeedClock:
    """
    Caller-side seed that advances by a random step.

    Each advance() adds a step drawn uniformly from
    [step_min, step_max]. The value only moves through advance(),
    so seed evolution follows call order.
    """

    def __init__(
        self,
        initial: float = 0.0,
        step_min: float = 0.1,
        step_max: float = 0.3,
        rng: Optional[np.random.Generator] = None,
    ):
        """
        Initialize seed clock.

        Args:
            initial: Starting seed value
            step_min: Smallest increment per advance
            step_max: Largest increment per advance
            rng: Generator for the increments (fresh entropy if None)
        """
        if step_min > step_max:
            raise ValueError(f"step_min {step_min} exceeds step_max {step_max}")

        self.step_min = step_min
        self.step_max = step_max
        self._value = float(initial)
        self._rng = rng or np.random.default_rng()
        self._lock = threading.Lock()
        self._advances = 0

    def advance(self) -> float:
        """
        Advance the seed once.

        Returns:
            The new seed value
        """
        with self._lock:
            step = float(self._rng.uniform(self.step_min, self.step_max))
            self._value += step
            self._advances += 1
            value = self._value

        logger.trace(f"Seed advanced by {step:.3f} to {value:.3f}")
        return value

    @property
    def value(self) -> float:
        with self._lock:
            return self._value

    @property
    def advances(self) -> int:
        with self._lock:
            return self._advances
