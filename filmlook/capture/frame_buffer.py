"""
Result publication for live callers.

Results may finish out of order when frames are rendered off the
presentation thread. The slot keeps only the newest one by source
frame id and drops anything older.
"""

from __future__ import annotations

import threading
from typing import Optional

from loguru import logger

from filmlook.core.contracts import PipelineOutput


class ResultSlot:
    """
    Single-value, order-preserving holder for pipeline outputs.

    Guarantees:
    - Published frame ids strictly increase
    - Thread-safe access
    """

    def __init__(self):
        self._latest: Optional[PipelineOutput] = None
        self._lock = threading.Lock()

        # Stats
        self._published = 0
        self._dropped = 0

    def publish(self, output: PipelineOutput) -> bool:
        """
        Publish an output unless a newer frame was already published.

        Returns:
            True if the output became the latest result
        """
        with self._lock:
            if self._latest is not None and output.frame_id <= self._latest.frame_id:
                self._dropped += 1
                logger.debug(
                    f"Dropping stale result for frame {output.frame_id} "
                    f"(latest is {self._latest.frame_id})"
                )
                return False

            self._latest = output
            self._published += 1
            return True

    def latest(self) -> Optional[PipelineOutput]:
        with self._lock:
            return self._latest

    def clear(self):
        """Forget the published result and reset counters."""
        with self._lock:
            self._latest = None
            self._published = 0
            self._dropped = 0

    @property
    def published_count(self) -> int:
        with self._lock:
            return self._published

    @property
    def dropped_count(self) -> int:
        with self._lock:
            return self._dropped
