"""
Live preview caller.

Owns what the engine does not: the seed, the worker thread, frame
ordering and the parameter snapshot. Frames are submitted from the
capture side, rendered on a worker thread and published to a ResultSlot
that the presentation side polls.
"""

from __future__ import annotations

import queue
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Dict, Optional

from loguru import logger

from filmlook.capture.frame_buffer import ResultSlot
from filmlook.core.contracts import RasterImage, EffectParameters, PipelineOutput
from filmlook.core.seed import SeedClock
from filmlook.pipeline.engine import FilmPipeline


class PipelineProfiler:
    """Rolling per-phase timings, logged at a fixed interval."""

    PHASES = ("queue_wait", "engine", "publish", "total")

    def __init__(self, window_size: int = 60, interval: float = 2.0):
        self.window_size = window_size
        self.interval = interval
        self.timings = {phase: deque(maxlen=window_size) for phase in self.PHASES}
        self.last_log = time.time()
        self.frame_count = 0

    def record(self, phase: str, duration_ms: float):
        self.timings[phase].append(duration_ms)

    def averages(self) -> Dict[str, float]:
        return {
            phase: (sum(times) / len(times) if times else 0.0)
            for phase, times in self.timings.items()
        }

    def log_if_ready(self) -> bool:
        """Count one frame and log averages once the interval has elapsed."""
        self.frame_count += 1
        now = time.time()
        elapsed = now - self.last_log
        if elapsed < self.interval:
            return False

        avgs = self.averages()
        fps = self.frame_count / elapsed
        logger.info(
            f"[PIPELINE] wait:{avgs['queue_wait']:.1f}ms | engine:{avgs['engine']:.1f}ms | "
            f"publish:{avgs['publish']:.1f}ms | total:{avgs['total']:.1f}ms | {fps:.1f}fps"
        )

        self.last_log = now
        self.frame_count = 0
        return True


@dataclass
class RenderRequest:
    """One unit of work for the worker: a source frame to render."""
    request_id: int
    image: RasterImage
    seed: float
    submitted_at: float


class LivePreview:
    """
    Per-frame caller for the film pipeline.

    Guarantees:
    - The seed advances exactly once per submitted frame
    - Published results never go backwards in request order
    - A full queue drops its oldest frame, never blocks the producer

    Usage:
        with LivePreview(params=get_preset("FILM")) as preview:
            preview.submit(image)
            output = preview.latest()
    """

    def __init__(
        self,
        pipeline: Optional[FilmPipeline] = None,
        params: Optional[EffectParameters] = None,
        seed_clock: Optional[SeedClock] = None,
        queue_size: int = 2,
        profile_interval: float = 2.0,
    ):
        """
        Initialize live preview.

        Args:
            pipeline: Engine to run (a default FilmPipeline if None)
            params: Initial parameter snapshot
            seed_clock: Seed owner (a fresh SeedClock if None)
            queue_size: Maximum pending frames before dropping the oldest
            profile_interval: Seconds between profiler log lines
        """
        if queue_size < 1:
            raise ValueError(f"queue_size must be at least 1, got {queue_size}")

        self.pipeline = pipeline or FilmPipeline()
        self.seed_clock = seed_clock or SeedClock()
        self.results = ResultSlot()
        self.profiler = PipelineProfiler(interval=profile_interval)

        self._params = params or EffectParameters()
        self._queue: "queue.Queue[RenderRequest]" = queue.Queue(maxsize=queue_size)

        self._lock = threading.Lock()
        self._done = threading.Condition(self._lock)
        self._next_id = 0
        self._completed_id = 0
        self._last_source: Optional[RasterImage] = None

        self._thread: Optional[threading.Thread] = None
        self._is_running = False

        # Stats
        self._dropped_frames = 0

    # ------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------

    def start(self):
        """Start the worker thread."""
        if self._is_running:
            return

        self._is_running = True
        self._thread = threading.Thread(target=self._worker_loop, name="filmlook-live", daemon=True)
        self._thread.start()
        logger.info("Live preview started")

    def stop(self, timeout: float = 2.0):
        """Stop the worker thread. Pending frames are discarded."""
        if not self._is_running:
            return

        self._is_running = False
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

        logger.info(
            f"Live preview stopped: {self.results.published_count} published, "
            f"{self._dropped_frames} dropped at queue, "
            f"{self.results.dropped_count} stale"
        )

    def __enter__(self) -> LivePreview:
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()

    # ------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------

    def submit(self, image: RasterImage) -> int:
        """
        Queue a source frame for rendering.

        Returns:
            Request id the result will be published under
        """
        request = self._new_request(image)

        with self._lock:
            self._last_source = image
            try:
                self._queue.put_nowait(request)
            except queue.Full:
                try:
                    stale = self._queue.get_nowait()
                except queue.Empty:
                    stale = None  # worker took it first
                if stale is not None:
                    self._dropped_frames += 1
                    logger.debug(f"Queue full, dropping frame {stale.request_id}")
                self._queue.put_nowait(request)

        return request.request_id

    def update_parameters(self, params: EffectParameters) -> Optional[int]:
        """
        Swap the parameter snapshot and re-render the last source frame.

        Returns:
            Request id of the re-render, or None if no frame was seen yet
        """
        with self._lock:
            self._params = params
            source = self._last_source

        if source is None:
            self.seed_clock.advance()
            return None

        return self.submit(source)

    @property
    def parameters(self) -> EffectParameters:
        with self._lock:
            return self._params

    # ------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------

    def render(self, image: RasterImage) -> PipelineOutput:
        """
        Render one frame synchronously on the calling thread.

        Used by offline callers that must keep every frame.
        """
        request = self._new_request(image)
        with self._lock:
            self._last_source = image
        return self._render(request)

    def _new_request(self, image: RasterImage) -> RenderRequest:
        # One seed advance per delivered frame, dropped or rendered
        with self._lock:
            self._next_id += 1
            seed = self.seed_clock.advance()
            return RenderRequest(self._next_id, image, seed, time.perf_counter())

    def _render(self, request: RenderRequest) -> PipelineOutput:
        t_start = time.perf_counter()
        self.profiler.record("queue_wait", (t_start - request.submitted_at) * 1000)

        params = self.parameters

        t_engine = time.perf_counter()
        output = self.pipeline.process(request.image, params, request.seed, frame_id=request.request_id)
        self.profiler.record("engine", (time.perf_counter() - t_engine) * 1000)

        if not output.success:
            logger.warning(f"Frame {request.request_id} produced no output: {output.error_message}")

        t_publish = time.perf_counter()
        self.results.publish(output)
        self.profiler.record("publish", (time.perf_counter() - t_publish) * 1000)

        with self._done:
            self._completed_id = max(self._completed_id, request.request_id)
            self._done.notify_all()

        self.profiler.record("total", (time.perf_counter() - request.submitted_at) * 1000)
        self.profiler.log_if_ready()
        return output

    def _worker_loop(self):
        while self._is_running:
            try:
                request = self._queue.get(timeout=0.1)
            except queue.Empty:
                continue
            self._render(request)

    # ------------------------------------------------------------
    # Consumer side
    # ------------------------------------------------------------

    def latest(self) -> Optional[PipelineOutput]:
        """Most recent published output."""
        return self.results.latest()

    def wait_for(self, request_id: int, timeout: float = 5.0) -> bool:
        """
        Block until the given request, or a newer one, has been rendered.

        Returns:
            False on timeout
        """
        with self._done:
            return self._done.wait_for(lambda: self._completed_id >= request_id, timeout=timeout)

    @property
    def dropped_frames(self) -> int:
        with self._lock:
            return self._dropped_frames

    @property
    def is_running(self) -> bool:
        return self._is_running
