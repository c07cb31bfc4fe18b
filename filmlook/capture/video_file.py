"""
Video file source and sink.

Handles:
- Decoding a video file frame by frame into RasterImages
- Encoding rendered RGBA buffers back to a video file
- BGR <-> RGB format conversion at the boundary
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, Optional, Tuple
import numpy as np
from numpy.typing import NDArray
import cv2
from loguru import logger

from filmlook.core.contracts import RasterImage


class VideoFileSource:
    """
    Frame source that reads from a video file.

    Guarantees:
    - Frames arrive in file order with increasing frame ids
    - RGB, opaque RasterImage output
    """

    def __init__(self, path: str, max_frames: int = 0):
        """
        Initialize video file source.

        Args:
            path: Video file path
            max_frames: Stop after this many frames (0 = whole file)
        """
        self.path = Path(path)
        self.max_frames = max_frames

        self._capture: Optional[cv2.VideoCapture] = None
        self._frame_count = 0

        # Properties read on start
        self.fps: float = 30.0
        self.width = 0
        self.height = 0
        self.total_frames = 0

    def start(self) -> bool:
        """
        Open the video file.

        Returns:
            True if opened successfully
        """
        if self._capture is not None:
            return True

        if not self.path.exists():
            logger.error(f"Video file not found: {self.path}")
            return False

        capture = cv2.VideoCapture(str(self.path))
        if not capture.isOpened():
            logger.error(f"Could not open video: {self.path}")
            capture.release()
            return False

        self._capture = capture
        self.fps = capture.get(cv2.CAP_PROP_FPS) or 30.0
        self.width = int(capture.get(cv2.CAP_PROP_FRAME_WIDTH))
        self.height = int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
        self.total_frames = int(capture.get(cv2.CAP_PROP_FRAME_COUNT))

        logger.info(
            f"Video source opened: {self.path.name} "
            f"{self.width}x{self.height} @ {self.fps:.1f}fps ({self.total_frames} frames)"
        )
        return True

    def stop(self):
        """Release the decoder."""
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            logger.info(f"Video source closed after {self._frame_count} frames")

    def read_frame(self) -> Tuple[Optional[RasterImage], int]:
        """
        Read the next frame.

        Returns:
            Tuple of (image, frame_id); image is None at end of file
        """
        if self._capture is None:
            return (None, self._frame_count)

        if self.max_frames and self._frame_count >= self.max_frames:
            return (None, self._frame_count)

        ret, frame = self._capture.read()
        if not ret or frame is None:
            return (None, self._frame_count)

        frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        self._frame_count += 1
        return (RasterImage.from_rgb8(frame_rgb), self._frame_count)

    def frames(self) -> Iterator[Tuple[int, RasterImage]]:
        """Iterate (frame_id, image) until the file is exhausted."""
        while True:
            image, frame_id = self.read_frame()
            if image is None:
                return
            yield frame_id, image

    @property
    def frame_count(self) -> int:
        return self._frame_count

    def __enter__(self) -> VideoFileSource:
        if not self.start():
            raise IOError(f"Could not open video: {self.path}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()


def rgba8_to_bgr(buffer: NDArray[np.uint8]) -> NDArray[np.uint8]:
    """Drop alpha and reorder channels for OpenCV encoders."""
    return cv2.cvtColor(buffer, cv2.COLOR_RGBA2BGR)


class VideoFileWriter:
    """Encode rendered RGBA buffers to a video file."""

    def __init__(self, path: str, fps: float, size: Tuple[int, int], codec: str = "mp4v"):
        """
        Args:
            path: Output file path
            fps: Output frame rate
            size: (width, height) of every frame
            codec: FourCC code
        """
        self.path = Path(path)
        self.fps = fps
        self.size = size
        self.codec = codec

        self._writer: Optional[cv2.VideoWriter] = None
        self._written = 0

    def open(self) -> bool:
        if len(self.codec) != 4:
            logger.error(f"Invalid codec '{self.codec}', expected a 4-character FourCC")
            return False

        fourcc = cv2.VideoWriter_fourcc(*self.codec)
        writer = cv2.VideoWriter(str(self.path), fourcc, self.fps, self.size)
        if not writer.isOpened():
            logger.error(f"Could not open video writer: {self.path} ({self.codec})")
            return False

        self._writer = writer
        logger.info(f"Writing {self.size[0]}x{self.size[1]} @ {self.fps:.1f}fps to {self.path}")
        return True

    def write(self, buffer: NDArray[np.uint8]):
        """Append one RGBA frame."""
        if self._writer is None:
            raise RuntimeError("Video writer is not open")

        height, width = buffer.shape[:2]
        if (width, height) != self.size:
            raise ValueError(f"Frame size {width}x{height} does not match writer size {self.size}")

        self._writer.write(rgba8_to_bgr(buffer))
        self._written += 1

    def close(self):
        if self._writer is not None:
            self._writer.release()
            self._writer = None
            logger.info(f"Wrote {self._written} frames to {self.path}")

    @property
    def written_count(self) -> int:
        return self._written
