"""
Frame sources and result publication at the pipeline boundary.
"""

from .frame_buffer import ResultSlot
from .video_file import VideoFileSource, VideoFileWriter

__all__ = ["ResultSlot", "VideoFileSource", "VideoFileWriter"]
