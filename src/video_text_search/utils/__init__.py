"""Utility modules for Video Text Search."""

from video_text_search.utils.formatting import format_duration, format_timestamp
from video_text_search.utils.image_utils import frame_to_pil, to_grayscale
from video_text_search.utils.logging_config import get_logger, setup_logging

__all__ = [
    "setup_logging",
    "get_logger",
    "format_timestamp",
    "format_duration",
    "to_grayscale",
    "frame_to_pil",
]
