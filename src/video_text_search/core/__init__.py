"""Core components of the frame search pipeline."""

from video_text_search.core.frame_buffer import FrameBuffer
from video_text_search.core.frame_source import Frame, FrameSource, VideoFrameSource
from video_text_search.core.ledger import RecognitionResult, ResultLedger
from video_text_search.core.matcher import SearchMatcher
from video_text_search.core.pipeline import FramePipeline, PipelineSummary
from video_text_search.core.progress import ProgressTracker, estimate_progress

__all__ = [
    "Frame",
    "FrameSource",
    "VideoFrameSource",
    "FrameBuffer",
    "RecognitionResult",
    "ResultLedger",
    "SearchMatcher",
    "FramePipeline",
    "PipelineSummary",
    "ProgressTracker",
    "estimate_progress",
]
