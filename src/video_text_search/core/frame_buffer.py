"""Unbounded staging channel between frame extraction and OCR workers."""

import queue
import threading
from typing import Optional

from video_text_search.core.frame_source import Frame


class FrameBuffer:
    """
    Thread-safe, unbounded buffer of decoded frames.

    The extraction side calls ``put`` for every frame and ``close`` once the
    source is exhausted. Workers call ``take_any`` until ``drained`` is true.
    A frame is handed to exactly one caller of ``take_any``; no ordering is
    guaranteed between workers.

    Capacity is bounded only by available memory.
    """

    def __init__(self):
        self._queue: "queue.Queue[Frame]" = queue.Queue()
        self._closed = threading.Event()

    def put(self, frame: Frame) -> None:
        """Add a frame. Never blocks."""
        if self._closed.is_set():
            raise RuntimeError("Cannot put frames into a closed FrameBuffer")
        self._queue.put_nowait(frame)

    def take_any(self, timeout: Optional[float] = None) -> Optional[Frame]:
        """
        Take one frame.

        Args:
            timeout: Seconds to wait for a frame; None returns immediately

        Returns:
            A Frame, or None when the buffer is currently empty
        """
        try:
            if timeout is None:
                return self._queue.get_nowait()
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def close(self) -> None:
        """Mark extraction as complete. Frames already buffered stay available."""
        self._closed.set()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    @property
    def drained(self) -> bool:
        """True once extraction is complete and every frame has been taken."""
        return self._closed.is_set() and self._queue.empty()

    @property
    def size(self) -> int:
        """Approximate number of frames waiting to be processed."""
        return self._queue.qsize()
