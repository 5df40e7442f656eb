"""Tests for the frame buffer."""

import threading

import numpy as np
import pytest

from video_text_search.core.frame_buffer import FrameBuffer
from video_text_search.core.frame_source import Frame


def make_frame(index: int) -> Frame:
    return Frame(index=index, image=np.zeros((1, 1), dtype=np.uint8), timestamp_seconds=0.0)


class TestFrameBuffer:
    """Tests for FrameBuffer."""

    def test_take_from_empty(self):
        """Test that an empty buffer returns None instead of blocking."""
        buffer = FrameBuffer()
        assert buffer.take_any() is None
        assert buffer.take_any(timeout=0.01) is None

    def test_put_and_take(self):
        """Test a single round trip."""
        buffer = FrameBuffer()
        buffer.put(make_frame(7))

        assert buffer.size == 1
        assert buffer.take_any().index == 7
        assert buffer.size == 0

    def test_drained_requires_close(self):
        """Test that an empty buffer is drained only once closed."""
        buffer = FrameBuffer()
        assert not buffer.drained

        buffer.put(make_frame(0))
        buffer.close()
        assert buffer.closed
        assert not buffer.drained

        buffer.take_any()
        assert buffer.drained

    def test_put_after_close(self):
        """Test that closing stops further puts."""
        buffer = FrameBuffer()
        buffer.close()
        with pytest.raises(RuntimeError):
            buffer.put(make_frame(0))

    def test_unbounded(self):
        """Test that puts never block on a large backlog."""
        buffer = FrameBuffer()
        for i in range(5000):
            buffer.put(make_frame(i))
        assert buffer.size == 5000

    def test_concurrent_takers_no_double_processing(self):
        """Test that each frame is handed to exactly one taker."""
        buffer = FrameBuffer()
        total = 2000
        for i in range(total):
            buffer.put(make_frame(i))
        buffer.close()

        taken = []
        lock = threading.Lock()

        def taker():
            while not buffer.drained:
                frame = buffer.take_any(timeout=0.01)
                if frame is not None:
                    with lock:
                        taken.append(frame.index)

        threads = [threading.Thread(target=taker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(taken) == list(range(total))
