"""Pytest configuration and fixtures."""

import random
import tempfile
import threading
import time
from pathlib import Path
from typing import Dict, Iterator, List, Optional

import cv2
import numpy as np
import pytest

from video_text_search.errors import FrameDecodeError
from video_text_search.core.frame_source import Frame, FrameSource, frame_timestamp
from video_text_search.engines.base import BaseRecognizer


def synthetic_image(index: int) -> np.ndarray:
    """Small BGR image whose pixels encode the frame index (0-255)."""
    return np.full((8, 8, 3), index % 256, dtype=np.uint8)


def index_from_image(image: np.ndarray) -> int:
    """Recover the frame index encoded by ``synthetic_image``."""
    return int(image.flat[0])


class SyntheticFrameSource(FrameSource):
    """In-memory frame source for pipeline tests."""

    def __init__(
        self,
        frame_count: int = 10,
        frame_rate: float = 10.0,
        skip_frames: int = 1,
        reported_count: Optional[int] = None,
        fail_at: Optional[int] = None,
    ):
        super().__init__(skip_frames)
        self.actual_count = frame_count
        self.reported_count = frame_count if reported_count is None else reported_count
        self.rate = frame_rate
        self.fail_at = fail_at
        self.opened = False
        self.open_calls = 0
        self.closed = False

    def open(self) -> None:
        self.open_calls += 1
        self.opened = True
        self.frame_count = self.reported_count
        self.frame_rate = self.rate

    def close(self) -> None:
        self.opened = False
        self.closed = True

    def frames(self) -> Iterator[Frame]:
        for index in range(0, self.actual_count, self.skip_frames):
            if self.fail_at is not None and index >= self.fail_at:
                raise FrameDecodeError(f"corrupt frame {index}")
            yield Frame(
                index=index,
                image=synthetic_image(index),
                timestamp_seconds=frame_timestamp(index, self.frame_rate),
            )


class StubRecognizer(BaseRecognizer):
    """Deterministic recognizer returning configured text per frame index."""

    instances: List["StubRecognizer"] = []
    _instances_lock = threading.Lock()

    def __init__(
        self,
        texts: Optional[Dict[int, str]] = None,
        fail_on: Optional[set] = None,
        max_delay: float = 0.0,
        seed: Optional[int] = None,
        on_recognize=None,
    ):
        super().__init__(languages=["en"])
        self.texts = texts or {}
        self.fail_on = fail_on or set()
        self.max_delay = max_delay
        self._random = random.Random(seed)
        self.on_recognize = on_recognize
        self.init_count = 0
        self.release_count = 0
        self.seen: List[int] = []
        with self._instances_lock:
            StubRecognizer.instances.append(self)

    def _initialize(self) -> None:
        self.init_count += 1

    def _release(self) -> None:
        self.release_count += 1

    def _recognize(self, image: np.ndarray) -> str:
        assert image.ndim == 2, "recognizer must receive a grayscale image"
        index = index_from_image(image)
        self.seen.append(index)
        if self.on_recognize:
            self.on_recognize(index)
        if self.max_delay:
            time.sleep(self._random.uniform(0, self.max_delay))
        if index in self.fail_on:
            raise RuntimeError(f"engine crashed on frame {index}")
        return self.texts.get(index, "")

    @property
    def name(self) -> str:
        return "stub"


@pytest.fixture(autouse=True)
def reset_stub_instances():
    """Forget recognizers created by previous tests."""
    StubRecognizer.instances = []
    yield
    StubRecognizer.instances = []


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def hello_texts():
    """OCR texts for the 10-frame scenario: HELLO on frames 2 and 5."""
    return {2: "HELLO", 5: "HELLO"}


@pytest.fixture
def sample_video(temp_dir):
    """Create a sample video file for testing."""
    video_path = temp_dir / "test_video.mp4"

    width, height = 320, 240
    fps = 10
    total_frames = 20

    fourcc = cv2.VideoWriter_fourcc(*"mp4v")
    writer = cv2.VideoWriter(str(video_path), fourcc, fps, (width, height))

    for i in range(total_frames):
        frame = np.ones((height, width, 3), dtype=np.uint8) * 255
        cv2.putText(
            frame,
            f"Frame {i}",
            (20, 120),
            cv2.FONT_HERSHEY_SIMPLEX,
            1.0,
            (0, 0, 0),
            2,
        )
        writer.write(frame)

    writer.release()

    return video_path


def read_ledger(path: Path) -> List[List[str]]:
    """Read a ledger file into rows (header excluded)."""
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "Frame Index\tTimestamp\tOCR Text"
    return [line.split("\t") for line in lines[1:]]
