"""Frame sources: sequential decoding of video frames at a fixed stride."""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

import cv2
import numpy as np

from video_text_search.errors import FrameDecodeError, SourceUnavailableError
from video_text_search.utils.formatting import format_timestamp
from video_text_search.utils.logging_config import get_logger


@dataclass(frozen=True)
class Frame:
    """A decoded frame and its position in the video."""

    index: int
    image: np.ndarray
    timestamp_seconds: float

    @property
    def timestamp_str(self) -> str:
        """Get timestamp as HH:MM:SS.fff format."""
        return format_timestamp(self.timestamp_seconds)


def frame_timestamp(index: int, frame_rate: float) -> float:
    """Offset in seconds of frame ``index``; 0.0 when the frame rate is unknown."""
    if frame_rate <= 0:
        return 0.0
    return index / frame_rate


class FrameSource(ABC):
    """
    Abstract source of video frames.

    Frames are emitted in strictly increasing index order. With
    ``skip_frames=N`` only indices ``0, N, 2N, ...`` are emitted. The reported
    ``frame_count`` is only an estimate; iteration ends when the decoder
    reports the end of the stream.
    """

    def __init__(self, skip_frames: int = 1):
        self.skip_frames = max(1, int(skip_frames))
        self.frame_count = 0
        self.frame_rate = 0.0

    @abstractmethod
    def open(self) -> None:
        """Open the underlying media. Raises SourceUnavailableError."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the underlying media."""
        pass

    @abstractmethod
    def frames(self) -> Iterator[Frame]:
        """Yield sampled frames. May raise FrameDecodeError mid-stream."""
        pass

    @property
    def expected_frames(self) -> int:
        """Number of sampled frames implied by the reported frame count."""
        if self.frame_count <= 0:
            return 0
        return math.ceil(self.frame_count / self.skip_frames)

    def describe(self) -> dict:
        """Get source properties as a dictionary."""
        duration = self.frame_count / self.frame_rate if self.frame_rate > 0 else 0.0
        return {
            "frame_count": self.frame_count,
            "fps": self.frame_rate,
            "skip_frames": self.skip_frames,
            "expected_frames": self.expected_frames,
            "duration_seconds": duration,
        }

    def __enter__(self) -> "FrameSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class VideoFrameSource(FrameSource):
    """
    Decode frames from a video file with OpenCV.

    Frames between sampled indices are advanced with ``grab()`` so they are
    never fully decoded.
    """

    def __init__(self, video_path: Path, skip_frames: int = 1):
        """
        Initialize video frame source.

        Args:
            video_path: Path to video file
            skip_frames: Stride between sampled frames (values < 1 become 1)
        """
        super().__init__(skip_frames)
        self.video_path = Path(video_path)
        self.width = 0
        self.height = 0
        self.logger = get_logger()
        self._capture: Optional[cv2.VideoCapture] = None

    def open(self) -> None:
        if self._capture is not None:
            return

        if not self.video_path.is_file():
            raise SourceUnavailableError(f"Video file not found: {self.video_path}")

        capture = cv2.VideoCapture(str(self.video_path))
        if not capture.isOpened():
            capture.release()
            raise SourceUnavailableError(f"Could not open video: {self.video_path}")

        self.frame_count = max(0, int(capture.get(cv2.CAP_PROP_FRAME_COUNT)))
        self.frame_rate = float(capture.get(cv2.CAP_PROP_FPS) or 0.0)
        self.width = int(capture.get(cv2.CAP_PROP_FRAME_WIDTH))
        self.height = int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
        self._capture = capture

        if self.frame_rate <= 0:
            self.logger.warning(
                f"Could not determine FPS of {self.video_path.name}; timestamps will be 0"
            )

        self.logger.info(
            f"Video loaded: {self.video_path.name}, frame_count={self.frame_count}, "
            f"fps={self.frame_rate:.2f}, skip_frames={self.skip_frames}"
        )

    def close(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None

    def frames(self) -> Iterator[Frame]:
        if self._capture is None:
            raise SourceUnavailableError("Frame source is not open")

        capture = self._capture
        index = 0

        while True:
            try:
                if index % self.skip_frames == 0:
                    ok, image = capture.read()
                else:
                    ok, image = capture.grab(), None
            except cv2.error as e:
                raise FrameDecodeError(f"Failed to decode frame {index}: {e}") from e

            if not ok:
                break

            if image is not None:
                if image.size == 0:
                    raise FrameDecodeError(f"Decoded frame {index} is empty")
                yield Frame(
                    index=index,
                    image=image,
                    timestamp_seconds=frame_timestamp(index, self.frame_rate),
                )

            index += 1

        if self.frame_count and index != self.frame_count:
            self.logger.debug(
                f"Decoder ended at frame {index}, container reported {self.frame_count}"
            )

    def describe(self) -> dict:
        info = super().describe()
        info.update(
            {
                "path": str(self.video_path),
                "width": self.width,
                "height": self.height,
            }
        )
        return info
