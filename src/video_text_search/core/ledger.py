"""Ordered, periodically flushed tab-separated result file."""

import os
import threading
import time
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Deque, Dict, List, Optional

from video_text_search.errors import PersistenceError
from video_text_search.utils.formatting import format_timestamp
from video_text_search.utils.logging_config import get_logger

HEADER = "Frame Index\tTimestamp\tOCR Text"


@dataclass(frozen=True)
class RecognitionResult:
    """OCR outcome for a single frame."""

    frame_index: int
    timestamp_seconds: float
    text: str
    matched: bool
    failed: bool = False

    @property
    def timestamp_str(self) -> str:
        return format_timestamp(self.timestamp_seconds)


def format_result_line(result: RecognitionResult) -> str:
    """Format a result as one ledger line (without the newline)."""
    return f"{result.frame_index}\t{result.timestamp_str}\t{result.text}"


class ResultLedger:
    """
    Durable sink that writes results in ascending frame order.

    Frame indices are registered with ``expect`` in emission order. Workers
    ``record`` results in any order; ``flush`` appends only the contiguous
    run of results matching the oldest outstanding indices, so each flush
    continues the file in sorted order. ``flush(final=True)`` writes whatever
    is still held.

    Every flush opens the file in append mode and fsyncs before returning, so
    lines already flushed survive an abnormal exit. Without an output path
    results are counted and discarded.
    """

    def __init__(
        self,
        output_path: Optional[Path] = None,
        flush_retries: int = 3,
        retry_delay: float = 0.1,
    ):
        """
        Initialize result ledger.

        Args:
            output_path: Tab-separated output file, or None to keep no file
            flush_retries: Extra attempts for a failed write
            retry_delay: Seconds between attempts
        """
        self.output_path = Path(output_path) if output_path is not None else None
        self.flush_retries = max(0, flush_retries)
        self.retry_delay = retry_delay
        self.logger = get_logger()

        self._lock = threading.Lock()
        self._expected: Deque[int] = deque()
        self._held: Dict[int, RecognitionResult] = {}
        self._seen: set = set()
        self._lines_written = 0
        self._opened = False

    def open(self) -> None:
        """Truncate the output file and write the header."""
        with self._lock:
            if self.output_path is not None:
                try:
                    if self.output_path.parent != Path(""):
                        self.output_path.parent.mkdir(parents=True, exist_ok=True)
                    with open(self.output_path, "w", encoding="utf-8", newline="\n") as f:
                        f.write(HEADER + "\n")
                        f.flush()
                        os.fsync(f.fileno())
                except OSError as e:
                    raise PersistenceError(
                        f"Could not create output file {self.output_path}: {e}"
                    ) from e
                self.logger.debug(f"Output file initialized: {self.output_path}")
            self._opened = True

    def expect(self, frame_index: int) -> None:
        """Register an emitted frame index. Indices must be strictly increasing."""
        with self._lock:
            if self._expected and frame_index <= self._expected[-1]:
                raise ValueError(
                    f"Frame index {frame_index} is not greater than {self._expected[-1]}"
                )
            self._expected.append(frame_index)

    def record(self, result: RecognitionResult) -> None:
        """Hold a result until it can be written in order. Thread-safe."""
        with self._lock:
            if result.frame_index in self._seen:
                self.logger.warning(
                    f"Duplicate result for frame {result.frame_index} ignored"
                )
                return
            self._seen.add(result.frame_index)
            self._held[result.frame_index] = result

    def flush(self, final: bool = False) -> int:
        """
        Append held results to the output in ascending frame order.

        Args:
            final: Write every held result, not only the contiguous prefix

        Returns:
            Number of lines written by this call

        Raises:
            PersistenceError: If a final flush cannot write its lines
        """
        with self._lock:
            ready = self._take_ready(final)
            if not ready:
                return 0

            if not self._write(ready):
                # Put the results back so a later flush can retry them
                for result in ready:
                    self._held[result.frame_index] = result
                if final:
                    # Leave the results held but stop close() from retrying
                    self._opened = False
                    raise PersistenceError(
                        f"Could not write {len(ready)} results to {self.output_path}"
                    )
                self.logger.warning(
                    f"Periodic flush failed; {len(ready)} results kept in memory"
                )
                return 0

            for result in ready:
                if self._expected and self._expected[0] == result.frame_index:
                    self._expected.popleft()
                elif final:
                    try:
                        self._expected.remove(result.frame_index)
                    except ValueError:
                        pass

            self._lines_written += len(ready)

            if final and self._expected:
                self.logger.warning(
                    f"{len(self._expected)} extracted frames produced no result "
                    f"(first missing: {self._expected[0]})"
                )

            return len(ready)

    def _take_ready(self, final: bool) -> List[RecognitionResult]:
        """Remove and return results that may be written now (lock held)."""
        if final:
            ready = [self._held.pop(index) for index in sorted(self._held)]
            return ready

        ready = []
        for index in self._expected:
            if index not in self._held:
                break
            ready.append(self._held.pop(index))
        return ready

    def _write(self, results: List[RecognitionResult]) -> bool:
        """Append lines with retries; a failed attempt is truncated back (lock held)."""
        if self.output_path is None:
            return True

        payload = "".join(format_result_line(r) + "\n" for r in results).encode("utf-8")

        for attempt in range(self.flush_retries + 1):
            try:
                with open(self.output_path, "ab", buffering=0) as f:
                    start = f.seek(0, os.SEEK_END)
                    try:
                        view = memoryview(payload)
                        while view:
                            written = f.write(view)
                            view = view[written:]
                        os.fsync(f.fileno())
                    except OSError:
                        f.truncate(start)
                        raise
                return True
            except OSError as e:
                self.logger.warning(
                    f"Writing to {self.output_path} failed "
                    f"(attempt {attempt + 1}/{self.flush_retries + 1}): {e}"
                )
                if attempt < self.flush_retries:
                    time.sleep(self.retry_delay)

        return False

    def close(self) -> None:
        """
        Final flush. Safe to call more than once.

        After a final flush has failed, closing does not write again; the
        unwritten results stay in ``pending_count``.
        """
        if not self._opened:
            return
        self.flush(final=True)
        self._opened = False

    def __enter__(self) -> "ResultLedger":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def pending_count(self) -> int:
        """Results held in memory, not yet written."""
        with self._lock:
            return len(self._held)

    @property
    def lines_written(self) -> int:
        with self._lock:
            return self._lines_written
