"""Frame pipeline: extraction, parallel OCR workers and ordered persistence."""

import os
import threading
import time
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from video_text_search.errors import (
    FrameDecodeError,
    PipelineError,
    RecognitionError,
)
from video_text_search.core.frame_buffer import FrameBuffer
from video_text_search.core.frame_source import Frame, FrameSource
from video_text_search.core.ledger import RecognitionResult, ResultLedger
from video_text_search.core.matcher import SearchMatcher, normalize_ocr_text
from video_text_search.core.progress import (
    ProgressEstimate,
    ProgressTracker,
    format_progress,
)
from video_text_search.engines.base import BaseRecognizer
from video_text_search.utils.logging_config import get_logger

PHASE_EXTRACTION = "extraction"
PHASE_PROCESSING = "processing"

# Seconds a worker waits on an empty buffer before re-checking for shutdown
_POLL_INTERVAL = 0.05

ProgressCallback = Callable[[str, ProgressEstimate], None]
MatchCallback = Callable[[RecognitionResult], None]


def default_worker_count() -> int:
    """Number of available processing units minus one, minimum 1."""
    return max(1, (os.cpu_count() or 2) - 1)


@dataclass
class PipelineSummary:
    """Outcome of a pipeline run."""

    frames_extracted: int = 0
    frames_processed: int = 0
    frames_matched: int = 0
    frames_failed: int = 0
    lines_written: int = 0
    elapsed_seconds: float = 0.0
    cancelled: bool = False
    matches: List[RecognitionResult] = field(default_factory=list)


class FramePipeline:
    """
    Run OCR over every frame of a source and persist the results in order.

    In parallel mode one extraction thread fills a FrameBuffer while a fixed
    pool of workers drains it. Each worker creates its own recognizer once
    and reuses it for every frame it takes. Results are handed to the
    ResultLedger, which restores frame order before writing.

    In sequential mode extraction and OCR are interleaved on the calling
    thread with a single recognizer.
    """

    def __init__(
        self,
        source: FrameSource,
        recognizer_factory: Callable[[], BaseRecognizer],
        matcher: SearchMatcher,
        ledger: ResultLedger,
        mode: str = "parallel",
        workers: int = 0,
        flush_every: int = 10,
        stream: bool = True,
        progress_callback: Optional[ProgressCallback] = None,
        match_callback: Optional[MatchCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            source: Opened frame source
            recognizer_factory: Zero-argument callable building a recognizer
            matcher: Search matcher for the query
            ledger: Opened result ledger
            mode: 'parallel' or 'sequential'
            workers: Worker count for parallel mode (0 = auto)
            flush_every: Flush the ledger every N completed frames
            stream: Overlap extraction with OCR (parallel mode only)
            progress_callback: Optional callback(phase, estimate)
            match_callback: Optional callback(result) for each matching frame
            cancel_event: Optional event that stops the run at the next frame
        """
        if mode not in ("parallel", "sequential"):
            raise ValueError(f"Unknown pipeline mode: {mode}")

        self.source = source
        self.recognizer_factory = recognizer_factory
        self.matcher = matcher
        self.ledger = ledger
        self.mode = mode
        self.num_workers = workers if workers > 0 else default_worker_count()
        self.flush_every = max(1, flush_every)
        self.stream = stream
        self.progress_callback = progress_callback
        self.match_callback = match_callback
        self.cancel_event = cancel_event or threading.Event()
        self.logger = get_logger()

        self.extraction_tracker = ProgressTracker(source.expected_frames)
        self.processing_tracker = ProgressTracker(source.expected_frames)

        self._buffer = FrameBuffer()
        self._lock = threading.Lock()
        self._frames_extracted = 0
        self._frames_failed = 0
        self._matches: List[RecognitionResult] = []

    def cancel(self) -> None:
        """Request a stop at the next frame boundary."""
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def run(self) -> PipelineSummary:
        """
        Process every frame of the source.

        Returns:
            PipelineSummary

        Raises:
            PipelineError: On an unexpected failure (after the final flush)
        """
        start = time.monotonic()

        self.logger.info(
            f"Starting {self.mode} pipeline: expected_frames={self.source.expected_frames}, "
            f"skip_frames={self.source.skip_frames}"
            + (f", workers={self.num_workers}" if self.mode == "parallel" else "")
        )

        try:
            if self.mode == "sequential":
                self._run_sequential()
            else:
                self._run_parallel()
        except PipelineError:
            self.cancel()
            raise
        except Exception as e:
            self.cancel()
            raise PipelineError(f"Pipeline failed: {e}") from e
        finally:
            self.ledger.flush(final=True)

        summary = self._summary(time.monotonic() - start)

        self.logger.info(f"OCR progress: {format_progress(self.processing_tracker.snapshot())}")

        self.logger.info(
            f"Pipeline {'cancelled' if summary.cancelled else 'complete'}: "
            f"{summary.frames_processed}/{summary.frames_extracted} frames processed, "
            f"{summary.frames_matched} matched, {summary.frames_failed} failed"
        )

        return summary

    def _summary(self, elapsed: float) -> PipelineSummary:
        with self._lock:
            matches = sorted(self._matches, key=lambda r: r.frame_index)
            return PipelineSummary(
                frames_extracted=self._frames_extracted,
                frames_processed=self.processing_tracker.completed,
                frames_matched=self.matcher.matched_count,
                frames_failed=self._frames_failed,
                lines_written=self.ledger.lines_written,
                elapsed_seconds=elapsed,
                cancelled=self.cancelled,
                matches=matches,
            )

    # Extraction

    def _emitted(self, frame: Frame) -> None:
        """Bookkeeping for a frame leaving the source."""
        self.ledger.expect(frame.index)
        with self._lock:
            self._frames_extracted += 1
        estimate = self.extraction_tracker.advance()
        if self.progress_callback:
            self.progress_callback(PHASE_EXTRACTION, estimate)

    def _extract(self) -> None:
        """Move every frame from the source into the buffer, then close it."""
        self.extraction_tracker.start()
        try:
            for frame in self.source.frames():
                if self.cancelled:
                    break
                self._emitted(frame)
                self._buffer.put(frame)
        except FrameDecodeError as e:
            self.logger.warning(f"Stopping extraction: {e}")
        finally:
            self._buffer.close()

        self.logger.info(f"Extraction complete. Extracted {self._frames_extracted} frames.")

    # Processing

    def _process_frame(self, frame: Frame, recognizer: BaseRecognizer) -> RecognitionResult:
        """Recognize, match and record a single frame."""
        failed = False
        try:
            raw_text = recognizer.recognize(frame.image)
        except RecognitionError as e:
            self.logger.warning(f"OCR error on frame {frame.index}: {e}")
            raw_text = ""
            failed = True

        text = normalize_ocr_text(raw_text)
        result = RecognitionResult(
            frame_index=frame.index,
            timestamp_seconds=frame.timestamp_seconds,
            text=text,
            matched=self.matcher.matches(text),
            failed=failed,
        )

        self.ledger.record(result)

        if result.matched:
            self.matcher.record_match()
            self.logger.debug(
                f"Text found in frame {result.frame_index} at {result.timestamp_str}"
            )
        with self._lock:
            if failed:
                self._frames_failed += 1
            if result.matched:
                self._matches.append(result)

        if result.matched and self.match_callback:
            self.match_callback(result)

        estimate = self.processing_tracker.advance()
        if estimate.completed % self.flush_every == 0:
            written = self.ledger.flush()
            self.logger.debug(f"{format_progress(estimate)} ({written} lines flushed)")

        if self.progress_callback:
            self.progress_callback(PHASE_PROCESSING, estimate)

        return result

    def _run_sequential(self) -> None:
        self.extraction_tracker.start()
        self.processing_tracker.start()

        with self.recognizer_factory() as recognizer:
            try:
                for frame in self.source.frames():
                    if self.cancelled:
                        break
                    self._emitted(frame)
                    self._process_frame(frame, recognizer)
            except FrameDecodeError as e:
                self.logger.warning(f"Stopping extraction: {e}")

    def _worker(self, worker_id: int) -> int:
        """Drain the buffer until extraction is complete. Returns frames processed."""
        processed = 0
        self.logger.debug(f"Worker {worker_id} started")

        with self.recognizer_factory() as recognizer:
            while not self.cancelled:
                frame = self._buffer.take_any(timeout=_POLL_INTERVAL)
                if frame is None:
                    if self._buffer.drained:
                        break
                    continue

                self._process_frame(frame, recognizer)
                processed += 1

        self.logger.debug(f"Worker {worker_id} finished after {processed} frames")
        return processed

    def _run_parallel(self) -> None:
        if not self.stream:
            self._extract()
            self.processing_tracker.set_total(self._frames_extracted)

        self.processing_tracker.start()

        pool_size = self.num_workers + (1 if self.stream else 0)
        with ThreadPoolExecutor(
            max_workers=pool_size, thread_name_prefix="frame-pipeline"
        ) as executor:
            futures = []
            if self.stream:
                futures.append(executor.submit(self._extract))
            futures.extend(
                executor.submit(self._worker, worker_id)
                for worker_id in range(self.num_workers)
            )

            done, _ = wait(futures, return_when=FIRST_EXCEPTION)

            failure = next(
                (f.exception() for f in done if f.exception() is not None), None
            )
            if failure is not None:
                # Stop the remaining threads before leaving the executor
                self.cancel()
                self._buffer.close()
                raise PipelineError(f"Pipeline worker failed: {failure}") from failure
